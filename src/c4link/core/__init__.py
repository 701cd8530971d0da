"""Core domain model for C4 architecture graphs."""

from c4link.core.deployment import ContainerInstance, DeploymentNode, HttpHealthCheck
from c4link.core.elements import Component, Container, Element, Person, SoftwareSystem
from c4link.core.facts import UsesFact, apply_uses_facts
from c4link.core.model import Model, ResolutionError
from c4link.core.relationships import Relationship
from c4link.core.schema import InteractionStyle, ModelSchema
from c4link.core.tags import Tags

__all__ = [
    "Model",
    "ResolutionError",
    "Element",
    "Person",
    "SoftwareSystem",
    "Container",
    "Component",
    "DeploymentNode",
    "ContainerInstance",
    "HttpHealthCheck",
    "Relationship",
    "InteractionStyle",
    "ModelSchema",
    "Tags",
    "UsesFact",
    "apply_uses_facts",
]
