"""
C4link - Software architecture modeling following the C4 model.

This package provides tools for:
- Declaring people, software systems, containers and components
- Relating elements with described, typed relationships
- Modeling deployments as nodes hosting container instances
- Applying "uses" facts gathered from source code
- Loading and saving models as YAML/JSON documents
"""

__version__ = "0.1.0"

from c4link.core.model import Model
from c4link.core.elements import Component, Container, Person, SoftwareSystem
from c4link.core.deployment import ContainerInstance, DeploymentNode
from c4link.core.relationships import Relationship
from c4link.core.schema import InteractionStyle

__all__ = [
    "__version__",
    "Model",
    "Person",
    "SoftwareSystem",
    "Container",
    "Component",
    "DeploymentNode",
    "ContainerInstance",
    "Relationship",
    "InteractionStyle",
]
