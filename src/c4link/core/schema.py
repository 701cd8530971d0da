"""Pydantic schemas for the model's external representation."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from c4link.core.tags import split_tags
from c4link.core.urls import is_url


class InteractionStyle(str, Enum):
    """Call semantics of a relationship."""

    SYNCHRONOUS = "Synchronous"
    ASYNCHRONOUS = "Asynchronous"


DEFAULT_ENVIRONMENT = "Default"
DEFAULT_HEALTH_CHECK_INTERVAL = 60  # seconds
DEFAULT_HEALTH_CHECK_TIMEOUT = 0  # milliseconds


class HttpHealthCheck(BaseModel):
    """
    HTTP health check attached to a container instance.

    Immutable value object: two checks with the same name, URL,
    interval and timeout are the same check.
    """

    model_config = {"frozen": True}

    name: str
    url: str
    interval: int = Field(default=DEFAULT_HEALTH_CHECK_INTERVAL, ge=0)  # seconds
    timeout: int = Field(default=DEFAULT_HEALTH_CHECK_TIMEOUT, ge=0)  # milliseconds

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The name must not be null or empty.")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The URL must not be null or empty.")
        if not is_url(v):
            raise ValueError(f"{v} is not a valid URL.")
        return v


class _TaggedSchema(BaseModel):
    """Common fields for anything carrying tags on the wire."""

    model_config = {"populate_by_name": True}

    id: str
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> list[str]:
        """Accept the comma-separated string form as well as a list."""
        if v is None or isinstance(v, str):
            return split_tags(v)
        return v

    @field_serializer("tags")
    def serialize_tags(self, tags: list[str]) -> str:
        return ",".join(tags)


class ElementSchema(_TaggedSchema):
    """Fields shared by every element."""

    name: str | None = None
    description: str | None = None
    url: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)


class PersonSchema(ElementSchema):
    name: str


class ComponentSchema(ElementSchema):
    name: str
    technology: str | None = None


class ContainerSchema(ElementSchema):
    name: str
    technology: str | None = None
    components: list[ComponentSchema] = Field(default_factory=list)


class SoftwareSystemSchema(ElementSchema):
    name: str
    containers: list[ContainerSchema] = Field(default_factory=list)


class ContainerInstanceSchema(ElementSchema):
    """
    Wire form of a container instance.

    Only the container's id is written; the container itself is
    resolved against the loaded elements.
    """

    container_id: str = Field(alias="containerId")
    instance_id: int = Field(alias="instanceId", ge=1)
    health_checks: list[HttpHealthCheck] = Field(default_factory=list, alias="healthChecks")


class DeploymentNodeSchema(ElementSchema):
    name: str
    technology: str | None = None
    environment: str = DEFAULT_ENVIRONMENT
    instances: int = Field(default=1, ge=1)
    children: list[DeploymentNodeSchema] = Field(default_factory=list)
    container_instances: list[ContainerInstanceSchema] = Field(
        default_factory=list, alias="containerInstances"
    )


class RelationshipSchema(_TaggedSchema):
    source_id: str = Field(alias="sourceId")
    destination_id: str = Field(alias="destinationId")
    description: str = ""
    technology: str | None = None
    interaction_style: InteractionStyle = Field(
        default=InteractionStyle.SYNCHRONOUS, alias="interactionStyle"
    )
    linked_relationship_id: str | None = Field(default=None, alias="linkedRelationshipId")


class ModelSchema(BaseModel):
    """Schema for a complete model document."""

    model_config = {"populate_by_name": True}

    people: list[PersonSchema] = Field(default_factory=list)
    software_systems: list[SoftwareSystemSchema] = Field(
        default_factory=list, alias="softwareSystems"
    )
    deployment_nodes: list[DeploymentNodeSchema] = Field(
        default_factory=list, alias="deploymentNodes"
    )
    relationships: list[RelationshipSchema] = Field(default_factory=list)


# --- Uses facts ---


class UsesFactSchema(BaseModel):
    """A single "uses" fact: the source uses the named destination."""

    model_config = {"populate_by_name": True}

    destination: str  # id, canonical name or name
    description: str = ""
    technology: str | None = None
    interaction_style: InteractionStyle = Field(
        default=InteractionStyle.SYNCHRONOUS, alias="interactionStyle"
    )


class SourceFactsSchema(BaseModel):
    """Facts gathered for one source element."""

    model_config = {"populate_by_name": True}

    source: str  # id or canonical name
    uses_containers: list[UsesFactSchema] = Field(default_factory=list, alias="usesContainers")
    uses_software_systems: list[UsesFactSchema] = Field(
        default_factory=list, alias="usesSoftwareSystems"
    )


class FactsSchema(BaseModel):
    """Schema for a facts file produced by a source-code scanner."""

    facts: list[SourceFactsSchema] = Field(default_factory=list)
