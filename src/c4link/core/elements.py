"""Elements of the C4 model: people, software systems, containers, components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from c4link.core.schema import InteractionStyle
from c4link.core.tags import Tags, TagSet
from c4link.core.urls import is_url

if TYPE_CHECKING:
    from c4link.core.model import Model
    from c4link.core.relationships import Relationship


CANONICAL_NAME_SEPARATOR = "/"


def format_name(name: str | None) -> str:
    """Strip the canonical name separator from a name."""
    if not name:
        return ""
    return name.replace(CANONICAL_NAME_SEPARATOR, "")


class Element(ABC):
    """
    A named, identified, taggable node in the architecture graph.

    Elements are created through the owning Model (or a parent element,
    which delegates to it). The Model assigns the id and keeps the
    containment index, so an element never holds its parent directly.
    """

    def __init__(self, name: str | None = None, description: str | None = None) -> None:
        self._id: str | None = None
        self._model: Model | None = None
        self._name = name
        self.description = description
        self._url: str | None = None
        self._properties: dict[str, str] = {}
        self._tags = TagSet(self.required_tags)

    def _bind(self, model: Model, identifier: str) -> None:
        self._model = model
        self._id = identifier

    @property
    def id(self) -> str | None:
        """Identifier assigned by the owning model."""
        return self._id

    @property
    def model(self) -> Model:
        if self._model is None:
            raise ValueError(f"{self!r} does not belong to a model.")
        return self._model

    @property
    def name(self) -> str | None:
        return self._name

    @name.setter
    def name(self, value: str | None) -> None:
        self._name = value

    @property
    def url(self) -> str | None:
        return self._url

    @url.setter
    def url(self, value: str | None) -> None:
        if value and value.strip():
            if not is_url(value):
                raise ValueError(f"{value} is not a valid URL.")
            self._url = value
        else:
            self._url = None

    @property
    def properties(self) -> dict[str, str]:
        return dict(self._properties)

    def add_property(self, name: str, value: str) -> None:
        if not name or not name.strip():
            raise ValueError("A property name must be specified.")
        if value is None:
            raise ValueError("A property value must be specified.")
        self._properties[name] = value

    # --- Per-kind contract ---

    @property
    @abstractmethod
    def required_tags(self) -> frozenset[str] | tuple[str, ...]:
        """Tags this kind of element always carries."""

    @property
    @abstractmethod
    def canonical_name(self) -> str | None:
        """Hierarchy-derived name, unique within a model."""

    @property
    def parent(self) -> Element | None:
        if self._model is None:
            return None
        return self._model.parent_of(self)

    # --- Tags ---

    @property
    def tags(self) -> list[str]:
        """Required tags followed by user tags, in insertion order."""
        return list(self._tags)

    def add_tags(self, *tags: str | None) -> None:
        self._tags.add(*tags)

    def remove_tag(self, tag: str | None) -> None:
        """Remove a user tag; required tags are left in place."""
        self._tags.remove(tag)

    def has_tag(self, tag: str) -> bool:
        return tag in self._tags

    # --- Relationships ---

    def uses(
        self,
        destination: Element | None,
        description: str = "",
        technology: str | None = None,
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship | None:
        """
        Add a relationship from this element to the destination.

        Returns None when an identical relationship already exists.

        Raises:
            ValueError: if the destination is not specified
        """
        if destination is None:
            raise ValueError("The destination of a relationship must be specified.")
        return self.model.add_relationship(
            self, destination, description, technology, interaction_style
        )

    @property
    def relationships(self) -> list[Relationship]:
        """Relationships originating from this element."""
        if self._model is None:
            return []
        return self._model.relationships_from(self)

    def get_efferent_relationship_with(self, destination: Element) -> Relationship | None:
        for relationship in self.relationships:
            if relationship.destination is destination:
                return relationship
        return None

    def has_efferent_relationship_with(self, destination: Element) -> bool:
        return self.get_efferent_relationship_with(destination) is not None

    def _child_canonical_name(self) -> str:
        parent = self.parent
        if parent is None:
            return CANONICAL_NAME_SEPARATOR + format_name(self.name)
        return f"{parent.canonical_name}{CANONICAL_NAME_SEPARATOR}{format_name(self.name)}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.canonical_name}, id={self.id})"


class Person(Element):
    """A user of the software systems in the model."""

    @property
    def required_tags(self) -> tuple[str, ...]:
        return (Tags.ELEMENT, Tags.PERSON)

    @property
    def canonical_name(self) -> str:
        return CANONICAL_NAME_SEPARATOR + format_name(self.name)

    @property
    def parent(self) -> None:
        return None


class SoftwareSystem(Element):
    """A software system: the top of the static structure hierarchy."""

    @property
    def required_tags(self) -> tuple[str, ...]:
        return (Tags.ELEMENT, Tags.SOFTWARE_SYSTEM)

    @property
    def canonical_name(self) -> str:
        return CANONICAL_NAME_SEPARATOR + format_name(self.name)

    @property
    def parent(self) -> None:
        return None

    @property
    def containers(self) -> list[Container]:
        if self._model is None:
            return []
        return [e for e in self._model.children_of(self) if isinstance(e, Container)]

    def add_container(
        self,
        name: str,
        description: str | None = None,
        technology: str | None = None,
    ) -> Container:
        return self.model.add_container(self, name, description, technology)

    def get_container_with_name(self, name: str) -> Container | None:
        for container in self.containers:
            if container.name == name:
                return container
        return None


class Container(Element):
    """A deployable/runnable unit inside a software system."""

    def __init__(
        self,
        name: str | None = None,
        description: str | None = None,
        technology: str | None = None,
    ) -> None:
        super().__init__(name, description)
        self.technology = technology

    @property
    def required_tags(self) -> tuple[str, ...]:
        return (Tags.ELEMENT, Tags.CONTAINER)

    @property
    def canonical_name(self) -> str:
        return self._child_canonical_name()

    @property
    def software_system(self) -> SoftwareSystem | None:
        parent = self.parent
        return parent if isinstance(parent, SoftwareSystem) else None

    @property
    def components(self) -> list[Component]:
        if self._model is None:
            return []
        return [e for e in self._model.children_of(self) if isinstance(e, Component)]

    def add_component(
        self,
        name: str,
        description: str | None = None,
        technology: str | None = None,
    ) -> Component:
        return self.model.add_component(self, name, description, technology)

    def get_component_with_name(self, name: str) -> Component | None:
        for component in self.components:
            if component.name == name:
                return component
        return None


class Component(Element):
    """A grouping of related functionality inside a container."""

    def __init__(
        self,
        name: str | None = None,
        description: str | None = None,
        technology: str | None = None,
    ) -> None:
        super().__init__(name, description)
        self.technology = technology

    @property
    def required_tags(self) -> tuple[str, ...]:
        return (Tags.ELEMENT, Tags.COMPONENT)

    @property
    def canonical_name(self) -> str:
        return self._child_canonical_name()

    @property
    def container(self) -> Container | None:
        parent = self.parent
        return parent if isinstance(parent, Container) else None
