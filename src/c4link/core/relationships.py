"""Directed relationships between elements."""

from __future__ import annotations

from typing import TYPE_CHECKING

from c4link.core.schema import InteractionStyle
from c4link.core.tags import Tags, TagSet

if TYPE_CHECKING:
    from c4link.core.elements import Element


_STYLE_TAGS = {
    InteractionStyle.SYNCHRONOUS: Tags.SYNCHRONOUS,
    InteractionStyle.ASYNCHRONOUS: Tags.ASYNCHRONOUS,
}


class Relationship:
    """
    A directed, described edge between two elements.

    Relationships are created by Model.add_relationship (or Element.uses),
    which assigns the id and rejects invalid or duplicate edges.
    """

    def __init__(
        self,
        source: Element,
        destination: Element,
        description: str = "",
        technology: str | None = None,
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> None:
        self._id: str | None = None
        self._source = source
        self._destination = destination
        self.description = description or ""
        self.technology = technology
        self._tags = TagSet([Tags.RELATIONSHIP])
        self._interaction_style = InteractionStyle(interaction_style)
        self._tags.add(_STYLE_TAGS[self._interaction_style])
        # Set on container instance relationships replicated from a container relationship
        self.linked_relationship_id: str | None = None

    def _bind(self, identifier: str) -> None:
        self._id = identifier

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def source(self) -> Element:
        return self._source

    @property
    def source_id(self) -> str | None:
        return self._source.id

    @property
    def destination(self) -> Element:
        return self._destination

    @property
    def destination_id(self) -> str | None:
        return self._destination.id

    @property
    def interaction_style(self) -> InteractionStyle:
        return self._interaction_style

    @interaction_style.setter
    def interaction_style(self, value: InteractionStyle) -> None:
        value = InteractionStyle(value)
        self._tags.remove(_STYLE_TAGS[self._interaction_style])
        self._interaction_style = value
        self._tags.add(_STYLE_TAGS[value])

    @property
    def is_synchronous(self) -> bool:
        return self._interaction_style == InteractionStyle.SYNCHRONOUS

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    def add_tags(self, *tags: str | None) -> None:
        self._tags.add(*tags)

    def remove_tag(self, tag: str | None) -> None:
        self._tags.remove(tag)

    def has_tag(self, tag: str) -> bool:
        return tag in self._tags

    def __repr__(self) -> str:
        return (
            f"Relationship({self.id}, {self._source.canonical_name} -> "
            f"{self._destination.canonical_name}: {self.description!r})"
        )
