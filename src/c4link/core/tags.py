"""Tag constants and ordered tag sets."""

from __future__ import annotations

from typing import Iterable, Iterator


class Tags:
    """Well-known tags applied by the model."""

    ELEMENT = "Element"
    RELATIONSHIP = "Relationship"

    PERSON = "Person"
    SOFTWARE_SYSTEM = "Software System"
    CONTAINER = "Container"
    COMPONENT = "Component"

    DEPLOYMENT_NODE = "Deployment Node"
    CONTAINER_INSTANCE = "Container Instance"

    SYNCHRONOUS = "Synchronous"
    ASYNCHRONOUS = "Asynchronous"


def split_tags(value: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated tag string (wire form) into tags."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [tag.strip() for tag in value if tag and tag.strip()]


class TagSet:
    """
    Ordered set of tags with an immutable required subset.

    Required tags always come first and can never be removed.
    """

    def __init__(self, required: Iterable[str] = ()) -> None:
        self._required: tuple[str, ...] = tuple(dict.fromkeys(required))
        self._tags: dict[str, None] = {}

    @property
    def required(self) -> tuple[str, ...]:
        return self._required

    def add(self, *tags: str | None) -> None:
        """Add tags, ignoring blanks and ones already present."""
        for tag in tags:
            if tag is None:
                continue
            tag = tag.strip()
            if not tag or tag in self._required:
                continue
            self._tags.setdefault(tag, None)

    def remove(self, tag: str | None) -> bool:
        """Remove a user tag. Returns False when nothing was removed."""
        if tag is None:
            return False
        tag = tag.strip()
        if tag in self._required or tag not in self._tags:
            return False
        del self._tags[tag]
        return True

    def clear(self) -> None:
        """Drop all user tags; required tags stay."""
        self._tags.clear()

    def as_string(self) -> str:
        return ",".join(self)

    def __contains__(self, tag: object) -> bool:
        return tag in self._required or tag in self._tags

    def __iter__(self) -> Iterator[str]:
        yield from self._required
        yield from self._tags

    def __len__(self) -> int:
        return len(self._required) + len(self._tags)

    def __repr__(self) -> str:
        return f"TagSet({list(self)})"
