"""Identifier assignment for elements and relationships."""

from __future__ import annotations


class SequentialIdGenerator:
    """
    Generates sequential string identifiers ("1", "2", ...).

    Elements and relationships share one generator per model, so an id
    is unique across the whole graph.
    """

    def __init__(self) -> None:
        self._last = 0

    def generate(self) -> str:
        self._last += 1
        return str(self._last)

    def found(self, identifier: str) -> None:
        """Record an id seen while loading so later ids don't collide."""
        try:
            value = int(identifier)
        except (TypeError, ValueError):
            return
        if value > self._last:
            self._last = value
