"""
Consume "uses" facts produced by a source-code scanner.

A scanner reports, for a source element, which containers and software
systems it uses. Each fact becomes a relationship in the model.
Destinations that can't be found are logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

from c4link.core.elements import Component, Container, Element, SoftwareSystem
from c4link.core.model import Model, ResolutionError
from c4link.core.relationships import Relationship
from c4link.core.schema import FactsSchema, InteractionStyle, UsesFactSchema

logger = logging.getLogger(__name__)


@dataclass
class UsesFact:
    """The source element uses the destination."""

    destination: str  # id, canonical name or name
    description: str = ""
    technology: str | None = None
    interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS

    @classmethod
    def from_schema(cls, schema: UsesFactSchema) -> UsesFact:
        return cls(
            destination=schema.destination,
            description=schema.description,
            technology=schema.technology,
            interaction_style=schema.interaction_style,
        )


def _enclosing_software_system(element: Element) -> SoftwareSystem | None:
    current: Element | None = element
    while current is not None:
        if isinstance(current, SoftwareSystem):
            return current
        current = current.parent
    return None


def resolve_destination(
    model: Model,
    source: Element,
    identifier: str,
    kind: type[Element] | None = None,
) -> Element | None:
    """
    Find a fact's destination.

    Tries the model-wide lookup (id, canonical name, system/person name)
    first, then a container of that name in the source's own software
    system. When ``kind`` is given, a model-wide match of another kind
    gives way to a container of that name.
    """
    element = model.find(identifier)
    if element is not None and (kind is None or isinstance(element, kind)):
        return element
    software_system = _enclosing_software_system(source)
    if software_system is not None:
        container = software_system.get_container_with_name(identifier)
        if container is not None:
            return container
    return element


def apply_uses_facts(
    model: Model,
    source: Element,
    facts: Iterable[UsesFact],
    kind: type[Element] | None = None,
) -> list[Relationship]:
    """
    Create a relationship for each fact.

    Args:
        model: Model owning the source element
        source: Element the facts were gathered for
        facts: Facts to apply
        kind: If set, destinations must be of this element type

    Returns list of relationships created (duplicates are not repeated).
    """
    created = []
    for fact in facts:
        destination = resolve_destination(model, source, fact.destination, kind)
        if destination is None:
            logger.warning("%s could not be found (used by %s)", fact.destination, source.canonical_name)
            continue
        if kind is not None and not isinstance(destination, kind):
            logger.warning(
                "%s is not a %s (used by %s)",
                fact.destination,
                kind.__name__,
                source.canonical_name,
            )
            continue
        relationship = model.add_relationship(
            source, destination, fact.description, fact.technology, fact.interaction_style
        )
        if relationship is not None:
            created.append(relationship)
    return created


def uses_containers(model: Model, source: Element, facts: Iterable[UsesFact]) -> list[Relationship]:
    return apply_uses_facts(model, source, facts, kind=Container)


def uses_software_systems(model: Model, source: Element, facts: Iterable[UsesFact]) -> list[Relationship]:
    return apply_uses_facts(model, source, facts, kind=SoftwareSystem)


def load_facts(path: str | Path) -> FactsSchema:
    """Load a facts file (YAML or JSON)."""
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f)
    return FactsSchema(**(data or {}))


def apply_facts(model: Model, facts: FactsSchema) -> list[Relationship]:
    """
    Apply a whole facts document to the model.

    Every source is resolved before any relationship is created, so an
    unknown source leaves the model untouched.

    Raises:
        ResolutionError: if a fact's source element is not in the model
    """
    sources = []
    for entry in facts.facts:
        source = model.find(entry.source)
        if source is None:
            raise ResolutionError(f"Source element not found: {entry.source}")
        sources.append(source)

    created = []
    for entry, source in zip(facts.facts, sources):
        if not isinstance(source, (Container, Component, SoftwareSystem)):
            logger.warning("Facts for %s ignored: not a software system, container or component", entry.source)
            continue
        created += uses_containers(model, source, [UsesFact.from_schema(f) for f in entry.uses_containers])
        created += uses_software_systems(
            model, source, [UsesFact.from_schema(f) for f in entry.uses_software_systems]
        )
    logger.info("Applied facts: %d relationships created", len(created))
    return created
