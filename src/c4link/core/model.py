"""The model: owner of all elements and relationships."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Iterator, TypeVar

import yaml

from c4link.core.deployment import ContainerInstance, DeploymentNode
from c4link.core.elements import Component, Container, Element, Person, SoftwareSystem
from c4link.core.identity import SequentialIdGenerator
from c4link.core.relationships import Relationship
from c4link.core.schema import (
    DEFAULT_ENVIRONMENT,
    ComponentSchema,
    ContainerInstanceSchema,
    ContainerSchema,
    DeploymentNodeSchema,
    ElementSchema,
    InteractionStyle,
    ModelSchema,
    PersonSchema,
    RelationshipSchema,
    SoftwareSystemSchema,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Element)


class ResolutionError(Exception):
    """Raised when a reference to an element cannot be resolved."""

    pass


class Model:
    """
    The architecture model.

    Holds every element and relationship keyed by id, plus the
    containment index (child id -> parent id). All elements and
    relationships are created here so identifier assignment and
    validation live in one place.
    """

    def __init__(self) -> None:
        self._ids = SequentialIdGenerator()
        self._elements: dict[str, Element] = {}
        self._relationships: dict[str, Relationship] = {}
        # Containment index: child id -> parent id
        self._parents: dict[str, str] = {}

    # --- Registration ---

    def _register(self, element: E, parent: Element | None = None, identifier: str | None = None) -> E:
        if identifier is None:
            identifier = self._ids.generate()
        else:
            if identifier in self._elements or identifier in self._relationships:
                raise ValueError(f"An element or relationship with id {identifier} already exists.")
            self._ids.found(identifier)
        element._bind(self, identifier)
        self._elements[identifier] = element
        if parent is not None:
            self._parents[identifier] = parent.id
        logger.debug("Added %r", element)
        return element

    def _check_owned(self, element: Element) -> None:
        if element.id is None or self._elements.get(element.id) is not element:
            raise ValueError(f"{element!r} does not belong to this model.")

    @staticmethod
    def _check_name(name: str | None, siblings: list[Element], kind: str) -> None:
        if name is None or not name.strip():
            raise ValueError("A name must be specified.")
        for sibling in siblings:
            if sibling.name == name:
                raise ValueError(f"A {kind} named '{name}' already exists.")

    def add_person(self, name: str, description: str | None = None) -> Person:
        self._check_name(name, self.people + self.software_systems, "person or software system")
        return self._register(Person(name, description))

    def add_software_system(self, name: str, description: str | None = None) -> SoftwareSystem:
        self._check_name(name, self.people + self.software_systems, "person or software system")
        return self._register(SoftwareSystem(name, description))

    def add_container(
        self,
        software_system: SoftwareSystem,
        name: str,
        description: str | None = None,
        technology: str | None = None,
    ) -> Container:
        self._check_owned(software_system)
        self._check_name(name, software_system.containers, "container")
        return self._register(Container(name, description, technology), parent=software_system)

    def add_component(
        self,
        container: Container,
        name: str,
        description: str | None = None,
        technology: str | None = None,
    ) -> Component:
        self._check_owned(container)
        self._check_name(name, container.components, "component")
        return self._register(Component(name, description, technology), parent=container)

    def add_deployment_node(
        self,
        name: str,
        description: str | None = None,
        technology: str | None = None,
        environment: str = DEFAULT_ENVIRONMENT,
        instances: int = 1,
        parent: DeploymentNode | None = None,
    ) -> DeploymentNode:
        """
        Add a deployment node.

        Top-level node names are unique per environment; child node
        names are unique per parent node.
        """
        if parent is not None:
            self._check_owned(parent)
            environment = parent.environment
            siblings: list[Element] = list(parent.children)
        else:
            siblings = list(self.deployment_nodes(environment))
        self._check_name(name, siblings, "deployment node")
        node = DeploymentNode(name, description, technology, environment, instances)
        return self._register(node, parent=parent)

    def add_container_instance(
        self,
        deployment_node: DeploymentNode,
        container: Container,
        replicate_relationships: bool = True,
    ) -> ContainerInstance:
        """
        Deploy a container onto a node.

        The instance number is one more than the number of instances of
        the container already in the model. It is a count, not the highest
        number in use: after loading instances 1 and 3, the next one is 3.
        """
        if container is None:
            raise ValueError("A container must be specified.")
        self._check_owned(deployment_node)
        self._check_owned(container)

        instance_id = len(self.container_instances_of(container)) + 1
        instance = self._register(ContainerInstance(container, instance_id), parent=deployment_node)

        if replicate_relationships:
            self._replicate_container_relationships(instance, deployment_node.environment)
        return instance

    def _replicate_container_relationships(self, instance: ContainerInstance, environment: str) -> None:
        container = instance.container
        for other in self.container_instances(environment):
            if other is instance or other.container is None:
                continue
            for relationship in self.relationships_between(container, other.container):
                self._replicate(relationship, instance, other)
            for relationship in self.relationships_between(other.container, container):
                self._replicate(relationship, other, instance)

    def _replicate(self, relationship: Relationship, source: Element, destination: Element) -> None:
        replica = self.add_relationship(
            source,
            destination,
            relationship.description,
            relationship.technology,
            relationship.interaction_style,
        )
        if replica is not None:
            replica.linked_relationship_id = relationship.id

    def add_relationship(
        self,
        source: Element | None,
        destination: Element | None,
        description: str = "",
        technology: str | None = None,
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship | None:
        """
        Add a relationship between two elements of this model.

        Returns None when a relationship with the same source, destination
        and description already exists.

        Raises:
            ValueError: if the source or destination is missing or belongs
                to another model
        """
        if source is None:
            raise ValueError("The source of a relationship must be specified.")
        if destination is None:
            raise ValueError("The destination of a relationship must be specified.")
        self._check_owned(source)
        self._check_owned(destination)

        description = description or ""
        for existing in self.relationships_between(source, destination):
            if existing.description == description:
                logger.debug("Relationship already exists: %r", existing)
                return None

        relationship = Relationship(source, destination, description, technology, interaction_style)
        return self._register_relationship(relationship)

    def _register_relationship(self, relationship: Relationship, identifier: str | None = None) -> Relationship:
        if identifier is None:
            identifier = self._ids.generate()
        else:
            if identifier in self._elements or identifier in self._relationships:
                raise ValueError(f"An element or relationship with id {identifier} already exists.")
            self._ids.found(identifier)
        relationship._bind(identifier)
        self._relationships[identifier] = relationship
        logger.debug("Added %r", relationship)
        return relationship

    # --- Lookup ---

    def get_element(self, element_id: str) -> Element | None:
        return self._elements.get(element_id)

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        return self._relationships.get(relationship_id)

    def get_element_with_canonical_name(self, canonical_name: str) -> Element | None:
        if not canonical_name:
            return None
        for element in self._elements.values():
            if element.canonical_name == canonical_name:
                return element
        return None

    def get_person_with_name(self, name: str) -> Person | None:
        for person in self.people:
            if person.name == name:
                return person
        return None

    def get_software_system_with_name(self, name: str) -> SoftwareSystem | None:
        for software_system in self.software_systems:
            if software_system.name == name:
                return software_system
        return None

    def find(self, identifier: str) -> Element | None:
        """Find an element by id, canonical name, or person/software system name."""
        if element := self.get_element(identifier):
            return element
        if element := self.get_element_with_canonical_name(identifier):
            return element
        if element := self.get_software_system_with_name(identifier):
            return element
        return self.get_person_with_name(identifier)

    def parent_of(self, element: Element) -> Element | None:
        """Containment parent from the model's index."""
        parent_id = self._parents.get(element.id) if element.id else None
        if parent_id is None:
            return None
        return self._elements.get(parent_id)

    def children_of(self, element: Element) -> list[Element]:
        return [
            self._elements[child_id]
            for child_id, parent_id in self._parents.items()
            if parent_id == element.id
        ]

    @property
    def elements(self) -> list[Element]:
        return list(self._elements.values())

    @property
    def people(self) -> list[Person]:
        return [e for e in self._elements.values() if isinstance(e, Person)]

    @property
    def software_systems(self) -> list[SoftwareSystem]:
        return [e for e in self._elements.values() if isinstance(e, SoftwareSystem)]

    def deployment_nodes(self, environment: str | None = None) -> list[DeploymentNode]:
        """Top-level deployment nodes, optionally for one environment."""
        return [
            e
            for e in self._elements.values()
            if isinstance(e, DeploymentNode)
            and e.id not in self._parents
            and (environment is None or e.environment == environment)
        ]

    def environments(self) -> set[str]:
        return {e.environment for e in self._elements.values() if isinstance(e, DeploymentNode)}

    def container_instances(self, environment: str | None = None) -> list[ContainerInstance]:
        results = []
        for element in self._elements.values():
            if not isinstance(element, ContainerInstance):
                continue
            if environment is not None:
                node = element.deployment_node
                if node is None or node.environment != environment:
                    continue
            results.append(element)
        return results

    def container_instances_of(self, container: Container) -> list[ContainerInstance]:
        return [i for i in self.container_instances() if i.container is container]

    @property
    def relationships(self) -> list[Relationship]:
        return list(self._relationships.values())

    def relationships_from(self, element: Element) -> list[Relationship]:
        return [r for r in self._relationships.values() if r.source is element]

    def relationships_to(self, element: Element) -> list[Relationship]:
        return [r for r in self._relationships.values() if r.destination is element]

    def relationships_between(self, source: Element, destination: Element) -> list[Relationship]:
        return [
            r
            for r in self._relationships.values()
            if r.source is source and r.destination is destination
        ]

    def validate(self) -> list[str]:
        """
        Check structural consistency.

        Returns list of error messages (empty if valid).
        """
        errors = []
        for instance in self.container_instances():
            if instance.container is None:
                errors.append(
                    f"Container instance {instance.id}: container not found: {instance.container_id}"
                )
        counts = Counter(
            e.canonical_name for e in self._elements.values() if e.canonical_name is not None
        )
        for canonical_name, count in sorted(counts.items()):
            if count > 1:
                errors.append(f"Duplicate canonical name: {canonical_name} ({count} elements)")
        return errors

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self._elements.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Element):
            return item.id is not None and self._elements.get(item.id) is item
        if isinstance(item, str):
            return self.find(item) is not None
        return False

    # --- Serialization ---

    @classmethod
    def load(cls, path: str | Path) -> Model:
        """Load a model from a YAML (or JSON) file."""
        path = Path(path)
        with path.open() as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    def save(self, path: str | Path) -> None:
        """Write the model to a YAML file."""
        path = Path(path)
        with path.open("w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Model:
        """
        Create a model from its external representation.

        Raises:
            pydantic.ValidationError: if the document is malformed
            ResolutionError: if a relationship references an unknown element
        """
        schema = ModelSchema(**data)
        model = cls()

        for person in schema.people:
            model._restore(Person(person.name, person.description), person)

        for system_schema in schema.software_systems:
            system = model._restore(
                SoftwareSystem(system_schema.name, system_schema.description), system_schema
            )
            for container_schema in system_schema.containers:
                container = model._restore(
                    Container(container_schema.name, container_schema.description, container_schema.technology),
                    container_schema,
                    parent=system,
                )
                for component_schema in container_schema.components:
                    model._restore(
                        Component(component_schema.name, component_schema.description, component_schema.technology),
                        component_schema,
                        parent=container,
                    )

        for node_schema in schema.deployment_nodes:
            model._restore_deployment_node(node_schema, parent=None)

        for relationship_schema in schema.relationships:
            model._restore_relationship(relationship_schema)

        return model

    def _restore(self, element: E, schema: ElementSchema, parent: Element | None = None) -> E:
        self._register(element, parent=parent, identifier=schema.id)
        element.add_tags(*schema.tags)
        element.url = schema.url
        for name, value in schema.properties.items():
            element.add_property(name, value)
        return element

    def _restore_deployment_node(self, schema: DeploymentNodeSchema, parent: DeploymentNode | None) -> None:
        environment = parent.environment if parent is not None else schema.environment
        node = self._restore(
            DeploymentNode(schema.name, schema.description, schema.technology, environment, schema.instances),
            schema,
            parent=parent,
        )
        for child in schema.children:
            self._restore_deployment_node(child, parent=node)
        for instance_schema in schema.container_instances:
            self._restore_container_instance(instance_schema, node)

    def _restore_container_instance(self, schema: ContainerInstanceSchema, node: DeploymentNode) -> None:
        instance = self._restore(ContainerInstance(None, schema.instance_id), schema, parent=node)
        instance.container_id = schema.container_id
        instance._restore_health_checks(schema.health_checks)

        container = self._elements.get(schema.container_id)
        if isinstance(container, Container):
            instance.container = container
        else:
            logger.warning(
                "Container %s for container instance %s could not be resolved",
                schema.container_id,
                instance.id,
            )

    def _restore_relationship(self, schema: RelationshipSchema) -> None:
        source = self._elements.get(schema.source_id)
        if source is None:
            raise ResolutionError(f"Source element not found for relationship {schema.id}: {schema.source_id}")
        destination = self._elements.get(schema.destination_id)
        if destination is None:
            raise ResolutionError(
                f"Destination element not found for relationship {schema.id}: {schema.destination_id}"
            )
        relationship = Relationship(
            source, destination, schema.description, schema.technology, schema.interaction_style
        )
        relationship.add_tags(*schema.tags)
        relationship.linked_relationship_id = schema.linked_relationship_id
        self._register_relationship(relationship, identifier=schema.id)

    def to_schema(self) -> ModelSchema:
        return ModelSchema(
            people=[PersonSchema(**_element_fields(p)) for p in self.people],
            software_systems=[_software_system_schema(s) for s in self.software_systems],
            deployment_nodes=[_deployment_node_schema(n) for n in self.deployment_nodes()],
            relationships=[_relationship_schema(r) for r in self._relationships.values()],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the external representation (derived fields omitted)."""
        return self.to_schema().model_dump(mode="json", by_alias=True, exclude_none=True)

    def __repr__(self) -> str:
        return f"Model({len(self._elements)} elements, {len(self._relationships)} relationships)"


def _element_fields(element: Element) -> dict[str, Any]:
    return {
        "id": element.id,
        "name": element.name,
        "description": element.description,
        "tags": element.tags,
        "url": element.url,
        "properties": element.properties,
    }


def _software_system_schema(system: SoftwareSystem) -> SoftwareSystemSchema:
    containers = []
    for container in system.containers:
        components = [
            ComponentSchema(**_element_fields(c), technology=c.technology) for c in container.components
        ]
        containers.append(
            ContainerSchema(
                **_element_fields(container),
                technology=container.technology,
                components=components,
            )
        )
    return SoftwareSystemSchema(**_element_fields(system), containers=containers)


def _deployment_node_schema(node: DeploymentNode) -> DeploymentNodeSchema:
    instances = []
    for instance in node.container_instances:
        health_checks = sorted(instance.health_checks, key=lambda h: (h.name, h.url))
        instances.append(
            ContainerInstanceSchema(
                **_element_fields(instance),
                container_id=instance.container_id,
                instance_id=instance.instance_id,
                health_checks=health_checks,
            )
        )
    return DeploymentNodeSchema(
        **_element_fields(node),
        technology=node.technology,
        environment=node.environment,
        instances=node.instances,
        children=[_deployment_node_schema(child) for child in node.children],
        container_instances=instances,
    )


def _relationship_schema(relationship: Relationship) -> RelationshipSchema:
    return RelationshipSchema(
        id=relationship.id,
        tags=relationship.tags,
        source_id=relationship.source_id,
        destination_id=relationship.destination_id,
        description=relationship.description,
        technology=relationship.technology,
        interaction_style=relationship.interaction_style,
        linked_relationship_id=relationship.linked_relationship_id,
    )
