"""Deployment overlay: deployment nodes and container instances."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from c4link.core.elements import CANONICAL_NAME_SEPARATOR, Container, Element, format_name
from c4link.core.schema import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_HEALTH_CHECK_INTERVAL,
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    HttpHealthCheck,
    InteractionStyle,
)
from c4link.core.tags import Tags
from c4link.core.urls import is_url

if TYPE_CHECKING:
    from c4link.core.relationships import Relationship

logger = logging.getLogger(__name__)

__all__ = ["ContainerInstance", "DeploymentNode", "HttpHealthCheck"]


class DeploymentNode(Element):
    """
    Infrastructure that container instances run on (a server, a VM,
    a Kubernetes pod, ...). Nodes nest; top-level nodes belong to an
    environment and child nodes inherit it.
    """

    def __init__(
        self,
        name: str | None = None,
        description: str | None = None,
        technology: str | None = None,
        environment: str = DEFAULT_ENVIRONMENT,
        instances: int = 1,
    ) -> None:
        super().__init__(name, description)
        self.technology = technology
        self.environment = environment or DEFAULT_ENVIRONMENT
        if instances < 1:
            raise ValueError("The number of instances must be a positive integer.")
        self.instances = instances

    @property
    def required_tags(self) -> tuple[str, ...]:
        return (Tags.ELEMENT, Tags.DEPLOYMENT_NODE)

    @property
    def canonical_name(self) -> str:
        parent = self.parent
        if parent is not None:
            return f"{parent.canonical_name}{CANONICAL_NAME_SEPARATOR}{format_name(self.name)}"
        return (
            f"{CANONICAL_NAME_SEPARATOR}Deployment{CANONICAL_NAME_SEPARATOR}"
            f"{format_name(self.environment)}{CANONICAL_NAME_SEPARATOR}{format_name(self.name)}"
        )

    @property
    def children(self) -> list[DeploymentNode]:
        if self._model is None:
            return []
        return [e for e in self._model.children_of(self) if isinstance(e, DeploymentNode)]

    @property
    def container_instances(self) -> list[ContainerInstance]:
        if self._model is None:
            return []
        return [e for e in self._model.children_of(self) if isinstance(e, ContainerInstance)]

    def add_deployment_node(
        self,
        name: str,
        description: str | None = None,
        technology: str | None = None,
        instances: int = 1,
    ) -> DeploymentNode:
        """Add a child node in the same environment."""
        return self.model.add_deployment_node(
            name,
            description,
            technology,
            environment=self.environment,
            instances=instances,
            parent=self,
        )

    def get_deployment_node_with_name(self, name: str) -> DeploymentNode | None:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def add(self, container: Container, replicate_relationships: bool = True) -> ContainerInstance:
        """
        Deploy a container onto this node.

        Args:
            container: The container to deploy
            replicate_relationships: Copy the container's relationships onto
                instances already deployed in the same environment
        """
        return self.model.add_container_instance(self, container, replicate_relationships)


class ContainerInstance(Element):
    """
    A deployment-time projection of a Container: one running copy.

    The instance has no identity metadata of its own. Its name is always
    None (display names come from the container), name assignment and tag
    removal are no-ops, and its tags start as a copy of the container's.
    """

    def __init__(self, container: Container | None, instance_id: int) -> None:
        super().__init__()
        self._container = container
        self._container_id: str | None = None
        self._instance_id = instance_id
        self._health_checks: set[HttpHealthCheck] = set()
        if container is not None:
            self._tags.add(*container.tags)
            self._tags.add(Tags.CONTAINER_INSTANCE)

    @property
    def container(self) -> Container | None:
        """The source container, or None while it is unresolved."""
        return self._container

    @container.setter
    def container(self, container: Container | None) -> None:
        self._container = container

    @property
    def container_id(self) -> str | None:
        """
        Id of the container this is an instance of.

        Falls back to the stored id when the container reference
        has not been resolved (e.g. while loading).
        """
        if self._container is not None:
            return self._container.id
        return self._container_id

    @container_id.setter
    def container_id(self, container_id: str | None) -> None:
        self._container_id = container_id

    @property
    def instance_id(self) -> int:
        """Instance number, 1-based per container."""
        return self._instance_id

    @property
    def deployment_node(self) -> DeploymentNode | None:
        if self._model is None:
            return None
        node = self._model.parent_of(self)
        return node if isinstance(node, DeploymentNode) else None

    @property
    def required_tags(self) -> frozenset[str]:
        return frozenset()

    def remove_tag(self, tag: str | None) -> None:
        # tags reflect the container and are never removed
        pass

    @property
    def canonical_name(self) -> str | None:
        if self._container is None:
            return None
        return f"{self._container.canonical_name}[{self._instance_id}]"

    @property
    def parent(self) -> Element | None:
        if self._container is None:
            return None
        return self._container.parent

    @property
    def name(self) -> None:
        return None

    @name.setter
    def name(self, value: str | None) -> None:
        # name comes from the container
        pass

    def uses(
        self,
        destination: Element | None,
        description: str = "",
        technology: str | None = None,
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship | None:
        """
        Add a relationship between this container instance and another.

        Raises:
            ValueError: if the destination is not specified or is not
                a container instance
        """
        if destination is None:
            raise ValueError("The destination of a relationship must be specified.")
        if not isinstance(destination, ContainerInstance):
            raise ValueError("The destination of the relationship must be a container instance.")
        return self.model.add_relationship(
            self, destination, description, technology, interaction_style
        )

    @property
    def health_checks(self) -> set[HttpHealthCheck]:
        """Health checks for this instance (a copy)."""
        return set(self._health_checks)

    def add_health_check(
        self,
        name: str,
        url: str,
        interval: int = DEFAULT_HEALTH_CHECK_INTERVAL,
        timeout: int = DEFAULT_HEALTH_CHECK_TIMEOUT,
    ) -> HttpHealthCheck:
        """
        Add an HTTP health check.

        Args:
            name: Name of the health check
            url: URL to poll
            interval: Polling interval, in seconds
            timeout: Timeout, in milliseconds

        Raises:
            ValueError: if the name or URL is empty, the URL is malformed,
                or the interval/timeout is negative
        """
        if name is None or not name.strip():
            raise ValueError("The name must not be null or empty.")
        if url is None or not url.strip():
            raise ValueError("The URL must not be null or empty.")
        if not is_url(url):
            raise ValueError(f"{url} is not a valid URL.")
        if interval < 0:
            raise ValueError("The polling interval must be zero or a positive integer.")
        if timeout < 0:
            raise ValueError("The timeout must be zero or a positive integer.")

        health_check = HttpHealthCheck(name=name, url=url, interval=interval, timeout=timeout)
        self._health_checks.add(health_check)
        logger.debug("Added health check %s to container instance %s", name, self.id)
        return health_check

    def _restore_health_checks(self, health_checks: list[HttpHealthCheck]) -> None:
        self._health_checks.update(health_checks)

    def __repr__(self) -> str:
        return (
            f"ContainerInstance({self.canonical_name or self.container_id}, "
            f"id={self.id}, instance={self._instance_id})"
        )
