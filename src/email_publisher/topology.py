# src/email_publisher/topology.py

"""
Declarative composition of the Email Publisher distributed application.

A builder collects named resources (a functions host, a storage emulator and
its queues, client projects) along with coarse readiness dependencies
("X waits for Y"), connection references and HTTP exposure flags. Building
validates the graph and yields a `DistributedApplication` which can report
its startup order and a JSON manifest. Nothing here starts processes or
containers; that belongs to whatever host consumes the manifest.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, TypeVar, Union

from rich.console import Console
from rich.table import Table

from .exceptions import (
    DependencyCycleError,
    DuplicateResourceError,
    UnknownResourceError,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="Resource")
ResourceRef = Union["Resource", str]


def _ref_name(ref: ResourceRef) -> str:
    return ref.name if isinstance(ref, Resource) else ref


@dataclass(eq=False)
class Resource:
    """A named deployable unit in the application."""

    resource_type: ClassVar[str] = "resource.v0"

    name: str
    waits_for: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)
    external_http_endpoints: bool = False
    parent: Optional[str] = None
    _builder: Optional["DistributedApplicationBuilder"] = field(
        default=None, repr=False, compare=False
    )

    def wait_for(self: R, other: ResourceRef) -> R:
        """Delay this resource's startup until `other` reports ready."""
        name = _ref_name(other)
        if name not in self.waits_for:
            self.waits_for.append(name)
        return self

    def with_reference(self: R, other: ResourceRef) -> R:
        """Inject `other`'s connection details into this resource's environment."""
        name = _ref_name(other)
        if name not in self.references:
            self.references.append(name)
        return self

    def with_external_http_endpoints(self: R) -> R:
        self.external_http_endpoints = True
        return self

    def with_environment(self: R, key: str, value: str) -> R:
        self.environment[key] = value
        return self

    def dependencies(self) -> List[str]:
        """Resources that must be ready first. Children wait for their parent."""
        deps = list(self.waits_for)
        if self.parent and self.parent not in deps:
            deps.insert(0, self.parent)
        return deps

    def connection_string(self) -> Optional[str]:
        return None

    def reference_environment(self) -> Dict[str, str]:
        """Environment variables handed to resources that reference this one."""
        connection = self.connection_string()
        if connection is None:
            return {}
        return {f"ConnectionStrings__{self.name}": connection}

    def to_manifest(self, app: "DistributedApplication") -> Dict[str, Any]:
        manifest: Dict[str, Any] = {
            "type": self.resource_type,
            "waitFor": self.dependencies(),
            "references": list(self.references),
            "env": app.environment_for(self),
            "external": self.external_http_endpoints,
        }
        if self.parent:
            manifest["parent"] = self.parent
        return manifest


@dataclass(eq=False)
class FunctionsProjectResource(Resource):
    """The serverless functions host."""

    resource_type: ClassVar[str] = "functions.project.v0"

    handler: str = "email_publisher.app.handler"
    port: int = 7071

    def connection_string(self) -> Optional[str]:
        return f"http://localhost:{self.port}"

    def to_manifest(self, app: "DistributedApplication") -> Dict[str, Any]:
        manifest = super().to_manifest(app)
        manifest["handler"] = self.handler
        manifest["bindings"] = {"http": {"port": self.port}}
        return manifest


@dataclass(eq=False)
class ProjectResource(Resource):
    """A plain client project, e.g. a producer that enqueues messages."""

    resource_type: ClassVar[str] = "project.v0"

    entry_point: str = ""

    def to_manifest(self, app: "DistributedApplication") -> Dict[str, Any]:
        manifest = super().to_manifest(app)
        manifest["entryPoint"] = self.entry_point
        return manifest


@dataclass(eq=False)
class StorageEmulatorResource(Resource):
    """A local emulator container that exposes queues."""

    resource_type: ClassVar[str] = "container.v0"

    image: str = "localstack/localstack"
    port: int = 4566

    def connection_string(self) -> Optional[str]:
        return f"http://localhost:{self.port}"

    def add_queue(self, name: str) -> "QueueResource":
        """Declare a queue hosted by this emulator."""
        queue = QueueResource(name=name, parent=self.name, emulator=self)
        if self._builder is not None:
            return self._builder.add_resource(queue)
        return queue

    def to_manifest(self, app: "DistributedApplication") -> Dict[str, Any]:
        manifest = super().to_manifest(app)
        manifest["image"] = self.image
        manifest["bindings"] = {"http": {"port": self.port}}
        return manifest


@dataclass(eq=False)
class QueueResource(Resource):
    """A named FIFO message channel hosted by a storage emulator."""

    resource_type: ClassVar[str] = "queue.v0"

    emulator: Optional[StorageEmulatorResource] = field(default=None, repr=False)

    def connection_string(self) -> Optional[str]:
        if self.emulator is None:
            return None
        return f"{self.emulator.connection_string()}/queue/{self.name}"

    def reference_environment(self) -> Dict[str, str]:
        # Names match what AppConfig.load_from_env reads.
        env = {"EMAIL_QUEUE_NAME": self.name}
        if self.emulator is not None:
            env["QUEUE_ENDPOINT_URL"] = self.emulator.connection_string()
        return env


class DistributedApplication:
    """A validated set of resources."""

    def __init__(self, name: str, resources: List[Resource]):
        self.name = name
        self.resources = list(resources)
        self._by_key = {r.name.casefold(): r for r in self.resources}

    def get(self, name: str) -> Resource:
        try:
            return self._by_key[name.casefold()]
        except KeyError:
            raise KeyError(f"No resource named '{name}'") from None

    def __contains__(self, name: str) -> bool:
        return name.casefold() in self._by_key

    def validate(self) -> None:
        """
        Raises UnknownResourceError for dangling names and DependencyCycleError
        for cyclic wait-for chains.
        """
        for resource in self.resources:
            for name in resource.dependencies() + resource.references:
                if name not in self:
                    raise UnknownResourceError(name, referenced_by=resource.name)
        self.startup_order()

    def startup_order(self) -> List[Resource]:
        """
        Dependencies come before their dependents; otherwise declaration
        order is kept.
        """
        visiting, done = 1, 2
        state: Dict[str, int] = {}
        order: List[Resource] = []

        def visit(resource: Resource, path: List[str]) -> None:
            key = resource.name.casefold()
            if state.get(key) == done:
                return
            if state.get(key) == visiting:
                start = [p.casefold() for p in path].index(key)
                raise DependencyCycleError(path[start:] + [resource.name])
            state[key] = visiting
            path.append(resource.name)
            for dep in resource.dependencies():
                visit(self.get(dep), path)
            path.pop()
            state[key] = done
            order.append(resource)

        for resource in self.resources:
            visit(resource, [])
        return order

    def environment_for(self, resource: Resource) -> Dict[str, str]:
        """Reference-derived variables, overridden by explicit ones."""
        env: Dict[str, str] = {}
        for name in resource.references:
            env.update(self.get(name).reference_environment())
        env.update(resource.environment)
        return env

    def to_manifest(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "startupOrder": [r.name for r in self.startup_order()],
            "resources": {r.name: r.to_manifest(self) for r in self.resources},
        }

    def run(self, console: Optional[Console] = None) -> List[Resource]:
        """Render the startup plan. Returns the resources in startup order."""
        console = console or Console()
        order = self.startup_order()

        table = Table(title=f"Startup plan: {self.name}")
        table.add_column("#", justify="right")
        table.add_column("Resource", style="cyan")
        table.add_column("Type")
        table.add_column("Waits for")
        table.add_column("External", justify="center")

        for index, resource in enumerate(order, start=1):
            table.add_row(
                str(index),
                resource.name,
                resource.resource_type,
                ", ".join(resource.dependencies()) or "-",
                "✓" if resource.external_http_endpoints else "",
            )
            logger.info(
                "Resource scheduled",
                extra={"resource": resource.name, "position": index},
            )

        console.print(table)
        return order


class DistributedApplicationBuilder:
    """Collects resources and builds a validated DistributedApplication."""

    def __init__(self, name: str = "app"):
        self.name = name
        self._resources: Dict[str, Resource] = {}

    @property
    def resources(self) -> List[Resource]:
        return list(self._resources.values())

    def add_resource(self, resource: R) -> R:
        key = resource.name.casefold()
        if key in self._resources:
            raise DuplicateResourceError(resource.name)
        resource._builder = self
        self._resources[key] = resource
        logger.debug("Resource declared", extra={"resource": resource.name})
        return resource

    def add_functions_project(
        self, name: str, handler: str = "email_publisher.app.handler", port: int = 7071
    ) -> FunctionsProjectResource:
        return self.add_resource(FunctionsProjectResource(name=name, handler=handler, port=port))

    def add_storage_emulator(
        self, name: str, image: str = "localstack/localstack", port: int = 4566
    ) -> StorageEmulatorResource:
        return self.add_resource(StorageEmulatorResource(name=name, image=image, port=port))

    def add_project(self, name: str, entry_point: str) -> ProjectResource:
        return self.add_resource(ProjectResource(name=name, entry_point=entry_point))

    def build(self) -> DistributedApplication:
        app = DistributedApplication(self.name, self.resources)
        app.validate()
        return app
