# tests/unit/test_topology.py

import io
import json

import pytest
from rich.console import Console

from email_publisher.exceptions import (
    DependencyCycleError,
    DuplicateResourceError,
    UnknownResourceError,
)
from email_publisher.topology import (
    DistributedApplicationBuilder,
    FunctionsProjectResource,
    QueueResource,
)


@pytest.fixture
def builder() -> DistributedApplicationBuilder:
    return DistributedApplicationBuilder("test-app")


def _names(resources):
    return [r.name for r in resources]


class TestBuilder:
    def test_fluent_methods_return_same_resource(self, builder):
        functions = builder.add_functions_project("functions")

        assert functions.with_external_http_endpoints() is functions
        assert functions.with_environment("KEY", "value") is functions
        assert isinstance(functions, FunctionsProjectResource)
        assert functions.external_http_endpoints is True

    def test_duplicate_names_are_rejected_case_insensitively(self, builder):
        builder.add_functions_project("functions")

        with pytest.raises(DuplicateResourceError):
            builder.add_project("Functions", entry_point="x:y")

    def test_add_queue_registers_child_resource(self, builder):
        storage = builder.add_storage_emulator("storage")
        queue = storage.add_queue("emails")

        assert isinstance(queue, QueueResource)
        assert queue.parent == "storage"
        assert _names(builder.resources) == ["storage", "emails"]

    def test_wait_for_accepts_names_and_ignores_repeats(self, builder):
        functions = builder.add_functions_project("functions")
        functions.wait_for("storage").wait_for("storage")

        assert functions.waits_for == ["storage"]


class TestValidation:
    def test_unknown_wait_for_target(self, builder):
        builder.add_functions_project("functions").wait_for("missing")

        with pytest.raises(UnknownResourceError) as exc_info:
            builder.build()

        assert exc_info.value.context == {"resource": "missing", "referenced_by": "functions"}

    def test_unknown_reference_target(self, builder):
        builder.add_project("client", entry_point="x:y").with_reference("queue")

        with pytest.raises(UnknownResourceError):
            builder.build()

    def test_cycle_is_detected(self, builder):
        a = builder.add_project("a", entry_point="x:a")
        b = builder.add_project("b", entry_point="x:b")
        c = builder.add_project("c", entry_point="x:c")
        a.wait_for(b)
        b.wait_for(c)
        c.wait_for(a)

        with pytest.raises(DependencyCycleError) as exc_info:
            builder.build()

        assert exc_info.value.context["cycle"] == ["a", "b", "c", "a"]

    def test_self_wait_is_a_cycle(self, builder):
        a = builder.add_project("a", entry_point="x:a")
        a.wait_for(a)

        with pytest.raises(DependencyCycleError):
            builder.build()

    def test_references_do_not_imply_ordering(self, builder):
        a = builder.add_project("a", entry_point="x:a")
        b = builder.add_project("b", entry_point="x:b")
        a.with_reference(b)
        b.with_reference(a)

        app = builder.build()

        assert _names(app.startup_order()) == ["a", "b"]


class TestStartupOrder:
    def test_dependencies_start_first(self, builder):
        client = builder.add_project("client", entry_point="x:y")
        functions = builder.add_functions_project("functions")
        storage = builder.add_storage_emulator("storage")
        queue = storage.add_queue("emails")
        client.wait_for(functions)
        functions.wait_for(queue)

        app = builder.build()

        assert _names(app.startup_order()) == ["storage", "emails", "functions", "client"]

    def test_independent_resources_keep_declaration_order(self, builder):
        for name in ("one", "two", "three"):
            builder.add_project(name, entry_point=f"x:{name}")

        assert _names(builder.build().startup_order()) == ["one", "two", "three"]


class TestManifest:
    def test_queue_reference_injects_connection_environment(self, builder):
        storage = builder.add_storage_emulator("storage", port=4999)
        queue = storage.add_queue("emails")
        functions = builder.add_functions_project("functions").with_reference(queue)

        app = builder.build()

        assert app.environment_for(functions) == {
            "EMAIL_QUEUE_NAME": "emails",
            "QUEUE_ENDPOINT_URL": "http://localhost:4999",
        }

    def test_explicit_environment_overrides_reference(self, builder):
        storage = builder.add_storage_emulator("storage")
        queue = storage.add_queue("emails")
        functions = (
            builder.add_functions_project("functions")
            .with_reference(queue)
            .with_environment("EMAIL_QUEUE_NAME", "override")
        )

        assert builder.build().environment_for(functions)["EMAIL_QUEUE_NAME"] == "override"

    def test_generic_reference_uses_connection_strings_key(self, builder):
        functions = builder.add_functions_project("functions", port=8080)
        client = builder.add_project("client", entry_point="x:y").with_reference(functions)

        env = builder.build().environment_for(client)

        assert env == {"ConnectionStrings__functions": "http://localhost:8080"}

    def test_manifest_is_json_serializable(self, builder):
        storage = builder.add_storage_emulator("storage")
        queue = storage.add_queue("emails")
        builder.add_functions_project("functions").wait_for(queue).with_external_http_endpoints()

        manifest = json.loads(json.dumps(builder.build().to_manifest()))

        assert manifest["name"] == "test-app"
        assert manifest["startupOrder"] == ["storage", "emails", "functions"]
        assert manifest["resources"]["emails"]["type"] == "queue.v0"
        assert manifest["resources"]["emails"]["parent"] == "storage"
        assert manifest["resources"]["emails"]["waitFor"] == ["storage"]
        assert manifest["resources"]["functions"]["external"] is True
        assert manifest["resources"]["storage"]["image"] == "localstack/localstack"


def test_run_renders_startup_plan(builder):
    builder.add_functions_project("functions").with_external_http_endpoints()
    app = builder.build()
    buffer = io.StringIO()

    order = app.run(Console(file=buffer, width=120))

    assert _names(order) == ["functions"]
    output = buffer.getvalue()
    assert "Startup plan: test-app" in output
    assert "functions.project.v0" in output
