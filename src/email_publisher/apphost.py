# src/email_publisher/apphost.py

"""
Composition entry points for the Email Publisher application.

Two variants are kept side by side:
- `minimal`: only the functions host, exposed over HTTP. The queue is
  whatever the platform provides.
- `emulated`: a local storage emulator exposing the `emails` queue, the
  functions host waiting on that queue, and a client project that produces
  messages once the functions host is up.
"""

from typing import Callable, Dict

from .topology import DistributedApplication, DistributedApplicationBuilder

APP_NAME = "email-publisher"
EMAIL_QUEUE = "emails"
FUNCTIONS_HANDLER = "email_publisher.app.handler"
CLIENT_ENTRY_POINT = "email_publisher.cli:main"


def build_minimal_app() -> DistributedApplication:
    builder = DistributedApplicationBuilder(APP_NAME)

    builder.add_functions_project(
        "functions", handler=FUNCTIONS_HANDLER
    ).with_external_http_endpoints()

    return builder.build()


def build_emulated_app() -> DistributedApplication:
    builder = DistributedApplicationBuilder(APP_NAME)

    storage = builder.add_storage_emulator("storage")
    queue = storage.add_queue(EMAIL_QUEUE)

    functions = (
        builder.add_functions_project("functions", handler=FUNCTIONS_HANDLER)
        .with_reference(queue)
        .wait_for(queue)
        .with_external_http_endpoints()
    )

    (
        builder.add_project("client", entry_point=CLIENT_ENTRY_POINT)
        .with_reference(queue)
        .wait_for(functions)
    )

    return builder.build()


VARIANTS: Dict[str, Callable[[], DistributedApplication]] = {
    "minimal": build_minimal_app,
    "emulated": build_emulated_app,
}
