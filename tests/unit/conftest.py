"""
Shared fixtures for unit tests.
"""

from __future__ import annotations

import json
import os
import uuid
from unittest.mock import MagicMock

import pytest

# email_publisher.app reads its configuration at import time, and test modules
# import it during collection, so these must exist before any fixture runs.
os.environ.setdefault("SERVICE_NAME", "email-publisher-test")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_LOG_LEVEL", "INFO")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")


def _sqs_record(body: str, message_id: str | None = None) -> dict:
    """A single SQS record as Lambda delivers it."""
    return {
        "messageId": message_id or str(uuid.uuid4()),
        "receiptHandle": "ignore",
        "body": body,
        "attributes": {
            "ApproximateReceiveCount": "1",
            "SentTimestamp": "1700000000000",
            "SenderId": "AIDAEXAMPLE",
            "ApproximateFirstReceiveTimestamp": "1700000000001",
        },
        "messageAttributes": {},
        "md5OfBody": "dummy",
        "eventSource": "aws:sqs",
        "eventSourceARN": "arn:aws:sqs:us-east-1:000000000000:emails",
        "awsRegion": "us-east-1",
    }


# ---------- Minimal, realistic dummy events ---------- #
@pytest.fixture
def sqs_event() -> dict:
    """One SQS record carrying a single email message."""
    body = json.dumps({"To": "a@example.com", "Body": "hi"})
    return {"Records": [_sqs_record(body, message_id="msg-1")]}


@pytest.fixture
def make_sqs_record():
    """Factory for SQS records wrapping an arbitrary body."""
    return _sqs_record


@pytest.fixture
def lambda_context():
    """A small stand-in for the LambdaContext object."""
    context = MagicMock()
    context.function_name = "email-publisher-test"
    context.function_version = "$LATEST"
    context.memory_limit_in_mb = 128
    context.invoked_function_arn = (
        "arn:aws:lambda:us-east-1:000000000000:function:email-publisher-test"
    )
    context.aws_request_id = "req-" + uuid.uuid4().hex
    context.get_remaining_time_in_millis.return_value = 30000
    return context
