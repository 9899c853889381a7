"""
The Lambda Adapter for the Email Publisher function.

This module is the main entry point for the AWS Lambda function bound to the
`emails` queue. It is responsible for:
1.  Initializing AWS Lambda Powertools (Logger, Tracer and Metrics).
2.  Parsing each SQS message body into an `EmailMessage`.
3.  Handing every parsed message to `send_email`.
4.  Reporting per-message failures so SQS can redeliver or dead-letter them.
"""

from collections import Counter
from typing import Any

import pydantic
from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.batch import BatchProcessor, EventType
from aws_lambda_powertools.utilities.batch.types import PartialItemFailureResponse
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext

from .config import get_config
from .core import send_email
from .schemas import EmailMessage

# --- Global & Reusable Components ---
CONFIG = get_config()

logger = Logger(service=CONFIG.service_name, level=CONFIG.log_level)
logger.append_keys(environment=CONFIG.environment, queue=CONFIG.email_queue_name)
tracer = Tracer(service=CONFIG.service_name)
metrics = Metrics(namespace="EmailPublisher", service=CONFIG.service_name)

processor = BatchProcessor(
    event_type=EventType.SQS,
    raise_on_entire_batch_failure=False,
)


def _record_handler(record: SQSRecord, metrics_counter: Counter) -> None:
    """
    Parse one SQS message and log it.

    Any exception escaping this function marks the message as failed; the
    queue's redrive policy decides what happens next.
    """
    try:
        message = EmailMessage.from_queue_body(record.body)
    except pydantic.ValidationError as e:
        metrics_counter["InvalidEmailMessages"] += 1
        logger.warning(
            "Email message failed validation.",
            extra={
                "messageId": record.message_id,
                "validation_errors": e.errors(include_url=False),
            },
        )
        raise

    send_email(message, logger)
    metrics_counter["EmailsLogged"] += 1


@logger.inject_lambda_context(log_event=False)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict[str, Any], context: LambdaContext) -> PartialItemFailureResponse:
    """
    Main Lambda handler for SQS batches from the `emails` queue.

    Args:
        event: The raw SQS event containing the records.
        context: The AWS Lambda context object.

    Returns:
        A dictionary listing the message ids that failed, which SQS will
        then retry.
    """
    metrics.add_dimension("environment", CONFIG.environment)

    records: list[dict] = event.get("Records", [])
    if not records:
        logger.warning("Event did not contain any SQS records. Exiting gracefully.")
        return {"batchItemFailures": []}

    logger.debug("Starting SQS batch processing", extra={"sqs_messages": len(records)})

    batch_metrics: Counter = Counter()

    def record_handler(record: SQSRecord) -> None:
        _record_handler(record, batch_metrics)

    with processor(records=records, handler=record_handler):
        processor.process()

    # Flush per-record counters once per batch.
    for metric_name, value in batch_metrics.items():
        if value > 0:
            metrics.add_metric(name=metric_name, unit=MetricUnit.Count, value=value)

    response = processor.response()
    logger.info(
        "Batch finished",
        extra={
            "sqs_messages": len(records),
            "failure_count": len(response["batchItemFailures"]),
        },
    )
    return response
