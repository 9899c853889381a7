# src/email_publisher/clients.py

"""
Client wrapper for publishing email messages to SQS.

This is what the client project uses to drop work onto the `emails` queue.
It works the same against the real service and against a local emulator,
the only difference being the endpoint URL given to boto3.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError, EndpointConnectionError

from .exceptions import (
    QueueAccessDeniedError,
    QueueNotFoundError,
    QueueSendError,
    QueueThrottlingError,
    QueueUnavailableError,
)
from .schemas import EmailMessage

if TYPE_CHECKING:
    from mypy_boto3_sqs.client import SQSClient as SQSClientType

    from .config import AppConfig

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
}
_ACCESS_DENIED_CODES = {"AccessDenied", "AccessDeniedException"}
_THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestThrottled",
    "AWS.SimpleQueueService.RequestThrottled",
}


class SQSClient:
    """
    A wrapper for SQS client operations used by the email producer.
    """

    def __init__(self, sqs_client: "SQSClientType", endpoint_url: str | None = None):
        """
        Initializes the SQSClient.

        Args:
            sqs_client: A typed boto3 SQS client.
            endpoint_url: The endpoint the client talks to, for error reporting.
        """
        self._client = sqs_client
        self._endpoint_url = endpoint_url or "default"
        self._queue_urls: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config: "AppConfig") -> "SQSClient":
        """Builds a client for the region and endpoint in the app config."""
        boto_config = BotoConfig(
            connect_timeout=config.send_timeout_seconds,
            read_timeout=config.send_timeout_seconds,
        )
        sqs = boto3.client(
            "sqs",
            region_name=config.region,
            endpoint_url=config.queue_endpoint_url,
            config=boto_config,
        )
        return cls(sqs_client=sqs, endpoint_url=config.queue_endpoint_url)

    def get_queue_url(self, queue_name: str) -> str:
        """Resolves a queue name to its URL. Results are cached per name."""
        if queue_name not in self._queue_urls:
            response = self._call("get_queue_url", queue_name, QueueName=queue_name)
            self._queue_urls[queue_name] = response["QueueUrl"]
        return self._queue_urls[queue_name]

    def ensure_queue(self, queue_name: str) -> str:
        """
        Creates the queue if it does not exist yet and returns its URL.
        CreateQueue is idempotent for identical attributes.
        """
        response = self._call("create_queue", queue_name, QueueName=queue_name)
        queue_url = response["QueueUrl"]
        self._queue_urls[queue_name] = queue_url
        logger.debug("Queue ready.", extra={"queue_name": queue_name, "queue_url": queue_url})
        return queue_url

    def send_email_message(self, queue_name: str, message: EmailMessage) -> str:
        """
        Enqueues one email message using the queue's wire format.

        Returns:
            The message id assigned by SQS.
        """
        queue_url = self.get_queue_url(queue_name)
        response = self._call(
            "send_message",
            queue_name,
            QueueUrl=queue_url,
            MessageBody=message.to_queue_body(),
        )
        message_id = response["MessageId"]
        logger.info(
            "Email message enqueued.",
            extra={"queue_name": queue_name, "message_id": message_id},
        )
        return message_id

    def _call(self, operation: str, queue_name: str, **kwargs: Any) -> Dict[str, Any]:
        """Invokes a boto3 operation and maps failures to our exception types."""
        try:
            return getattr(self._client, operation)(**kwargs)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"].get("Message", "")
            context = {
                "operation": operation,
                "aws_error_code": error_code,
                "aws_error_message": error_message,
            }

            # Map boto3 error codes to our specific exception types
            if error_code in _NOT_FOUND_CODES:
                raise QueueNotFoundError(queue_name, context=context) from e
            elif error_code in _ACCESS_DENIED_CODES:
                raise QueueAccessDeniedError(queue_name, context=context) from e
            elif error_code in _THROTTLING_CODES:
                raise QueueThrottlingError(operation, context=context) from e
            else:
                raise QueueSendError(
                    error_message or error_code,
                    context={**context, "queue_name": queue_name},
                ) from e
        except EndpointConnectionError as e:
            raise QueueUnavailableError(
                self._endpoint_url, context={"operation": operation}
            ) from e
