# src/email_publisher/core.py

"""
Core business logic for the Email Publisher function.

Delivery, retries and dead-lettering belong to the queue; this module only
reacts to one message that has already been delivered and parsed.
"""

import logging
from typing import TYPE_CHECKING, Union

from .schemas import EmailMessage

if TYPE_CHECKING:
    from aws_lambda_powertools import Logger

    LoggerLike = Union[Logger, logging.Logger]


def send_email(message: EmailMessage, logger: "LoggerLike") -> None:
    """
    Records that an email is being sent. No email actually leaves the system.

    Args:
        message: The validated message pulled from the queue.
        logger: Where the entry is written. A stdlib logger or a Powertools
            Logger both work.
    """
    logger.info(
        f"Sending an email to {message.to} with body {message.body}",
        extra={"recipient": message.to, "body_length": len(message.body)},
    )
