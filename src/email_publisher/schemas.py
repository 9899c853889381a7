# In src/email_publisher/schemas.py

from typing import TypedDict

from pydantic import BaseModel, ConfigDict, Field

# --- Static Type Hinting (for mypy and IDEs) ---


class EmailMessageDict(TypedDict):
    """The wire shape of a message on the `emails` queue."""

    To: str
    Body: str


# --- Runtime Validation (using Pydantic) ---


class EmailMessage(BaseModel):
    """
    Pydantic model for an email request delivered through the queue.

    Both fields are required strings. Empty strings are valid; content is not
    inspected here.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    to: str = Field(..., alias="To")
    body: str = Field(..., alias="Body")

    @classmethod
    def from_queue_body(cls, body: str) -> "EmailMessage":
        """Parses a raw queue message body. Raises pydantic.ValidationError."""
        return cls.model_validate_json(body)

    def to_queue_body(self) -> str:
        return self.model_dump_json(by_alias=True)
