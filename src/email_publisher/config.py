import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ALLOWED_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration loaded from environment variables."""

    # --- Required Variables ---
    service_name: str
    environment: str

    # --- Optional Variables with Defaults ---
    log_level: str
    email_queue_name: str
    queue_endpoint_url: str | None
    region: str
    send_timeout_seconds: int

    # --- Derived Properties ---
    @property
    def send_timeout_ms(self) -> int:
        return self.send_timeout_seconds * 1000

    @property
    def uses_emulator(self) -> bool:
        return self.queue_endpoint_url is not None

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Loads configuration from environment variables, performing validation and type casting.
        Fails fast with a ConfigurationError if anything is invalid.
        """
        return cls._load(os.environ)

    @classmethod
    def load_for_producer(
        cls, overrides: Optional[Mapping[str, Optional[str]]] = None
    ) -> "AppConfig":
        """
        Loads configuration for the client that publishes messages.

        `overrides` maps environment variable names to values taken from the
        command line; `None` values are skipped. SERVICE_NAME and ENVIRONMENT
        are optional here. Validation is the same as `load_from_env`.
        """
        env = dict(os.environ)
        env.setdefault("SERVICE_NAME", "email-publisher-client")
        env.setdefault("ENVIRONMENT", "dev")
        for key, value in (overrides or {}).items():
            if value is not None:
                env[key] = value
        return cls._load(env)

    @classmethod
    def _load(cls, env: Mapping[str, str]) -> "AppConfig":
        try:
            service_name = env["SERVICE_NAME"]
            environment = env["ENVIRONMENT"]

            log_level = env.get("LOG_LEVEL", "INFO").upper()
            if log_level not in ALLOWED_LOG_LEVELS:
                raise ValueError(
                    f"LOG_LEVEL must be one of {ALLOWED_LOG_LEVELS}, not '{log_level}'"
                )

            email_queue_name = env.get("EMAIL_QUEUE_NAME", "emails").strip()
            if not email_queue_name:
                raise ValueError("EMAIL_QUEUE_NAME must not be empty.")

            # An empty endpoint means "use the real service".
            queue_endpoint_url = env.get("QUEUE_ENDPOINT_URL") or None

            region = (
                env.get("AWS_REGION")
                or env.get("AWS_DEFAULT_REGION")
                or "us-east-1"
            )

            send_timeout_seconds = int(env.get("SEND_TIMEOUT_SECONDS", "10"))
            if send_timeout_seconds <= 0:
                raise ValueError("SEND_TIMEOUT_SECONDS must be a positive integer.")

        except KeyError as e:
            raise ConfigurationError(
                f"Missing required environment variable: {e.args[0]}"
            ) from e
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid value for an environment variable: {e}"
            ) from e

        return cls(
            service_name=service_name,
            environment=environment,
            log_level=log_level,
            email_queue_name=email_queue_name,
            queue_endpoint_url=queue_endpoint_url,
            region=region,
            send_timeout_seconds=send_timeout_seconds,
        )


# --- Singleton Factory Function (Lazy-loaded and Cached) ---
@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Loads the application configuration from environment variables.
    The result is cached using lru_cache, so the environment is only read once
    on the first call.
    """
    logger.info("Loading application configuration from environment...")
    return AppConfig.load_from_env()
