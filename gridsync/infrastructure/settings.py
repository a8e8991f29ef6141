"""Settings helpers for infrastructure adapters."""

from dataclasses import dataclass
import os
from typing import Optional

import dotenv

from gridsync.infrastructure.logging.logger import get_app_logger
from gridsync.utils.utils import get_project_root


BROADCAST_MEMORY = "memory"
BROADCAST_STORAGE = "storage"

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_RESOURCES = ("accounts", "customers", "suppliers", "products")


def default_storage_url() -> str:
    """Return the SQLite URL used when no storage URL is configured."""
    return f"sqlite:///{get_project_root() / 'data' / 'gridsync.db'}"


@dataclass(frozen=True)
class SyncSettings:
    """Settings for the sync runtime.

    Attributes:
        api_url: Base URL of the REST API.
        storage_url: SQLAlchemy URL of the key/value storage database.
        request_timeout: Seconds before a remote call is abandoned; None
            disables the limit.
        broadcast: ``memory`` for one process, ``storage`` across processes.
        poll_interval: Seconds between polls of the storage channel.
        api_token: Token overriding the stored auth state.
        tenant_slug: Tenant sent in the ``X-Tenant-Slug`` header.
        resources: Resource keys handled by the runtime.
    """

    api_url: str = DEFAULT_API_URL
    storage_url: str = ""
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT
    broadcast: str = BROADCAST_MEMORY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    api_token: Optional[str] = None
    tenant_slug: Optional[str] = None
    resources: tuple[str, ...] = DEFAULT_RESOURCES

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Build settings from environment variables.

        Returns:
            SyncSettings: Settings sourced from environment variables.
        """
        dotenv.load_dotenv()
        logger = get_app_logger()
        timeout = cls._read_seconds(
            "GRIDSYNC_REQUEST_TIMEOUT",
            DEFAULT_REQUEST_TIMEOUT,
            logger=logger,
        )
        broadcast = os.getenv("GRIDSYNC_BROADCAST", BROADCAST_MEMORY)
        broadcast = broadcast.strip().lower()
        if broadcast not in (BROADCAST_MEMORY, BROADCAST_STORAGE):
            logger.warning(
                f"Unknown GRIDSYNC_BROADCAST value {broadcast!r}; "
                f"using {BROADCAST_MEMORY}"
            )
            broadcast = BROADCAST_MEMORY
        return cls(
            api_url=os.getenv("GRIDSYNC_API_URL", DEFAULT_API_URL).strip(),
            storage_url=(
                os.getenv("GRIDSYNC_STORAGE_URL", "").strip()
                or default_storage_url()
            ),
            request_timeout=timeout or None,
            broadcast=broadcast,
            poll_interval=cls._read_seconds(
                "GRIDSYNC_BROADCAST_POLL_INTERVAL",
                DEFAULT_POLL_INTERVAL,
                logger=logger,
            )
            or DEFAULT_POLL_INTERVAL,
            api_token=os.getenv("GRIDSYNC_API_TOKEN") or None,
            tenant_slug=os.getenv("GRIDSYNC_TENANT_SLUG") or None,
            resources=cls._read_resources(os.getenv("GRIDSYNC_RESOURCES")),
        )

    @staticmethod
    def _read_seconds(name: str, default: float, logger) -> float:
        """Parse a non-negative number of seconds.

        Args:
            name: Environment variable to read.
            default: Value used when the variable is unset or invalid.
            logger: Logger used for warnings.

        Returns:
            float: Parsed seconds.
        """
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Invalid {name} value {raw!r}; using {default}")
            return default
        if value < 0:
            logger.warning(f"Negative {name} value {raw!r}; using {default}")
            return default
        return value

    @staticmethod
    def _read_resources(raw: Optional[str]) -> tuple[str, ...]:
        if not raw:
            return DEFAULT_RESOURCES
        resources = tuple(
            part.strip().lower() for part in raw.split(",") if part.strip()
        )
        return resources or DEFAULT_RESOURCES


__all__ = [
    "SyncSettings",
    "default_storage_url",
    "BROADCAST_MEMORY",
    "BROADCAST_STORAGE",
]
