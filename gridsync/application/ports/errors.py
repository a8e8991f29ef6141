"""Exceptions shared by the sync core and its adapters."""


class SyncError(Exception):
    """Base class for sync core errors."""


class RemoteError(SyncError):
    """A remote operation did not complete successfully."""


class RemoteUnavailableError(RemoteError):
    """The remote API could not be reached or did not answer in time."""


class RemoteNotFoundError(RemoteError):
    """The remote API does not know the requested record."""


class RemoteOperationError(RemoteError):
    """The remote API rejected the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(RemoteError):
    """The remote API answered with a body of an unexpected shape."""


class StorageUnavailableError(SyncError):
    """Persisted storage could not be read or written."""


class SyncConfigurationError(SyncError, ValueError):
    """A sync config lacks an operation the caller relies on."""


__all__ = [
    "SyncError",
    "RemoteError",
    "RemoteUnavailableError",
    "RemoteNotFoundError",
    "RemoteOperationError",
    "MalformedResponseError",
    "StorageUnavailableError",
    "SyncConfigurationError",
]
