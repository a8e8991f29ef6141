"""Application ports package."""

from .auth import AuthGatePort
from .broadcast import BroadcastChannelPort, MessageCallback
from .database import DatabaseEnginePort
from .errors import (
    MalformedResponseError,
    RemoteError,
    RemoteNotFoundError,
    RemoteOperationError,
    RemoteUnavailableError,
    StorageUnavailableError,
    SyncConfigurationError,
    SyncError,
)
from .remote import RemoteResourcePort, SyncConfig, extract_items, extract_record
from .storage import KeyValueStoragePort

__all__ = [
    "AuthGatePort",
    "BroadcastChannelPort",
    "MessageCallback",
    "DatabaseEnginePort",
    "MalformedResponseError",
    "RemoteError",
    "RemoteNotFoundError",
    "RemoteOperationError",
    "RemoteUnavailableError",
    "StorageUnavailableError",
    "SyncConfigurationError",
    "SyncError",
    "RemoteResourcePort",
    "SyncConfig",
    "extract_items",
    "extract_record",
    "KeyValueStoragePort",
]
