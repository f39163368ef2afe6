"""assetvault object storage.

Stores binary objects under a public/private visibility split with a JSON
metadata sidecar per object and ACL enforcement on reads of private objects
and on every write.

Backends:
- FilesystemObjectStore: local filesystem partitions under an uploads root

Environment Variables:
    ASSETVAULT_UPLOADS_DIR: Root directory for both partitions
        (default: ./uploads)
    PUBLIC_OBJECT_SEARCH_PATHS: Comma-separated public object search paths
"""

from assetvault.storage.errors import (
    AccessDeniedError,
    InvalidObjectNameError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    StorageIOError,
    UploadFailedError,
)
from assetvault.storage.filesystem_store import FilesystemObjectStore, ReconcileReport
from assetvault.storage.models import ObjectMetadata, Visibility
from assetvault.storage.object_store import ObjectStore
from assetvault.storage.outcome import FailureKind, Outcome
from assetvault.storage.response import BufferedResponseSink, ResponseSink

__all__ = [
    "AccessDeniedError",
    "BufferedResponseSink",
    "FailureKind",
    "FilesystemObjectStore",
    "InvalidObjectNameError",
    "ObjectMetadata",
    "ObjectNotFoundError",
    "ObjectStorageError",
    "ObjectStore",
    "Outcome",
    "PathTraversalError",
    "ReconcileReport",
    "ResponseSink",
    "StorageIOError",
    "UploadFailedError",
    "Visibility",
]
