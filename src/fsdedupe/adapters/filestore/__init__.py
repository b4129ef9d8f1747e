"""Deduplicated file store: abstract API and the local filesystem backend."""

from .api import (
    AbstractDedupeStore,
    AbstractLinkWriter,
    BlobStat,
    BrokenLink,
    DedupeStoreError,
    IntegrityError,
    InvalidLinkPath,
    NotARegularFile,
    NotFound,
    OperationCancelled,
    PathResolutionError,
    PruneError,
    StoreIOError,
)
from .local import LocalDedupeStore

__all__ = [
    "AbstractDedupeStore",
    "AbstractLinkWriter",
    "BlobStat",
    "BrokenLink",
    "DedupeStoreError",
    "IntegrityError",
    "InvalidLinkPath",
    "LocalDedupeStore",
    "NotARegularFile",
    "NotFound",
    "OperationCancelled",
    "PathResolutionError",
    "PruneError",
    "StoreIOError",
]
