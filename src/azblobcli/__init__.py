"""
azblobcli
=========

Blobstore command-line adapter for Azure Blob Storage.

Main entry points:
- BlobstoreClient: verified uploads, idempotent deletes, existence checks,
  signed URLs, listing and copies over a StorageBackend
- AzureBlobAdapter, InMemoryBlobAdapter: storage backends
- StorageConfig, load_config: JSON configuration

Example:
    from azblobcli import AzureBlobAdapter, BlobstoreClient, load_config

    config = load_config("config.json")
    with BlobstoreClient(AzureBlobAdapter.from_config(config)) as client:
        client.put("release.tgz", "releases/release.tgz")
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

from .client import BlobstoreClient, ExistenceState, SignAction, file_md5
from .config import StorageConfig, load_config
from .durations import parse_duration
from .errors import (
    BlobNotFoundError,
    BlobstoreError,
    ChecksumMismatchError,
    CopyFailedError,
    ExistenceUnknownError,
    RecursiveDeleteError,
    UnsupportedActionError,
)
from .storage_protocols import BlobMetadata, SignedPermissions, StorageBackend
from .memory_adapter import InMemoryBlobAdapter
from .azure_blob_adapter import AzureBlobAdapter

__all__ = [
    "BlobstoreClient",
    "ExistenceState",
    "SignAction",
    "file_md5",
    "StorageConfig",
    "load_config",
    "parse_duration",
    "BlobNotFoundError",
    "BlobstoreError",
    "ChecksumMismatchError",
    "CopyFailedError",
    "ExistenceUnknownError",
    "RecursiveDeleteError",
    "UnsupportedActionError",
    "BlobMetadata",
    "SignedPermissions",
    "StorageBackend",
    "InMemoryBlobAdapter",
    "AzureBlobAdapter",
]
