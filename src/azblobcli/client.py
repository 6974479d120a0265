import hashlib
import io
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from os import PathLike
from typing import BinaryIO, Callable

from .errors import (
    BlobNotFoundError,
    ChecksumMismatchError,
    ExistenceUnknownError,
    RecursiveDeleteError,
    UnsupportedActionError,
)
from .storage_protocols import BlobMetadata, SignedPermissions, StorageBackend

_CHUNK_SIZE = 1024 * 1024


class ExistenceState(Enum):
    EXISTS = "exists"
    DOES_NOT_EXIST = "does_not_exist"
    UNKNOWN = "unknown"  # Only ever attached to ExistenceUnknownError


class SignAction(Enum):
    GET = "GET"  # Read intent
    PUT = "PUT"  # Write intent

    @classmethod
    def parse(cls, action: str) -> "SignAction":
        try:
            return cls(action.upper())
        except ValueError:
            raise UnsupportedActionError(
                f"action not implemented: {action}. Available actions are 'get' and 'put'"
            ) from None

    @property
    def permissions(self) -> SignedPermissions:
        if self is SignAction.GET:
            return SignedPermissions(read=True)
        # First writes to an absent blob need create
        return SignedPermissions(read=True, create=True)


def file_md5(path: str | PathLike) -> bytes:
    """MD5 digest of a local file, read in chunks."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.digest()


class BlobstoreClient:
    """
    Blobstore operations on top of a StorageBackend.

    Adds what the backend does not give for free: verified uploads with
    rollback, idempotent deletes, a three-way existence check, action-scoped
    signed URLs and prefix listing/deletion.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        get_timeout: int = 1800,
        put_timeout: int = 2700,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.get_timeout = get_timeout
        self.put_timeout = put_timeout
        self._log = logger or logging.getLogger(__name__)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __enter__(self) -> "BlobstoreClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.backend.close()

    @property
    def container_name(self) -> str:
        return getattr(self.backend, "container_name", "")

    def put(self, source_path: str | PathLike, blob_name: str) -> None:
        """
        Upload a local file and verify the server-side MD5.

        On a checksum mismatch the freshly written blob is deleted (best
        effort) and ChecksumMismatchError is raised. An unreadable source
        raises OSError before anything is sent.
        """
        source_md5 = file_md5(source_path)

        with open(source_path, "rb") as source:
            remote_md5 = self.backend.upload(source, blob_name)

        if remote_md5 != source_md5:
            self._log.warning(
                "The upload failed because of an MD5 inconsistency. "
                "Triggering blob deletion ..."
            )
            try:
                self.backend.delete(blob_name)
            except Exception as e:
                self._log.error(f"blob deletion failed: {e}")
            raise ChecksumMismatchError(blob_name, source_md5, remote_md5)

        self._log.info("Successfully uploaded file")

    def get(self, blob_name: str, dest: BinaryIO) -> None:
        """
        Download a blob into dest.

        Contents are not checksummed. If the size reported by the backend
        differs from what ended up in dest, dest is truncated to that size.
        """
        blob_size = self.backend.download(blob_name, dest)
        dest.flush()
        written = dest.seek(0, io.SEEK_END)
        if written != blob_size:
            self._log.info(f"Truncating file according to the blob size {blob_size}")
            dest.truncate(blob_size)

    def delete(self, blob_name: str) -> None:
        """Delete a blob. Deleting a missing blob succeeds."""
        try:
            self.backend.delete(blob_name)
        except BlobNotFoundError:
            self._log.info(f"Blob '{blob_name}' does not exist, nothing to delete")

    def exists(self, blob_name: str) -> ExistenceState:
        """
        Report whether a blob exists.

        Raises:
            ExistenceUnknownError: If the backend failed with anything other
                than not-found. The state is UNKNOWN and the backend error is
                chained as __cause__.
        """
        try:
            self.backend.get_metadata(blob_name)
        except BlobNotFoundError:
            self._log.info(
                f"File '{blob_name}' does not exist in bucket '{self.container_name}'"
            )
            return ExistenceState.DOES_NOT_EXIST
        except Exception as e:
            raise ExistenceUnknownError(blob_name, ExistenceState.UNKNOWN) from e

        self._log.info(f"File '{blob_name}' exists in bucket '{self.container_name}'")
        return ExistenceState.EXISTS

    def properties(self, blob_name: str) -> BlobMetadata | None:
        """Blob metadata, or None if the blob does not exist."""
        try:
            return self.backend.get_metadata(blob_name)
        except BlobNotFoundError:
            return None

    def sign(self, blob_name: str, action: str, validity: timedelta) -> str:
        """
        Return a signed URL for reading ("get") or writing ("put") a blob.

        The URL carries a server-side timeout, longer for writes than reads.
        """
        sign_action = SignAction.parse(action)
        expiry = self._clock() + validity
        url = self.backend.generate_signed_url(
            blob_name, sign_action.permissions, expiry
        )

        # Stalled requests on the service side otherwise leave callers
        # hanging, so bound them server-side.
        timeout = self.get_timeout if sign_action is SignAction.GET else self.put_timeout
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}timeout={timeout}"

    def list(self, prefix: str = "") -> list[str]:
        """All blob names starting with prefix, across every backend page."""
        names: list[str] = []
        for page in self.backend.iter_blob_name_pages(prefix):
            names.extend(page)
        return names

    def delete_recursive(self, prefix: str = "") -> None:
        """
        Delete every blob starting with prefix.

        Every blob is attempted even if some fail; failures are then raised
        together as RecursiveDeleteError.
        """
        failures: list[tuple[str, Exception]] = []
        for blob_name in self.list(prefix):
            try:
                self.delete(blob_name)
            except Exception as e:
                self._log.error(f"Failed to delete blob '{blob_name}': {e}")
                failures.append((blob_name, e))

        if failures:
            raise RecursiveDeleteError(prefix, failures)

    def copy(self, source_name: str, dest_name: str) -> None:
        """Server-side copy. A missing source raises BlobNotFoundError."""
        self.backend.copy(source_name, dest_name)

    def ensure_container(self) -> None:
        self.backend.ensure_container()
