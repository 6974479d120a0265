from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Iterator, Protocol


@dataclass(frozen=True)
class SignedPermissions:
    """Capabilities granted by a signed URL."""

    read: bool = False
    create: bool = False
    write: bool = False


@dataclass(frozen=True)
class BlobMetadata:
    name: str
    size: int
    etag: str | None = None
    last_modified: datetime | None = None
    content_md5: bytes | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "etag": self.etag,
            "last_modified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
            "content_length": self.size,
        }


class StorageBackend(Protocol):
    """
    Operations a storage backend exposes to BlobstoreClient.

    Backends must raise BlobNotFoundError when the addressed blob does not
    exist; every other failure is raised as the backend's own error type.
    """

    def upload(self, source: BinaryIO, blob_name: str) -> bytes:
        """Upload a stream and return the MD5 computed by the server."""
        ...

    def download(self, blob_name: str, dest: BinaryIO) -> int:
        """Write blob contents into dest and return the server-reported size."""
        ...

    def delete(self, blob_name: str) -> None:
        """Delete blob."""
        ...

    def get_metadata(self, blob_name: str) -> BlobMetadata:
        """Return blob properties."""
        ...

    def generate_signed_url(
        self, blob_name: str, permissions: SignedPermissions, expiry: datetime
    ) -> str:
        """Return a URL granting permissions on the blob until expiry."""
        ...

    def iter_blob_name_pages(self, prefix: str = "") -> Iterator[list[str]]:
        """Yield blob names page by page, in backend order."""
        ...

    def copy(self, source_name: str, dest_name: str) -> None:
        """Copy a blob server-side, returning once the copy has completed."""
        ...

    def ensure_container(self) -> None:
        """Create the container if it does not exist yet."""
        ...

    def close(self) -> None:
        """Close any resources/connections."""
        ...
