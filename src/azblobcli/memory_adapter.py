import hashlib
from datetime import datetime, timezone
from typing import BinaryIO, Iterator
from urllib.parse import quote

from .errors import BlobNotFoundError
from .storage_protocols import BlobMetadata, SignedPermissions, StorageBackend


class InMemoryBlobAdapter(StorageBackend):
    """
    In-memory backend for tests.
    Lists in name order and pages like the service does.
    """

    def __init__(self, container_name: str = "container", page_size: int = 5000):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.container_name = container_name
        self.page_size = page_size
        self._blobs: dict[str, bytes] = {}
        self._modified: dict[str, datetime] = {}

    def upload(self, source: BinaryIO, blob_name: str) -> bytes:
        data = source.read()
        self._blobs[blob_name] = data
        self._modified[blob_name] = datetime.now(timezone.utc)
        return hashlib.md5(data).digest()

    def download(self, blob_name: str, dest: BinaryIO) -> int:
        data = self._get(blob_name)
        dest.write(data)
        return len(data)

    def delete(self, blob_name: str) -> None:
        self._get(blob_name)
        del self._blobs[blob_name]
        del self._modified[blob_name]

    def get_metadata(self, blob_name: str) -> BlobMetadata:
        data = self._get(blob_name)
        digest = hashlib.md5(data).digest()
        return BlobMetadata(
            name=blob_name,
            size=len(data),
            etag=f'"0x{digest.hex()[:16].upper()}"',
            last_modified=self._modified[blob_name],
            content_md5=digest,
        )

    def generate_signed_url(
        self, blob_name: str, permissions: SignedPermissions, expiry: datetime
    ) -> str:
        perms = "".join(
            flag
            for flag, enabled in (
                ("r", permissions.read),
                ("c", permissions.create),
                ("w", permissions.write),
            )
            if enabled
        )
        expiry_text = expiry.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return (
            f"memory://{self.container_name}/{quote(blob_name)}"
            f"?se={quote(expiry_text)}&sp={perms}"
        )

    def iter_blob_name_pages(self, prefix: str = "") -> Iterator[list[str]]:
        names = sorted(name for name in self._blobs if name.startswith(prefix))
        for start in range(0, len(names), self.page_size):
            yield names[start : start + self.page_size]

    def copy(self, source_name: str, dest_name: str) -> None:
        self._blobs[dest_name] = self._get(source_name)
        self._modified[dest_name] = datetime.now(timezone.utc)

    def ensure_container(self) -> None:
        pass

    def close(self) -> None:
        pass

    def _get(self, blob_name: str) -> bytes:
        try:
            return self._blobs[blob_name]
        except KeyError:
            raise BlobNotFoundError(f"Blob '{blob_name}' not found")
