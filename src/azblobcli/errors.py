class BlobstoreError(Exception):
    """Base class for errors raised by the blobstore client."""

    pass


class BlobNotFoundError(Exception):
    """Raised by a storage backend when a requested blob does not exist."""

    pass


class ChecksumMismatchError(BlobstoreError):
    """Raised when the server-side MD5 of an upload differs from the local one."""

    def __init__(self, blob_name: str, local_md5: bytes, remote_md5: bytes) -> None:
        self.blob_name = blob_name
        self.local_md5 = local_md5
        self.remote_md5 = remote_md5
        super().__init__(
            f"the upload of '{blob_name}' responded an MD5 {remote_md5.hex() or '<none>'} "
            f"that does not match the source file MD5 {local_md5.hex()}"
        )


class UnsupportedActionError(BlobstoreError, ValueError):
    """Raised when a signed URL is requested for an unknown action."""

    pass


class ExistenceUnknownError(BlobstoreError):
    """Raised when blob existence cannot be determined."""

    def __init__(self, blob_name: str, state) -> None:
        self.blob_name = blob_name
        self.state = state
        super().__init__(f"could not determine whether blob '{blob_name}' exists")


class RecursiveDeleteError(BlobstoreError):
    """Raised after a recursive delete in which one or more blobs failed."""

    def __init__(self, prefix: str, failures: list[tuple[str, Exception]]) -> None:
        self.prefix = prefix
        self.failures = failures
        details = "; ".join(f"{name}: {err}" for name, err in failures)
        super().__init__(
            f"failed to delete {len(failures)} blob(s) under prefix '{prefix}': {details}"
        )


class CopyFailedError(BlobstoreError):
    """Raised when a server-side copy ends in a non-success state."""

    pass
