import logging
import time
from datetime import datetime
from typing import BinaryIO, Iterator

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import (
    BlobSasPermissions,
    ContainerClient,
    generate_blob_sas,
)

from .config import StorageConfig
from .errors import BlobNotFoundError, CopyFailedError
from .storage_protocols import BlobMetadata, SignedPermissions, StorageBackend

logger = logging.getLogger(__name__)

# Put Blob accepts up to 5000 MiB in one request. Staying on a single request
# keeps Content-MD5 in the response computed over the whole blob.
MAX_SINGLE_PUT_SIZE = 5000 * 1024 * 1024


class AzureBlobAdapter(StorageBackend):
    """Azure Blob Storage backend for BlobstoreClient."""

    def __init__(
        self,
        container_client: ContainerClient,
        account_key: str,
        copy_poll_interval: float = 1.0,
    ):
        """
        Create an adapter from an existing ContainerClient.
        The account key is only used to sign SAS URLs.
        """
        self._container_client = container_client
        self._account_key = account_key
        self._copy_poll_interval = copy_poll_interval

    @classmethod
    def from_config(cls, config: StorageConfig) -> "AzureBlobAdapter":
        """
        Convenience builder: shared key auth against the configured cloud.
        """
        container_client = ContainerClient(
            account_url=config.account_url(),
            container_name=config.container_name,
            credential={
                "account_name": config.account_name,
                "account_key": config.account_key,
            },
            max_single_put_size=MAX_SINGLE_PUT_SIZE,
        )
        logger.debug(
            f"Azure adapter using account+key auth for {config.account_name} "
            f"at {config.account_url()}"
        )
        return cls(container_client, config.account_key)

    @property
    def container_name(self) -> str:
        return self._container_client.container_name

    def _blob(self, blob_name: str):
        return self._container_client.get_blob_client(blob_name)

    def upload(self, source: BinaryIO, blob_name: str) -> bytes:
        blob_client = self._blob(blob_name)
        logger.info(f"Uploading {blob_client.url}")
        response = blob_client.upload_blob(source, overwrite=True)
        return bytes(response.get("content_md5") or b"")

    def download(self, blob_name: str, dest: BinaryIO) -> int:
        blob_client = self._blob(blob_name)
        logger.info(f"Downloading {blob_client.url}")
        try:
            downloader = blob_client.download_blob()
            downloader.readinto(dest)
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob '{blob_name}' not found")
        return downloader.size

    def delete(self, blob_name: str) -> None:
        blob_client = self._blob(blob_name)
        logger.info(f"Deleting {blob_client.url}")
        try:
            blob_client.delete_blob()
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob '{blob_name}' not found")

    def get_metadata(self, blob_name: str) -> BlobMetadata:
        blob_client = self._blob(blob_name)
        logger.info(f"Checking if blob: {blob_client.url} exists")
        try:
            props = blob_client.get_blob_properties()
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob '{blob_name}' not found")
        content_md5 = props.content_settings.content_md5
        return BlobMetadata(
            name=blob_name,
            size=props.size,
            etag=props.etag,
            last_modified=props.last_modified,
            content_md5=bytes(content_md5) if content_md5 else None,
        )

    def generate_signed_url(
        self, blob_name: str, permissions: SignedPermissions, expiry: datetime
    ) -> str:
        blob_client = self._blob(blob_name)
        logger.info(f"Getting signed url for blob {blob_client.url}")
        sas_token = generate_blob_sas(
            account_name=blob_client.account_name,
            container_name=self.container_name,
            blob_name=blob_name,
            account_key=self._account_key,
            permission=BlobSasPermissions(
                read=permissions.read,
                create=permissions.create,
                write=permissions.write,
            ),
            expiry=expiry,
        )
        return f"{blob_client.url}?{sas_token}"

    def iter_blob_name_pages(self, prefix: str = "") -> Iterator[list[str]]:
        if prefix:
            logger.info(
                f"Listing blobs in container {self.container_name} with prefix '{prefix}'"
            )
        else:
            logger.info(f"Listing blobs in container {self.container_name}")
        pages = self._container_client.list_blobs(
            name_starts_with=prefix or None
        ).by_page()
        for page in pages:
            yield [blob.name for blob in page]

    def copy(self, source_name: str, dest_name: str) -> None:
        source = self._blob(source_name)
        dest = self._blob(dest_name)
        logger.info(f"Copying {source.url} to {dest.url}")
        try:
            copy = dest.start_copy_from_url(source.url)
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob '{source_name}' not found")

        status = copy["copy_status"]
        while status == "pending":
            time.sleep(self._copy_poll_interval)
            status = dest.get_blob_properties().copy.status
        if status != "success":
            raise CopyFailedError(
                f"copy of '{source_name}' to '{dest_name}' ended with status '{status}'"
            )

    def ensure_container(self) -> None:
        try:
            self._container_client.create_container()
            logger.info(f"Created container {self.container_name}")
        except ResourceExistsError:
            logger.info(f"Container {self.container_name} already exists")

    def close(self) -> None:
        self._container_client.close()
