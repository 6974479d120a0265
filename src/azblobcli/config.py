"""
Configuration for the blobstore CLI.

The CLI reads a JSON file naming the storage account, its shared key and the
container to operate on. Values are validated on construction so a bad file
fails before any request is sent.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import IO

__all__ = ["StorageConfig", "load_config", "STORAGE_ENDPOINTS"]

STORAGE_ENDPOINTS = {
    "AzureCloud": "blob.core.windows.net",
    "AzureChinaCloud": "blob.core.chinacloudapi.cn",
    "AzureUSGovernment": "blob.core.usgovcloudapi.net",
    "AzureGermanCloud": "blob.core.cloudapi.de",
}

DEFAULT_ENVIRONMENT = "AzureCloud"


@dataclass(frozen=True)
class StorageConfig:
    """
    Connection settings for a single container.

    Attributes:
        account_name: Storage account name
        account_key: Storage account shared key
        container_name: Container holding the blobs
        environment: Azure cloud hosting the account (selects the endpoint)
        get_timeout_seconds: Server-side timeout appended to signed GET URLs
        put_timeout_seconds: Server-side timeout appended to signed PUT URLs
    """
    account_name: str
    account_key: str
    container_name: str
    environment: str = DEFAULT_ENVIRONMENT
    get_timeout_seconds: int = 1800
    put_timeout_seconds: int = 2700

    def __post_init__(self):
        """Validate settings on construction."""
        for name in ("account_name", "account_key", "container_name"):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")

        if self.environment not in STORAGE_ENDPOINTS:
            raise ValueError(
                f"Unknown environment: {self.environment}. "
                f"Expected one of {', '.join(sorted(STORAGE_ENDPOINTS))}"
            )

        for name in ("get_timeout_seconds", "put_timeout_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

        # Uploads get the longer window
        if self.put_timeout_seconds <= self.get_timeout_seconds:
            raise ValueError(
                "put_timeout_seconds must be greater than get_timeout_seconds, got "
                f"{self.put_timeout_seconds} <= {self.get_timeout_seconds}"
            )

    def storage_endpoint(self) -> str:
        return STORAGE_ENDPOINTS[self.environment]

    def account_url(self) -> str:
        return f"https://{self.account_name}.{self.storage_endpoint()}"

    @classmethod
    def from_reader(cls, reader: IO[str]) -> StorageConfig:
        """
        Build a config from a stream of JSON.

        Raises:
            ValueError: If the content is not a JSON object or fails validation
        """
        try:
            raw = json.load(reader)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Configuration must be a JSON object")

        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in raw.items() if k in known}
        for name in ("account_name", "account_key", "container_name"):
            kwargs.setdefault(name, "")
        return cls(**kwargs)


def load_config(path: str | Path) -> StorageConfig:
    """Load and validate the JSON configuration file at path."""
    with open(path, encoding="utf-8") as f:
        return StorageConfig.from_reader(f)
