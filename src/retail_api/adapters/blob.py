"""Blob primitive: named binary objects in a container."""
import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import quote

from botocore.exceptions import ClientError

from retail_api.adapters.aws_clients import error_code, get_client
from retail_api.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class BaseBlobContainer:
    """Base class for blob containers (to be extended by specific implementations)"""

    def __init__(self, container_name: str):
        self.container_name = container_name

    async def create_if_not_exists(self) -> None:
        raise NotImplementedError

    async def put_blob(self, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        """Store ``content`` under ``name``, overwriting any existing blob."""
        raise NotImplementedError

    async def list_blob_names(self) -> List[str]:
        raise NotImplementedError

    def blob_url(self, name: str) -> str:
        raise NotImplementedError


class LocalBlobContainer(BaseBlobContainer):
    """Handles a blob container stored as a local directory"""

    def __init__(self, container_name: str, storage_dir: Path):
        super().__init__(container_name)
        self.container_dir = Path(storage_dir) / "blobs" / container_name
        logger.info("LocalBlobContainer initialized at: %s", self.container_dir)

    def _list_files(self) -> List[str]:
        return sorted(path.name for path in self.container_dir.iterdir() if path.is_file())

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self.container_dir.mkdir, parents=True, exist_ok=True)

    async def put_blob(self, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        await asyncio.to_thread((self.container_dir / name).write_bytes, content)
        logger.info("Stored blob %s (%d bytes)", name, len(content))

    async def list_blob_names(self) -> List[str]:
        return await asyncio.to_thread(self._list_files)

    def blob_url(self, name: str) -> str:
        return (self.container_dir / name).resolve().as_uri()


class S3BlobContainer(BaseBlobContainer):
    """Handles a blob container backed by an S3 bucket"""

    def __init__(self, container_name: str, s3_client: Any, region: str):
        super().__init__(container_name)
        self.s3 = s3_client
        self.region = region
        logger.info(f"S3BlobContainer initialized for bucket: {container_name}")

    def _create_bucket(self) -> None:
        try:
            self.s3.head_bucket(Bucket=self.container_name)
            return
        except ClientError as e:
            if error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
                raise

        create_kwargs: dict = {"Bucket": self.container_name}
        if self.region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        self.s3.create_bucket(**create_kwargs)
        logger.info(f"Created S3 bucket {self.container_name}")

    def _list_keys(self) -> List[str]:
        paginator = self.s3.get_paginator("list_objects_v2")
        names: List[str] = []
        for page in paginator.paginate(Bucket=self.container_name):
            names.extend(obj["Key"] for obj in page.get("Contents", []))
        return names

    async def create_if_not_exists(self) -> None:
        await asyncio.to_thread(self._create_bucket)

    async def put_blob(self, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        await asyncio.to_thread(
            self.s3.put_object,
            Bucket=self.container_name,
            Key=name,
            Body=content,
            ContentType=content_type or DEFAULT_CONTENT_TYPE,
        )
        logger.info(f"Uploaded blob {name} to S3 bucket {self.container_name}")

    async def list_blob_names(self) -> List[str]:
        return await asyncio.to_thread(self._list_keys)

    def blob_url(self, name: str) -> str:
        return f"{self.s3.meta.endpoint_url}/{self.container_name}/{quote(name)}"


class BlobFactory:
    """Factory to initialize the correct blob container based on deployment mode"""

    @staticmethod
    def get_container(settings: Settings) -> BaseBlobContainer:
        deployment_mode = settings.deployment_mode
        logger.info(f"Creating blob container for mode: {deployment_mode}")
        if deployment_mode == "local-dev":
            return LocalBlobContainer(settings.blob_container_name, Path(settings.storage_dir))
        if settings.is_aws:
            return S3BlobContainer(
                settings.blob_container_name,
                get_client(settings, "s3"),
                settings.aws_region,
            )
        raise ValueError(f"Invalid deployment_mode: {deployment_mode}")
