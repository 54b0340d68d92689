"""
Storage gateway: domain operations over the table, blob, queue and file share
primitives.

The gateway owns identity (fresh identifiers for new records and image blobs)
and the error contract of the core:

* input is validated before any backend call, failures raise ``ValidationError``;
* point lookups return ``None`` on a miss;
* any other backend failure is re-raised as ``BackendFaultError`` with the
  backend's message preserved and credentials redacted.

``add_customer``/``add_product`` mint a new identifier per call, so a retried
call creates a second record rather than overwriting the first.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Type, TypeVar, Union

import pydantic

from retail_api.adapters.blob import BaseBlobContainer, BlobFactory
from retail_api.adapters.queue import BaseQueue, QueueFactory
from retail_api.adapters.share import MountedFileShare, get_file_share
from retail_api.adapters.table import TableFactory
from retail_api.config.settings import Settings
from retail_api.errors import (
    BackendFaultError,
    ConfigurationMissingError,
    NotFoundError,
    RetailApiError,
    ValidationError,
)
from retail_api.models import Customer, CustomerFields, Product, ProductFields
from retail_api.services.entity_store import EntityStore
from retail_api.services.identifiers import new_identifier
from retail_api.utils.decorators import async_log_execution_time

logger = logging.getLogger(__name__)

# Largest number of messages a single peek returns
PEEK_CEILING = 32
DEFAULT_PEEK_COUNT = 5
DEFAULT_IMAGE_NAME = "image.jpg"
DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"
CONTRACT_NAME_FORMAT = "contract_%Y%m%d%H%M%S.txt"

FieldsT = TypeVar("FieldsT", bound=pydantic.BaseModel)


@dataclass(frozen=True)
class UploadedBlob:
    name: str
    url: str


def check_storage_configuration(settings: Settings) -> None:
    """Raise ``ConfigurationMissingError`` when the storage credential is absent."""
    if settings.is_aws:
        if not settings.aws_access_key_id:
            raise ConfigurationMissingError("AWS_ACCESS_KEY_ID")
        secret = settings.aws_secret_access_key
        if secret is None or not secret.get_secret_value():
            raise ConfigurationMissingError("AWS_SECRET_ACCESS_KEY")
    elif not settings.storage_dir:
        raise ConfigurationMissingError("STORAGE_DIR")


def _validate(model: Type[FieldsT], fields: Union[FieldsT, Mapping[str, Any]]) -> FieldsT:
    if isinstance(fields, pydantic.BaseModel):
        fields = fields.model_dump()
    try:
        return model.model_validate(fields)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {problems}") from e


def _validate_name(name: Optional[str], what: str) -> str:
    if not name or not name.strip():
        raise ValidationError(f"{what} is required.")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValidationError(f"{what} must be a plain name, got {name!r}")
    return name


class StorageGateway:
    """Domain operations for customers, products, images, messages and files."""

    def __init__(
        self,
        customers: EntityStore[Customer],
        products: EntityStore[Product],
        images: BaseBlobContainer,
        queue: BaseQueue,
        share: MountedFileShare,
        secrets: Iterable[str] = (),
    ) -> None:
        self.customers = customers
        self.products = products
        self.images = images
        self.queue = queue
        self.share = share
        self._secrets = tuple(secrets)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageGateway":
        """Build a gateway for the configured deployment mode.

        :raises ConfigurationMissingError: if the storage credential is absent.
        """
        check_storage_configuration(settings)
        logger.info(f"Building storage gateway for mode: {settings.deployment_mode}")
        return cls(
            customers=EntityStore(
                TableFactory.get_table(settings, settings.customers_table_name),
                Customer,
                Customer.PARTITION,
            ),
            products=EntityStore(
                TableFactory.get_table(settings, settings.products_table_name),
                Product,
                Product.PARTITION,
            ),
            images=BlobFactory.get_container(settings),
            queue=QueueFactory.get_queue_handler(settings),
            share=get_file_share(settings),
            secrets=settings.secret_values,
        )

    @contextmanager
    def _backend_call(self, operation: str):
        try:
            yield
        except RetailApiError:
            raise
        except Exception as e:
            logger.error(f"Backend call failed: {operation} ({type(e).__name__})")
            raise BackendFaultError(operation, e, self._secrets) from e

    @async_log_execution_time
    async def initialize(self) -> None:
        """Create every backing resource that does not exist yet."""
        with self._backend_call("initialize storage"):
            await self.customers.create_if_not_exists()
            await self.products.create_if_not_exists()
            await self.images.create_if_not_exists()
            await self.queue.create_if_not_exists()
            await self.share.create_if_not_exists()

    # --- Customers ---

    @async_log_execution_time
    async def add_customer(self, fields: Union[CustomerFields, Mapping[str, Any]]) -> str:
        validated = _validate(CustomerFields, fields)
        customer = Customer(
            **validated.model_dump(),
            row_key=new_identifier(),
            created_date=datetime.now(timezone.utc),
        )
        with self._backend_call("add customer"):
            await self.customers.upsert(customer)
        logger.info(f"Customer {customer.row_key} added")
        return customer.row_key

    @async_log_execution_time
    async def update_customer(self, row_key: str, fields: Union[CustomerFields, Mapping[str, Any]]) -> Customer:
        validated = _validate(CustomerFields, fields)
        with self._backend_call("update customer"):
            existing = await self.customers.get(row_key)
            if existing is None:
                raise NotFoundError("Customer", row_key)
            updated = existing.model_copy(update=validated.model_dump())
            return await self.customers.upsert(updated)

    @async_log_execution_time
    async def delete_customer(self, row_key: str) -> None:
        with self._backend_call("delete customer"):
            await self.customers.delete(row_key)

    async def get_customer_by_id(self, row_key: str) -> Optional[Customer]:
        with self._backend_call("get customer"):
            return await self.customers.get(row_key)

    @async_log_execution_time
    async def list_customers(self) -> List[Customer]:
        with self._backend_call("list customers"):
            return await self.customers.list()

    # --- Products ---

    @async_log_execution_time
    async def add_product(self, fields: Union[ProductFields, Mapping[str, Any]]) -> str:
        validated = _validate(ProductFields, fields)
        row_key = new_identifier()
        product = Product(**validated.model_dump(), row_key=row_key, product_id=row_key)
        with self._backend_call("add product"):
            await self.products.upsert(product)
        logger.info(f"Product {row_key} added")
        return row_key

    @async_log_execution_time
    async def update_product(self, row_key: str, fields: Union[ProductFields, Mapping[str, Any]]) -> Product:
        validated = _validate(ProductFields, fields)
        with self._backend_call("update product"):
            existing = await self.products.get(row_key)
            if existing is None:
                raise NotFoundError("Product", row_key)
            updated = existing.model_copy(update=validated.model_dump())
            return await self.products.upsert(updated)

    @async_log_execution_time
    async def delete_product(self, row_key: str) -> None:
        with self._backend_call("delete product"):
            await self.products.delete(row_key)

    async def get_product_by_id(self, row_key: str) -> Optional[Product]:
        with self._backend_call("get product"):
            return await self.products.get(row_key)

    @async_log_execution_time
    async def list_products(self) -> List[Product]:
        with self._backend_call("list products"):
            return await self.products.list()

    # --- Images ---

    @async_log_execution_time
    async def upload_image(self, file_name: str, content: bytes, content_type: Optional[str] = None) -> UploadedBlob:
        """Store an image blob under ``file_name``, overwriting an existing blob of that name."""
        _validate_name(file_name, "File name")
        with self._backend_call("upload image"):
            await self.images.put_blob(file_name, content, content_type or DEFAULT_IMAGE_CONTENT_TYPE)
            return UploadedBlob(name=file_name, url=self.images.blob_url(file_name))

    async def upload_product_image(
        self,
        product_id: str,
        file_name: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
    ) -> UploadedBlob:
        """Store an image for ``product_id`` under a fresh ``{productId}_{uuid}_{fileName}`` name."""
        _validate_name(product_id, "Product ID")
        if not content:
            raise ValidationError("No file uploaded.")
        original_name = _validate_name(file_name or DEFAULT_IMAGE_NAME, "File name")
        blob_name = f"{product_id}_{new_identifier()}_{original_name}"
        uploaded = await self.upload_image(blob_name, content, content_type)
        logger.info(f"Blob {blob_name} uploaded for product {product_id}")
        return uploaded

    @async_log_execution_time
    async def list_blob_names(self) -> List[str]:
        with self._backend_call("list images"):
            return await self.images.list_blob_names()

    # --- Messages ---

    @async_log_execution_time
    async def enqueue_message(self, message: str) -> None:
        if not message or not message.strip():
            raise ValidationError("Message is required.")
        with self._backend_call("enqueue message"):
            await self.queue.send_message(message)

    @async_log_execution_time
    async def peek_messages(self, max_count: int = DEFAULT_PEEK_COUNT) -> List[str]:
        """Return up to ``max_count`` (at most 32) pending messages without dequeuing them."""
        if max_count < 1:
            raise ValidationError(f"max_count must be >= 1, got {max_count}")
        with self._backend_call("peek messages"):
            return await self.queue.peek_messages(min(max_count, PEEK_CEILING))

    # --- Files ---

    @async_log_execution_time
    async def list_file_names(self) -> List[str]:
        with self._backend_call("retrieve file names"):
            await self.share.create_if_not_exists()
            entries = await self.share.list_root_entries()
        return [entry.name for entry in entries if not entry.is_directory]

    @async_log_execution_time
    async def upload_file(self, content: bytes, file_name: str) -> None:
        """Write ``content`` to ``file_name`` at the share root, replacing any previous file."""
        _validate_name(file_name, "File name")
        with self._backend_call("upload file"):
            await self.share.create_if_not_exists()
            await self.share.create_file(file_name, len(content))
            await self.share.write_range(file_name, content, offset=0)
        logger.info(f"File {file_name} uploaded to file share {self.share.share_name}")

    async def upload_contract(self, text: str, now: Optional[datetime] = None) -> str:
        """Store ``text`` as a timestamp-named contract file and return its name."""
        if not text or not text.strip():
            raise ValidationError("No file content uploaded.")
        file_name = (now or datetime.now(timezone.utc)).strftime(CONTRACT_NAME_FORMAT)
        await self.upload_file(text.encode("utf-8"), file_name)
        return file_name
