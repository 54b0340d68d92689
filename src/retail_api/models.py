###############################
# --- Table entity models --- #
###############################

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_pascal
from typing_extensions import Annotated

MIN_PRICE = 0
MAX_PRICE = 10000


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# Non-blank text, stored exactly as given
RequiredStr = Annotated[str, StringConstraints(min_length=1), AfterValidator(_not_blank)]
Price = Annotated[float, Field(ge=MIN_PRICE, le=MAX_PRICE, allow_inf_nan=False)]

# Stored attributes use the PascalCase names of the table schema
# (PartitionKey, RowKey, FirstName, ...); Python code uses snake_case.
_ENTITY_CONFIG = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class CustomerFields(BaseModel):
    """Caller-supplied customer fields."""
    model_config = _ENTITY_CONFIG

    first_name: RequiredStr
    last_name: RequiredStr
    email: RequiredStr
    phone_number: RequiredStr
    address: RequiredStr


class Customer(CustomerFields):
    """A customer row in the ``Customers`` partition."""
    PARTITION: ClassVar[str] = "Customers"

    partition_key: str = PARTITION
    row_key: str
    created_date: Optional[datetime] = None
    timestamp: Optional[datetime] = None
    etag: Optional[str] = Field(default=None, alias="ETag")


class ProductFields(BaseModel):
    """Caller-supplied product fields."""
    model_config = _ENTITY_CONFIG

    name: RequiredStr
    description: RequiredStr
    price: Price
    category: RequiredStr
    image_url: str = ""


class Product(ProductFields):
    """A product row in the ``Products`` partition; ``product_id`` mirrors ``row_key``."""
    PARTITION: ClassVar[str] = "Products"

    partition_key: str = PARTITION
    row_key: str
    product_id: str = Field(default="", alias="ProductID")
    timestamp: Optional[datetime] = None
    etag: Optional[str] = Field(default=None, alias="ETag")
