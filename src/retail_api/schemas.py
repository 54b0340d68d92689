####################################
# --- Request/response schemas --- #
####################################

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from retail_api.models import Customer, Product
from retail_api.services.pagination import Page

CUSTOMERS_PAGE_SIZE = 5
PRODUCTS_PAGE_SIZE = 5
IMAGES_PAGE_SIZE = 5
MESSAGES_PAGE_SIZE = 5
FILES_PAGE_SIZE = 10
# The queue page lists at most this many peeked messages
QUEUE_LISTING_PEEK_COUNT = 32
FUNCTION_PEEK_COUNT = 5


class PageMetadata(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @staticmethod
    def fields_from(page: Page) -> dict:
        return {
            "page": page.page,
            "page_size": page.page_size,
            "total_count": page.total_count,
            "total_pages": page.total_pages,
        }


class CustomerPage(PageMetadata):
    """Response model for `GET /v1/customers`."""
    items: List[Customer]

    @classmethod
    def from_page(cls, page: Page) -> "CustomerPage":
        return cls(items=page.items, **PageMetadata.fields_from(page))


class ProductPage(PageMetadata):
    """Response model for `GET /v1/products`."""
    items: List[Product]
    search: Optional[str] = None

    @classmethod
    def from_page(cls, page: Page, search: Optional[str] = None) -> "ProductPage":
        return cls(items=page.items, search=search, **PageMetadata.fields_from(page))


class NamePage(PageMetadata):
    """Response model for listings of blob names, messages and file names."""
    items: List[str]

    @classmethod
    def from_page(cls, page: Page) -> "NamePage":
        return cls(items=page.items, **PageMetadata.fields_from(page))


class CreatedResponse(BaseModel):
    id: str
    message: str


class MessageResponse(BaseModel):
    message: str


class EnqueueMessageRequest(BaseModel):
    message: str = Field(description="Text to add to the order processing queue.")


class UploadImageResponse(BaseModel):
    message: str
    file_name: str
    url: str
    product_id: Optional[str] = None


class UploadFileResponse(BaseModel):
    message: str
    file_name: str
    size: int


class AddCustomerFunctionResponse(BaseModel):
    """Response model for `POST /api/AddCustomer`."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Customer added successfully.",
                "id": "3f0e9a4c-5a4b-4d52-9a35-0d0b7c6f1a2e",
                "firstName": "Thandi",
                "lastName": "Nkosi",
                "email": "thandi@example.com",
            }
        }
    )

    message: str
    id: str
    firstName: str
    lastName: str
    email: str


class QueueMessageFunctionResponse(BaseModel):
    """Response model for `POST /api/QueueMessage`."""
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    added_message: str
    peeked_messages: List[str]
    total_peeked: int


class UploadBlobFunctionResponse(BaseModel):
    """Response model for `POST /api/UploadBlob`."""
    message: str
    url: str
    productId: str
    fileName: str


class UploadFileFunctionResponse(BaseModel):
    """Response model for `POST /api/UploadFile`."""
    message: str
    fileName: str
    size: int
