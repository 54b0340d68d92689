"""
HTTP-triggered functions.

These endpoints accept the loosely-typed bodies the storefront and test pages
post (JSON, urlencoded forms, plain text or raw multipart) and forward them to
the storage gateway.
"""
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request

from retail_api.dependencies import get_gateway, read_upload
from retail_api.errors import ValidationError
from retail_api.schemas import (
    FUNCTION_PEEK_COUNT,
    AddCustomerFunctionResponse,
    QueueMessageFunctionResponse,
    UploadBlobFunctionResponse,
    UploadFileFunctionResponse,
)
from retail_api.services.gateway import StorageGateway

logger = logging.getLogger(__name__)

router = APIRouter()

PRODUCT_ID_HEADERS = ("ProductId", "X-Product-ID")
CUSTOMER_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phoneNumber": "phone_number",
    "address": "address",
}


def _parse_json_object(content: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(content)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _parse_form(content: str) -> Dict[str, str]:
    return {key: values[0] for key, values in parse_qs(content, keep_blank_values=True).items()}


@router.post("/AddCustomer", response_model=AddCustomerFunctionResponse)
async def add_customer_function(
    request: Request,
    gateway: StorageGateway = Depends(get_gateway),
) -> AddCustomerFunctionResponse:
    """Add a customer from a JSON or urlencoded body with camelCase field names."""
    logger.info("AddCustomer function processing request.")
    content = (await request.body()).decode("utf-8", errors="replace")
    payload = _parse_json_object(content)
    if payload is None:
        payload = _parse_form(content)

    values = {field: payload.get(key) for key, field in CUSTOMER_FIELDS.items()}
    if any(not isinstance(value, str) or not value.strip() for value in values.values()):
        logger.warning("Missing required fields")
        raise ValidationError(
            "All fields are required (firstName, lastName, email, phoneNumber, address)."
        )

    customer_id = await gateway.add_customer(values)
    return AddCustomerFunctionResponse(
        message="Customer added successfully.",
        id=customer_id,
        firstName=values["first_name"],
        lastName=values["last_name"],
        email=values["email"],
    )


@router.post("/QueueMessage", response_model=QueueMessageFunctionResponse)
async def queue_message_function(
    request: Request,
    gateway: StorageGateway = Depends(get_gateway),
) -> QueueMessageFunctionResponse:
    """Enqueue a message sent as JSON, urlencoded form or plain text, then peek at the queue."""
    content = (await request.body()).decode("utf-8", errors="replace")
    payload = _parse_json_object(content)
    if payload is not None:
        message = payload.get("message")
    elif "=" in content:
        message = _parse_form(content).get("message")
    else:
        message = content

    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message is required.")

    await gateway.enqueue_message(message)
    peeked = await gateway.peek_messages(FUNCTION_PEEK_COUNT)
    logger.info(f"Message added. Peeked {len(peeked)} messages.")
    return QueueMessageFunctionResponse(
        added_message=message,
        peeked_messages=peeked,
        total_peeked=len(peeked),
    )


@router.post("/UploadBlob", response_model=UploadBlobFunctionResponse)
async def upload_blob_function(
    request: Request,
    gateway: StorageGateway = Depends(get_gateway),
) -> UploadBlobFunctionResponse:
    """
    Upload a product image.

    The product id travels in the ``ProductId`` (or ``X-Product-ID``) header and
    the image in a multipart/form-data body. The blob is stored as
    ``{productId}_{uuid}_{fileName}`` so repeated uploads never collide.
    """
    product_id = next(
        (request.headers[name] for name in PRODUCT_ID_HEADERS if request.headers.get(name)),
        None,
    )
    if not product_id:
        raise ValidationError("Product ID is required in header.")

    upload = await read_upload(request)
    uploaded = await gateway.upload_product_image(
        product_id,
        upload.file_name,
        upload.content,
        upload.content_type,
    )
    return UploadBlobFunctionResponse(
        message=f"Image uploaded for product {product_id}.",
        url=uploaded.url,
        productId=product_id,
        fileName=uploaded.name,
    )


@router.post("/UploadFile", response_model=UploadFileFunctionResponse)
async def upload_file_function(
    request: Request,
    gateway: StorageGateway = Depends(get_gateway),
) -> UploadFileFunctionResponse:
    """Store the raw text body as a timestamp-named contract file on the share."""
    content = (await request.body()).decode("utf-8", errors="replace")
    file_name = await gateway.upload_contract(content)
    return UploadFileFunctionResponse(
        message=f"File {file_name} uploaded successfully.",
        fileName=file_name,
        size=len(content.encode("utf-8")),
    )
