from fastapi import APIRouter, Depends, Query, status

from retail_api.dependencies import get_gateway
from retail_api.schemas import (
    MESSAGES_PAGE_SIZE,
    QUEUE_LISTING_PEEK_COUNT,
    EnqueueMessageRequest,
    MessageResponse,
    NamePage,
)
from retail_api.services.gateway import StorageGateway
from retail_api.services.pagination import paginate

router = APIRouter()


@router.get("/queue/messages", response_model=NamePage)
async def list_queue_messages(
    page: int = Query(1, ge=1, description="1-based page number"),
    gateway: StorageGateway = Depends(get_gateway),
) -> NamePage:
    """Peek at pending order processing messages (up to 32), five per page."""
    messages = await gateway.peek_messages(QUEUE_LISTING_PEEK_COUNT)
    return NamePage.from_page(paginate(messages, page, MESSAGES_PAGE_SIZE))


@router.post("/queue/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_queue_message(
    body: EnqueueMessageRequest,
    gateway: StorageGateway = Depends(get_gateway),
) -> MessageResponse:
    await gateway.enqueue_message(body.message)
    return MessageResponse(message="Message added to queue successfully!")
