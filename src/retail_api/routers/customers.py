from fastapi import APIRouter, Depends, Path, Query, Response, status

from retail_api.dependencies import get_gateway
from retail_api.errors import NotFoundError
from retail_api.models import Customer, CustomerFields
from retail_api.schemas import CUSTOMERS_PAGE_SIZE, CreatedResponse, CustomerPage
from retail_api.services.gateway import StorageGateway
from retail_api.services.pagination import paginate

router = APIRouter()


@router.get("/customers", response_model=CustomerPage)
async def list_customers(
    page: int = Query(1, ge=1, description="1-based page number"),
    gateway: StorageGateway = Depends(get_gateway),
) -> CustomerPage:
    """List customers, five per page."""
    customers = await gateway.list_customers()
    return CustomerPage.from_page(paginate(customers, page, CUSTOMERS_PAGE_SIZE))


@router.post("/customers", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    fields: CustomerFields,
    gateway: StorageGateway = Depends(get_gateway),
) -> CreatedResponse:
    customer_id = await gateway.add_customer(fields)
    return CreatedResponse(id=customer_id, message="Customer added successfully!")


@router.get("/customers/{customer_id}", response_model=Customer)
async def get_customer(
    customer_id: str = Path(..., description="Row key of the customer"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Customer:
    customer = await gateway.get_customer_by_id(customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


@router.put("/customers/{customer_id}", response_model=Customer)
async def update_customer(
    fields: CustomerFields,
    customer_id: str = Path(..., description="Row key of the customer"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Customer:
    return await gateway.update_customer(customer_id, fields)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str = Path(..., description="Row key of the customer"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Response:
    await gateway.delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
