from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from retail_api.dependencies import get_gateway
from retail_api.errors import NotFoundError
from retail_api.models import Product, ProductFields
from retail_api.schemas import PRODUCTS_PAGE_SIZE, CreatedResponse, ProductPage
from retail_api.services.gateway import StorageGateway
from retail_api.services.pagination import filter_items, paginate

router = APIRouter()

# Fields matched by the product search box
SEARCH_FIELDS = ("name", "description", "category")


@router.get("/products", response_model=ProductPage)
async def list_products(
    search: Optional[str] = Query(None, description="Case-insensitive text to look for in name, description or category"),
    page: int = Query(1, ge=1, description="1-based page number"),
    gateway: StorageGateway = Depends(get_gateway),
) -> ProductPage:
    """List products matching the optional search term, five per page."""
    products = filter_items(await gateway.list_products(), search, SEARCH_FIELDS)
    return ProductPage.from_page(paginate(products, page, PRODUCTS_PAGE_SIZE), search=search)


@router.post("/products", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    fields: ProductFields,
    gateway: StorageGateway = Depends(get_gateway),
) -> CreatedResponse:
    product_id = await gateway.add_product(fields)
    return CreatedResponse(id=product_id, message="Product added successfully!")


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: str = Path(..., description="Row key of the product"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Product:
    product = await gateway.get_product_by_id(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
    fields: ProductFields,
    product_id: str = Path(..., description="Row key of the product"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Product:
    return await gateway.update_product(product_id, fields)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str = Path(..., description="Row key of the product"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Response:
    await gateway.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
