from fastapi import APIRouter, Depends, Query, status

from retail_api.dependencies import get_gateway, read_upload
from retail_api.errors import ValidationError
from retail_api.protocol.multipart import FilePart
from retail_api.schemas import IMAGES_PAGE_SIZE, NamePage, UploadImageResponse
from retail_api.services.gateway import StorageGateway
from retail_api.services.pagination import paginate

router = APIRouter()


@router.get("/product-images", response_model=NamePage)
async def list_product_images(
    page: int = Query(1, ge=1, description="1-based page number"),
    gateway: StorageGateway = Depends(get_gateway),
) -> NamePage:
    """List product image blob names, five per page."""
    names = await gateway.list_blob_names()
    return NamePage.from_page(paginate(names, page, IMAGES_PAGE_SIZE))


@router.post("/product-images", response_model=UploadImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_product_image(
    upload: FilePart = Depends(read_upload),
    gateway: StorageGateway = Depends(get_gateway),
) -> UploadImageResponse:
    """
    Upload an image under its original file name.

    Expects a multipart/form-data body with one file part whose content type
    is an image type. An existing image with the same name is overwritten.
    """
    if not (upload.content_type or "").lower().startswith("image/"):
        raise ValidationError("Only image files are allowed.")
    uploaded = await gateway.upload_image(upload.file_name, upload.content, upload.content_type)
    return UploadImageResponse(
        message="Image uploaded successfully!",
        file_name=uploaded.name,
        url=uploaded.url,
    )
