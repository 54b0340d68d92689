from fastapi import APIRouter, Depends, Query, status

from retail_api.dependencies import get_gateway, read_upload
from retail_api.protocol.multipart import FilePart
from retail_api.schemas import FILES_PAGE_SIZE, NamePage, UploadFileResponse
from retail_api.services.gateway import StorageGateway
from retail_api.services.pagination import paginate

router = APIRouter()


@router.get("/files", response_model=NamePage)
async def list_files(
    page: int = Query(1, ge=1, description="1-based page number"),
    gateway: StorageGateway = Depends(get_gateway),
) -> NamePage:
    """List files at the root of the contracts share, ten per page."""
    names = await gateway.list_file_names()
    return NamePage.from_page(paginate(names, page, FILES_PAGE_SIZE))


@router.post("/files", response_model=UploadFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    upload: FilePart = Depends(read_upload),
    gateway: StorageGateway = Depends(get_gateway),
) -> UploadFileResponse:
    """Upload a multipart file part to the contracts share, replacing a file of the same name."""
    await gateway.upload_file(upload.content, upload.file_name)
    return UploadFileResponse(
        message=f"File '{upload.file_name}' uploaded successfully!",
        file_name=upload.file_name,
        size=len(upload.content),
    )
