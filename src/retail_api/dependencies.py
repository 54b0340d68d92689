from fastapi import Request

from retail_api.protocol.multipart import FilePart, decode, extract_boundary
from retail_api.services.gateway import StorageGateway, check_storage_configuration


def get_gateway(request: Request) -> StorageGateway:
    """Storage gateway dependency.

    :raises ConfigurationMissingError: if the app started without a storage credential.
    """
    gateway = request.app.state.gateway
    if gateway is None:
        check_storage_configuration(request.app.state.settings)
    return gateway


async def read_upload(request: Request) -> FilePart:
    """Decode the single file part of a multipart/form-data request body."""
    boundary = extract_boundary(request.headers.get("content-type"))
    return decode(await request.body(), boundary)
