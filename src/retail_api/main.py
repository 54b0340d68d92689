from contextlib import asynccontextmanager
from textwrap import dedent
from typing import Optional
import logging

import pydantic
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from retail_api.config.settings import Settings
from retail_api.errors import (
    BackendFaultError,
    ConfigurationMissingError,
    DecodeError,
    NotFoundError,
    ValidationError,
    handle_backend_fault,
    handle_broad_exceptions,
    handle_configuration_missing,
    handle_decode_error,
    handle_not_found,
    handle_pydantic_validation_errors,
    handle_validation_error,
)
from retail_api.routers.customers import router as customers_router
from retail_api.routers.files import router as files_router
from retail_api.routers.functions import router as functions_router
from retail_api.routers.health import router as health_router
from retail_api.routers.images import router as images_router
from retail_api.routers.products import router as products_router
from retail_api.routers.queue import router as queue_router
from retail_api.services.gateway import StorageGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway = app.state.gateway
    if gateway is not None:
        logger.info("Creating storage resources")
        await gateway.initialize()
    yield


def create_app(settings: Optional[Settings] = None, gateway: Optional[StorageGateway] = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    if gateway is None:
        try:
            gateway = StorageGateway.from_settings(settings)
        except ConfigurationMissingError as e:
            # Requests fail with a configuration error until the credential is set
            logger.error(f"Storage gateway unavailable: {e}")

    app = FastAPI(
        title="Retail API",
        summary="Back-office storage for customers, products, images, orders and contracts",
        version="v1",
        description=dedent(
            """\
        | Area | Endpoints |
        | --- | --- |
        | Customers and products | `/v1/customers`, `/v1/products` |
        | Product images | `/v1/product-images`, `/api/UploadBlob` |
        | Order queue | `/v1/queue/messages`, `/api/QueueMessage` |
        | Contracts | `/v1/files`, `/api/UploadFile` |
        """
        ),
        docs_url="/",
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.gateway = gateway

    app.include_router(customers_router, prefix="/v1", tags=["customers"])
    app.include_router(products_router, prefix="/v1", tags=["products"])
    app.include_router(images_router, prefix="/v1", tags=["images"])
    app.include_router(queue_router, prefix="/v1", tags=["queue"])
    app.include_router(files_router, prefix="/v1", tags=["files"])
    app.include_router(functions_router, prefix="/api", tags=["functions"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(DecodeError, handle_decode_error)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(ConfigurationMissingError, handle_configuration_missing)
    app.add_exception_handler(BackendFaultError, handle_backend_fault)
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
