from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns the deployment mode and the names of the storage resources in use.
    """
    settings = request.app.state.settings
    gateway = getattr(request.app.state, "gateway", None)

    health_status = {
        "status": "ok" if gateway is not None else "degraded",
        "deployment_mode": settings.deployment_mode,
        "components": {
            "api": "ready",
            "storage": "ready" if gateway is not None else "unavailable",
        },
        "resources": {
            "tables": [settings.customers_table_name, settings.products_table_name],
            "blob_container": settings.blob_container_name,
            "queue": settings.queue_name,
            "file_share": settings.file_share_name,
        },
        "ready": gateway is not None,
    }
    return health_status
