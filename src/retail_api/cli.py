# cli.py
import asyncio
import logging

import click

from retail_api.config.settings import get_settings
from retail_api.services.gateway import StorageGateway

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the Retail API"""
    pass


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    for key, value in settings.get_environment_dict().items():
        print(f"  {key}: {value}")


@cli.command()
def init_storage():
    """Create the tables, container, queue and file share if they are missing"""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    gateway = StorageGateway.from_settings(settings)
    asyncio.run(gateway.initialize())
    print(f"✅ Storage initialized for mode {settings.deployment_mode}")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the API with uvicorn"""
    import uvicorn

    uvicorn.run("retail_api.main:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
