"""PageRender HTTP entry point: `uvicorn main:app`."""

from dotenv import load_dotenv

load_dotenv()

import logging

import urllib3
from fastapi import FastAPI

from api.routes import convert, health
from core.error_handlers import register_exception_handlers
from core.lifespan import lifespan
from core.middleware import trace_id_middleware
from core.openapi import custom_openapi
from core.settings import app_settings, s3_settings
from core.validation import validate_all_settings
from pagerender.core.logging_config import configure_structured_logging

configure_structured_logging(level=app_settings.LOG_LEVEL, json_format=app_settings.LOG_JSON)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Validate settings, then assemble the service."""
    validate_all_settings()

    if not s3_settings.S3_VERIFY_SSL:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    application = FastAPI(
        title="PageRender PDF Page Service",
        version=health.SERVICE_VERSION,
        description="Renders single PDF pages to size-bounded images",
        lifespan=lifespan,
    )
    application.openapi = lambda: custom_openapi(application)
    application.middleware("http")(trace_id_middleware)
    register_exception_handlers(application)

    application.include_router(health.router)
    application.include_router(convert.router)
    return application


app = create_app()
