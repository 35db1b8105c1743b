"""
Workflow Injection API - FastAPI Application
Builds provider email-automation workflows from business configuration
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_injection.config import settings
from workflow_injection.services.injection_pipeline import WorkflowInjectionService
from workflow_injection.api.routes import health, templates, workflows

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logging.getLogger("workflow_injection").setLevel(settings.log_level)
    logger.info("Starting Workflow Injection API...")

    app.state.injection_service = WorkflowInjectionService.from_settings(settings)
    source = str(settings.template_source_url) if settings.template_source_url else "packaged templates"
    logger.info("Template source: %s", source)
    logger.info("Substitution mode: %s", settings.substitution_mode)
    logger.info("API running on %s environment", settings.app_env)
    yield
    app.state.injection_service.invalidate_cache()
    logger.info("Shutting down Workflow Injection API...")


app = FastAPI(
    title=settings.app_name,
    description="Injects business configuration into provider workflow templates",
    version="0.1.0",
    debug=settings.app_debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(health.router, prefix=settings.api_v1_prefix, tags=["Health"])
app.include_router(workflows.router, prefix=f"{settings.api_v1_prefix}/workflows", tags=["Workflows"])
app.include_router(templates.router, prefix=f"{settings.api_v1_prefix}/templates", tags=["Templates"])

