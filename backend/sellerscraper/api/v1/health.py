"""Health check endpoint."""

from fastapi import APIRouter

from sellerscraper import __version__
from sellerscraper.config import settings
from sellerscraper.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Return service status and the non-secret scraping settings."""
    return HealthCheckResponse(
        status="ok",
        version=__version__,
        environment=settings.ENVIRONMENT,
        settings={
            "marketplace_base_url": settings.MARKETPLACE_BASE_URL,
            "default_language": settings.DEFAULT_LANGUAGE,
            "proxy_configured": str(bool(settings.get_proxy_url())).lower(),
            "batch_max_size": str(settings.BATCH_MAX_SIZE),
        },
    )
