"""Seller lookup endpoints.

GET  /sellers/{seller_id}?country=NL&language=nl-NL
POST /sellers/batch   {"sellerIds": [1000, 1001], "country": "NL", "language": "nl-NL"}
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse

from sellerscraper.config import settings
from sellerscraper.dependencies import get_batch_lookup_service, get_lookup_service
from sellerscraper.schemas import (
    BatchLookupRequest,
    BatchLookupResponse,
    ErrorResponse,
    SellerErrorResponse,
    SellerResponse,
)
from sellerscraper.services.lookup_service import (
    RESULT_HTTP_ERROR,
    RESULT_TIMEOUT,
    LookupResult,
    SellerLookupService,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str, seller_id: Optional[int] = None) -> JSONResponse:
    body = ErrorResponse(error=message, seller_id=seller_id)
    return JSONResponse(status_code=status_code, content=body.to_content())


def _to_schema(result: LookupResult):
    if result.ok:
        return SellerResponse.model_validate(result.record.to_dict())
    return SellerErrorResponse(seller_id=result.seller_id, error=result.error or "Unknown error")


@router.get(
    "/{seller_id}",
    response_model=SellerResponse,
    responses={
        504: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_seller(
    seller_id: int = Path(..., ge=1, description="Marketplace seller ID"),
    country: Optional[str] = Query(None, description="Country code, e.g. NL"),
    language: Optional[str] = Query(None, description="Page language, e.g. nl-NL"),
    service: SellerLookupService = Depends(get_lookup_service),
):
    """Fetch and parse one seller page.

    Upstream HTTP errors are passed through with their status code;
    a timeout maps to 504 and any other failure to 500.
    """
    result = await service.lookup(
        seller_id,
        language=language or settings.DEFAULT_LANGUAGE,
        country=country or settings.DEFAULT_COUNTRY,
    )

    if result.ok:
        return _to_schema(result)
    if result.kind == RESULT_HTTP_ERROR:
        return _error(result.status_code, f"Marketplace returned HTTP {result.status_code}", seller_id)
    if result.kind == RESULT_TIMEOUT:
        return _error(status.HTTP_504_GATEWAY_TIMEOUT, "Request to marketplace timed out", seller_id)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, result.error or "Unknown error", seller_id)


@router.post(
    "/batch",
    response_model=BatchLookupResponse,
    responses={400: {"model": ErrorResponse}},
)
async def batch_sellers(
    body: BatchLookupRequest,
    service: SellerLookupService = Depends(get_batch_lookup_service),
):
    """Look up several sellers one after another.

    Always 200 once the body validates; each item is either a record or
    {"sellerId", "error"}, in request order.
    """
    if len(body.seller_ids) > service.max_batch_size:
        return _error(status.HTTP_400_BAD_REQUEST, f"Maximum batch size is {service.max_batch_size}")

    results = await service.lookup_many(
        body.seller_ids,
        language=body.language or settings.DEFAULT_LANGUAGE,
        country=body.country or settings.DEFAULT_COUNTRY,
    )
    logger.info(
        "batch_lookup_complete",
        requested=len(body.seller_ids),
        succeeded=sum(1 for r in results if r.ok),
    )
    return BatchLookupResponse(results=[_to_schema(r) for r in results])
