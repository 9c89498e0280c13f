"""Seller lookup request/response schemas.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SellerResponse(CamelModel):
    """One extracted seller record."""

    seller_id: int
    business_name: str = ""
    email: str = ""
    phone: str = ""
    rating: Optional[float] = None
    rating_out_of: Optional[float] = None
    review_count: Optional[int] = None
    company_name: str = ""
    address: str = ""
    zip_code: str = ""
    city: str = ""
    kvk_number: str = ""
    vat_number: str = ""
    extras: Dict[str, str] = {}


class SellerErrorResponse(CamelModel):
    """Failure for one seller, tagged with its ID."""

    seller_id: int
    error: str


class BatchLookupRequest(CamelModel):
    """Body of POST /sellers/batch."""

    seller_ids: List[PositiveInt] = Field(min_length=1)
    country: Optional[str] = None
    language: Optional[str] = None


class BatchLookupResponse(BaseModel):
    """Per-ID outcomes in request order."""

    # Error first: a record never carries "error", so it cannot match it
    results: List[Union[SellerErrorResponse, SellerResponse]]
