"""Core data structures shared by the parser, the crawler and the API.

SellerRecord is the unit of output: one per seller ID, produced by the
page parser and written by the crawl sink or returned by the API.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Output column order used by the CSV sink and SellerRecord.to_dict()
RECORD_COLUMNS: List[str] = [
    "sellerId",
    "businessName",
    "email",
    "phone",
    "rating",
    "ratingOutOf",
    "reviewCount",
    "companyName",
    "address",
    "zipCode",
    "city",
    "kvkNumber",
    "vatNumber",
    "extras",
]


@dataclass
class SellerRecord:
    """Normalized seller data extracted from one seller profile page."""

    seller_id: int  # Caller-supplied, never read from the page
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
    kvk_number: str = ""  # Chamber of commerce registration
    vat_number: str = ""
    extras: Dict[str, str] = field(default_factory=dict)  # label -> value audit trail

    def __post_init__(self):
        """Validate data after initialization."""
        if not isinstance(self.seller_id, int) or self.seller_id < 1:
            raise ValueError("seller_id must be a positive integer")
        if self.review_count is not None and self.review_count < 0:
            raise ValueError("review_count must be non-negative")
        if self.rating is not None:
            if self.rating < 0:
                raise ValueError("rating must be non-negative")
            if self.rating_out_of is not None and self.rating > self.rating_out_of:
                raise ValueError("rating must not exceed rating_out_of")

    @property
    def is_empty(self) -> bool:
        """True when the page loaded but carried no seller identity."""
        return not self.business_name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the external camelCase form in RECORD_COLUMNS order."""
        return {
            "sellerId": self.seller_id,
            "businessName": self.business_name,
            "email": self.email,
            "phone": self.phone,
            "rating": self.rating,
            "ratingOutOf": self.rating_out_of,
            "reviewCount": self.review_count,
            "companyName": self.company_name,
            "address": self.address,
            "zipCode": self.zip_code,
            "city": self.city,
            "kvkNumber": self.kvk_number,
            "vatNumber": self.vat_number,
            "extras": dict(self.extras),
        }


@dataclass
class FetchResponse:
    """What the transport hands back for a seller page request."""

    status_code: int
    text: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def not_found(self) -> bool:
        return self.status_code == 404
