"""Common Pydantic schemas used across the API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    """Standard API error body: {"error": "...", "sellerId": 123}."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str
    seller_id: Optional[int] = None

    def to_content(self) -> dict:
        """JSON-ready body without an empty sellerId."""
        return self.model_dump(by_alias=True, exclude_none=True)
