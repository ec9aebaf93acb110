"""Domain models for purchasable listings."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (rupees) into provider minor units (paise)."""

    scaled = Decimal(str(amount)) * MINOR_UNITS_PER_MAJOR
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class Listing(BaseModel):
    """A priced study-material item backed by an asset in object storage."""

    listing_id: str = Field(description="Opaque identifier of the listing")
    title: str = Field(min_length=1)
    price: Decimal = Field(gt=0, description="Price in major currency units")
    asset_key: str = Field(min_length=1, description="Object storage key of the PDF")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @property
    def price_minor_units(self) -> int:
        return to_minor_units(self.price)


class ListingDraft(BaseModel):
    """Validated input for an administrative listing upload."""

    title: str = Field(min_length=1)
    price: Decimal = Field(gt=0)
    filename: str = Field(min_length=1)
    content_type: str = "application/pdf"

    model_config = ConfigDict(frozen=True)


__all__ = ["Listing", "ListingDraft", "MINOR_UNITS_PER_MAJOR", "to_minor_units"]
