"""Catalog schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class ServiceVariant(BaseModel):
    """Priced tier of a service."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(gt=0)
    description: str | None = Field(default=None, max_length=500)


class ServiceDefinition(BaseModel):
    """Service offered by a brand (also the admin create/update schema)."""

    model_config = ConfigDict(frozen=True)

    error_messages: ClassVar[dict[str, str]] = {
        "name.string_too_short": "Service name is required",
        "base_price.greater_than": "Price must be positive",
        "duration.greater_than": "Duration must be positive",
    }

    id: int | None = None
    slug: str | None = Field(default=None, max_length=100)
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    base_price: Decimal = Field(gt=0)
    duration: int = Field(gt=0, description="Duration in minutes")
    is_active: bool = True
    features: tuple[str, ...] = ()
    variants: tuple[ServiceVariant, ...] = ()


class HeroCopy(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    subtitle: str
    image: str


class BrandDefinition(BaseModel):
    """Brand create/update schema."""

    error_messages: ClassVar[dict[str, str]] = {
        "name.string_too_short": "Brand name is required",
        "slug.string_too_short": "Slug is required",
        "slug.string_pattern_mismatch": (
            "Slug must contain only lowercase letters, numbers, and hyphens"
        ),
    }

    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$")
    description: str = Field(default="", max_length=1000)
    is_active: bool = True


class Brand(BaseModel):
    """Brand with presentation metadata."""

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    description: str
    primary_color: str
    secondary_color: str
    logo: str
    hero: HeroCopy
    service_areas: tuple[str, ...]


class BrandRead(Brand):
    services: list[ServiceDefinition] = []


class BankDetails(BaseModel):
    """Where customers send their transfer."""

    bank_name: str
    account_name: str
    account_number: str
