"""Catalog API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.container import AppContainer, get_container
from app.modules.catalog.schemas import BankDetails, Brand, BrandRead, ServiceDefinition
from app.modules.catalog.service import (
    CatalogService,
    bank_details_from_settings,
    get_catalog_service,
)

router = APIRouter(tags=["catalog"])


@router.get("/brands", response_model=list[Brand])
async def list_brands(service: CatalogService = Depends(get_catalog_service)) -> list[Brand]:
    """List all brands."""
    return service.list_brands()


@router.get("/brands/{slug}", response_model=BrandRead)
async def get_brand(
    slug: str,
    service: CatalogService = Depends(get_catalog_service),
) -> BrandRead:
    """Brand details with its active services."""
    brand = service.get_brand(slug)
    return BrandRead(**brand.model_dump(), services=service.list_services(slug))


@router.get("/brands/{slug}/services", response_model=list[ServiceDefinition])
async def list_brand_services(
    slug: str,
    service: CatalogService = Depends(get_catalog_service),
) -> list[ServiceDefinition]:
    """List services offered by a brand."""
    return service.list_services(slug)


@router.get("/payment-instructions", response_model=BankDetails)
async def payment_instructions(container: AppContainer = Depends(get_container)) -> BankDetails:
    """Bank account customers transfer to."""
    return bank_details_from_settings(container.settings)
