"""Static brand and service catalog."""

from __future__ import annotations

from decimal import Decimal

from app.core.config import Settings
from app.modules.catalog.schemas import (
    BankDetails,
    Brand,
    HeroCopy,
    ServiceDefinition,
    ServiceVariant,
)
from app.shared.exceptions import NotFoundException, ValidationFailedException

BRANDS: dict[str, Brand] = {
    "puffy": Brand(
        slug="puffy",
        name="Puffy Cotton Candy",
        description="Artisanal cotton candy and premium sweet treats for your special events",
        primary_color="#ec4899",
        secondary_color="#fce7f3",
        logo="/logos/logopuffy.png",
        hero=HeroCopy(
            title="Premium Cotton Candy Experience",
            subtitle="Handcrafted sweet treats for parties, events, and celebrations",
            image="/images/puffy-hero.jpg",
        ),
        service_areas=("Jakarta Selatan", "Jakarta Pusat", "Tangerang", "Bekasi"),
    ),
    "lava": Brand(
        slug="lava",
        name="Lava Choco Pop",
        description="Premium chocolate snacks and warm treats catering services",
        primary_color="#8B4513",
        secondary_color="#D2B48C",
        logo="/logos/lava-logo_no.png",
        hero=HeroCopy(
            title="Premium Chocolate Catering",
            subtitle="Chocolate snacks and warm treats delivered fresh to your events",
            image="/images/lava-hero.jpg",
        ),
        service_areas=("Jakarta", "Bogor", "Depok", "Bekasi", "Tangerang"),
    ),
    "indomie": Brand(
        slug="indomie",
        name="Indomie Party",
        description="Fun instant noodle party catering for memorable gatherings",
        primary_color="#DC143C",
        secondary_color="#FFB6C1",
        logo="/logos/indomie-logo.png",
        hero=HeroCopy(
            title="Instant Noodle Party Catering",
            subtitle="Interactive instant noodle experiences for parties and team building",
            image="/images/indomie-hero.jpg",
        ),
        service_areas=("Greater Jakarta", "Bandung", "Surabaya", "Semarang"),
    ),
}


def _service(
    service_id: int,
    slug: str,
    name: str,
    description: str,
    base_price: str,
    duration: int,
    features: tuple[str, ...],
    variants: tuple[tuple[str, str, str], ...] = (),
) -> ServiceDefinition:
    return ServiceDefinition(
        id=service_id,
        slug=slug,
        name=name,
        description=description,
        base_price=Decimal(base_price),
        duration=duration,
        features=features,
        variants=tuple(
            ServiceVariant(name=variant, price=Decimal(price), description=text)
            for variant, price, text in variants
        ),
    )


SERVICES: dict[str, tuple[ServiceDefinition, ...]] = {
    "puffy": (
        _service(
            1,
            "cotton-candy-classic",
            "Cotton Candy Classic",
            "Cotton candy tradisional dengan berbagai rasa premium",
            "75000",
            90,
            ("5 rasa pilihan", "Setup & cleanup", "Staff profesional"),
        ),
        _service(
            2,
            "cotton-candy-premium",
            "Cotton Candy Premium",
            "Paket lengkap dengan rasa eksklusif dan dekorasi menarik",
            "125000",
            120,
            ("10 rasa pilihan", "Dekorasi cantik", "Photo booth", "Staff profesional"),
            (
                ("Basic", "125000", "Standard package"),
                ("Deluxe", "175000", "Enhanced with premium features"),
            ),
        ),
        _service(
            3,
            "sweet-party-package",
            "Sweet Party Package",
            "Kombinasi cotton candy dengan permen artisanal lainnya",
            "200000",
            150,
            ("Cotton candy unlimited", "Permen artisanal", "Dekorasi tema", "2 staff profesional"),
        ),
    ),
    "lava": (
        _service(
            1,
            "choco-pop-basic",
            "Choco Pop Basic",
            "Camilan cokelat hangat untuk acara kecil",
            "100000",
            60,
            ("3 varian rasa", "Setup peralatan", "Staff profesional"),
        ),
        _service(
            2,
            "choco-pop-deluxe",
            "Choco Pop Deluxe",
            "Pengalaman cokelat premium dengan berbagai topping",
            "175000",
            90,
            ("5 varian rasa", "10+ topping pilihan", "Packaging menarik", "Staff profesional"),
        ),
        _service(
            3,
            "warm-treats-festival",
            "Warm Treats Festival",
            "Paket lengkap camilan hangat untuk acara besar",
            "300000",
            180,
            ("Unlimited choco pop", "Hot snacks variety", "Live cooking station"),
            (
                ("Regular", "300000", "Up to 100 guests"),
                ("Plus", "390000", "Up to 200 guests"),
            ),
        ),
    ),
    "indomie": (
        _service(
            1,
            "indomie-party-starter",
            "Indomie Party Starter",
            "Pesta mi instan seru untuk gathering kecil",
            "150000",
            90,
            ("5 varian Indomie", "Topping dasar", "Peralatan lengkap", "Staff profesional"),
        ),
        _service(
            2,
            "indomie-party-deluxe",
            "Indomie Party Deluxe",
            "Pengalaman kuliner interaktif dengan beragam varian",
            "250000",
            120,
            ("10+ varian Indomie", "15+ topping premium", "Live cooking", "Games & activities"),
        ),
        _service(
            3,
            "ultimate-noodle-fest",
            "Ultimate Noodle Fest",
            "Festival mi instan terlengkap untuk acara spektakuler",
            "400000",
            180,
            ("Semua varian Indomie", "Topping unlimited", "Live entertainment", "Photo corner"),
            (
                ("Basic", "400000", "Standard festival"),
                ("Ultimate", "550000", "All-inclusive luxury package"),
            ),
        ),
    ),
}


class CatalogService:
    """Read-only lookups over the brand catalog."""

    def __init__(
        self,
        brands: dict[str, Brand] | None = None,
        services: dict[str, tuple[ServiceDefinition, ...]] | None = None,
    ) -> None:
        self._brands = brands if brands is not None else BRANDS
        self._services = services if services is not None else SERVICES

    def list_brands(self) -> list[Brand]:
        return list(self._brands.values())

    def get_brand(self, slug: str) -> Brand:
        brand = self._brands.get(slug)
        if brand is None:
            raise NotFoundException("Brand not found")
        return brand

    def list_services(self, slug: str) -> list[ServiceDefinition]:
        self.get_brand(slug)
        return [service for service in self._services.get(slug, ()) if service.is_active]

    def get_service(self, slug: str, service_id: int) -> ServiceDefinition | None:
        for service in self.list_services(slug):
            if service.id == service_id:
                return service
        return None

    def resolve_price(self, service: ServiceDefinition, variant_name: str | None) -> Decimal:
        """Price of the chosen variant, or the base price when none is chosen."""
        if not variant_name:
            return service.base_price
        for variant in service.variants:
            if variant.name.lower() == variant_name.strip().lower():
                return variant.price
        raise ValidationFailedException({"service_variant": "Unknown service variant"})


def bank_details_from_settings(settings: Settings) -> BankDetails:
    return BankDetails(
        bank_name=settings.bank_name,
        account_name=settings.bank_account_name,
        account_number=settings.bank_account_number,
    )


def get_catalog_service() -> CatalogService:
    """Dependency provider for the catalog."""
    return CatalogService()
