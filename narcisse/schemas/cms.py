"""CMS Pydantic schemas: hero slides, partners, site configuration."""


from typing import Any

from pydantic import Field

from narcisse.schemas.common import CamelModel


class HeroSlideIn(CamelModel):
    """Lenient body: validation of the required fields happens in the service."""

    title: Any = None
    subtitle: Any = None
    image_desktop: str | None = None
    image_mobile: str | None = None
    is_active: bool = True


class HeroSlideOut(CamelModel):
    id: str
    order: int
    is_active: bool
    image_desktop: str
    image_mobile: str | None = None
    title: dict[str, str]
    subtitle: dict[str, str]


class ReorderRequest(CamelModel):
    ids: list[str] = Field(default_factory=list)


class PartnerIn(CamelModel):
    name: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    is_visible: bool = True
    order: int | None = None


class PartnerOut(CamelModel):
    id: str
    order: int
    is_visible: bool
    name: str
    logo_url: str
    website_url: str | None = None


class SiteConfigEntryIn(CamelModel):
    key: str
    value: Any = None


class SiteConfigUpdate(CamelModel):
    entries: list[SiteConfigEntryIn] = Field(default_factory=list)


class SiteEntry(CamelModel):
    key: str
    value: dict[str, str] | str


class CmsPayload(CamelModel):
    site_config: list[SiteEntry]
    hero_slides: list[HeroSlideOut]
    partners: list[PartnerOut]


class PublishResponse(CamelModel):
    success: bool = True
    operations: int


class LegalPage(CamelModel):
    page: str
    locale: str
    content: str


class PublicHeroSlide(CamelModel):
    id: str
    order: int
    image_desktop: str
    image_mobile: str | None = None
    title: str
    subtitle: str


class PublicContent(CamelModel):
    locale: str
    site_config: dict[str, str]
    hero_slides: list[PublicHeroSlide]
    partners: list[PartnerOut]
