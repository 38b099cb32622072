"""Draft / publish content management for the public site.

Each editable record keeps its live fields next to a draft. Admin writes go to
the draft; `publish()` copies every draft onto the live fields and clears it.
The public site only ever reads live values, cached for a few minutes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.cache import CACHE_TTL_CMS, cache_get, cache_set, invalidate_after_commit
from narcisse.core.exceptions import BadRequestError, NotFoundError
from narcisse.domain.cms import HeroSlide, Partner, SiteConfig
from narcisse.repositories.cms import HeroSlideRepository, PartnerRepository, SiteConfigRepository
from narcisse.schemas.cms import HeroSlideIn, PartnerIn, SiteConfigEntryIn

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("fr", "en", "de")
DEFAULT_LOCALE = "fr"

CMS_CACHE_KEY = "cms:published"

LEGAL_PAGES = {
    "legal": "legal.mentions",
    "cgv": "legal.cgv",
    "privacy": "legal.privacy",
}


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    type: str = "text"  # "text" | "textarea" | "rich_text"
    translatable: bool = True
    required: bool = False

    @property
    def group(self) -> str:
        return self.key.split(".")[0] or "default"


SITE_CONFIG_GROUPS: list[tuple[str, str, list[FieldDefinition]]] = [
    ("seo_home", "SEO - Page Accueil", [
        FieldDefinition("seo.home.title", "Titre SEO", required=True),
        FieldDefinition("seo.home.description", "Description Google", "textarea"),
        FieldDefinition("seo.home.image", "Image Open Graph", translatable=False),
    ]),
    ("home_copy", "Contenus - Accueil", [
        FieldDefinition("home.hero.eyebrow", "Accroche courte", required=True),
        FieldDefinition("home.hero.cta", "Bouton principal", required=True),
        FieldDefinition("home.story.paragraph", "Paragraphe d'introduction", "textarea"),
    ]),
    ("legal_assets", "Mentions & Footer", [
        FieldDefinition("legal.mentions", "Mentions légales", "rich_text"),
        FieldDefinition("legal.cgv", "Conditions générales de vente", "rich_text"),
        FieldDefinition("legal.privacy", "Politique de confidentialité", "rich_text"),
        FieldDefinition("footer.contact.line", "Texte de contact"),
    ]),
]

SITE_CONFIG_DEFINITIONS = {field.key: field for _, _, fields in SITE_CONFIG_GROUPS for field in fields}


# ── Value helpers ────────────────────────────────────────────────────────

def normalize_translation_record(value: Any) -> dict[str, str]:
    """Keep trimmed, non-empty strings of supported locales only."""
    if not isinstance(value, dict):
        return {}
    result: dict[str, str] = {}
    for locale in SUPPORTED_LOCALES:
        candidate = value.get(locale)
        if isinstance(candidate, str) and candidate.strip():
            result[locale] = candidate.strip()
    return result


def resolve_value(value: dict[str, str] | str, locale: str) -> str:
    """Locale, then French, then any filled locale."""
    if isinstance(value, str):
        return value
    safe = locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE
    for code in (safe, DEFAULT_LOCALE, *SUPPORTED_LOCALES):
        candidate = value.get(code)
        if candidate and candidate.strip():
            return candidate
    return ""


def _site_value(raw: Any) -> dict[str, str] | str:
    if isinstance(raw, str):
        return raw
    if not isinstance(raw, dict):
        return ""
    normalized = normalize_translation_record(raw)
    if normalized:
        return normalized
    single = raw.get("value")
    return single if isinstance(single, str) else ""


def _serialize(definition: FieldDefinition, value: Any) -> Any:
    if definition.translatable:
        return normalize_translation_record(value)
    return {"value": value.strip() if isinstance(value, str) else ""}


def _is_hero_draft(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("imageDesktop"), str) and isinstance(payload.get("title"), dict)


def _is_partner_draft(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("name"), str) and isinstance(payload.get("logoUrl"), str)


# ── Mappers (live or draft view) ─────────────────────────────────────────

def map_site_entry(entry: SiteConfig, prefer_draft: bool) -> dict[str, Any]:
    raw = (entry.draft_values or entry.published_values) if prefer_draft else entry.published_values
    return {"key": entry.key, "value": _site_value(raw)}


def map_hero_slide(slide: HeroSlide, prefer_draft: bool) -> dict[str, Any]:
    if prefer_draft and _is_hero_draft(slide.draft_payload):
        draft = slide.draft_payload
        return {
            "id": slide.id,
            "order": slide.order,
            "is_active": bool(draft.get("isActive", True)),
            "image_desktop": draft["imageDesktop"],
            "image_mobile": draft.get("imageMobile"),
            "title": normalize_translation_record(draft.get("title")),
            "subtitle": normalize_translation_record(draft.get("subtitle")),
        }
    return {
        "id": slide.id,
        "order": slide.order,
        "is_active": slide.is_active,
        "image_desktop": slide.image_desktop,
        "image_mobile": slide.image_mobile,
        "title": normalize_translation_record(slide.title),
        "subtitle": normalize_translation_record(slide.subtitle),
    }


def map_partner(partner: Partner, prefer_draft: bool) -> dict[str, Any]:
    if prefer_draft and _is_partner_draft(partner.draft_data):
        draft = partner.draft_data
        order = draft.get("order")
        visible = draft.get("isVisible")
        return {
            "id": partner.id,
            "order": order if isinstance(order, int) else partner.order,
            "is_visible": visible if isinstance(visible, bool) else partner.is_visible,
            "name": draft["name"],
            "logo_url": draft["logoUrl"],
            "website_url": draft.get("websiteUrl"),
        }
    return {
        "id": partner.id,
        "order": partner.order,
        "is_visible": partner.is_visible,
        "name": partner.name,
        "logo_url": partner.logo_url,
        "website_url": partner.website_url,
    }


def _trimmed(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class CmsService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._slides = HeroSlideRepository(session)
        self._partners = PartnerRepository(session)
        self._site = SiteConfigRepository(session)

    # ------------------------------------------------------------------
    # Hero slides
    # ------------------------------------------------------------------

    @staticmethod
    def _hero_payload(data: HeroSlideIn) -> dict[str, Any]:
        desktop = _trimmed(data.image_desktop)
        title = normalize_translation_record(data.title)
        if not desktop:
            raise BadRequestError("L'image desktop est obligatoire.")
        if not title:
            raise BadRequestError("Au moins une traduction de titre est requise.")
        return {
            "title": title,
            "subtitle": normalize_translation_record(data.subtitle),
            "imageDesktop": desktop,
            "imageMobile": _trimmed(data.image_mobile) or None,
            "isActive": data.is_active,
        }

    async def create_hero_slide(self, data: HeroSlideIn) -> HeroSlide:
        payload = self._hero_payload(data)
        slide = await self._slides.create(
            title=payload["title"],
            subtitle=payload["subtitle"],
            image_desktop=payload["imageDesktop"],
            image_mobile=payload["imageMobile"],
            is_active=payload["isActive"],
            order=await self._slides.next_order(),
            draft_payload=payload,
        )
        logger.info("Hero slide %s created", slide.id)
        return slide

    async def update_hero_slide(self, slide_id: str, data: HeroSlideIn) -> HeroSlide:
        slide = await self._slides.get_by_id(slide_id)
        if slide is None:
            raise NotFoundError("Hero slide", slide_id)
        slide = await self._slides.update(slide, draft_payload=self._hero_payload(data))
        logger.info("Hero slide %s draft updated", slide.id)
        return slide

    async def delete_hero_slide(self, slide_id: str) -> None:
        slide = await self._slides.get_by_id(slide_id)
        if slide is None:
            raise NotFoundError("Hero slide", slide_id)
        await self._slides.delete(slide)
        self._invalidate()

    async def reorder_hero_slides(self, ids: list[str]) -> None:
        ids = [value for value in ids if isinstance(value, str) and value]
        if not ids:
            raise BadRequestError("Ordre invalide.")
        slides = {slide.id: slide for slide in await self._slides.list_ordered()}
        for index, slide_id in enumerate(ids):
            slide = slides.get(slide_id)
            if slide is None:
                raise NotFoundError("Hero slide", slide_id)
            slide.order = index
        await self._session.flush()
        self._invalidate()
        logger.info("Hero slides reordered (%d)", len(ids))

    # ------------------------------------------------------------------
    # Partners
    # ------------------------------------------------------------------

    @staticmethod
    def _partner_payload(data: PartnerIn) -> dict[str, Any]:
        name = _trimmed(data.name)
        logo = _trimmed(data.logo_url)
        if not name:
            raise BadRequestError("Le nom est obligatoire.")
        if not logo:
            raise BadRequestError("Le logo est obligatoire.")
        payload: dict[str, Any] = {
            "name": name,
            "logoUrl": logo,
            "websiteUrl": _trimmed(data.website_url) or None,
            "isVisible": data.is_visible,
        }
        if data.order is not None:
            payload["order"] = data.order
        return payload

    async def create_partner(self, data: PartnerIn) -> Partner:
        payload = self._partner_payload(data)
        partner = await self._partners.create(
            name=payload["name"],
            logo_url=payload["logoUrl"],
            website_url=payload["websiteUrl"],
            is_visible=payload["isVisible"],
            order=payload.get("order", await self._partners.next_order()),
            draft_data=payload,
        )
        logger.info("Partner %s created", partner.id)
        return partner

    async def update_partner(self, partner_id: str, data: PartnerIn) -> Partner:
        partner = await self._partners.get_by_id(partner_id)
        if partner is None:
            raise NotFoundError("Partner", partner_id)
        return await self._partners.update(partner, draft_data=self._partner_payload(data))

    async def delete_partner(self, partner_id: str) -> None:
        partner = await self._partners.get_by_id(partner_id)
        if partner is None:
            raise NotFoundError("Partner", partner_id)
        await self._partners.delete(partner)
        self._invalidate()

    # ------------------------------------------------------------------
    # Site configuration
    # ------------------------------------------------------------------

    async def get_site_config_groups(self) -> list[dict[str, Any]]:
        existing = await self._site.by_key()
        groups = []
        for group_id, title, fields in SITE_CONFIG_GROUPS:
            states = []
            for field in fields:
                record = existing.get(field.key)
                raw = (record.draft_values or record.published_values) if record else None
                value = normalize_translation_record(raw) if field.translatable else _site_value(raw)
                states.append({
                    "key": field.key,
                    "label": field.label,
                    "type": field.type,
                    "translatable": field.translatable,
                    "required": field.required,
                    "value": value,
                })
            groups.append({"id": group_id, "title": title, "fields": states})
        return groups

    async def update_site_config(self, entries: list[SiteConfigEntryIn]) -> int:
        """Store draft values of known keys; returns how many were saved."""
        if not entries:
            raise BadRequestError("Aucune donnée à enregistrer.")
        prepared = [(SITE_CONFIG_DEFINITIONS[e.key], e.value) for e in entries if e.key in SITE_CONFIG_DEFINITIONS]
        if not prepared:
            raise BadRequestError("Champs inconnus.")

        existing = await self._site.by_key()
        for definition, value in prepared:
            serialized = _serialize(definition, value)
            record = existing.get(definition.key)
            if record is None:
                await self._site.create(
                    key=definition.key,
                    label=definition.label,
                    type=definition.type,
                    group=definition.group,
                    published_values=serialized,
                    draft_values=serialized,
                )
            else:
                await self._site.update(
                    record,
                    label=definition.label,
                    type=definition.type,
                    group=definition.group,
                    draft_values=serialized,
                )
        logger.info("Site config updated (%d entries)", len(prepared))
        return len(prepared)

    # ------------------------------------------------------------------
    # Publish / read
    # ------------------------------------------------------------------

    async def publish(self) -> int:
        operations = 0
        for entry in await self._site.all():
            if entry.draft_values:
                entry.published_values = entry.draft_values
                entry.draft_values = None
                operations += 1

        for slide in await self._slides.list_ordered():
            draft = slide.draft_payload
            if not _is_hero_draft(draft):
                continue
            slide.title = normalize_translation_record(draft.get("title"))
            slide.subtitle = normalize_translation_record(draft.get("subtitle"))
            slide.image_desktop = draft["imageDesktop"]
            slide.image_mobile = draft.get("imageMobile")
            slide.is_active = bool(draft.get("isActive", True))
            slide.draft_payload = None
            operations += 1

        for partner in await self._partners.list_ordered():
            draft = partner.draft_data
            if not _is_partner_draft(draft):
                continue
            partner.name = draft["name"]
            partner.logo_url = draft["logoUrl"]
            partner.website_url = draft.get("websiteUrl")
            partner.is_visible = draft["isVisible"] if isinstance(draft.get("isVisible"), bool) else True
            if isinstance(draft.get("order"), int):
                partner.order = draft["order"]
            partner.draft_data = None
            operations += 1

        await self._session.flush()
        self._invalidate()
        logger.info("CMS publish: %d operations", operations)
        return operations

    async def _payload(self, prefer_draft: bool) -> dict[str, Any]:
        entries = sorted(await self._site.all(), key=lambda e: e.key)
        return {
            "site_config": [map_site_entry(e, prefer_draft) for e in entries],
            "hero_slides": [map_hero_slide(s, prefer_draft) for s in await self._slides.list_ordered()],
            "partners": [map_partner(p, prefer_draft) for p in await self._partners.list_ordered()],
        }

    async def preview_payload(self) -> dict[str, Any]:
        return await self._payload(prefer_draft=True)

    async def published_payload(self) -> dict[str, Any]:
        cached = await cache_get(CMS_CACHE_KEY)
        if cached is not None:
            return cached
        payload = await self._payload(prefer_draft=False)
        await cache_set(CMS_CACHE_KEY, payload, CACHE_TTL_CMS)
        return payload

    async def public_content(self, locale: str) -> dict[str, Any]:
        """Published payload with every translatable value resolved for `locale`."""
        payload = await self.published_payload()
        return {
            "locale": locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE,
            "site_config": {e["key"]: resolve_value(e["value"], locale) for e in payload["site_config"]},
            "hero_slides": [
                {**s, "title": resolve_value(s["title"], locale), "subtitle": resolve_value(s["subtitle"], locale)}
                for s in payload["hero_slides"]
                if s["is_active"]
            ],
            "partners": [p for p in payload["partners"] if p["is_visible"]],
        }

    async def legal_page(self, page: str, locale: str) -> dict[str, str]:
        key = LEGAL_PAGES.get(page)
        if key is None:
            raise NotFoundError("Legal page", page)
        payload = await self.published_payload()
        value = next((e["value"] for e in payload["site_config"] if e["key"] == key), "")
        return {
            "page": page,
            "locale": locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE,
            "content": resolve_value(value, locale),
        }

    def _invalidate(self) -> None:
        invalidate_after_commit(self._session, CMS_CACHE_KEY)
