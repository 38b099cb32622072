from sqlalchemy import func, select

from narcisse.domain.cms import HeroSlide, Partner, SiteConfig
from narcisse.repositories.base import BaseRepository


class HeroSlideRepository(BaseRepository[HeroSlide]):
    model = HeroSlide

    async def list_ordered(self) -> list[HeroSlide]:
        return await self.all(HeroSlide.order.asc(), HeroSlide.created_at.asc())

    async def next_order(self) -> int:
        q = select(func.max(HeroSlide.order)).where(HeroSlide.deleted_at.is_(None))
        current = (await self._session.execute(q)).scalar_one_or_none()
        return (current or 0) + 1


class PartnerRepository(BaseRepository[Partner]):
    model = Partner

    async def list_ordered(self) -> list[Partner]:
        return await self.all(Partner.order.asc(), Partner.name.asc())

    async def next_order(self) -> int:
        q = select(func.max(Partner.order)).where(Partner.deleted_at.is_(None))
        current = (await self._session.execute(q)).scalar_one_or_none()
        return (current or 0) + 1


class SiteConfigRepository(BaseRepository[SiteConfig]):
    model = SiteConfig

    async def by_key(self) -> dict[str, SiteConfig]:
        return {row.key: row for row in await self.all()}
