"""Lead repositories: SQL coverage queries and the lead write path."""

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.acquisition.catalog import KNOWN_COUNTRIES, KNOWN_INDUSTRIES
from src.acquisition.store import CoverageStore
from src.db.tables import LeadRow
from src.models.common import new_uuid7, utc_now
from src.models.coverage import IndustryCountryPair


class LeadRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def existing_osm_ids(
        self,
        industry: str,
        country: str,
        osm_ids: Iterable[str],
    ) -> set[str]:
        """osm_ids already stored under this pair."""
        ids = [i for i in osm_ids if i]
        if not ids:
            return set()
        result = await self._session.execute(
            select(LeadRow.osm_id).where(
                LeadRow.industry == industry,
                LeadRow.country == country,
                LeadRow.osm_id.in_(ids),
            )
        )
        return {row for row in result.scalars().all() if row is not None}

    async def add_many(
        self,
        *,
        industry: str,
        country: str,
        records: Sequence[dict],
    ) -> int:
        """Insert records for one pair, skipping osm_ids already stored under it.

        Returns the number of rows added.
        """
        known = await self.existing_osm_ids(
            industry, country, (r.get("osm_id") or "" for r in records),
        )
        now = utc_now()
        added = 0
        for record in records:
            osm_id = record.get("osm_id")
            if osm_id and osm_id in known:
                continue
            self._session.add(LeadRow(
                lead_id=new_uuid7(),
                name=record["name"],
                industry=industry,
                country=country,
                city=record.get("city"),
                address=record.get("address"),
                postal_code=record.get("postal_code"),
                phone=record.get("phone"),
                email=record.get("email"),
                website=record.get("website"),
                latitude=record.get("latitude"),
                longitude=record.get("longitude"),
                osm_id=osm_id,
                metadata_json=record.get("metadata") or {},
                created_at=now,
                updated_at=now,
            ))
            if osm_id:
                known.add(osm_id)
            added += 1
        await self._session.flush()
        return added

    async def count_for_pair(self, industry: str, country: str) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(LeadRow).where(
                LeadRow.industry == industry,
                LeadRow.country == country,
            )
        )
        return int(result.scalar_one())

    async def counts_by_pair(self) -> list[tuple[str, str, int]]:
        result = await self._session.execute(
            select(LeadRow.industry, LeadRow.country, func.count())
            .group_by(LeadRow.industry, LeadRow.country)
        )
        return [(industry, country, int(n)) for industry, country, n in result.all()]


class SqlCoverageStore(CoverageStore):
    """CoverageStore over the ``leads`` table. Read-only."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        industries: Iterable[str] = KNOWN_INDUSTRIES,
        countries: Iterable[str] = KNOWN_COUNTRIES,
    ) -> None:
        self._session_factory = session_factory
        self._industries = list(industries)
        self._countries = list(countries)

    async def count_for_pair(self, pair: IndustryCountryPair) -> int:
        async with self._session_factory() as session:
            return await LeadRepository(session).count_for_pair(pair.industry, pair.country)

    async def counts_by_pair(self) -> dict[IndustryCountryPair, int]:
        """All per-pair counts in one GROUP BY query."""
        async with self._session_factory() as session:
            rows = await LeadRepository(session).counts_by_pair()
        return {
            IndustryCountryPair(industry=industry, country=country): n
            for industry, country, n in rows
            if n > 0 and industry and country
        }

    async def all_known_industries(self) -> list[str]:
        return list(self._industries)

    async def all_known_countries(self) -> list[str]:
        return list(self._countries)
