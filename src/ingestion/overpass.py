"""OverpassFetcher: fetch collaborator backed by the OpenStreetMap Overpass API.

Queries the industry's OSM tags inside the country's ISO 3166-1 area, maps
named elements to lead records and persists them through LeadRepository in
a session of its own. Already stored osm_ids are skipped.

Errors surface as typed FetchFailure:
- HTTP 429 -> RATE_LIMITED
- other HTTP status errors, malformed payloads, unknown industry -> PROVIDER
- transport errors -> NETWORK
- database errors -> PERSISTENCE
- expired deadline -> DEADLINE_EXCEEDED
"""

import asyncio
import logging

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.acquisition.catalog import INDUSTRY_OSM_TAGS
from src.acquisition.errors import FetchFailure
from src.acquisition.fetch import FetchCollaborator
from src.db.session import session_scope
from src.models.coverage import FetchFailureKind, FetchRequest
from src.repositories.leads import LeadRepository

logger = logging.getLogger(__name__)

_DEFAULT_URL = "https://overpass-api.de/api/interpreter"
_DEFAULT_TIMEOUT_S = 90.0


def build_query(
    alternatives: tuple[tuple[str, ...], ...],
    country: str,
    limit: int,
    timeout_s: int,
) -> str:
    """Build an Overpass QL query for one industry inside one country."""
    selectors = []
    for filters in alternatives:
        clauses = "".join(
            '["{}"="{}"]'.format(*f.split("=", 1)) for f in filters
        )
        selectors.append(f"  nwr{clauses}(area.searchArea);")
    body = "\n".join(selectors)
    return (
        f"[out:json][timeout:{timeout_s}];\n"
        f'area["ISO3166-1"="{country.upper()}"][admin_level=2]->.searchArea;\n'
        f"(\n{body}\n);\n"
        f"out center {limit};"
    )


def element_to_record(element: dict) -> dict | None:
    """Map one Overpass element to a lead record. Unnamed elements are dropped."""
    tags = element.get("tags") or {}
    name = tags.get("name")
    if not name:
        return None

    lat = element.get("lat")
    lon = element.get("lon")
    if lat is None or lon is None:
        center = element.get("center") or {}
        lat, lon = center.get("lat"), center.get("lon")

    street = " ".join(
        part for part in (tags.get("addr:housenumber"), tags.get("addr:street")) if part
    )
    return {
        "name": name,
        "city": tags.get("addr:city"),
        "address": street or None,
        "postal_code": tags.get("addr:postcode"),
        "phone": tags.get("phone") or tags.get("contact:phone"),
        "email": tags.get("email") or tags.get("contact:email"),
        "website": tags.get("website") or tags.get("contact:website"),
        "latitude": lat,
        "longitude": lon,
        "osm_id": f"{element.get('type', 'node')}/{element['id']}" if "id" in element else None,
        "metadata": {"osm_tags": tags},
    }


class OverpassFetcher(FetchCollaborator):
    """Fetches leads for one (industry, country) pair from Overpass."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        base_url: str = _DEFAULT_URL,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        user_agent: str = "lead-coverage-monitor",
        client: httpx.AsyncClient | None = None,
        industry_tags: dict[str, tuple[tuple[str, ...], ...]] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._user_agent = user_agent
        self._client = client
        self._tags = industry_tags or INDUSTRY_OSM_TAGS

    @property
    def name(self) -> str:
        return "overpass"

    async def fetch_and_persist(
        self,
        request: FetchRequest,
        *,
        deadline: float | None = None,
    ) -> int:
        pair = request.pair
        alternatives = self._tags.get(pair.industry)
        if not alternatives:
            msg = f"No OSM tags configured for industry {pair.industry!r}"
            raise FetchFailure(msg, kind=FetchFailureKind.PROVIDER, pair=pair)

        timeout_s = self._timeout_for(deadline)
        if timeout_s <= 0:
            msg = "Deadline expired before the Overpass request"
            raise FetchFailure(msg, kind=FetchFailureKind.DEADLINE_EXCEEDED, pair=pair)

        query = build_query(alternatives, pair.country, request.limit, max(1, int(timeout_s)))
        try:
            async with asyncio.timeout_at(deadline):
                elements = await self._query(request, query, timeout_s)
                records = [
                    r for r in (element_to_record(e) for e in elements) if r is not None
                ][: request.limit]
                added = await self._persist(request, records)
        except TimeoutError as exc:
            msg = "Overpass fetch did not finish before the deadline"
            raise FetchFailure(
                msg, kind=FetchFailureKind.DEADLINE_EXCEEDED, pair=pair,
            ) from exc

        logger.info(
            "Overpass returned %d named elements for %s, %d new leads stored",
            len(records), pair, added,
        )
        return added

    def _timeout_for(self, deadline: float | None) -> float:
        if deadline is None:
            return self._timeout_s
        remaining = deadline - asyncio.get_running_loop().time()
        return min(self._timeout_s, remaining)

    async def _query(self, request: FetchRequest, query: str, timeout_s: float) -> list[dict]:
        pair = request.pair
        headers = {"User-Agent": self._user_agent}
        try:
            if self._client is not None:
                resp = await self._client.post(
                    self._base_url, data={"data": query}, headers=headers, timeout=timeout_s,
                )
            else:
                async with httpx.AsyncClient(timeout=timeout_s) as client:
                    resp = await client.post(
                        self._base_url, data={"data": query}, headers=headers,
                    )
            if resp.status_code == 429:
                msg = "Overpass rate limit reached (HTTP 429)"
                raise FetchFailure(msg, kind=FetchFailureKind.RATE_LIMITED, pair=pair)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Overpass returned HTTP {exc.response.status_code}"
            raise FetchFailure(msg, kind=FetchFailureKind.PROVIDER, pair=pair) from exc
        except httpx.TransportError as exc:
            msg = f"Overpass request failed: {exc!r}"
            raise FetchFailure(msg, kind=FetchFailureKind.NETWORK, pair=pair) from exc
        except ValueError as exc:
            msg = f"Overpass returned a non-JSON payload: {exc}"
            raise FetchFailure(msg, kind=FetchFailureKind.PROVIDER, pair=pair) from exc

        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            msg = "Overpass payload has no 'elements' list"
            raise FetchFailure(msg, kind=FetchFailureKind.PROVIDER, pair=pair)
        return elements

    async def _persist(self, request: FetchRequest, records: list[dict]) -> int:
        pair = request.pair
        try:
            async with session_scope(self._session_factory) as session:
                return await LeadRepository(session).add_many(
                    industry=pair.industry,
                    country=pair.country,
                    records=records,
                )
        except SQLAlchemyError as exc:
            msg = f"Could not store leads: {exc}"
            raise FetchFailure(msg, kind=FetchFailureKind.PERSISTENCE, pair=pair) from exc
