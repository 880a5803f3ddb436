"""WalkGateway that talks to the walk API over HTTP (httpx)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from pawwalk.core.errors import PersistenceError
from pawwalk.core.models import CalendarStamp, WalkingRecord

if TYPE_CHECKING:
    from datetime import date

    from pawwalk.core.models import StampDelta

log = structlog.get_logger()


class HttpWalkGateway:
    """Client side of ``pawwalk.api``. Transport errors and non-2xx
    responses are raised as ``PersistenceError``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def connect(cls, base_url: str, timeout: float = 10.0) -> HttpWalkGateway:
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            log.warning("walk_api_error", method=method, url=url,
                        status=exc.response.status_code)
            raise PersistenceError(
                f"{method} {url} failed with {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("walk_api_unreachable", method=method, url=url, error=str(exc))
            raise PersistenceError(f"{method} {url} failed: {exc}") from exc
        return resp

    async def save_walk(self, record: WalkingRecord) -> str:
        resp = await self._request("POST", "/api/v1/walks", json=record.to_dict())
        return resp.json()["id"]

    async def get_walk(self, walk_id: str) -> WalkingRecord | None:
        try:
            resp = await self._client.get(f"/api/v1/walks/{walk_id}")
        except httpx.HTTPError as exc:
            raise PersistenceError(f"GET walk {walk_id} failed: {exc}") from exc
        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise PersistenceError(f"GET walk {walk_id} failed with {resp.status_code}")
        return WalkingRecord.from_dict(resp.json())

    async def upsert_stamp(self, pet_id: str, day: date, delta: StampDelta) -> CalendarStamp:
        body = {
            "pet_id": pet_id,
            "date": day.isoformat(),
            "count": delta.count,
            "goal_achieved": delta.goal_achieved,
        }
        resp = await self._request("POST", "/api/v1/stamps", json=body)
        return CalendarStamp.from_dict(resp.json())

    async def list_walks_by_date(self, pet_id: str, day: date) -> list[WalkingRecord]:
        resp = await self._request("GET", "/api/v1/walks",
                                   params={"pet_id": pet_id, "date": day.isoformat()})
        return [WalkingRecord.from_dict(w) for w in resp.json()]

    async def list_stamps_by_month(self, pet_id: str, year: int, month: int) -> list[CalendarStamp]:
        resp = await self._request("GET", "/api/v1/stamps",
                                   params={"pet_id": pet_id, "year": year, "month": month})
        return [CalendarStamp.from_dict(s) for s in resp.json()]

    async def list_stamps(self, pet_id: str) -> list[CalendarStamp]:
        resp = await self._request("GET", "/api/v1/stamps", params={"pet_id": pet_id})
        return [CalendarStamp.from_dict(s) for s in resp.json()]
