"""Calendar stamp and walking statistics endpoints."""

from __future__ import annotations

import json
from datetime import date

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from pawwalk.core.calendar import compute_walking_stats
from pawwalk.core.errors import PersistenceError
from pawwalk.core.models import StampDelta

router = APIRouter(prefix="/api/v1")


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status)


@router.post("/stamps")
async def upsert_stamp(request: Request) -> JSONResponse:
    """Add one walk to the stamp for (pet, date).

    Body: {"pet_id": "...", "date": "YYYY-MM-DD", "count": 1, "goal_achieved": false}
    """
    from pawwalk.main import get_gateway

    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "invalid JSON")

    try:
        pet_id = str(body["pet_id"])
        day = date.fromisoformat(body["date"])
        delta = StampDelta(
            count=int(body.get("count", 1)),
            goal_achieved=bool(body.get("goal_achieved", False)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        return _error(422, f"invalid stamp: {exc}")

    if delta.count < 1:
        return _error(422, "count must be at least 1")

    try:
        stamp = await get_gateway().upsert_stamp(pet_id, day, delta)
    except PersistenceError as exc:
        return _error(503, str(exc))

    return JSONResponse(content=stamp.to_dict())


@router.get("/stamps")
async def list_stamps(
    pet_id: str = Query(...),
    year: int | None = Query(None),
    month: int | None = Query(None, ge=1, le=12),
) -> JSONResponse:
    """Stamps for one month, or every stamp of the pet when no month is given."""
    from pawwalk.main import get_gateway

    if (year is None) != (month is None):
        return _error(422, "year and month must be used together")

    gateway = get_gateway()
    try:
        if year is None:
            stamps = await gateway.list_stamps(pet_id)
        else:
            stamps = await gateway.list_stamps_by_month(pet_id, year, month)
    except PersistenceError as exc:
        return _error(503, str(exc))

    return JSONResponse(content=[s.to_dict() for s in stamps])


@router.get("/pets/{pet_id}/stats")
async def walking_stats(pet_id: str, today: str | None = Query(None)) -> JSONResponse:
    """Totals and streaks. ``today`` defaults to the server's local date."""
    from pawwalk.main import get_gateway

    try:
        ref = date.fromisoformat(today) if today else date.today()
    except ValueError:
        return _error(422, f"invalid date: {today}")

    try:
        stamps = await get_gateway().list_stamps(pet_id)
    except PersistenceError as exc:
        return _error(503, str(exc))

    return JSONResponse(content=compute_walking_stats(stamps, ref).to_dict())
