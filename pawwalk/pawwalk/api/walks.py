"""Walk record API endpoints.

This is the thin FastAPI adapter. It parses JSON bodies into internal
models and calls the configured WalkGateway.
"""

from __future__ import annotations

import json
from datetime import date

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from pawwalk.core.calendar import summarize_by_date
from pawwalk.core.errors import PersistenceError
from pawwalk.core.models import WalkingRecord

router = APIRouter(prefix="/api/v1")


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status)


@router.post("/walks")
async def save_walk(request: Request) -> JSONResponse:
    """Store one finished walk. Body: a WalkingRecord as produced by ``to_dict``."""
    from pawwalk.main import get_gateway

    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "invalid JSON")

    try:
        record = WalkingRecord.from_dict(body)
    except (KeyError, TypeError, ValueError) as exc:
        return _error(422, f"invalid walk record: {exc}")

    try:
        walk_id = await get_gateway().save_walk(record)
    except PersistenceError as exc:
        return _error(503, str(exc))

    return JSONResponse(content={"id": walk_id})


@router.get("/walks")
async def list_walks(pet_id: str = Query(...), day: str = Query(..., alias="date")) -> JSONResponse:
    """Walks of one pet on one calendar date, newest first."""
    from pawwalk.main import get_gateway

    try:
        parsed = date.fromisoformat(day)
    except ValueError:
        return _error(422, f"invalid date: {day}")

    try:
        records = await get_gateway().list_walks_by_date(pet_id, parsed)
    except PersistenceError as exc:
        return _error(503, str(exc))

    return JSONResponse(content=[r.to_dict() for r in records])


@router.get("/walks/summary")
async def daily_summary(pet_id: str = Query(...), day: str = Query(..., alias="date")) -> JSONResponse:
    """Totals for one pet on one calendar date."""
    from pawwalk.main import get_gateway

    try:
        parsed = date.fromisoformat(day)
    except ValueError:
        return _error(422, f"invalid date: {day}")

    try:
        records = await get_gateway().list_walks_by_date(pet_id, parsed)
    except PersistenceError as exc:
        return _error(503, str(exc))

    summary = summarize_by_date(records).get(parsed)
    if summary is None:
        return _error(404, "no walks on that date")
    return JSONResponse(content=summary.to_dict())


@router.get("/walks/{walk_id}")
async def get_walk(walk_id: str) -> JSONResponse:
    """One walk, with its full path, for replay."""
    from pawwalk.main import get_gateway

    try:
        record = await get_gateway().get_walk(walk_id)
    except PersistenceError as exc:
        return _error(503, str(exc))

    if record is None:
        return _error(404, "walk not found")
    return JSONResponse(content=record.to_dict())
