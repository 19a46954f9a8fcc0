"""Operational endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["ops"])


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "ok"
