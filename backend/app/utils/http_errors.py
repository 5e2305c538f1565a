"""Translate engine errors into HTTP responses ("CODE: message" detail)."""
from fastapi import HTTPException

from app.services.errors import TournamentEngineError


def to_http_exception(exc: TournamentEngineError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
