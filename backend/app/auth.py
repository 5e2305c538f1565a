"""
Acting-user resolution.

Identity is verified upstream (the gateway validates the bearer token and
forwards the user id in X-User-Id). The engine only needs to know who is
acting, so every mutating route takes the id explicitly through this
dependency and passes it down to the orchestrator.
"""
from typing import Optional

from fastapi import Header, HTTPException


def get_acting_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    """Acting user id from the X-User-Id header; 401 when absent."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return x_user_id
