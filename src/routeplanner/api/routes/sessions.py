"""Planner session lifecycle endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...services.session import SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def end_session(session_id: str, store: SessionStore = Depends(get_session_store)) -> Response:
    """Release a session together with its route and column roles."""
    if not store.drop(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session {session_id} not found")
    logger.info(f"Session {session_id} ended; {len(store)} active")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
