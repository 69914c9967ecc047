"""Diagnostics routes for live Spotify sessions."""

from fastapi import APIRouter, HTTPException, Request

from controllers.session_controller import list_active_sessions

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("/active")
async def active_sessions_route(request: Request):
    """List live sessions without secrets; requires the X-Diagnostics-Token header."""
    try:
        return {"success": True, "data": await list_active_sessions(request)}
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
