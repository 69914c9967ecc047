"""FastAPI routes for Spotify sign-in."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from controllers.auth_controller import begin_login, complete_login, current_user, logout

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/spotify")
async def spotify_login_route(request: Request):
    """Start the Spotify OAuth flow."""
    return begin_login(request)


@router.get("/callback")
async def spotify_callback_route(
    request: Request, code: Optional[str] = None, state: Optional[str] = None, error: Optional[str] = None
):
    """Receive Spotify's redirect and sign the user in."""
    return await complete_login(request, code, state, error)


@router.get("/me")
async def me_route(request: Request):
    try:
        return {"success": True, "data": await current_user(request)}
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/logout")
async def logout_route(request: Request):
    return {"success": True, "data": logout(request)}
