from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.dj_controller import chat

router = APIRouter(prefix="/api/ai", tags=["ai"])


class ChatRequest(BaseModel):
    message: str = ""


@router.post("/chat")
async def post_chat(request: Request, payload: ChatRequest):
    """Ask the Smart DJ to answer and act on a free-text request."""
    try:
        result = await chat(request, payload.message)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"success": True, "data": result}
