"""FastAPI routes for direct Spotify playback control."""

from typing import Awaitable, Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from controllers import playback_controller as playback

router = APIRouter(prefix="/api/spotify", tags=["spotify"])


class DevicePayload(BaseModel):
    device_id: Optional[str] = None


class PlayPayload(DevicePayload):
    track_id: Optional[str] = None
    playlist_id: Optional[str] = None


class SeekPayload(DevicePayload):
    position_ms: int


class VolumePayload(DevicePayload):
    volume: float = Field(allow_inf_nan=False)


class ShufflePayload(DevicePayload):
    shuffle: bool


class RepeatPayload(DevicePayload):
    state: Literal["track", "context", "off"]


class QueuePayload(DevicePayload):
    track_id: str = ""


class TransferPayload(BaseModel):
    device_id: str
    play: bool = True


class RecommendationsPayload(BaseModel):
    seed_tracks: List[str] = []
    seed_artists: List[str] = []
    seed_genres: List[str] = []
    target_energy: Optional[float] = Field(None, ge=0, le=1)
    target_valence: Optional[float] = Field(None, ge=0, le=1)
    target_danceability: Optional[float] = Field(None, ge=0, le=1)
    target_tempo: Optional[float] = Field(None, ge=0)
    limit: int = Field(20, ge=1, le=100)


class PlaylistPayload(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    track_ids: List[str] = []
    public: bool = False


async def _respond(call: Awaitable) -> Dict:
    try:
        data = await call
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"success": True, "data": data}


@router.get("/profile")
async def profile_route(request: Request):
    """Dashboard data: profile, playlists, top tracks and recent plays."""
    return await _respond(playback.dashboard(request))


@router.get("/current")
async def current_route(request: Request):
    """Current playback state; `data` is null when no device is active."""
    return await _respond(playback.current_playback(request))


@router.post("/play")
async def play_route(request: Request, payload: PlayPayload):
    return await _respond(playback.play(request, payload.track_id, payload.playlist_id, payload.device_id))


@router.post("/pause")
async def pause_route(request: Request, payload: Optional[DevicePayload] = None):
    return await _respond(playback.simple_command(request, "pause", payload.device_id if payload else None))


@router.post("/next")
async def next_route(request: Request, payload: Optional[DevicePayload] = None):
    return await _respond(playback.simple_command(request, "next", payload.device_id if payload else None))


@router.post("/previous")
async def previous_route(request: Request, payload: Optional[DevicePayload] = None):
    return await _respond(playback.simple_command(request, "previous", payload.device_id if payload else None))


@router.post("/seek")
async def seek_route(request: Request, payload: SeekPayload):
    return await _respond(playback.seek(request, payload.position_ms, payload.device_id))


@router.post("/volume")
async def volume_route(request: Request, payload: VolumePayload):
    return await _respond(playback.set_volume(request, payload.volume, payload.device_id))


@router.post("/shuffle")
async def shuffle_route(request: Request, payload: ShufflePayload):
    return await _respond(playback.set_shuffle(request, payload.shuffle, payload.device_id))


@router.post("/repeat")
async def repeat_route(request: Request, payload: RepeatPayload):
    return await _respond(playback.set_repeat(request, payload.state, payload.device_id))


@router.post("/queue")
async def enqueue_route(request: Request, payload: QueuePayload):
    return await _respond(playback.enqueue(request, payload.track_id, payload.device_id))


@router.get("/queue")
async def queue_route(request: Request):
    return await _respond(playback.queue(request))


@router.get("/devices")
async def devices_route(request: Request):
    return await _respond(playback.devices(request))


@router.post("/transfer")
async def transfer_route(request: Request, payload: TransferPayload):
    return await _respond(playback.transfer(request, payload.device_id, payload.play))


@router.get("/search")
async def search_route(
    request: Request,
    q: str = "",
    type: str = "track",  # pylint: disable=redefined-builtin
    limit: int = Query(20, ge=1, le=50),
):
    return await _respond(playback.search(request, q, type, limit))


@router.post("/recommendations")
async def recommendations_route(request: Request, payload: RecommendationsPayload):
    targets = {
        "energy": payload.target_energy,
        "valence": payload.target_valence,
        "danceability": payload.target_danceability,
        "tempo": payload.target_tempo,
    }
    return await _respond(
        playback.recommendations(
            request, payload.seed_tracks, payload.seed_artists, payload.seed_genres, targets, payload.limit
        )
    )


@router.post("/playlists")
async def create_playlist_route(request: Request, payload: PlaylistPayload):
    return await _respond(
        playback.create_playlist(request, payload.name, payload.description, payload.track_ids, payload.public)
    )
