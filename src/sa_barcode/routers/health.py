from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    key_ring = getattr(request.app.state, "key_ring", None)
    return JSONResponse(content={"status": "ok", "keysLoaded": key_ring is not None})
