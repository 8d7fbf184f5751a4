from fastapi import FastAPI, UploadFile, File, HTTPException, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
import uvicorn
import os
import sys
import logging
import asyncio
import tempfile
import time
import uuid
from pathlib import Path
from dotenv import load_dotenv

# Add current directory to path to find the resizer package
sys.path.insert(0, str(Path(__file__).parent))

from resizer.config import get_settings
from resizer.encoders import select_encoder
from resizer.file_resizer import FileResizer
from resizer.models import ResizeResult
from resizer.storage import output_path_for, persist

load_dotenv()
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="File Resizer API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id"],
    expose_headers=["X-Request-Id", "X-Image-Width", "X-Image-Height"],
)

# Create uploads directory if it doesn't exist
UPLOADS_DIR = settings.uploads_dir
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)

UNABLE_TO_PROCESS = "Unable to process file."

_rate_buckets: dict[str, tuple[int, float]] = {}

def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Simple best-effort in-memory rate limiter (per-instance).
    Returns True if allowed, False if rate-limited.
    """
    now = time.time()
    count, expires_at = _rate_buckets.get(key, (0, 0.0))
    if expires_at <= now:
        _rate_buckets[key] = (1, now + window_seconds)
        return True
    if count >= limit:
        return False
    _rate_buckets[key] = (count + 1, expires_at)
    return True

def get_client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip() or "unknown"
    if request.headers.get("x-real-ip"):
        return request.headers["x-real-ip"]
    return request.client.host if request.client else "unknown"

def validate_max_bytes(max_bytes: int) -> None:
    if max_bytes <= 0:
        raise HTTPException(status_code=400, detail="max_bytes must be a positive number of bytes")

def resolve_upload_path(image_path: str) -> Path:
    """Resolve a client-supplied path, refusing anything outside the uploads directory."""
    # Security: no absolute paths, no traversal
    if os.path.isabs(image_path):
        raise HTTPException(status_code=400, detail="image_path must be a relative path within uploads")

    uploads_root = Path(UPLOADS_DIR).resolve()
    candidate = (uploads_root / image_path).resolve()
    if uploads_root not in candidate.parents:
        raise HTTPException(status_code=400, detail="Invalid image_path")

    if not candidate.exists() or not candidate.is_file():
        raise HTTPException(status_code=404, detail="Image file not found")
    return candidate

def build_resizer() -> FileResizer:
    return FileResizer(logger=logging.getLogger("resizer"), limits=settings.search_limits())

def image_response(outcome: ResizeResult) -> Response:
    result = outcome.result
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={
            "X-Image-Width": str(result.size.width),
            "X-Image-Height": str(result.size.height),
        },
    )

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response

# Mount static files for serving saved outputs
app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")

@app.get("/")
async def root():
    return {"message": "File Resizer API is running"}

@app.post("/api/resize")
async def resize_upload(
    request: Request,
    image: UploadFile = File(...),
    max_bytes: int = Form(settings.max_bytes),
    lossless: bool = Form(settings.use_lossless),
):
    """
    Shrink an uploaded image until its encoding fits within max_bytes.

    Returns the encoded image (JPEG, or PNG when lossless is set) with its final
    dimensions in the X-Image-Width / X-Image-Height headers.
    """
    ip = get_client_ip(request)
    if not check_rate_limit(f"resize:{ip}", limit=30, window_seconds=60):
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again shortly.")
    validate_max_bytes(max_bytes)

    contents = await image.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded image is empty")
    if len(contents) > settings.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"Image too large. Maximum size: {settings.max_upload_size / (1024*1024):.1f}MB"
        )

    suffix = Path(image.filename or "").suffix.lower()
    tmp = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
    try:
        with tmp:
            tmp.write(contents)

        logger.info(f"Resize request for {image.filename!r}: {len(contents)} bytes, budget {max_bytes}, lossless={lossless}")
        outcome = await asyncio.to_thread(build_resizer().resize, tmp.name, max_bytes, lossless)
    except Exception as e:
        logger.error(f"Error in resize endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        Path(tmp.name).unlink(missing_ok=True)

    if not outcome.ok:
        logger.warning(f"Resize failed ({outcome.failure.value}): {outcome.message}")
        raise HTTPException(status_code=422, detail=UNABLE_TO_PROCESS)

    return image_response(outcome)

@app.get("/api/resize-file")
async def resize_stored_file(
    request: Request,
    image_path: str,
    max_bytes: int = settings.max_bytes,
    lossless: bool = settings.use_lossless,
    save: bool = False,
):
    """
    Shrink an image already stored in the uploads directory.

    Args:
        image_path: Path relative to the uploads directory
        save: Write the result next to the source as <name>.png / <name>.jpg
              and return JSON instead of the image bytes
    """
    ip = get_client_ip(request)
    if not check_rate_limit(f"resize-file:{ip}", limit=60, window_seconds=60):
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again shortly.")
    validate_max_bytes(max_bytes)

    candidate = resolve_upload_path(image_path)
    try:
        outcome = await asyncio.to_thread(build_resizer().resize, candidate, max_bytes, lossless)
    except Exception as e:
        logger.error(f"Error resizing stored file: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    if not outcome.ok:
        logger.warning(f"Resize failed ({outcome.failure.value}): {outcome.message}")
        raise HTTPException(status_code=422, detail=UNABLE_TO_PROCESS)

    if not save:
        return image_response(outcome)

    result = outcome.result
    try:
        saved = persist(result.data, output_path_for(candidate, select_encoder(lossless)))
    except OSError as e:
        logger.error(f"Failed to save resized file: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save resized file")

    relative = saved.relative_to(Path(UPLOADS_DIR).resolve()).as_posix()
    return {
        "width": result.size.width,
        "height": result.size.height,
        "bytes": len(result.data),
        "mime_type": result.mime_type,
        "saved_path": relative,
        "url": f"/uploads/{relative}",
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        timeout_keep_alive=600,  # search can take a while for very large images
    )
