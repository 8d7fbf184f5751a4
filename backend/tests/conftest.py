"""
Pytest configuration and shared fixtures
"""
import io
import os
import shutil
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before importing app
TEMP_UPLOADS_DIR = tempfile.mkdtemp(prefix="resizer-test-")
os.environ["RESIZER_UPLOADS_DIR"] = TEMP_UPLOADS_DIR
os.environ.setdefault("RESIZER_MAX_UPLOAD_SIZE", str(5 * 1024 * 1024))
os.environ.pop("RESIZER_MAX_TRIALS", None)
os.environ.pop("RESIZER_TIME_BUDGET_SECONDS", None)


@pytest.fixture(scope="session", autouse=True)
def cleanup_uploads_dir():
    yield
    shutil.rmtree(TEMP_UPLOADS_DIR, ignore_errors=True)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app"""
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def uploads_dir():
    return Path(TEMP_UPLOADS_DIR)


def make_noise_image(width, height, mode="RGB", seed=1234):
    """Random pixels; compresses badly, so byte size grows with area."""
    rng = np.random.default_rng(seed)
    channels = {"RGB": 3, "RGBA": 4, "L": 1}[mode]
    shape = (height, width) if channels == 1 else (height, width, channels)
    arr = rng.integers(0, 256, size=shape, dtype=np.uint8)
    return PILImage.fromarray(arr)


def save_image(image, path, fmt="PNG"):
    image.save(path, format=fmt)
    return path


@pytest.fixture
def noise_image_path(tmp_path):
    """A 320x240 noise PNG on disk."""
    return save_image(make_noise_image(320, 240), tmp_path / "noise.png")


@pytest.fixture
def sample_image_bytes():
    """Create sample image bytes for testing"""
    img = make_noise_image(256, 192)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
