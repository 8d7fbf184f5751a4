"""
Filesystem collaborators for the resizer core.

- ``load_image`` is the decode step: path in, fully loaded Pillow image out.
- ``persist`` writes an encoded buffer back to disk.

The core never touches the filesystem itself; it only calls these through the
``decode(path)`` / ``persist(bytes, path)`` signatures.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from .encoders import EncoderPolicy, file_extension
from .errors import DecodeFailureError, SourceNotFoundError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _try_register_heif() -> bool:
    """
    Try to enable HEIC/HEIF decoding in Pillow via pillow-heif.
    This is optional at runtime; if not installed, HEIC/HEIF files will fail to decode.
    """
    try:
        import pillow_heif  # type: ignore

        pillow_heif.register_heif_opener()  # type: ignore
        return True
    except ImportError:
        return False


_HEIF_REGISTERED: Optional[bool] = None


def ensure_heif_registered() -> bool:
    global _HEIF_REGISTERED
    if _HEIF_REGISTERED is None:
        _HEIF_REGISTERED = _try_register_heif()
        if _HEIF_REGISTERED:
            logger.info("pillow-heif enabled: HEIC/HEIF decoding available")
        else:
            logger.info("pillow-heif not available: HEIC/HEIF decoding NOT available")
    return bool(_HEIF_REGISTERED)


def load_image(path: PathLike) -> Image.Image:
    """
    Decode the image stored at ``path``.

    The pixel data is loaded eagerly so the file handle is released before returning;
    the caller owns (and must close) the returned image.

    Raises:
        SourceNotFoundError: if ``path`` does not point to an existing file.
        DecodeFailureError: if the file cannot be decoded as an image.
    """
    file_path = Path(path)
    if not file_path.exists() or not file_path.is_file():
        raise SourceNotFoundError(file_path)

    ensure_heif_registered()

    try:
        with Image.open(file_path) as im:
            im.load()
            # Detach from the file; ``load`` alone keeps the handle open for some formats
            image = im.copy()
    except Exception as e:
        raise DecodeFailureError(file_path, reason=str(e)) from e

    return image


def output_path_for(source: PathLike, policy: EncoderPolicy) -> Path:
    """``photo.tif`` -> ``photo.tif.jpg`` (the extension is appended, not substituted)."""
    source_path = Path(source)
    return source_path.with_name(source_path.name + file_extension(policy))


def persist(data: bytes, path: PathLike) -> Path:
    """Write ``data`` to ``path``, creating parent directories as needed."""
    full_path = Path(path)
    full_path.parent.mkdir(parents=True, exist_ok=True)

    with open(full_path, "wb") as f:
        f.write(data)

    logger.info(f"Saved file locally: {full_path} ({len(data)} bytes)")
    return full_path
