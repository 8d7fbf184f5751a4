"""
Encoder policies.

A policy is a small immutable value (``Lossless`` or ``Lossy``); ``encode``
dispatches on it with a plain isinstance switch and drives Pillow with fixed,
deterministic settings. No parameter search happens here: quality is fixed by
the policy, never tuned against a budget.
"""

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from PIL import Image

from .errors import EncodeFailureError
from .models import Size

logger = logging.getLogger(__name__)


class ChromaSubsampling(str, Enum):
    RATIO_444 = "4:4:4"
    RATIO_422 = "4:2:2"
    RATIO_420 = "4:2:0"


@dataclass(frozen=True)
class Lossless:
    """PNG output."""


@dataclass(frozen=True)
class Lossy:
    """Baseline JPEG output with fixed quality and chroma subsampling."""
    quality: int = 95
    subsampling: ChromaSubsampling = ChromaSubsampling.RATIO_420

    def __post_init__(self):
        if not 0 <= int(self.quality) <= 100:
            raise ValueError(f"JPEG quality must be within 0..100, got {self.quality}")
        # Accept plain strings like "4:2:0"
        object.__setattr__(self, "subsampling", ChromaSubsampling(self.subsampling))


EncoderPolicy = Union[Lossless, Lossy]

LOSSLESS = Lossless()
DEFAULT_LOSSY = Lossy(quality=95, subsampling=ChromaSubsampling.RATIO_420)

# Pillow cannot write these modes as PNG
_PNG_CONVERT = {"CMYK": "RGB", "YCbCr": "RGB", "LAB": "RGB", "HSV": "RGB", "F": "L", "PA": "RGBA"}


def select_encoder(use_lossless: bool) -> EncoderPolicy:
    return LOSSLESS if use_lossless else DEFAULT_LOSSY


def mime_type(policy: EncoderPolicy) -> str:
    if isinstance(policy, Lossless):
        return "image/png"
    if isinstance(policy, Lossy):
        return "image/jpeg"
    raise TypeError(f"Unknown encoder policy: {policy!r}")


def file_extension(policy: EncoderPolicy) -> str:
    if isinstance(policy, Lossless):
        return ".png"
    if isinstance(policy, Lossy):
        return ".jpg"
    raise TypeError(f"Unknown encoder policy: {policy!r}")


def _to_rgb(im: Image.Image) -> Image.Image:
    """Prepare an image for JPEG; alpha is flattened onto white."""
    has_alpha = im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in (im.info or {}))
    if has_alpha:
        rgba = im.convert("RGBA")
        bg = Image.new("RGB", rgba.size, (255, 255, 255))
        bg.paste(rgba, mask=rgba.split()[-1])
        if rgba is not im:
            rgba.close()
        return bg
    if im.mode in ("RGB", "L"):
        return im
    return im.convert("RGB")


def _encode_png(im: Image.Image, out: io.BytesIO) -> None:
    target_mode = _PNG_CONVERT.get(im.mode)
    if target_mode is None and im.mode.startswith("I;16"):
        target_mode = "I"
    if target_mode:
        converted = im.convert(target_mode)
        try:
            converted.save(out, format="PNG")
        finally:
            converted.close()
    else:
        im.save(out, format="PNG")


def _encode_jpeg(im: Image.Image, out: io.BytesIO, policy: Lossy) -> None:
    rgb = _to_rgb(im)
    try:
        save_kwargs = {"format": "JPEG", "quality": int(policy.quality)}
        # Grayscale JPEGs have no chroma planes
        if rgb.mode != "L":
            save_kwargs["subsampling"] = policy.subsampling.value
        rgb.save(out, **save_kwargs)
    finally:
        if rgb is not im:
            rgb.close()


def encode(image: Image.Image, policy: EncoderPolicy) -> bytes:
    """
    Encode ``image`` with ``policy`` and return the encoded bytes.

    Raises:
        EncodeFailureError: if Pillow cannot encode the image.
        TypeError: for an unknown policy value.
    """
    if not isinstance(policy, (Lossless, Lossy)):
        raise TypeError(f"Unknown encoder policy: {policy!r}")

    out = io.BytesIO()
    try:
        if isinstance(policy, Lossless):
            _encode_png(image, out)
        else:
            _encode_jpeg(image, out, policy)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailureError(
            f"Failed to encode {image.width}x{image.height} {image.mode} image as {mime_type(policy)}: {e}"
        ) from e
    return out.getvalue()


def decode_dimensions(data: bytes) -> Size:
    """Read back the pixel dimensions of an encoded buffer."""
    with Image.open(io.BytesIO(data)) as im:
        width, height = im.size
    return Size(width, height)
