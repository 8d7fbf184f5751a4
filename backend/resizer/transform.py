"""
Max-fit resizing and the trial cost function built on top of it.
"""

import logging
from typing import Callable

from PIL import Image

from .encoders import EncoderPolicy, encode
from .models import Size

logger = logging.getLogger(__name__)

CostFunction = Callable[[Size], int]


def fit_within(source: Size, target: Size) -> Size:
    """
    Largest size with the aspect ratio of ``source`` that fits inside ``target``.

    Tries the width-limited candidate first; targets derived with
    ``Size.for_width`` therefore come back unchanged.
    """
    if source.is_empty or target.is_empty:
        return Size(0, 0)

    height = (target.width * source.height) // source.width
    if height <= target.height:
        return Size(target.width, height)

    width = (target.height * source.width) // source.height
    return Size(min(width, target.width), target.height)


def resize_max_fit(image: Image.Image, target_size: Size) -> Image.Image:
    """
    Return a new image scaled so it fits within ``target_size`` preserving the aspect ratio.

    The input is never modified; when no scaling is needed a copy is returned.
    """
    fitted = fit_within(Size(*image.size), target_size)
    if fitted.is_empty:
        raise ValueError(f"Cannot resize {image.width}x{image.height} image to empty size {target_size}")

    if fitted.as_tuple() == image.size:
        return image.copy()
    return image.resize(fitted.as_tuple(), Image.Resampling.LANCZOS)


def measure(image: Image.Image, target_size: Size, policy: EncoderPolicy) -> int:
    """
    Encoded byte length of ``image`` resized to ``target_size``.

    The scaled copy and the encoded bytes are dropped before returning. A target
    with no area has nothing to encode and measures as zero bytes.
    """
    if fit_within(Size(*image.size), target_size).is_empty:
        return 0

    with resize_max_fit(image, target_size) as trial:
        return len(encode(trial, policy))


def make_cost_function(image: Image.Image, policy: EncoderPolicy) -> CostFunction:
    def cost(size: Size) -> int:
        return measure(image, size, policy)

    return cost
