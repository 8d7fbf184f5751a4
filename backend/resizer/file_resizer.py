"""
Facade that turns an image file into an encoded buffer no larger than a byte budget.

Flow for one call:
1. Validate: decode the source (missing file and decode errors end the run).
2. Search: binary-search the widest size whose trial encode fits the budget.
3. Finalize: resize the *original* image once more to the winning size and encode it.

Failures never escape as exceptions; they come back as a ``ResizeResult`` with a
``FailureKind``. ``get_file_with_limited_size`` collapses that further to
bytes-or-None.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from PIL import Image

from .config import DEFAULT_MAX_BYTES, get_settings
from .encoders import EncoderPolicy, encode, select_encoder
from .errors import ResizerError
from .models import EncodedResult, FailureKind, ResizeResult, ResizeState, Size
from .search import SearchLimits, optimal_size
from .storage import load_image
from .transform import make_cost_function, resize_max_fit


Decoder = Callable[[Union[str, Path]], Image.Image]


class FileResizer:
    """Runs the validate -> search -> finalize pipeline for one file at a time."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        decoder: Optional[Decoder] = None,
        limits: Optional[SearchLimits] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.decoder = decoder or load_image
        # Unset limits fall back to RESIZER_MAX_TRIALS / RESIZER_TIME_BUDGET_SECONDS
        self.limits = limits if limits is not None else get_settings().search_limits()
        self.state = ResizeState.IDLE

    def _enter(self, state: ResizeState) -> None:
        self.logger.debug("Resizer state %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, failure: FailureKind, message: str) -> ResizeResult:
        self._enter(ResizeState.FAILED)
        self.logger.warning(message)
        return ResizeResult.failed(failure, message)

    def resize(
        self,
        path: Union[str, Path],
        max_bytes: int = DEFAULT_MAX_BYTES,
        use_lossless_encoder: bool = False,
    ) -> ResizeResult:
        """
        Produce the largest aspect-preserving downscale of ``path`` that encodes within ``max_bytes``.

        Args:
            path: Image file to load.
            max_bytes: Byte budget for the encoded output (must be > 0).
            use_lossless_encoder: PNG when True, JPEG (quality 95, 4:2:0) otherwise.

        Returns:
            ``ResizeResult`` carrying either the ``EncodedResult`` or the failure kind.

        Raises:
            ValueError: if ``max_bytes`` is not positive.
        """
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")

        self.state = ResizeState.IDLE
        policy = select_encoder(use_lossless_encoder)

        self._enter(ResizeState.VALIDATING)
        try:
            image = self.decoder(path)
        except ResizerError as e:
            return self._fail(e.kind, str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error loading {path}: {e}", exc_info=True)
            return self._fail(FailureKind.INTERNAL_ERROR, f'File "{path}" could not be processed: {e}')

        try:
            return self._resize_image(image, max_bytes, policy)
        except ResizerError as e:
            return self._fail(e.kind, str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error resizing {path}: {e}", exc_info=True)
            return self._fail(FailureKind.INTERNAL_ERROR, f'File "{path}" could not be processed: {e}')
        finally:
            image.close()

    def _resize_image(self, image: Image.Image, max_bytes: int, policy: EncoderPolicy) -> ResizeResult:
        original = Size(*image.size)
        if original.is_empty:
            self._enter(ResizeState.DONE)
            self.logger.info("Degenerate %s image, returning empty result", original)
            return ResizeResult.succeeded(EncodedResult(b"", Size(0, 0), policy))

        self._enter(ResizeState.SEARCHING)
        size = optimal_size(
            original,
            max_bytes,
            make_cost_function(image, policy),
            limits=self.limits,
            log=self.logger,
        )
        self.logger.info(str(size))

        self._enter(ResizeState.FINALIZING)
        if size.is_empty:
            self._enter(ResizeState.DONE)
            return ResizeResult.succeeded(EncodedResult(b"", Size(0, 0), policy))

        with resize_max_fit(image, size) as final:
            data = encode(final, policy)
            final_size = Size(*final.size)

        if len(data) > max_bytes:
            self.logger.warning(
                "Smallest candidate %s still encodes to %d bytes (budget %d)", final_size, len(data), max_bytes
            )

        self._enter(ResizeState.DONE)
        return ResizeResult.succeeded(EncodedResult(data, final_size, policy))

    def get_file_with_limited_size(
        self,
        path: Union[str, Path],
        max_bytes: int = DEFAULT_MAX_BYTES,
        use_lossless_encoder: bool = False,
    ) -> Optional[bytes]:
        """Same as ``resize`` but returns only the encoded bytes, or None on any failure."""
        outcome = self.resize(path, max_bytes=max_bytes, use_lossless_encoder=use_lossless_encoder)
        if not outcome.ok:
            self.logger.info(f"Unable to process file: {outcome.message}")
            return None
        return outcome.data
