"""
Main OCR Engine Module.

Provides the OCREngine, the synchronous interface to the recognition
backend, and the RecognitionSession, the asynchronous handle callers use to
recognize invoices without blocking their event loop.

Usage:
    from invoice_ocr.ocr_engine import RecognitionSession

    async with RecognitionSession() as session:
        result = await session.recognize("invoice.png", timeout=30)
        print(result.text)

Author: ML Engineering Team
"""

import asyncio
import io
from pathlib import Path
from typing import Any, Callable, Optional, Union

from PIL import Image, UnidentifiedImageError

from invoice_ocr.config import get_config
from invoice_ocr.utils.exceptions import (
    CorruptedFileError,
    InputError,
    OCREngineNotAvailableError,
    RecognitionFailure,
    RecognitionSessionClosedError,
    UnsupportedFileTypeError,
)
from invoice_ocr.utils.helpers import get_file_extension, validate_file_exists
from invoice_ocr.utils.logger import get_logger
from .ocr_result import OCRResult
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)

ImageInput = Union[Image.Image, str, Path, bytes]


def describe_image(image: Any) -> str:
    """Short label for an image input, used in logs and errors."""
    if isinstance(image, (str, Path)):
        return str(image)
    if isinstance(image, (bytes, bytearray)):
        return f"<{len(image)} bytes>"
    if isinstance(image, Image.Image):
        return f"<image {image.width}x{image.height}>"
    return f"<{type(image).__name__}>"


def _open_image(source: Any, label: str) -> Image.Image:
    try:
        image = Image.open(source)
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise CorruptedFileError(label, f"Failed to load image: {e}") from e
    return image


class OCREngine:
    """
    Synchronous recognition interface over the configured backend.

    Attributes:
        backend_name: Name of the active OCR backend
        backend: The active OCR backend instance

    Example:
        >>> engine = OCREngine()
        >>> result = engine.extract("invoice.png")
        >>> print(f"Average confidence: {result.average_confidence:.1f}%")
    """

    SUPPORTED_BACKENDS = ['tesseract']
    SUPPORTED_EXTENSIONS = ['.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp', '.gif', '.webp']

    def __init__(self, backend: Optional[str] = None) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: OCR backend to use. If None, uses configuration.

        Raises:
            OCREngineNotAvailableError: If the backend is unknown or missing.
        """
        self.backend_name = backend or get_config("ocr.engine", "tesseract")
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            raise OCREngineNotAvailableError(self.backend_name)

        self.backend = TesseractBackend()
        logger.info(f"OCR Engine initialized with backend: {self.backend_name}")

    def load_image(self, image: ImageInput) -> Image.Image:
        """
        Load an image from a path, raw bytes or a PIL Image.

        Raises:
            UnsupportedFileTypeError: If a path has an unsupported extension.
            CorruptedFileError: If the file is missing or not an image.
        """
        if isinstance(image, Image.Image):
            return image

        if isinstance(image, (str, Path)):
            extension = get_file_extension(image)
            if extension not in self.SUPPORTED_EXTENSIONS:
                raise UnsupportedFileTypeError(extension, self.SUPPORTED_EXTENSIONS)
            if not validate_file_exists(image):
                raise CorruptedFileError(str(image), "File not found")
            logger.debug(f"Loading image from: {image}")
            return _open_image(str(image), describe_image(image))

        if isinstance(image, (bytes, bytearray)):
            return _open_image(io.BytesIO(image), describe_image(image))

        raise CorruptedFileError(describe_image(image), "Invalid image input")

    def extract(self, image: ImageInput) -> OCRResult:
        """Recognize the text of a PIL Image, an image file path or raw image bytes."""
        return self.backend.extract(self.load_image(image))


class RecognitionSession:
    """
    Asynchronous, reusable handle on a recognition engine.

    The engine is created once (on ``open`` or the first call), reused for
    every call and released by ``close``. Calls on one session run one at a
    time; independent documents that must be recognized in parallel need
    one session each.

    A call that fails, times out or is cancelled drops the engine, and the
    next call creates a fresh one, so no call leaves the session unusable.

    Attributes:
        engine_factory: Callable creating the engine (OCREngine by default)

    Example:
        >>> async with RecognitionSession() as session:
        ...     first = await session.recognize("page1.png")
        ...     second = await session.recognize("page2.png", timeout=30)
    """

    def __init__(self, engine_factory: Optional[Callable[[], Any]] = None) -> None:
        self.engine_factory = engine_factory or OCREngine
        self._engine = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_engine(self) -> bool:
        return self._engine is not None

    async def open(self) -> 'RecognitionSession':
        """
        Create the engine ahead of the first call.

        Raises:
            RecognitionSessionClosedError: If the session was closed.
            OCREngineNotAvailableError: If the engine cannot be created.
        """
        async with self._lock:
            self._ensure_open()
            await self._get_engine()
        return self

    async def close(self) -> None:
        """Release the engine. Closing twice is allowed."""
        async with self._lock:
            if not self._closed:
                logger.debug("Recognition session closed")
            self._engine = None
            self._closed = True

    async def __aenter__(self) -> 'RecognitionSession':
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def recognize(self, image: ImageInput, timeout: Optional[float] = None) -> OCRResult:
        """
        Recognize the text of an image.

        Args:
            image: PIL Image, path to an image file, or raw image bytes.
            timeout: Seconds to wait before giving up (no limit when None).

        Returns:
            OCRResult for the image.

        Raises:
            RecognitionSessionClosedError: If the session was closed.
            RecognitionFailure: If recognition fails or times out.
            InputError: If the image cannot be loaded.
        """
        self._ensure_open()

        if timeout is None:
            return await self._recognize(image)

        try:
            return await asyncio.wait_for(self._recognize(image), timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Recognition of {describe_image(image)} timed out after {timeout}s")
            raise RecognitionFailure(describe_image(image), f"Timed out after {timeout}s") from e

    def _ensure_open(self) -> None:
        if self._closed:
            raise RecognitionSessionClosedError()

    async def _get_engine(self) -> Any:
        if self._engine is None:
            logger.debug("Creating recognition engine")
            self._engine = await asyncio.to_thread(self.engine_factory)
        return self._engine

    async def _recognize(self, image: ImageInput) -> OCRResult:
        async with self._lock:
            self._ensure_open()
            engine = await self._get_engine()
            source = describe_image(image)

            try:
                result = await asyncio.to_thread(engine.extract, image)
            except asyncio.CancelledError:
                # The worker thread may still be using the engine
                self._engine = None
                logger.warning(f"Recognition of {source} cancelled, engine will be recreated")
                raise
            except InputError:
                raise
            except Exception as e:
                self._engine = None
                logger.error(f"Recognition of {source} failed: {e}")
                raise RecognitionFailure(source, str(e)) from e

            logger.debug(f"Recognized {source}: {result}")
            return result
