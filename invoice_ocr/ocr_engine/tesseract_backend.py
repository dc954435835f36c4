"""
Tesseract OCR Backend.

Runs Tesseract (through pytesseract) on an invoice image and returns the
recognized words grouped into text lines, in the order Tesseract reports the
lines. Images are converted to grayscale and contrast-stretched first; both
steps can be switched off under ``ocr.preprocess`` in the settings.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package

Author: ML Engineering Team
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import pytesseract
from PIL import Image, ImageOps

from invoice_ocr.config import get_config
from invoice_ocr.utils.exceptions import OCREngineNotAvailableError
from invoice_ocr.utils.logger import get_logger
from .ocr_result import OCRLine, OCRResult, OCRWord

logger = get_logger(__name__)

LineKey = Tuple[int, int, int]


class TesseractBackend:
    """
    Tesseract recognition for one process.

    Construction checks that the Tesseract binary is reachable, so a missing
    install fails when the engine is created rather than on the first image.

    Example:
        >>> backend = TesseractBackend()
        >>> print(backend.extract(image).text)
    """

    def __init__(self) -> None:
        self.language = get_config("ocr.tesseract.lang", "eng")
        self.psm = get_config("ocr.tesseract.psm", 6)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")
        self.grayscale = get_config("ocr.preprocess.grayscale", True)
        self.autocontrast = get_config("ocr.preprocess.autocontrast", True)

        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            ) from e

        logger.info(
            f"Tesseract {version} ready (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    @property
    def command_line(self) -> str:
        """Options passed to the tesseract binary."""
        options = f"--psm {self.psm} --oem {self.oem}"
        return f"{options} {self.extra_config}" if self.extra_config else options

    def preprocess(self, image: Image.Image) -> Image.Image:
        if self.grayscale:
            image = ImageOps.grayscale(image)
        elif image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')
        if self.autocontrast:
            image = ImageOps.autocontrast(image)
        return image

    def extract(self, image: Image.Image) -> OCRResult:
        """
        Recognize the text of an image.

        Raises:
            pytesseract.TesseractError: If Tesseract fails on the image.
        """
        start_time = time.time()
        logger.debug(f"Running Tesseract ({self.command_line})")

        data = pytesseract.image_to_data(
            self.preprocess(image),
            lang=self.language,
            config=self.command_line,
            output_type=pytesseract.Output.DICT
        )
        result = OCRResult(
            lines=self._group_into_lines(data),
            language=self.language,
            engine="tesseract",
            processing_time=time.time() - start_time
        )

        logger.info(f"OCR completed: {result!r}")
        return result

    @staticmethod
    def _word_at(data: Dict[str, List[Any]], i: int) -> Optional[OCRWord]:
        text = (data['text'][i] or '').strip()
        if not text:
            return None
        left, top = data['left'][i], data['top'][i]
        return OCRWord(
            text=text,
            bbox=(left, top, left + data['width'][i], top + data['height'][i]),
            # -1 marks layout elements without a word confidence
            confidence=max(float(data['conf'][i]), 0.0)
        )

    def _group_into_lines(self, data: Dict[str, List[Any]]) -> List[OCRLine]:
        """
        Group ``image_to_data`` rows into lines.

        Words sharing a (block, paragraph, line) key form one line, sorted
        left to right; lines keep the order in which Tesseract first reports
        them.
        """
        groups: Dict[LineKey, List[OCRWord]] = {}
        for i in range(len(data['text'])):
            word = self._word_at(data, i)
            if word is None:
                continue
            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            groups.setdefault(key, []).append(word)

        return [
            OCRLine(words=sorted(words, key=lambda w: w.x1), line_index=index)
            for index, words in enumerate(groups.values())
        ]
