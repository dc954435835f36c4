"""
OCR Result Data Classes.

What a recognition call hands to the invoice parser: words grouped into
lines in reading order, plus the confidence figures recorded on the invoice.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class OCRWord:
    """
    A single recognized word.

    Attributes:
        text: Recognized text
        bbox: (x1, y1, x2, y2) in pixels
        confidence: Engine confidence, 0-100

    Example:
        >>> word = OCRWord(text="Invoice", bbox=(100, 50, 200, 80), confidence=95.5)
    """
    text: str
    bbox: Tuple[int, int, int, int] = (0, 0, 0, 0)
    confidence: float = 0.0

    @property
    def x1(self) -> int:
        return self.bbox[0]

    def __repr__(self) -> str:
        return f"OCRWord('{self.text}', conf={self.confidence:.1f})"


def _mean_confidence(words: List[OCRWord]) -> float:
    if not words:
        return 0.0
    return sum(w.confidence for w in words) / len(words)


@dataclass
class OCRLine:
    """
    Words that share one text line, left to right.

    Example:
        >>> OCRLine(words=[OCRWord("Total:"), OCRWord("80.00")]).text
        'Total: 80.00'
    """
    words: List[OCRWord] = field(default_factory=list)
    line_index: int = 0

    @property
    def text(self) -> str:
        return ' '.join(word.text for word in self.words)

    @property
    def average_confidence(self) -> float:
        return _mean_confidence(self.words)


@dataclass
class OCRResult:
    """
    Recognition output for one image.

    ``text`` is what the parser consumes: one recognized line per text line,
    or ``raw_text`` when the engine gave no line structure.
    """
    lines: List[OCRLine] = field(default_factory=list)
    raw_text: str = ""
    language: str = "eng"
    engine: str = "unknown"
    processing_time: float = 0.0

    @property
    def text(self) -> str:
        if self.lines:
            return '\n'.join(line.text for line in self.lines)
        return self.raw_text

    @property
    def words(self) -> List[OCRWord]:
        return [word for line in self.lines for word in line.words]

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def average_confidence(self) -> float:
        """Mean word confidence over the whole image (0.0 without words)."""
        return _mean_confidence(self.words)

    def is_empty(self) -> bool:
        return not self.text.strip()

    def __repr__(self) -> str:
        return (
            f"OCRResult(engine={self.engine}, lines={self.line_count}, "
            f"confidence={self.average_confidence:.1f}%, time={self.processing_time:.2f}s)"
        )
