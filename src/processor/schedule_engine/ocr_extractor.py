"""Adapters that turn OCR provider output into positioned tokens."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import numpy as np

from .models import BoundingBox, Token

logger = logging.getLogger(__name__)


@dataclass
class OCRResult:
    """Tokens and flattened text for one image."""
    tokens: List[Token] = field(default_factory=list)
    text: str = ""
    confidence: float = 0.0
    engine: str = "paddleocr"


def tokens_from_dicts(items: Iterable[Dict[str, Any]]) -> List[Token]:
    """
    Convert provider dictionaries into tokens.

    Args:
        items: ``{"text", "confidence", "boundingBox": {"vertices": [...]}}``
            entries; entries with blank text are skipped

    Returns:
        List of Token
    """
    tokens = []
    for item in items:
        token = Token.from_dict(item)
        if token.text.strip():
            tokens.append(token)
    return tokens


def _box_from_poly(poly: Any) -> BoundingBox:
    """Build a box from a 4-point polygon or an ``[x1, y1, x2, y2]`` rectangle."""
    arr = np.asarray(poly, dtype=float)
    if arr.ndim == 2 and arr.shape[1] >= 2:
        return BoundingBox(vertices=tuple((float(x), float(y)) for x, y in arr[:, :2]))
    if arr.ndim == 1 and arr.size == 4:
        x1, y1, x2, y2 = arr.tolist()
        return BoundingBox(vertices=((x1, y1), (x2, y1), (x2, y2), (x1, y2)))
    raise ValueError(f"Unsupported box shape: {arr.shape}")


def tokens_from_paddle_result(result: Any) -> List[Token]:
    """
    Convert a PaddleOCR ``ocr()`` result into tokens.

    PaddleOCR has had API changes: older versions return a list of
    ``(bbox, (text, confidence))`` pairs, newer pipelines return a dict
    with ``rec_texts``, ``rec_scores`` and ``rec_polys``/``rec_boxes``.
    Both shapes are handled.

    Args:
        result: Raw value returned by ``PaddleOCR.ocr``

    Returns:
        List of Token (malformed entries are skipped)
    """
    if not result:
        return []

    first = result[0]
    tokens: List[Token] = []

    if isinstance(first, dict):
        texts = first.get('rec_texts', [])
        scores = first.get('rec_scores', [])
        polys = first.get('rec_polys')
        if polys is None:
            polys = first.get('rec_boxes')
        polys = polys if polys is not None else []

        for idx, text in enumerate(texts):
            text = str(text).strip()
            if not text or idx >= len(polys):
                continue
            try:
                box = _box_from_poly(polys[idx])
            except ValueError as e:
                logger.warning("Skipping OCR item %r: %s", text, e)
                continue
            confidence = float(scores[idx]) if idx < len(scores) else 0.0
            tokens.append(Token(text=text, confidence=confidence, bounding_box=box))
        return tokens

    lines = first if isinstance(first, list) else result
    for line in lines or []:
        try:
            bbox, (text, confidence) = line[0], line[1]
            text = str(text).strip()
            if not text:
                continue
            tokens.append(Token(text=text, confidence=float(confidence), bounding_box=_box_from_poly(bbox)))
        except (IndexError, ValueError, TypeError) as e:
            logger.warning("Skipping malformed OCR result: %s", e)
            continue

    return tokens


def group_text_by_rows(tokens: List[Token], row_threshold: float = 15.0) -> List[List[Token]]:
    """
    Group tokens into text lines based on vertical position.

    Args:
        tokens: Tokens in any order
        row_threshold: Maximum vertical distance (pixels) to stay on the same line

    Returns:
        Lines top-to-bottom, each sorted left-to-right
    """
    if not tokens:
        return []

    ordered = sorted(tokens, key=lambda t: (t.center_y, t.center_x))

    rows = []
    current_row = [ordered[0]]
    current_y = ordered[0].center_y

    for token in ordered[1:]:
        if abs(token.center_y - current_y) <= row_threshold:
            current_row.append(token)
        else:
            rows.append(sorted(current_row, key=lambda t: t.center_x))
            current_row = [token]
            current_y = token.center_y

    rows.append(sorted(current_row, key=lambda t: t.center_x))
    return rows


def tokens_to_text(tokens: List[Token], row_threshold: float = 15.0) -> str:
    """
    Render tokens as newline-separated text for the line-based parser.

    Tokens on a line are joined with two spaces so each token stays a
    separate column segment.
    """
    return "\n".join(
        "  ".join(t.text for t in row) for row in group_text_by_rows(tokens, row_threshold)
    )


def calculate_confidence_score(tokens: List[Token]) -> float:
    """
    Calculate average confidence score for extracted tokens.

    Returns:
        Average confidence score (0-1), 0.0 for no tokens
    """
    if not tokens:
        return 0.0
    return float(np.mean([t.confidence for t in tokens]))


class OCRExtractor:
    """Runs a local PaddleOCR engine on an image file and returns tokens."""

    def __init__(self, lang: str = 'en'):
        """
        Initialize OCR extractor.

        Args:
            lang: Language code for OCR (default: 'en')

        Raises:
            ImportError: If paddleocr is not installed
        """
        try:
            from paddleocr import PaddleOCR
        except ImportError:
            raise ImportError(
                "paddleocr is required for image input. "
                "Install with: pip install 'schedule-processor[ocr]'"
            )

        self.ocr = PaddleOCR(
            use_angle_cls=True,  # Enable angle classification for rotated text
            lang=lang,
        )

    def extract(self, image_path: Union[str, Path], row_threshold: float = 15.0) -> OCRResult:
        """
        Extract positioned tokens from an image file.

        Args:
            image_path: Path to the image
            row_threshold: Line grouping threshold used to build ``text``

        Returns:
            OCRResult with tokens, flattened text and mean confidence
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"File not found: {image_path}")

        tokens = tokens_from_paddle_result(self.ocr.ocr(str(image_path)))
        logger.info("Extracted %d text elements from %s", len(tokens), image_path.name)

        return OCRResult(
            tokens=tokens,
            text=tokens_to_text(tokens, row_threshold),
            confidence=calculate_confidence_score(tokens),
        )
