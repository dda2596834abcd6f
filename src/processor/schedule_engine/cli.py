"""Command-line interface for the schedule engine."""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .main import print_schedule_summary, process_schedule, save_to_json
from .ocr_extractor import OCRExtractor, OCRResult, tokens_from_dicts
from .utils import (
    IMAGE_EXTENSIONS,
    TOKEN_EXTENSIONS,
    ScheduleParsingError,
    format_validation_report,
    is_supported_file,
)

USAGE = """\
Usage: python scripts/run.py <file_path> [options]

Arguments:
  file_path         OCR text (.txt), OCR tokens (.json) or schedule image

Options:
  --output PATH     Output JSON file path
  --confidence N    OCR confidence for text input (0-1)
  --engine NAME     OCR engine name recorded in the metadata
  --no-fix          Skip the OCR artifact fix pass
  --verbose         Enable debug logging

Examples:
  python scripts/run.py schedule.txt --confidence 0.95
  python scripts/run.py tokens.json --output week.json
  python scripts/run.py schedule.jpg
"""


def _option(argv: List[str], name: str) -> Optional[str]:
    if name in argv:
        idx = argv.index(name)
        if idx + 1 < len(argv):
            return argv[idx + 1]
    return None


def load_input(file_path: Path) -> OCRResult:
    """
    Load OCR input from a text, token JSON or image file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file content is not usable
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = file_path.suffix.lower()

    if suffix in IMAGE_EXTENSIONS:
        return OCRExtractor().extract(file_path)

    if suffix in TOKEN_EXTENSIONS:
        data = json.loads(file_path.read_text(encoding='utf-8'))
        if isinstance(data, list):
            return OCRResult(tokens=tokens_from_dicts(data), engine="google-vision")
        if isinstance(data, dict):
            tokens = tokens_from_dicts(data.get('tokens', []))
            return OCRResult(
                tokens=tokens,
                text=str(data.get('text', '')),
                confidence=float(data.get('confidence', 0.0) or 0.0),
                engine=str(data.get('engine', 'google-vision')),
            )
        raise ValueError(f"Unsupported JSON layout in {file_path.name}")

    return OCRResult(text=file_path.read_text(encoding='utf-8'), engine="google-vision")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line execution."""
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv or argv[0] in ('-h', '--help'):
        print(USAGE)
        return 1

    file_path = Path(argv[0])
    auto_fix = '--no-fix' not in argv
    output_path = _option(argv, '--output') or file_path.stem + "_schedule.json"

    if '--verbose' in argv:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if not is_supported_file(str(file_path)):
        print("\n✗ Error: Unsupported file format")
        print("  Supported formats: TXT, JSON, PNG, JPG, JPEG, BMP, TIFF")
        return 1

    try:
        print(f"▶ Processing Schedule: {file_path.name}")

        print("\n[1/4] Loading OCR input...")
        ocr = load_input(file_path)
        print(f"✓ Loaded {len(ocr.tokens)} token(s), {len(ocr.text.splitlines())} text line(s)")

        confidence_opt = _option(argv, '--confidence')
        confidence = float(confidence_opt) if confidence_opt else (ocr.confidence or None)
        engine = _option(argv, '--engine') or ocr.engine

        print("\n[2/4] Reconstructing and parsing schedule...")
        result = process_schedule(
            ocr_text=ocr.text,
            tokens=ocr.tokens,
            confidence=confidence,
            ocr_engine=engine,
            auto_fix=auto_fix,
        )
        path = "table" if result.table is not None else "text lines"
        print(f"✓ Parsed {result.schedule.total_employees} employee(s) from {path}")

        print("\n[3/4] Validation")
        print(f"{'─'*60}")
        print(format_validation_report(result.validation))
        print_schedule_summary(result.schedule)

        print("\n[4/4] Saving results...")
        save_to_json(result, output_path)
        print(f"✓ Saved to: {output_path}")

        return 0 if result.validation.is_valid else 2

    except FileNotFoundError as e:
        print(f"\n✗ File Error: {e}")
        return 1
    except ScheduleParsingError as e:
        print(f"\n✗ Parsing Error [{e.code.value}]: {e}")
        return 1
    except ValueError as e:
        print(f"\n✗ Validation Error: {e}")
        return 1
    except ImportError as e:
        print(f"\n✗ Missing dependency: {e}")
        return 1
