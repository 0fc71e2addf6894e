"""Command-line interface for single-image extraction and batch CSV export.

Runs the same pipeline as the HTTP endpoint on local files, which is
handy for checking recognition quality on a folder of sample photos.

Usage::

    vehicle-ocr extract libreta.jpg
    vehicle-ocr batch fotos/ -o resultados.csv -v
"""

import argparse
import asyncio
import csv
import json
import os
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from src.exceptions import DocumentOCRError
from src.extraction.rule_extractor import WIRE_KEYS
from src.ocr.document_processor import DocumentProcessor, DocumentResult
from src.ocr.factory import build_engine
from src.preprocessing.pipeline import RawImage
from src.utils.config import load_config
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}

CSV_COLUMNS = [
    "filename",
    "status",
    "orientation",
    "match_score",
    "processing_time_s",
    "error",
    *WIRE_KEYS.values(),
]

STATUS_SUCCESS = "success"
STATUS_NO_TEXT = "no_text"
STATUS_FAILED = "failed"


def _find_documents(input_dir: Path) -> list[Path]:
    """List the photos directly inside ``input_dir``, sorted by path."""
    return sorted(
        path
        for path in input_dir.iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_CONTENT_TYPES
    )


def load_raw_image(file_path: Path) -> RawImage:
    """Read an image file, inferring its media type from the extension."""
    return RawImage(
        content=file_path.read_bytes(),
        content_type=IMAGE_CONTENT_TYPES.get(file_path.suffix.lower(), ""),
        filename=file_path.name,
    )


def build_processor() -> DocumentProcessor:
    """Create a processor from the configuration and environment."""
    config = load_config()
    return DocumentProcessor(config, build_engine(config.ocr))


def _run(processor: DocumentProcessor, file_path: Path) -> DocumentResult:
    return asyncio.run(processor.process(load_raw_image(file_path)))


def extract_single(
    file_path: Path, processor: DocumentProcessor | None = None
) -> dict[str, object]:
    """Process a single photo and return its fields and recognition details.

    Args:
        file_path: Path to the image file.
        processor: Processor to use; built from configuration if ``None``.

    Returns:
        Dictionary with filename, chosen orientation, score, fields
        (``None`` when no text was detected) and the raw text.
    """
    result = _run(processor or build_processor(), file_path)
    return {
        "filename": file_path.name,
        "orientation": result.recognition.orientation,
        "match_score": result.recognition.match_score,
        "text_detected": result.text_detected,
        "fields": result.record.to_dict() if result.record else None,
        "raw_text": result.recognition.text,
    }


def _result_row(file_path: Path, result: DocumentResult) -> dict[str, object]:
    row: dict[str, object] = {
        "filename": file_path.name,
        "status": STATUS_SUCCESS if result.text_detected else STATUS_NO_TEXT,
        "orientation": result.recognition.orientation,
        "match_score": result.recognition.match_score,
    }
    if result.record:
        row.update(result.record.to_dict())
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    verbose: bool = False,
    processor: DocumentProcessor | None = None,
) -> dict[str, int]:
    """Process every photo in a folder and export one CSV row per photo.

    A photo that fails is recorded with its error and does not stop the
    batch.

    Args:
        input_dir: Directory containing image files.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.
        processor: Processor to use; built from configuration if ``None``.

    Returns:
        Counts of total, successful, no-text and failed photos.
    """
    files = _find_documents(input_dir)
    summary = {"total": len(files), "successful": 0, "no_text": 0, "failed": 0}
    if not files:
        logger.warning("No images found in %s", input_dir)
        return summary

    processor = processor or build_processor()
    logger.info("Found %d images to process", len(files))

    rows: list[dict[str, object]] = []
    for index, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{index}/{len(files)}]: {file_path.name}")

        started = time.perf_counter()
        try:
            row = _result_row(file_path, _run(processor, file_path))
        except (DocumentOCRError, OSError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            row = {"filename": file_path.name, "status": STATUS_FAILED}
            row["error"] = str(exc)
        row["processing_time_s"] = round(time.perf_counter() - started, 2)
        rows.append(row)

        if row["status"] == STATUS_SUCCESS:
            summary["successful"] += 1
        elif row["status"] == STATUS_NO_TEXT:
            summary["no_text"] += 1
        else:
            summary["failed"] += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows as UTF-8 CSV; every field column is always present."""
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print()
    print(f"Processed {summary['total']} photo(s) -> {output_csv}")
    for key in ("successful", "no_text", "failed"):
        print(f"  {key:<10} {summary[key]}")


def _cmd_batch(args: argparse.Namespace) -> int:
    if not args.input_dir.is_dir():
        print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
        return 1
    process_folder(args.input_dir, args.output, verbose=args.verbose)
    return 0


def _cmd_extract(args: argparse.Namespace) -> int:
    if not args.file.is_file():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        return 1

    output = json.dumps(extract_single(args.file), indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output, encoding="utf-8")
        print(f"Output written to {args.output}")
    else:
        print(output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with its ``extract`` and ``batch`` commands."""
    parser = argparse.ArgumentParser(
        prog="vehicle-ocr",
        description="Read vehicle data from photos of registration documents",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command")

    extract_parser = subparsers.add_parser("extract", help="Read a single photo")
    extract_parser.add_argument("file", type=Path, help="Image file to process")
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    extract_parser.set_defaults(handler=_cmd_extract)

    batch_parser = subparsers.add_parser("batch", help="Read a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Directory of photos")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print per-file progress"
    )
    batch_parser.set_defaults(handler=_cmd_batch)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the selected command.

    Exits with status 1 when the input path does not exist.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.log_level)
    status = args.handler(args)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
