#!/usr/bin/env python3
"""
Invoice OCR Parser - Main Entry Point.

Command-line interface and programmatic access to the invoice parsing
pipeline. Images are recognized through one reusable RecognitionSession;
plain text files (already recognized) go straight to the parser.

Usage:
    Command Line:
        python main.py --input invoice.png --output invoice.json
        python main.py --input ./invoices/ --output ./results/ --ledger

    Python:
        from main import run_extraction
        results = asyncio.run(run_extraction([Path("invoice.png")]))

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from invoice_ocr.config import ConfigurationManager
from invoice_ocr.ocr_engine import OCREngine, RecognitionSession
from invoice_ocr.parser import InvoiceParser, NormalizedInvoice, process_invoice
from invoice_ocr.utils.exceptions import InvoiceExtractionError
from invoice_ocr.utils.helpers import ensure_directory, get_file_extension
from invoice_ocr.utils.logger import get_logger, setup_logger_from_config

TEXT_EXTENSIONS = {'.txt'}
SUPPORTED_EXTENSIONS = set(OCREngine.SUPPORTED_EXTENSIONS) | TEXT_EXTENSIONS


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice OCR Parser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Parse a single invoice image:
        python main.py --input invoice.png --output invoice.json

    Parse already-recognized text:
        python main.py --input invoice.txt

    Parse a directory and emit ledger documents:
        python main.py --input ./invoices/ --output ./results/ --ledger
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Image file, text file or directory containing invoices"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file, or directory for one JSON file per invoice (default: stdout)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--ledger",
        action="store_true",
        help="Emit ledger documents instead of normalized invoices"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds allowed for recognizing one image"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load configuration and set up logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    level = None
    if args.debug:
        level = "DEBUG"
    elif args.quiet:
        level = "ERROR"
    logger = setup_logger_from_config(level)

    logger.info("=" * 60)
    logger.info("INVOICE OCR PARSER")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {args.output or 'stdout'}")

    return config


def collect_inputs(input_path: str) -> List[Path]:
    """
    Return the files to process.

    Args:
        input_path: File or directory.

    Returns:
        Sorted list of supported files.

    Raises:
        FileNotFoundError: If the input path doesn't exist.
        ValueError: If a single file has an unsupported type.
    """
    logger = get_logger(__name__)
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    if path.is_file():
        if get_file_extension(path) not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {path.suffix}")
        return [path]

    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and get_file_extension(p) in SUPPORTED_EXTENSIONS
    )

    if not files:
        logger.warning(f"No supported files found in: {path}")
    else:
        logger.info(f"Found {len(files)} files to process")

    return files


async def run_extraction(
    files: List[Path],
    parser: Optional[InvoiceParser] = None,
    session: Optional[RecognitionSession] = None,
    timeout: Optional[float] = None
) -> List[NormalizedInvoice]:
    """
    Parse a list of invoice files.

    Text files are parsed directly. Images are recognized one after the other
    through a single session, created on the first image when not given. A
    file that fails is logged and skipped.

    Args:
        files: Image or text files.
        parser: InvoiceParser to use.
        session: RecognitionSession to use for images.
        timeout: Seconds allowed per recognition call.

    Returns:
        Parsed invoices, in input order.
    """
    logger = get_logger(__name__)
    parser = parser or InvoiceParser()
    owns_session = session is None
    invoices = []

    try:
        for file_path in files:
            logger.info(f"Processing: {file_path.name}")

            try:
                if get_file_extension(file_path) in TEXT_EXTENSIONS:
                    text = file_path.read_text(encoding='utf-8')
                    invoice = parser.parse(text, source_file=str(file_path))
                else:
                    if session is None:
                        session = await RecognitionSession().open()
                    invoice = await process_invoice(
                        file_path, session, parser, timeout=timeout, source_file=str(file_path)
                    )
            except (InvoiceExtractionError, OSError, UnicodeDecodeError) as e:
                logger.error(f"Error processing {file_path.name}: {e}")
                continue

            logger.info(
                f"  Extracted: Invoice #{invoice.invoice_number}, "
                f"{invoice.item_count} items, grand total {invoice.grand_total}"
            )
            invoices.append(invoice)
    finally:
        if owns_session and session is not None:
            await session.close()

    return invoices


def render(invoice: NormalizedInvoice, ledger: bool = False) -> Dict[str, Any]:
    return invoice.to_ledger_document() if ledger else invoice.to_dict()


def write_outputs(invoices: List[NormalizedInvoice], output: Optional[str], ledger: bool = False) -> None:
    """
    Write parsed invoices as JSON.

    A path with a ``.json`` suffix receives a list of all invoices; any
    other path is treated as a directory with one file per invoice. Without
    a path the JSON goes to stdout.
    """
    logger = get_logger(__name__)
    documents = [render(invoice, ledger) for invoice in invoices]

    if output is None:
        print(json.dumps(documents, indent=2, ensure_ascii=False))
        return

    output_path = Path(output)
    if output_path.suffix.lower() == '.json':
        ensure_directory(output_path.parent)
        output_path.write_text(json.dumps(documents, indent=2, ensure_ascii=False), encoding='utf-8')
        logger.info(f"JSON output: {output_path}")
        return

    ensure_directory(output_path)
    for invoice, document in zip(invoices, documents):
        stem = Path(invoice.source_file).stem if invoice.source_file else invoice.invoice_number
        target = output_path / f"{stem}.json"
        target.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding='utf-8')
        logger.info(f"JSON output: {target}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, 1 for errors, 130 when interrupted).
    """
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        logger = get_logger(__name__)

        input_files = collect_inputs(args.input)
        if not input_files:
            logger.error("No files to process")
            return 1

        invoices = asyncio.run(run_extraction(input_files, timeout=args.timeout))
        if not invoices:
            logger.error("No invoices could be processed")
            return 1

        write_outputs(invoices, args.output, ledger=args.ledger)

        logger.info("=" * 60)
        logger.info(f"Parsing complete. {len(invoices)}/{len(input_files)} files processed.")
        logger.info("=" * 60)

        return 0

    except (FileNotFoundError, ValueError, InvoiceExtractionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
