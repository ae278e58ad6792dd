"""
run_extract.py

Command-line entry point: extract the text of one file and print it.

Usage:
    python -m Extraction.run_extract path/to/scan.png
    python -m Extraction.run_extract path/to/report.pdf --structure
    python -m Extraction.run_extract path/to/notes.docx --no-llm
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from Extraction.pipeline import process_file, structure_text
from Extraction.utils import ExtractionError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract Arabic text from images, PDFs, Word and text files"
    )
    parser.add_argument("file", help="Path to the file to extract")
    parser.add_argument(
        "--structure", "-s",
        action="store_true",
        help="Detect headings and print the sections as JSON",
    )
    parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Skip LLM correction, merging and heading detection",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    llm_kwargs = {"completion": None} if args.no_llm else {}

    try:
        text = process_file(args.file, **llm_kwargs)
    except ExtractionError as e:
        logger.error("Extraction failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.structure:
        print(text)
        return 0

    document = structure_text(text, **llm_kwargs)
    print(json.dumps(
        [section.model_dump(by_alias=True) for section in document.sections],
        ensure_ascii=False,
        indent=2,
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
