#!/usr/bin/env python3
"""Render every page of a contract PDF to PNG for a quick visual check.

Usage:
    python preview_contract.py <contract.pdf> <output_dir> [--dpi 150]

Writes <stem>_p<N>.png per page and prints a JSON summary.
"""

import argparse
import json
import sys
from pathlib import Path

import fitz  # PyMuPDF


def screenshot_page(pdf_path: str, page_index: int, output_png: str, dpi: int = 150):
    """Render a single page of a PDF to a PNG screenshot."""
    doc = fitz.open(pdf_path)
    page = doc[page_index]
    pix = page.get_pixmap(dpi=dpi)
    pix.save(output_png)
    doc.close()


def preview_contract(pdf_path, output_dir, dpi: int = 150):
    """Render all pages; returns the list of written PNG paths."""
    pdf_path = Path(pdf_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    doc = fitz.open(str(pdf_path))
    page_count = doc.page_count
    doc.close()

    written = []
    for page_index in range(page_count):
        png = output_dir / f"{pdf_path.stem}_p{page_index}.png"
        screenshot_page(str(pdf_path), page_index, str(png), dpi=dpi)
        written.append(png)
    return written


def main():
    parser = argparse.ArgumentParser(description="Render contract pages to PNG")
    parser.add_argument("contract_pdf", help="Path to contract PDF")
    parser.add_argument("output_dir", help="Directory for PNG previews")
    parser.add_argument("--dpi", type=int, default=150, help="Render resolution (default: 150)")
    args = parser.parse_args()

    if not Path(args.contract_pdf).exists():
        print(json.dumps({"error": f"File not found: {args.contract_pdf}"}), file=sys.stderr)
        sys.exit(1)

    written = preview_contract(args.contract_pdf, args.output_dir, args.dpi)
    print(json.dumps({
        "status": "success",
        "pages": len(written),
        "previews": [str(p) for p in written],
    }))


if __name__ == "__main__":
    main()
