#!/usr/bin/env python3
"""Verify that a generated rental contract PDF is complete.

Checks:
1. Sections — header, title, vehicle, renter, terms and signature headings
   all appear, in that order
2. Renter / rate — the printed name and daily rate match what was expected
3. Signature — an image is embedded (the placeholder text counts as a warning)
4. Placement — every text run sits inside the page and above the footer band

Usage:
    python verify_contract.py <contract.pdf> [--first-name A --last-name B]
                              [--daily-rate 350] [--pretty]

Outputs a JSON report with pass/fail for each check.
"""

import argparse
import json
import re
import sys
from pathlib import Path

from pypdf import PdfReader
from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject
from reportlab.lib.units import mm

from contract_pdf import (
    BRAND, FOOTER_TEXT, FOOTER_Y, PAGE_H, PAGE_W, SIGNATURE_PLACEHOLDER, TITLE,
)

SECTION_HEADINGS = [
    BRAND,
    TITLE,
    "VEHICLE INFORMATION",
    "RENTER INFORMATION",
    "TERMS AND CONDITIONS",
    "SIGNATURE",
]


def resolve(obj):
    while isinstance(obj, IndirectObject):
        obj = obj.get_object()
    return obj


def _unescape(s):
    return re.sub(r"\\([()\\])", r"\1", s)


def extract_text_positions(page):
    """Extract text runs with their Tm positions from a page content stream."""
    texts = []
    contents = page.get("/Contents")
    if contents is None:
        return texts

    contents = resolve(contents)
    if isinstance(contents, ArrayObject):
        content_str = "\n".join(
            resolve(item).get_data().decode("latin-1", errors="replace") for item in contents
        )
    else:
        content_str = contents.get_data().decode("latin-1", errors="replace")

    for block in re.finditer(r"BT\s(.*?)\sET", content_str, re.DOTALL):
        body = block.group(1)
        tm = re.search(
            r"([\d.e+-]+)\s+([\d.e+-]+)\s+([\d.e+-]+)\s+([\d.e+-]+)\s+([\d.e+-]+)\s+([\d.e+-]+)\s+Tm",
            body,
        )
        if not tm:
            continue
        parts = [m.group(1) for m in re.finditer(r"\(((?:\\.|[^\\)])*)\)\s*Tj", body)]
        if parts:
            texts.append({
                "text": _unescape("".join(parts)),
                "x": float(tm.group(5)),
                "y": float(tm.group(6)),
            })
    return texts


def count_images(page):
    """Number of image XObjects referenced from the page resources."""
    resources = resolve(page.get("/Resources"))
    if not isinstance(resources, DictionaryObject) or "/XObject" not in resources:
        return 0
    xobjects = resolve(resources["/XObject"])
    return sum(1 for ref in xobjects.values()
               if resolve(ref).get("/Subtype") == "/Image")


def check_sections(full_text):
    results = []
    cursor = 0
    for heading in SECTION_HEADINGS:
        idx = full_text.find(heading, cursor)
        if idx < 0:
            present = heading in full_text
            results.append({
                "check": f"section:{heading}",
                "status": "fail",
                "reason": "Out of order" if present else "Heading not found",
            })
            continue
        results.append({"check": f"section:{heading}", "status": "pass"})
        cursor = idx + len(heading)
    return results


def check_placement(reader):
    results = []
    footer_band = (PAGE_H - FOOTER_Y) * mm + 1
    page_w, page_h = PAGE_W * mm, PAGE_H * mm
    for pg_idx, page in enumerate(reader.pages):
        for run in extract_text_positions(page):
            if run["text"] == FOOTER_TEXT:
                continue
            inside = 0 <= run["x"] <= page_w and footer_band < run["y"] <= page_h
            if not inside:
                results.append({
                    "check": "placement",
                    "status": "fail",
                    "reason": f"Text outside body area on page {pg_idx}",
                    "text": run["text"],
                    "text_pos": {"x": run["x"], "y": run["y"]},
                })
    if not results:
        results.append({"check": "placement", "status": "pass"})
    return results


def verify_contract(pdf_path, first_name=None, last_name=None, daily_rate=None):
    """Run full verification."""
    reader = PdfReader(pdf_path)
    page_texts = [page.extract_text() or "" for page in reader.pages]
    full_text = "\n".join(page_texts)

    report = {
        "file": str(pdf_path),
        "pages": len(reader.pages),
        "results": [],
        "summary": {"total": 0, "pass": 0, "fail": 0, "warn": 0},
    }

    report["results"].extend(check_sections(full_text))

    if first_name is not None and last_name is not None:
        expected = f"Name: {first_name} {last_name}"
        report["results"].append({
            "check": "renter",
            "status": "pass" if expected in full_text else "fail",
            "expected": expected,
        })

    if daily_rate is not None:
        expected = f"${daily_rate:.2f}"
        report["results"].append({
            "check": "daily_rate",
            "status": "pass" if expected in full_text else "fail",
            "expected": expected,
        })

    images = sum(count_images(page) for page in reader.pages)
    if images:
        report["results"].append({"check": "signature", "status": "pass", "images": images})
    elif SIGNATURE_PLACEHOLDER in full_text:
        report["results"].append({
            "check": "signature",
            "status": "warn",
            "reason": "Signature placeholder instead of image",
        })
    else:
        report["results"].append({
            "check": "signature",
            "status": "fail",
            "reason": "No signature image or placeholder",
        })

    report["results"].extend(check_placement(reader))

    for r in report["results"]:
        report["summary"]["total"] += 1
        status = r.get("status", "fail")
        if status in report["summary"]:
            report["summary"][status] += 1

    report["all_passed"] = report["summary"]["fail"] == 0

    return report


def main():
    parser = argparse.ArgumentParser(description="Verify a generated rental contract")
    parser.add_argument("contract_pdf", help="Path to contract PDF")
    parser.add_argument("--first-name", help="Expected renter first name")
    parser.add_argument("--last-name", help="Expected renter last name")
    parser.add_argument("--daily-rate", type=float, help="Expected daily rate")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    args = parser.parse_args()

    if not Path(args.contract_pdf).exists():
        print(json.dumps({"error": f"File not found: {args.contract_pdf}"}), file=sys.stderr)
        sys.exit(1)

    report = verify_contract(args.contract_pdf, args.first_name, args.last_name, args.daily_rate)
    indent = 2 if args.pretty else None
    print(json.dumps(report, indent=indent, ensure_ascii=False))

    sys.exit(0 if report["all_passed"] else 1)


if __name__ == "__main__":
    main()
