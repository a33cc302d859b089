#!/usr/bin/env python3
"""Create a signed rental contract PDF for one catalog vehicle.

The signature comes either from a strokes file written by
capture_signature.py (--strokes) or from the drawing window (--draw).
Strokes are replayed through SignatureCapture, so the same validity rules
apply as in the interactive form.

Usage:
    python rent.py <vehicle_id> --first-name Anna --last-name Muller --strokes sig.json
    python rent.py <vehicle_id> --first-name Anna --last-name Muller --draw

Prints a JSON result on stdout:
{
    "status": "success",
    "output": "out/rental-excavator-001-1760866200000.pdf",
    "contract_id": "excavator-001-1760866200000",
    "pages": 2
}

Validation failures print {"status": "invalid", "errors": {...}} on stderr
and exit with code 1.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from catalog import DEFAULT_CATALOG, get_vehicle_by_id, load_vehicles
from contract_pdf import write_contract
from rental_form import ValidationError, submit_rental
from signature_pad import load_recording

LOGGER = logging.getLogger(__name__)


def _fail(payload):
    print(json.dumps(payload), file=sys.stderr)
    sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description="Generate a signed rental contract")
    parser.add_argument("vehicle_id", help="Catalog vehicle id, e.g. excavator-001")
    parser.add_argument("--first-name", default="", help="Renter first name")
    parser.add_argument("--last-name", default="", help="Renter last name")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--strokes", help="Strokes JSON from capture_signature.py")
    source.add_argument("--draw", action="store_true", help="Open the signature window")
    parser.add_argument("--catalog", default=str(DEFAULT_CATALOG), help="Vehicle catalog JSON")
    parser.add_argument("--output-dir", default=".", help="Directory for the PDF")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if not Path(args.catalog).exists():
        _fail({"error": f"Catalog not found: {args.catalog}"})
    vehicle = get_vehicle_by_id(load_vehicles(args.catalog), args.vehicle_id)
    if vehicle is None:
        _fail({"error": f"Vehicle not found: {args.vehicle_id}"})

    if args.draw:
        from capture_signature import capture_signature
        pad = capture_signature()
        if pad is None:
            print(json.dumps({"status": "cancelled"}))
            sys.exit(1)
    else:
        if not Path(args.strokes).exists():
            _fail({"error": f"Strokes file not found: {args.strokes}"})
        with open(args.strokes) as f:
            pad = load_recording(json.load(f))

    try:
        document = submit_rental(vehicle, args.first_name, args.last_name, pad)
    except ValidationError as exc:
        _fail({"status": "invalid", "errors": exc.errors})

    path = write_contract(document, args.output_dir)
    LOGGER.debug("Contract %s written to %s", document.contract_id, path)
    print(json.dumps({
        "status": "success",
        "output": str(path),
        "contract_id": document.contract_id,
        "pages": document.page_count,
    }))


if __name__ == "__main__":
    main()
