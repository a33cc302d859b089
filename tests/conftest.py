"""Pytest configuration and shared fixtures for rental contract tests."""

import json
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add scripts to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "scripts"))

SCRIPTS = PROJECT_ROOT / "scripts"
CATALOG_PATH = PROJECT_ROOT / "catalog" / "vehicles.json"

ISSUED_AT = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

# 12 points, 60 x 25 px diagonal
DIAGONAL = [[10 + 60 * i / 11, 20 + 25 * i / 11] for i in range(12)]
# 20 points, long and flat
HORIZONTAL_FLICK = [[10 + 10 * i, 80] for i in range(20)]
VERTICAL_FLICK = [[100, 5 + 9 * i] for i in range(20)]
TAP = [[50, 50]]


class ManualScheduler:
    """Scheduler driven by an explicit clock, for resize/debounce tests."""

    def __init__(self):
        self.now = 0
        self._jobs = {}
        self._next_token = 0
        self.fired = 0

    def schedule(self, delay_ms, callback):
        self._next_token += 1
        self._jobs[self._next_token] = (self.now + delay_ms, callback)
        return self._next_token

    def cancel(self, token):
        self._jobs.pop(token, None)

    @property
    def pending(self):
        return len(self._jobs)

    def advance(self, ms):
        self.now += ms
        due = sorted((when, token) for token, (when, _) in self._jobs.items() if when <= self.now)
        for _, token in due:
            _, callback = self._jobs.pop(token)
            self.fired += 1
            callback()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def tmp_output(tmp_path):
    return tmp_path


@pytest.fixture
def excavator():
    from catalog import Vehicle
    return Vehicle(
        id="excavator-001",
        name="Caterpillar 320 Excavator",
        category="Excavator",
        description="Hydraulic excavator",
        daily_rate=350,
        specifications={"weight": "20,000 kg", "maxReach": "9.7 m", "fuelType": None},
    )


@pytest.fixture
def valid_pad():
    from signature_pad import SignatureCapture
    pad = SignatureCapture(600, 200)
    draw(pad, DIAGONAL)
    return pad


@pytest.fixture
def signature_png(valid_pad):
    return valid_pad.to_export().png


# --- Helpers used across test files ---

def draw(pad, points):
    """Feed one complete gesture into the pad."""
    from signature_pad import Point
    first, *rest = points
    pad.begin_stroke(Point(*first))
    for xy in rest:
        pad.extend_stroke(Point(*xy))
    pad.end_stroke()


def make_request(vehicle, signature, first_name="Anna", last_name="Muller", issued_at=ISSUED_AT):
    from contract_pdf import ContractRequest
    return ContractRequest.from_vehicle(vehicle, first_name, last_name, signature, issued_at=issued_at)


def write_json(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def run_rent(vehicle_id, strokes_path, output_dir, first_name="Anna", last_name="Muller"):
    """Run rent.py and return (parsed JSON from stdout or stderr, exitcode)."""
    cmd = [
        sys.executable, str(SCRIPTS / "rent.py"), vehicle_id,
        "--first-name", first_name, "--last-name", last_name,
        "--strokes", str(strokes_path),
        "--catalog", str(CATALOG_PATH),
        "--output-dir", str(output_dir),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
    out = result.stdout if result.returncode == 0 else result.stderr
    return json.loads(out.strip().splitlines()[-1]), result.returncode


def run_verify(contract_pdf, extra_args=None):
    """Run verify_contract.py and return (report, exitcode)."""
    cmd = [sys.executable, str(SCRIPTS / "verify_contract.py"), str(contract_pdf), "--pretty"]
    if extra_args:
        cmd.extend(extra_args)
    result = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
    return json.loads(result.stdout), result.returncode
