"""Tests for the contract verifier."""

import pytest

from conftest import make_request, run_verify
from contract_pdf import build_contract, write_contract
from verify_contract import extract_text_positions, verify_contract
from pypdf import PdfReader


@pytest.fixture
def contract_pdf(excavator, signature_png, tmp_output):
    return write_contract(build_contract(make_request(excavator, signature_png)), tmp_output)


class TestVerifyReport:
    def test_complete_contract_passes(self, contract_pdf):
        report, exitcode = run_verify(contract_pdf, [
            "--first-name", "Anna", "--last-name", "Muller", "--daily-rate", "350",
        ])
        assert exitcode == 0, report
        assert report["all_passed"]
        checks = {r["check"]: r["status"] for r in report["results"]}
        assert checks["section:TERMS AND CONDITIONS"] == "pass"
        assert checks["renter"] == "pass"
        assert checks["daily_rate"] == "pass"
        assert checks["signature"] == "pass"
        assert checks["placement"] == "pass"

    def test_report_structure(self, contract_pdf):
        report, _ = run_verify(contract_pdf)
        assert report["pages"] >= 1
        assert "total" in report["summary"]
        assert "pass" in report["summary"]
        assert "fail" in report["summary"]
        assert "all_passed" in report

    def test_wrong_renter_fails(self, contract_pdf):
        report, exitcode = run_verify(contract_pdf, ["--first-name", "Bob", "--last-name", "Stone"])
        assert exitcode == 1
        assert not report["all_passed"]

    def test_placeholder_is_a_warning(self, excavator, tmp_output):
        path = write_contract(build_contract(make_request(excavator, b"garbage")), tmp_output)
        report = verify_contract(str(path))
        signature = next(r for r in report["results"] if r["check"] == "signature")
        assert signature["status"] == "warn"
        assert report["all_passed"]


def test_text_positions_found(contract_pdf):
    reader = PdfReader(str(contract_pdf))
    runs = extract_text_positions(reader.pages[0])
    assert any(r["text"] == "CONSTRUCTRENT" for r in runs)
    assert all(r["y"] > 0 for r in runs)
