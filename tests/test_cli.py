"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import config
from cli import cli
from data.loader import load_claim
from data.models import ClaimStatus
from tests.conftest import CLEAN_ID, RISKY_ID


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_evaluate_prints_envelope(runner: CliRunner, single_claim_json: Path):
    result = runner.invoke(cli, ["evaluate", str(single_claim_json)])
    assert result.exit_code == 0, result.output
    envelope = json.loads(result.output)
    assert envelope["status"] == "success"
    assert envelope["data"]["claimId"] == CLEAN_ID
    assert envelope["data"]["newStatus"] == "APPROVED"
    assert envelope["data"]["recommendation"] == "auto_approve"
    assert envelope["data"]["simulation"]["fraudScore"] == 0


def test_evaluate_update_writes_back(runner: CliRunner, single_claim_json: Path):
    result = runner.invoke(cli, ["evaluate", str(single_claim_json), "--update"])
    assert result.exit_code == 0, result.output
    claim = load_claim(single_claim_json)
    assert claim.status == ClaimStatus.APPROVED
    assert claim.simulation.auto_approved
    saved = json.loads(single_claim_json.read_text())
    assert saved["processingSteps"][0]["step"] == "fraud_evaluation"


def test_evaluate_rejects_unknown_policy(runner: CliRunner, single_claim_json: Path):
    result = runner.invoke(cli, ["evaluate", str(single_claim_json),
                                 "--scoring-policy", "made-up"])
    assert result.exit_code == 2


def test_evaluate_rejects_batch_file(runner: CliRunner, claims_json: Path):
    result = runner.invoke(cli, ["evaluate", str(claims_json)])
    assert result.exit_code == 1
    assert "Expected exactly one claim" in result.output


def test_payout_coverage(runner: CliRunner, single_claim_json: Path):
    result = runner.invoke(cli, ["payout", str(single_claim_json), "--policy", "coverage-v1"])
    assert result.exit_code == 0, result.output
    assert "Final amount: 700.00" in result.output
    assert "Coverage: 70%" in result.output
    assert "Recommendation: ready_for_approval" in result.output


def test_payout_deduction(runner: CliRunner, single_claim_json: Path):
    result = runner.invoke(cli, ["payout", str(single_claim_json)])
    assert result.exit_code == 0, result.output
    assert "Policy: deduction-v1" in result.output
    assert "investigation_fee" in result.output
    assert "Final amount: 950.00" in result.output


def test_scan_writes_results(runner: CliRunner, claims_json: Path, tmp_path: Path,
                             monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config, "OUTPUT_DIR", tmp_path / "out")
    result = runner.invoke(cli, ["scan", "--data-path", str(claims_json), "--top", "2"])
    assert result.exit_code == 0, result.output
    assert RISKY_ID in result.output
    assert "By status:" in result.output

    lines = (tmp_path / "out" / "scan_results.csv").read_text().splitlines()
    assert lines[0].startswith("rank,claim_id,fraud_score")
    assert len(lines) == 5
    assert RISKY_ID in lines[1]


def test_scan_without_data(runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config, "CLAIMS_DATA_DIR", tmp_path / "missing")
    result = runner.invoke(cli, ["scan"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_profile_builds_pdf(runner: CliRunner, single_claim_json: Path, tmp_path: Path):
    output_dir = tmp_path / "dossiers"
    result = runner.invoke(cli, ["profile", str(single_claim_json),
                                 "--output-dir", str(output_dir)])
    assert result.exit_code == 0, result.output
    assert "Fraud Score: 0 (low)" in result.output
    assert "Status: APPROVED" in result.output
    assert len(list(output_dir.glob("*.pdf"))) == 1


def test_profile_shows_escalation_level(runner: CliRunner, claim_records: list[dict],
                                        tmp_path: Path):
    claim_file = tmp_path / "risky.json"
    claim_file.write_text(json.dumps(claim_records[1]))
    result = runner.invoke(cli, ["profile", str(claim_file),
                                 "--output-dir", str(tmp_path / "dossiers")])
    assert result.exit_code == 0, result.output
    assert "Status: FRAUD_REVIEW" in result.output
    assert ("Escalate to level 2 (Tier 1 Agent Review, respond within 4h): "
            "High-value claim requires agent review") in result.output


def test_transcribe(runner: CliRunner, tmp_path: Path):
    audio = tmp_path / "statement.wav"
    audio.write_bytes(b"medical claim statement audio")
    result = runner.invoke(cli, ["transcribe", str(audio)])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["claimType"] == "medical"
    assert data["language"] == "en-IN"


def test_transcribe_rejects_unknown_format(runner: CliRunner, tmp_path: Path):
    audio = tmp_path / "statement.txt"
    audio.write_bytes(b"not audio")
    result = runner.invoke(cli, ["transcribe", str(audio)])
    assert result.exit_code == 1
    assert "Unsupported audio format" in result.output


def test_extract_bill(runner: CliRunner, tmp_path: Path):
    document = tmp_path / "bill.pdf"
    document.write_bytes(b"%PDF-1.4 scanned bill")
    result = runner.invoke(cli, ["extract", str(document), "--type", "bill"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["ocrMethod"] == "google_vision_mock"
    assert data["extractedData"]["amount"] == 7400
