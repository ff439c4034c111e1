"""Shared fixtures: synthetic claim snapshots in the claim JSON shape."""

import csv
import json
from datetime import date, datetime
from pathlib import Path

import pytest

from data.models import Claim, ClaimDetails, ClaimType, Document, Location, VoiceData

# Claim IDs
CLEAN_ID = "CLM-0001"      # low risk, auto-approved
RISKY_ID = "CLM-0002"      # high amount, no documents, fraud keywords
MEDIUM_ID = "CLM-0003"     # lands in the partial-approval band
EMPTY_ID = "CLM-0004"      # nothing but an id and a type

LONG_DESCRIPTION = (
    "Rear-ended at a traffic signal on MG Road; bumper and tail light damaged, "
    "police report filed the same afternoon."
)


def make_claim(**overrides) -> Claim:
    """A complete, low-risk medical claim; override any field."""
    fields = dict(
        claim_id="CLM-TEST",
        type=ClaimType.MEDICAL,
        amount=5000,
        estimated_amount=5000,
        description=LONG_DESCRIPTION,
        documents=[
            Document(type="medical_report", confidence=0.9),
            Document(type="bill", confidence=0.85),
            Document(type="prescription", confidence=0.8),
        ],
        voice_data=VoiceData(
            transcript="I went to the doctor for fever and have medical bills",
            keywords=["doctor", "fever", "medical"],
            confidence=0.9,
        ),
        claim_details=ClaimDetails(
            incident_date=date(2024, 3, 15),
            description="Hospital visit for viral fever",
            severity="medium",
            location=Location(address="Bangalore"),
        ),
        created_at=datetime(2024, 3, 15, 11, 30),
    )
    fields.update(overrides)
    return Claim(**fields)


def _claim_records() -> list[dict]:
    """Claim snapshots as the API would send them."""
    return [
        {
            "claimId": CLEAN_ID,
            "type": "accident",
            "amount": 1000,
            "estimatedAmount": 1000,
            "description": "Minor collision at signal, 40 characters long text",
            "documents": [{"type": "accident_photo", "confidence": 0.9},
                          {"type": "bill", "confidence": 0.8}],
            "voiceData": {"transcript": "small accident at the signal",
                          "keywords": ["accident"], "confidence": 0.9},
            "claimDetails": {"incidentDate": "2024-03-14", "description": "Collision",
                             "severity": "low", "location": {"address": "MG Road"}},
            "createdAt": "2024-03-14T10:15:00",
        },
        {
            "claimId": RISKY_ID,
            "type": "accident",
            "amount": 100000,
            "estimatedAmount": 100000,
            "description": "",
            "documents": [],
            "voiceData": {"transcript": "total loss stolen vandalism",
                          "keywords": [], "confidence": 0.3},
            "createdAt": "2024-03-14T12:00:00",
        },
        {
            "claimId": MEDIUM_ID,
            "type": "pharmacy",
            "amount": 60000,
            "estimatedAmount": 60000,
            "description": "Monthly medication for chronic condition",
            "documents": [{"type": "prescription", "confidence": 0.9},
                          {"type": "bill", "confidence": 0.9}],
            "voiceData": {"transcript": "bought medicines from pharmacy",
                          "keywords": ["medicine", "pharmacy"], "confidence": 0.95},
            "claimDetails": {"incidentDate": "2024-03-10", "description": "Pharmacy bills"},
            "createdAt": "2024-03-10T09:00:00",
        },
        {
            "claimId": EMPTY_ID,
            "type": "medical",
            "amount": 0,
            "documents": [],
        },
    ]


@pytest.fixture
def claim_records() -> list[dict]:
    return _claim_records()


@pytest.fixture
def clean_claim() -> Claim:
    """Low-risk claim: small amount, two documents, confident voice statement."""
    return make_claim(
        claim_id=CLEAN_ID,
        type=ClaimType.ACCIDENT,
        amount=1000,
        estimated_amount=1000,
        description="Minor collision at signal, 40 characters long text",
        documents=[Document(type="accident_photo"), Document(type="bill")],
        voice_data=VoiceData(confidence=0.9),
        claim_details=None,
        created_at=None,
    )


@pytest.fixture
def risky_claim() -> Claim:
    """High amount, no documents, low-confidence statement full of fraud keywords."""
    return Claim(
        claim_id=RISKY_ID,
        type=ClaimType.ACCIDENT,
        amount=100000,
        estimated_amount=100000,
        documents=[],
        voice_data=VoiceData(transcript="total loss stolen vandalism", confidence=0.3),
    )


@pytest.fixture
def claims_json(tmp_path: Path) -> Path:
    filepath = tmp_path / "claims.json"
    filepath.write_text(json.dumps(_claim_records()))
    return filepath


@pytest.fixture
def single_claim_json(tmp_path: Path) -> Path:
    filepath = tmp_path / "claim.json"
    filepath.write_text(json.dumps(_claim_records()[0]))
    return filepath


@pytest.fixture
def claims_csv(tmp_path: Path) -> Path:
    """Snake_case export with nested fields as JSON strings."""
    filepath = tmp_path / "claims.csv"
    fieldnames = ["claim_id", "type", "amount", "estimated_amount", "description",
                  "documents", "voice_data", "claim_details", "created_at"]
    with open(filepath, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for r in _claim_records():
            writer.writerow({
                "claim_id": r["claimId"],
                "type": r["type"],
                "amount": r["amount"],
                "estimated_amount": r.get("estimatedAmount", ""),
                "description": r.get("description", ""),
                "documents": json.dumps(r.get("documents", [])),
                "voice_data": json.dumps(r["voiceData"]) if "voiceData" in r else "",
                "claim_details": json.dumps(r["claimDetails"]) if "claimDetails" in r else "",
                "created_at": r.get("createdAt", ""),
            })
    return filepath


@pytest.fixture
def claims_ndjson(tmp_path: Path) -> Path:
    filepath = tmp_path / "claims.ndjson"
    with open(filepath, "w") as f:
        for r in _claim_records():
            f.write(json.dumps(r) + "\n")
    return filepath
