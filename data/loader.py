import json
from datetime import date, datetime
from pathlib import Path

import click
import polars as pl

from data.models import (
    Claim,
    ClaimDetails,
    ClaimStatus,
    ClaimType,
    Document,
    Location,
    ProcessingStep,
    SimulationResult,
    VoiceData,
)

# Column name mapping for tabular exports: snake_case columns -> claim JSON field names.
# Nested fields (documents, voice_data, claim_details) are JSON-encoded strings in CSV.
COLUMN_MAP = {
    "claim_id": "claimId",
    "estimated_amount": "estimatedAmount",
    "voice_data": "voiceData",
    "claim_details": "claimDetails",
    "created_at": "createdAt",
    "escalation_history": "escalationHistory",
}

NESTED_FIELDS = ("documents", "voiceData", "claimDetails", "escalationHistory")
NUMERIC_COLUMNS = ("amount", "estimated_amount", "estimatedAmount")


class ClaimDataError(click.ClickException):
    """A claim record could not be read."""


def _parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ClaimDataError(f"Invalid timestamp: {value!r}") from None


def _parse_date(value) -> date | None:
    parsed = _parse_datetime(value)
    return parsed.date() if parsed else None


def _decode(value):
    """Decode a JSON-encoded nested field; pass through already-structured values."""
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ClaimDataError(f"Invalid JSON in nested claim field: {value[:60]!r}") from None
    return value


def _document_from_dict(data) -> Document:
    # A bare string is a reference to an uploaded file
    if isinstance(data, str):
        return Document(url=data)
    if not isinstance(data, dict):
        raise ClaimDataError(f"Invalid document entry: {data!r}")
    return Document(
        type=data.get("type") or "other",
        confidence=data.get("confidence"),
        url=data.get("url") or "",
        extracted_data=dict(data.get("extractedData") or {}),
        ocr_method=data.get("ocrMethod") or "",
    )


def _voice_from_dict(data: dict | None) -> VoiceData | None:
    if not data:
        return None
    if not isinstance(data, dict):
        raise ClaimDataError(f"Invalid voice data: {data!r}")
    return VoiceData(
        transcript=data.get("transcript") or "",
        keywords=list(data.get("keywords") or []),
        confidence=data.get("confidence"),
        language=data.get("language") or "",
    )


def _location_from_value(value) -> Location | None:
    if not value:
        return None
    if isinstance(value, str):
        return Location(address=value)
    return Location(address=value.get("address") or "", lat=value.get("lat"), lng=value.get("lng"))


def _details_from_dict(data: dict | None) -> ClaimDetails | None:
    if not data:
        return None
    if not isinstance(data, dict):
        raise ClaimDataError(f"Invalid claim details: {data!r}")
    return ClaimDetails(
        incident_date=_parse_date(data.get("incidentDate")),
        description=data.get("description") or "",
        severity=data.get("severity"),
        location=_location_from_value(data.get("location")),
        items=list(data.get("items") or []),
    )


def _simulation_from_dict(data: dict | None) -> SimulationResult | None:
    if not data:
        return None
    return SimulationResult(
        approved=bool(data.get("approved", False)),
        approved_amount=data.get("approvedAmount") or 0,
        gaps=list(data.get("gaps") or []),
        rules_triggered=list(data.get("rulesTriggered") or []),
        fraud_score=data.get("fraudScore") or 0,
        auto_approved=bool(data.get("autoApproved", False)),
        recommendations=list(data.get("recommendations") or []),
    )


def claim_from_dict(data: dict) -> Claim:
    """Build a Claim from its JSON representation (camelCase field names).

    Missing optional fields are tolerated and left empty.
    """
    claim_type = data.get("type")
    try:
        parsed_type = ClaimType(claim_type) if claim_type else None
    except ValueError:
        raise ClaimDataError(f"Unknown claim type: {claim_type!r}") from None

    status = data.get("status")
    try:
        parsed_status = ClaimStatus(status) if status else ClaimStatus.PENDING
    except ValueError:
        raise ClaimDataError(f"Unknown claim status: {status!r}") from None

    documents = _decode(data.get("documents")) or []
    if not isinstance(documents, list):
        raise ClaimDataError(f"documents must be a list, got {type(documents).__name__}")
    return Claim(
        claim_id=str(data.get("claimId") or data.get("_id") or ""),
        type=parsed_type,
        amount=data.get("amount") or 0,
        estimated_amount=data.get("estimatedAmount"),
        description=data.get("description") or "",
        documents=[_document_from_dict(d) for d in documents],
        voice_data=_voice_from_dict(_decode(data.get("voiceData"))),
        claim_details=_details_from_dict(_decode(data.get("claimDetails"))),
        status=parsed_status,
        simulation=_simulation_from_dict(_decode(data.get("simulation"))),
        escalation_history=list(_decode(data.get("escalationHistory")) or []),
        created_at=_parse_datetime(data.get("createdAt")),
    )


def claim_to_dict(claim: Claim) -> dict:
    """Serialize a Claim back to its JSON representation."""
    details = claim.claim_details
    data = {
        "claimId": claim.claim_id,
        "type": claim.type.value if claim.type else None,
        "status": claim.status.value,
        "amount": claim.amount,
        "estimatedAmount": claim.estimated_amount,
        "description": claim.description,
        "documents": [
            {
                "type": d.type,
                "confidence": d.confidence,
                "url": d.url,
                "extractedData": d.extracted_data,
                "ocrMethod": d.ocr_method,
            }
            for d in claim.documents
        ],
        "voiceData": None,
        "claimDetails": None,
        "simulation": claim.simulation.to_dict() if claim.simulation else None,
        "processingSteps": [_step_to_dict(s) for s in claim.processing_steps],
        "escalationHistory": list(claim.escalation_history),
        "createdAt": claim.created_at.isoformat() if claim.created_at else None,
    }
    if claim.voice_data:
        v = claim.voice_data
        data["voiceData"] = {
            "transcript": v.transcript,
            "keywords": list(v.keywords),
            "confidence": v.confidence,
            "language": v.language,
        }
    if details:
        data["claimDetails"] = {
            "incidentDate": details.incident_date.isoformat() if details.incident_date else None,
            "description": details.description,
            "severity": details.severity,
            "location": (
                {"address": details.location.address, "lat": details.location.lat,
                 "lng": details.location.lng}
                if details.location else None
            ),
            "items": list(details.items),
        }
    return data


def _step_to_dict(step: ProcessingStep) -> dict:
    return {
        "step": step.step,
        "completedAt": step.completed_at.isoformat(),
        "success": step.success,
        "details": step.details,
    }


def _normalize(df: pl.DataFrame) -> pl.DataFrame:
    """Rename snake_case export columns to claim field names."""
    rename_map = {raw: internal for raw, internal in COLUMN_MAP.items() if raw in df.columns}
    if rename_map:
        df = df.rename(rename_map)
    return df


def _read_frame(filepath: Path) -> pl.DataFrame:
    if filepath.suffix == ".parquet":
        return pl.read_parquet(filepath)
    if filepath.suffix in (".ndjson", ".jsonl"):
        return pl.read_ndjson(filepath)
    # Read every column as text so nested JSON strings survive; cast amounts after.
    df = pl.read_csv(filepath, infer_schema_length=0)
    numeric = [c for c in NUMERIC_COLUMNS if c in df.columns]
    return df.with_columns(pl.col(c).cast(pl.Float64, strict=False) for c in numeric)


def load_claims_frame(filepath: Path) -> pl.DataFrame:
    """Load a tabular claims export (CSV, Parquet or NDJSON) as a DataFrame."""
    if not filepath.exists():
        raise ClaimDataError(f"Claims file not found: {filepath}")
    try:
        df = _read_frame(filepath)
    except (pl.exceptions.PolarsError, OSError) as e:
        raise ClaimDataError(f"Could not read {filepath}: {e}") from e
    return _normalize(df)


def load_claims(filepath: Path) -> list[Claim]:
    """Load every claim snapshot in a file.

    JSON files may hold a single claim, a list of claims or {"claims": [...]}.
    """
    if filepath.suffix == ".json":
        records = _read_json(filepath)
    else:
        records = load_claims_frame(filepath).iter_rows(named=True)
    return [claim_from_dict(r) for r in records]


def load_claim(filepath: Path) -> Claim:
    """Load a single claim snapshot."""
    claims = load_claims(filepath)
    if len(claims) != 1:
        raise ClaimDataError(f"Expected exactly one claim in {filepath}, found {len(claims)}")
    return claims[0]


def _read_json(filepath: Path) -> list[dict]:
    if not filepath.exists():
        raise ClaimDataError(f"Claims file not found: {filepath}")
    try:
        data = json.loads(filepath.read_text())
    except json.JSONDecodeError as e:
        raise ClaimDataError(f"Invalid JSON in {filepath}: {e}") from e

    if isinstance(data, dict) and "claims" in data:
        data = data["claims"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ClaimDataError(f"{filepath} does not contain claim objects")
    return data
