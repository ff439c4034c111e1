import hashlib
import re
from typing import Protocol

from data.models import Document
from intake.voice import IntakeError

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
DOCUMENT_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "application/pdf")
DOCUMENT_TYPES = ("bill", "prescription", "accident_photo", "other")
MIN_CONFIDENCE = 0.5

MOCK_TEXT = {
    "bill": """APOLLO HOSPITALS
Medical Bill
Date: 15/03/2024
Patient: John Doe
Bill No: AH2024001

Consultation Fee: ₹800
Lab Tests: ₹2,400
Room Charges: ₹3,000

Total Amount: ₹7,400
Diagnosis: Fever, Viral Infection
Doctor: Dr. Smith Kumar""",
    "prescription": """Dr. Rajesh Sharma MBBS, MD
City Medical Center
Date: 16/03/2024
Patient: Jane Smith

Rx:
1. Paracetamol 500mg - 2 times daily after food x 5 days
2. Azithromycin 250mg - 1 daily before food x 3 days""",
    "accident_photo": """Accident Report
Location: MG Road, Bangalore
Date: 14/03/2024
Vehicle 1: KA 01 AB 1234 (Honda Activa)
Damage: Front fairing cracked, headlight broken
Estimated Damage: ₹15,000
Police Report: Filed - FIR No. 123/2024""",
    "other": "Document contains text that needs manual review. Please enter the details manually.",
}

FIELD_TEMPLATES = {
    "bill": ("amount", "date", "patient_name", "bill_number", "diagnosis", "doctor_name"),
    "prescription": ("doctor_name", "patient_name", "date", "medicines"),
    "accident_photo": ("location", "date", "vehicle_numbers", "estimated_cost", "police_report"),
    "other": ("extracted_text",),
}


class DocumentExtractor(Protocol):
    def extract_text(self, content: bytes, document_type: str) -> Document: ...


def validate_document(content: bytes, mime_type: str) -> None:
    if len(content) > MAX_DOCUMENT_BYTES:
        raise IntakeError("Document too large (max 10MB)")
    if mime_type.lower() not in DOCUMENT_MIME_TYPES:
        raise IntakeError(f"Unsupported document format: {mime_type}")


def _first(pattern: str, text: str) -> str | None:
    match = re.search(pattern, text, re.IGNORECASE | re.MULTILINE)
    return match.group(1).strip() if match else None


def _amount(pattern: str, text: str) -> int | None:
    value = _first(pattern, text)
    return int(value.replace(",", "")) if value else None


def extract_fields(text: str, document_type: str) -> dict:
    """Pull structured fields out of OCR text for a given document type."""
    if document_type == "bill":
        return {
            "amount": _amount(r"Total(?: Amount)?\s*:?\s*₹?\s*([0-9,]+)", text),
            "date": _first(r"Date\s*:?\s*(\d{1,2}[/-]\d{1,2}[/-]\d{4})", text),
            "patient_name": _first(r"Patient\s*:\s*([A-Za-z ]+)", text),
            "bill_number": _first(r"Bill No\s*:?\s*([A-Z0-9]+)", text),
            "diagnosis": _first(r"Diagnosis\s*:?\s*([A-Za-z ,]+)", text),
            "doctor_name": _first(r"Dr\.?\s+([A-Za-z ]+?)(?:\s+MBBS|,|$)", text),
        }
    if document_type == "prescription":
        return {
            "doctor_name": _first(r"Dr\.?\s+([A-Za-z ]+?)(?:\s+MBBS|,|$)", text),
            "patient_name": _first(r"Patient\s*:\s*([A-Za-z ]+)", text),
            "date": _first(r"Date\s*:?\s*(\d{1,2}[/-]\d{1,2}[/-]\d{4})", text),
            "medicines": re.findall(r"^\d+\.\s*([A-Za-z]+ \d+mg)", text, re.MULTILINE),
        }
    if document_type == "accident_photo":
        return {
            "location": _first(r"Location\s*:\s*(.+)$", text),
            "date": _first(r"Date\s*:?\s*(\d{1,2}[/-]\d{1,2}[/-]\d{4})", text),
            "vehicle_numbers": re.findall(r"\b([A-Z]{2} \d{2} [A-Z]{1,2} \d{4})\b", text),
            "estimated_cost": _amount(r"Estimated Damage\s*:\s*₹?\s*([0-9,]+)", text),
            "police_report": _first(r"Police Report\s*:\s*(.+)$", text),
        }
    return {"extracted_text": text}


def empty_fields(document_type: str) -> dict:
    return {name: None for name in FIELD_TEMPLATES.get(document_type, FIELD_TEMPLATES["other"])}


class MockDocumentExtractor:
    """Deterministic stand-in for the OCR service.

    Confidence is derived from the document bytes and always falls in
    [0.80, 0.95), so with the default min_confidence of 0.5 every document is
    read. The manual-entry fallback (an empty template, confidence 0.0) only
    triggers when min_confidence is raised into that range.
    """

    def __init__(self, min_confidence: float = MIN_CONFIDENCE):
        self.min_confidence = min_confidence

    def extract_text(self, content: bytes, document_type: str) -> Document:
        if document_type not in DOCUMENT_TYPES:
            raise IntakeError(f"Unknown document type: {document_type}")

        digest = hashlib.sha256(content).hexdigest()
        confidence = round(0.8 + int(digest[:8], 16) / 0x100000000 * 0.15, 3)

        if confidence < self.min_confidence:
            return Document(
                type=document_type,
                confidence=0.0,
                extracted_data={
                    "raw_text": "",
                    **empty_fields(document_type),
                    "needs_manual_entry": True,
                },
                ocr_method="manual_fallback",
            )

        text = MOCK_TEXT[document_type]
        return Document(
            type=document_type,
            confidence=confidence,
            extracted_data={"raw_text": text, **extract_fields(text, document_type)},
            ocr_method="google_vision_mock",
        )
