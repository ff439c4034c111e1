import hashlib
import re
from typing import Protocol

import click

from data.models import ClaimType, VoiceData

MAX_AUDIO_BYTES = 10 * 1024 * 1024
AUDIO_MIME_TYPES = ("audio/wav", "audio/mp3", "audio/mpeg", "audio/flac", "audio/ogg", "audio/webm")

SUPPORTED_LANGUAGES = {
    "en-IN": "English (India)",
    "hi-IN": "Hindi",
    "ta-IN": "Tamil",
    "te-IN": "Telugu",
    "kn-IN": "Kannada",
    "mr-IN": "Marathi",
    "gu-IN": "Gujarati",
    "bn-IN": "Bengali",
}

CLAIM_KEYWORDS = {
    ClaimType.ACCIDENT: ["accident", "crash", "collision", "hit", "vehicle", "bike", "car",
                         "truck", "motor", "road", "traffic"],
    ClaimType.MEDICAL: ["hospital", "doctor", "treatment", "surgery", "illness", "disease",
                        "fever", "pain", "medical", "clinic"],
    ClaimType.PHARMACY: ["medicine", "pharmacy", "drug", "prescription", "tablet", "injection",
                         "syrup", "medication", "pills"],
}
# Extra weight when one of these shows up among the keywords
CONTEXT_KEYWORDS = {
    ClaimType.ACCIDENT: ("vehicle", "road"),
    ClaimType.MEDICAL: ("doctor", "hospital"),
    ClaimType.PHARMACY: ("medicine", "pharmacy"),
}

HIGH_SEVERITY_WORDS = ("emergency", "urgent", "severe", "critical", "surgery", "major", "serious")
LOW_SEVERITY_WORDS = ("minor", "small", "light", "routine", "regular", "normal")
DATE_PHRASES = ("yesterday", "today", "last week", "last month", "few days ago",
                "this morning", "this evening")
URGENCY_WORDS = ("urgent", "emergency", "immediate", "asap", "quickly", "fast")

MEDICAL_TRANSCRIPTS = [
    "I went to the doctor for fever and have medical bills to claim worth ₹5000",
    "I was hospitalized for surgery and have all the medical documents ready",
    "I visited the hospital for treatment and need to claim medical expenses",
]
ACCIDENT_TRANSCRIPTS = [
    "I had an accident near the hospital yesterday and need to file a claim for vehicle damage",
    "There was a collision at the traffic signal and my bike got damaged severely",
]
DEFAULT_TRANSCRIPTS = [
    "I had an accident near the hospital yesterday and need to file a claim for vehicle damage",
    "I went to the doctor for fever and have medical bills to claim worth ₹5000",
    "I bought medicines from pharmacy and want to submit the bills for reimbursement",
    "There was a collision at the traffic signal and my bike got damaged severely",
    "I was hospitalized for surgery and have all the medical documents ready",
]


class IntakeError(click.ClickException):
    """An uploaded file was rejected before processing."""


class Transcriber(Protocol):
    def transcribe(self, audio: bytes, language: str = "en-IN") -> VoiceData: ...


def validate_audio(content: bytes, mime_type: str) -> None:
    if len(content) > MAX_AUDIO_BYTES:
        raise IntakeError("Audio file too large (max 10MB)")
    if mime_type.lower() not in AUDIO_MIME_TYPES:
        raise IntakeError(f"Unsupported audio format: {mime_type}")


def _stable_fraction(content: bytes, salt: str) -> float:
    digest = hashlib.sha256(salt.encode() + content).hexdigest()
    return int(digest[:8], 16) / 0x100000000


def extract_keywords(transcript: str) -> list[str]:
    """Claim-related keywords plus relative dates, amounts and urgency words."""
    words = transcript.lower().split()
    keywords: list[str] = []
    for type_keywords in CLAIM_KEYWORDS.values():
        for keyword in type_keywords:
            if any(keyword in word for word in words):
                keywords.append(keyword)

    text = transcript.lower()
    keywords.extend(p for p in DATE_PHRASES if p in text)
    keywords.extend(m.strip() for m in re.findall(r"₹\s*\d[\d,]*(?:\.\d+)?", transcript))
    keywords.extend(w for w in URGENCY_WORDS if w in text)

    # Preserve first-seen order
    return list(dict.fromkeys(keywords))


def detect_claim_type(keywords: list[str]) -> ClaimType:
    """Pick the claim type whose vocabulary best matches; ties go to the first listed."""
    scores = {claim_type: 0 for claim_type in CLAIM_KEYWORDS}
    for keyword in keywords:
        for claim_type, type_keywords in CLAIM_KEYWORDS.items():
            if keyword in type_keywords:
                scores[claim_type] += 1

    joined = " ".join(keywords)
    for claim_type, context in CONTEXT_KEYWORDS.items():
        if any(word in joined for word in context):
            scores[claim_type] += 2

    best = max(scores.values())
    if best == 0:
        return ClaimType.MEDICAL
    return next(t for t, s in scores.items() if s == best)


def detect_severity(transcript: str) -> str:
    text = transcript.lower()
    high = sum(1 for w in HIGH_SEVERITY_WORDS if w in text)
    low = sum(1 for w in LOW_SEVERITY_WORDS if w in text)
    if high > low:
        return "high"
    if low > high:
        return "low"
    return "medium"


class MockTranscriber:
    """Deterministic stand-in for the speech-to-text service.

    The transcript and confidence are chosen from a digest of the audio bytes,
    so the same upload always yields the same VoiceData.
    """

    def transcribe(self, audio: bytes, language: str = "en-IN") -> VoiceData:
        if language not in SUPPORTED_LANGUAGES:
            raise IntakeError(f"Unsupported language: {language}")

        hint = audio.decode("utf-8", errors="ignore")
        if "medical" in hint:
            pool = MEDICAL_TRANSCRIPTS
        elif "accident" in hint:
            pool = ACCIDENT_TRANSCRIPTS
        else:
            pool = DEFAULT_TRANSCRIPTS

        transcript = pool[int(_stable_fraction(audio, "transcript") * len(pool))]
        confidence = 0.85 + _stable_fraction(audio, "confidence") * 0.1
        return VoiceData(
            transcript=transcript,
            keywords=extract_keywords(transcript),
            confidence=round(confidence, 3),
            language=language,
        )
