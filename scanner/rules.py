from typing import Protocol

import click

from data.models import ApprovalDecision, Claim, FraudAnalysis, RiskLevel

# Points policy thresholds
HIGH_AMOUNT_THRESHOLD = 50_000
HIGH_AMOUNT_POINTS = 30
SCORING_MIN_DOCUMENTS = 2  # fewer than this is "insufficient documentation"
SPARSE_DOCUMENTS_POINTS = 20
LOW_VOICE_CONFIDENCE = 0.7
LOW_VOICE_CONFIDENCE_POINTS = 15
FRAUD_KEYWORDS = ("total loss", "stolen", "vandalism", "hit and run")
FRAUD_KEYWORD_POINTS = 10  # per matched keyword
BUSINESS_HOURS_START = 6
BUSINESS_HOURS_END = 22
OFF_HOURS_POINTS = 5

# Risk-level policy: used for payout deductions and reporting
HIGH_RISK_SCORE = 50
MEDIUM_RISK_SCORE = 25

# Approval policy: used by the claim simulation
AUTO_APPROVE_BELOW = 30
PARTIAL_APPROVE_BELOW = 60

# Quick-check policy thresholds
QUICK_VERY_HIGH_AMOUNT = 100_000
QUICK_HIGH_AMOUNT = 25_000
QUICK_MIN_DESCRIPTION = 10
QUICK_LOW_VOICE_CONFIDENCE = 0.6
QUICK_MEDIUM_RISK_SCORE = 25
QUICK_HIGH_RISK_SCORE = 50


class ScoringPolicy(Protocol):
    name: str
    version: int

    def score(self, claim: Claim) -> FraudAnalysis: ...


def risk_level_policy(score: float) -> RiskLevel:
    """Bucket a points score into a fraud risk level."""
    if score >= HIGH_RISK_SCORE:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def approval_policy(score: float) -> ApprovalDecision:
    """Decide how a claim with the given points score is approved."""
    if score < AUTO_APPROVE_BELOW:
        return ApprovalDecision.AUTO_APPROVE
    if score < PARTIAL_APPROVE_BELOW:
        return ApprovalDecision.PARTIAL_APPROVE
    return ApprovalDecision.REJECT


def _transcript(claim: Claim) -> str:
    if claim.voice_data is None:
        return ""
    return (claim.voice_data.transcript or "").lower()


def _voice_confidence(claim: Claim) -> float | None:
    if claim.voice_data is None:
        return None
    return claim.voice_data.confidence


class PointsScoringPolicy:
    """Additive rule scoring: each matching rule adds a fixed number of points."""

    name = "points-v1"
    version = 1

    def score(self, claim: Claim) -> FraudAnalysis:
        fraud_score = 0
        risk_factors: list[str] = []
        recommendations: list[str] = []

        if claim.estimated_amount and claim.estimated_amount > HIGH_AMOUNT_THRESHOLD:
            fraud_score += HIGH_AMOUNT_POINTS
            risk_factors.append("High claim amount")
            recommendations.append("Require additional documentation for high-value claims")

        doc_count = len(claim.documents or [])
        if doc_count < SCORING_MIN_DOCUMENTS:
            fraud_score += SPARSE_DOCUMENTS_POINTS
            risk_factors.append("Insufficient documentation")
            recommendations.append("Request additional supporting documents")

        confidence = _voice_confidence(claim)
        if confidence is not None and confidence < LOW_VOICE_CONFIDENCE:
            fraud_score += LOW_VOICE_CONFIDENCE_POINTS
            risk_factors.append("Low voice recognition confidence")
            recommendations.append("Conduct follow-up interview to clarify details")

        transcript = _transcript(claim)
        matches = [kw for kw in FRAUD_KEYWORDS if kw in transcript]
        if matches:
            fraud_score += len(matches) * FRAUD_KEYWORD_POINTS
            risk_factors.append(f"Fraud-related keywords: {', '.join(matches)}")
            recommendations.append("Investigate claim circumstances thoroughly")

        if claim.created_at is not None:
            hour = claim.created_at.hour
            if hour < BUSINESS_HOURS_START or hour > BUSINESS_HOURS_END:
                fraud_score += OFF_HOURS_POINTS
                risk_factors.append("Unusual submission time")
                recommendations.append("Verify claim details during business hours")

        data_points = sum([
            bool(claim.estimated_amount),
            doc_count > 0,
            bool(transcript),
            bool(claim.description),
        ])

        return FraudAnalysis(
            fraud_score=fraud_score,
            risk_level=risk_level_policy(fraud_score),
            risk_factors=risk_factors,
            recommendations=recommendations,
            confidence=min(0.9, data_points * 0.2 + 0.1),
            policy=self.name,
        )


class QuickCheckPolicy:
    """Lightweight real-time check over amount, description, documents and voice quality.

    Scores on the same points scale as PointsScoringPolicy but with its own
    thresholds and risk buckets; the two are not interchangeable.
    """

    name = "quick-check-v1"
    version = 1

    def score(self, claim: Claim) -> FraudAnalysis:
        fraud_score = 0
        flags: list[str] = []
        amount = claim.base_amount

        if amount > QUICK_VERY_HIGH_AMOUNT:
            fraud_score += 40
            flags.append("VERY_HIGH_AMOUNT")
        elif amount > QUICK_HIGH_AMOUNT:
            fraud_score += 20
            flags.append("HIGH_AMOUNT")

        if len(claim.description or "") < QUICK_MIN_DESCRIPTION:
            fraud_score += 15
            flags.append("POOR_DESCRIPTION")

        if not claim.documents:
            fraud_score += 25
            flags.append("NO_DOCUMENTS")

        confidence = _voice_confidence(claim)
        if confidence is not None and confidence < QUICK_LOW_VOICE_CONFIDENCE:
            fraud_score += 10
            flags.append("LOW_VOICE_QUALITY")

        if fraud_score < QUICK_MEDIUM_RISK_SCORE:
            risk_level = RiskLevel.LOW
        elif fraud_score < QUICK_HIGH_RISK_SCORE:
            risk_level = RiskLevel.MEDIUM
        else:
            risk_level = RiskLevel.HIGH

        return FraudAnalysis(
            fraud_score=fraud_score,
            risk_level=risk_level,
            risk_factors=flags,
            policy=self.name,
        )


SCORING_POLICIES = {
    PointsScoringPolicy.name: PointsScoringPolicy,
    QuickCheckPolicy.name: QuickCheckPolicy,
}


def get_scoring_policy(name: str) -> ScoringPolicy:
    try:
        return SCORING_POLICIES[name]()
    except KeyError:
        raise click.BadParameter(
            f"Unknown scoring policy {name!r} (choose from {', '.join(SCORING_POLICIES)})"
        ) from None
