import math
from typing import Protocol

import click

from data.models import (
    Adjustment,
    Claim,
    ClaimType,
    FraudAnalysis,
    PayoutCalculation,
    RiskLevel,
)
from scanner.rules import PointsScoringPolicy

# Deduction policy
HIGH_RISK_DEDUCTION = 0.5
MEDIUM_RISK_DEDUCTION = 0.2
DOCUMENTATION_BONUS_MIN_DOCS = 5
DOCUMENTATION_BONUS = 0.05
DOCUMENTATION_PENALTY_BELOW_DOCS = 2
DOCUMENTATION_PENALTY = 0.1
INVESTIGATION_FEE_RATE = 0.05
INVESTIGATION_FEE_CAP = 1_000

# Coverage policy (amounts in INR)
MEDICAL_COVERAGE = 0.9
MEDICAL_COVERAGE_CAP = 100_000
PHARMACY_COVERAGE = 0.8
PHARMACY_COVERAGE_CAP = 25_000
DEFAULT_COVERAGE = 0.8
ACCIDENT_SEVERITY_MULTIPLIERS = {"low": 0.7, "medium": 0.8, "high": 0.95}
GAP_DEDUCTION_STEP = 0.1  # per missing item
GAP_DEDUCTION_CAP = 0.3


class PayoutPolicy(Protocol):
    name: str
    version: int

    def calculate(self, claim: Claim,
                  fraud_analysis: FraudAnalysis | None = None) -> PayoutCalculation: ...


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class DeductionPayoutPolicy:
    """Start from the estimated amount and apply risk, documentation and type adjustments."""

    name = "deduction-v1"
    version = 1

    def __init__(self, scoring_policy=None):
        self.scoring_policy = scoring_policy or PointsScoringPolicy()

    def calculate(self, claim: Claim,
                  fraud_analysis: FraudAnalysis | None = None) -> PayoutCalculation:
        if fraud_analysis is None:
            fraud_analysis = self.scoring_policy.score(claim)

        base = claim.estimated_amount or 0
        adjustments: list[Adjustment] = []

        if fraud_analysis.risk_level == RiskLevel.HIGH:
            adjustments.append(Adjustment(
                type="fraud_risk",
                amount=-base * HIGH_RISK_DEDUCTION,
                reason="High fraud risk detected - 50% reduction applied",
            ))
        elif fraud_analysis.risk_level == RiskLevel.MEDIUM:
            adjustments.append(Adjustment(
                type="fraud_risk",
                amount=-base * MEDIUM_RISK_DEDUCTION,
                reason="Medium fraud risk detected - 20% reduction applied",
            ))

        doc_count = len(claim.documents or [])
        if doc_count >= DOCUMENTATION_BONUS_MIN_DOCS:
            adjustments.append(Adjustment(
                type="documentation_bonus",
                amount=base * DOCUMENTATION_BONUS,
                reason="Complete documentation provided - 5% bonus",
            ))
        elif doc_count < DOCUMENTATION_PENALTY_BELOW_DOCS:
            adjustments.append(Adjustment(
                type="documentation_penalty",
                amount=-base * DOCUMENTATION_PENALTY,
                reason="Insufficient documentation - 10% penalty",
            ))

        if claim.type == ClaimType.MEDICAL:
            adjustments.append(Adjustment(
                type="medical_standard",
                amount=0,
                reason="Standard medical claim processing",
            ))
        elif claim.type == ClaimType.ACCIDENT:
            adjustments.append(Adjustment(
                type="investigation_fee",
                amount=-min(INVESTIGATION_FEE_CAP, base * INVESTIGATION_FEE_RATE),
                reason="Accident investigation fee",
            ))

        final_amount = max(0, base + sum(a.amount for a in adjustments))
        return PayoutCalculation(
            policy=self.name,
            base_amount=base,
            adjustments=adjustments,
            final_amount=final_amount,
            confidence=min(0.95, fraud_analysis.confidence * 0.8 + 0.15),
        )


def medical_coverage(amount: float) -> float:
    return min(amount * MEDICAL_COVERAGE, MEDICAL_COVERAGE_CAP)


def accident_coverage(amount: float, severity: str | None) -> float:
    multiplier = ACCIDENT_SEVERITY_MULTIPLIERS.get(severity or "medium",
                                                   ACCIDENT_SEVERITY_MULTIPLIERS["medium"])
    return amount * multiplier


def pharmacy_coverage(amount: float) -> float:
    return min(amount * PHARMACY_COVERAGE, PHARMACY_COVERAGE_CAP)


class CoveragePayoutPolicy:
    """Percentage-of-claim coverage by claim type, less a flat deduction per missing item.

    Ignores fraud risk entirely; kept separate from DeductionPayoutPolicy so
    neither policy's thresholds leak into the other.
    """

    name = "coverage-v1"
    version = 1

    def calculate(self, claim: Claim,
                  fraud_analysis: FraudAnalysis | None = None) -> PayoutCalculation:
        amount = claim.amount or 0
        details = claim.claim_details

        if claim.type == ClaimType.MEDICAL:
            covered = medical_coverage(amount)
            reason = "90% medical coverage up to 100,000"
        elif claim.type == ClaimType.ACCIDENT:
            severity = details.severity if details else None
            covered = accident_coverage(amount, severity)
            reason = f"Accident coverage for {severity or 'medium'} severity"
        elif claim.type == ClaimType.PHARMACY:
            covered = pharmacy_coverage(amount)
            reason = "80% pharmacy coverage up to 25,000"
        else:
            covered = amount * DEFAULT_COVERAGE
            reason = "Default 80% coverage"

        adjustments = [Adjustment(type="coverage", amount=covered - amount, reason=reason)]

        gaps = []
        if not (details and details.description):
            gaps.append("Missing incident description")
        if not claim.documents:
            gaps.append("No supporting documents provided")
        if not (details and details.location):
            gaps.append("Incident location not specified")

        if gaps:
            percentage = min(len(gaps) * GAP_DEDUCTION_STEP, GAP_DEDUCTION_CAP)
            deduction = covered * percentage
            covered -= deduction
            adjustments.append(Adjustment(
                type="missing_information",
                amount=-deduction,
                reason=f"Missing information - {percentage * 100:.0f}% deduction",
            ))

        coverage = _round_half_up(covered / amount * 100) if amount else 0
        return PayoutCalculation(
            policy=self.name,
            base_amount=amount,
            adjustments=adjustments,
            final_amount=max(0, _round_half_up(covered)),
            gaps=gaps,
            coverage=coverage,
        )


PAYOUT_POLICIES = {
    DeductionPayoutPolicy.name: DeductionPayoutPolicy,
    CoveragePayoutPolicy.name: CoveragePayoutPolicy,
}


def get_payout_policy(name: str) -> PayoutPolicy:
    try:
        return PAYOUT_POLICIES[name]()
    except KeyError:
        raise click.BadParameter(
            f"Unknown payout policy {name!r} (choose from {', '.join(PAYOUT_POLICIES)})"
        ) from None


def payout_recommendation(payout: PayoutCalculation) -> str:
    return "ready_for_approval" if not payout.gaps else "requires_additional_information"
