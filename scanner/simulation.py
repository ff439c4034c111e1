import math
from datetime import datetime

import click

import config
from data.loader import claim_from_dict
from data.models import (
    ApprovalDecision,
    Claim,
    ClaimStatus,
    ProcessingStep,
    SimulationResult,
)
from scanner.rules import (
    HIGH_AMOUNT_THRESHOLD,
    LOW_VOICE_CONFIDENCE,
    PointsScoringPolicy,
    ScoringPolicy,
    approval_policy,
)

SIMULATION_MIN_DESCRIPTION = 20
PARTIAL_APPROVAL_RATIO = 0.8


class ClaimSimulator:
    """Decide whether a claim is auto-approved, partially approved or rejected.

    The scoring policy is injected; the simulator itself holds no state between
    calls, so one instance can serve any number of claims.
    """

    def __init__(self, scoring_policy: ScoringPolicy | None = None):
        self.scoring_policy = scoring_policy or PointsScoringPolicy()

    def simulate(self, claim: Claim) -> SimulationResult:
        try:
            return self._simulate(claim)
        except Exception as e:
            click.echo(f"Claim simulation failed for {claim.claim_id or 'claim'}: {e}", err=True)
            return fallback_result()

    def _simulate(self, claim: Claim) -> SimulationResult:
        analysis = self.scoring_policy.score(claim)
        fraud_score = analysis.fraud_score
        base_amount = claim.base_amount

        gaps: list[str] = []
        rules: list[str] = []
        recommendations: list[str] = []

        decision = approval_policy(fraud_score)
        if decision == ApprovalDecision.AUTO_APPROVE:
            approved, auto_approved = True, True
            approved_amount = base_amount
            recommendations.append("Low risk claim - auto-approved")
        elif decision == ApprovalDecision.PARTIAL_APPROVE:
            approved, auto_approved = True, False
            approved_amount = math.floor(base_amount * PARTIAL_APPROVAL_RATIO)
            recommendations.append("Medium risk - manual review recommended")
            rules.append("MEDIUM_RISK_REVIEW")
        else:
            approved, auto_approved = False, False
            approved_amount = 0
            recommendations.append("High risk claim - requires investigation")
            rules.append("HIGH_RISK_REJECTION")

        if not claim.documents:
            gaps.append("Missing supporting documents")
            rules.append("MISSING_DOCUMENTS")

        if len(claim.description or "") < SIMULATION_MIN_DESCRIPTION:
            gaps.append("Insufficient claim description")
            rules.append("INSUFFICIENT_DESCRIPTION")

        if not (claim.claim_details and claim.claim_details.incident_date):
            gaps.append("Missing incident date")
            rules.append("MISSING_INCIDENT_DATE")

        if claim.voice_data is not None:
            confidence = claim.voice_data.confidence
            if confidence is not None and confidence < LOW_VOICE_CONFIDENCE:
                gaps.append("Low voice recognition confidence")
                rules.append("LOW_VOICE_CONFIDENCE")
        else:
            gaps.append("No voice data provided")

        if base_amount > HIGH_AMOUNT_THRESHOLD:
            rules.append("HIGH_AMOUNT_REVIEW")
            recommendations.append("High amount claim requires senior review")

        if gaps:
            recommendations.append(f"Address {len(gaps)} documentation gap(s)")
        if analysis.risk_factors:
            recommendations.append(f"Review {len(analysis.risk_factors)} risk factor(s)")

        return SimulationResult(
            approved=approved,
            approved_amount=approved_amount,
            gaps=gaps,
            rules_triggered=rules,
            fraud_score=fraud_score,
            auto_approved=auto_approved,
            recommendations=recommendations,
        )


def fallback_result() -> SimulationResult:
    """Fail-closed result: never approve when the evaluation itself broke."""
    return SimulationResult(
        approved=False,
        approved_amount=0,
        gaps=["Simulation error occurred"],
        rules_triggered=["SYSTEM_ERROR"],
        fraud_score=100,
        auto_approved=False,
        recommendations=["Manual review required due to system error"],
    )


def simulate_claim(claim: Claim, simulator: ClaimSimulator | None = None) -> SimulationResult:
    return (simulator or ClaimSimulator()).simulate(claim)


def evaluate_claim(snapshot: Claim | dict, simulator: ClaimSimulator | None = None) -> SimulationResult:
    """Evaluate a claim snapshot, given either as a Claim or as its JSON-style dict.

    Always returns a result: a snapshot that cannot be converted gets the
    fail-closed fallback, the same as a failure during scoring.
    """
    if isinstance(snapshot, dict):
        try:
            snapshot = claim_from_dict(snapshot)
        except Exception as e:
            claim_id = snapshot.get("claimId") or snapshot.get("_id") or "claim"
            click.echo(f"Could not read claim snapshot {claim_id}: {e}", err=True)
            return fallback_result()
    return simulate_claim(snapshot, simulator)


def status_for(result: SimulationResult,
               fraud_review_threshold: float | None = None) -> ClaimStatus:
    """Map a simulation result to the claim's next status.

    fraud_review_threshold is on the unit scale (0.0-1.0); the result's
    points score is converted before comparing.
    """
    if fraud_review_threshold is None:
        fraud_review_threshold = config.FRAUD_REVIEW_THRESHOLD
    if result.auto_approved:
        return ClaimStatus.APPROVED
    if result.fraud_score_unit > fraud_review_threshold:
        return ClaimStatus.FRAUD_REVIEW
    return ClaimStatus.MANUAL_REVIEW


def review_recommendation(result: SimulationResult,
                          fraud_review_threshold: float | None = None) -> str:
    status = status_for(result, fraud_review_threshold)
    if status == ClaimStatus.APPROVED:
        return "auto_approve"
    if status == ClaimStatus.FRAUD_REVIEW:
        return "manual_review_high_risk"
    return "manual_review_standard"


def apply_simulation(claim: Claim, result: SimulationResult,
                     completed_at: datetime | None = None,
                     fraud_review_threshold: float | None = None) -> ClaimStatus:
    """Store the result on the claim, move its status and record the processing step."""
    claim.simulation = result
    claim.status = status_for(result, fraud_review_threshold)
    claim.processing_steps.append(ProcessingStep(
        step="fraud_evaluation",
        completed_at=completed_at or datetime.now(),
        success=True,
        details={
            "fraudScore": result.fraud_score,
            "rulesTriggered": list(result.rules_triggered),
            "autoApproved": result.auto_approved,
        },
    ))
    return claim.status
