import click

from data.models import Claim, ClaimType, EscalationDecision, EscalationLevel

ESCALATION_LEVELS = [
    EscalationLevel(1, "Automated Processing", "Standard automated claim processing", 24, False),
    EscalationLevel(2, "Tier 1 Agent Review", "Basic agent review and verification", 4, True),
    EscalationLevel(3, "Senior Agent Investigation", "Detailed investigation by senior agent", 2, True),
    EscalationLevel(4, "Specialist Review", "Expert specialist review for complex cases", 1, True),
]

HIGH_VALUE_AMOUNT = 25_000
COMPLEX_ACCIDENT_AMOUNT = 10_000
SIGNIFICANT_AMOUNT = 5_000
HIGH_FRAUD_SCORE = 50
MEDIUM_FRAUD_SCORE = 25
MIN_DOCUMENTS = 2
LOW_VOICE_CONFIDENCE = 0.6


def get_escalation_level(level: int) -> EscalationLevel:
    for entry in ESCALATION_LEVELS:
        if entry.level == level:
            return entry
    raise click.BadParameter(f"Invalid escalation level: {level}")


def should_escalate(claim: Claim, fraud_score: float | None = None) -> EscalationDecision:
    """Decide whether a claim needs a human. The first matching rule wins.

    fraud_score is on the points scale.
    """
    try:
        return _first_matching_rule(claim, fraud_score)
    except Exception as e:
        click.echo(f"Escalation check failed for {claim.claim_id or 'claim'}: {e}", err=True)
        return EscalationDecision(True, "Error in automated processing", 2)


def _first_matching_rule(claim: Claim, fraud_score: float | None) -> EscalationDecision:
    amount = claim.estimated_amount or 0

    if amount > HIGH_VALUE_AMOUNT:
        return EscalationDecision(True, "High-value claim requires agent review", 2)

    if fraud_score and fraud_score >= HIGH_FRAUD_SCORE:
        return EscalationDecision(True, "High fraud risk detected", 3)

    if fraud_score and fraud_score >= MEDIUM_FRAUD_SCORE and len(claim.documents or []) < MIN_DOCUMENTS:
        return EscalationDecision(True, "Medium fraud risk with insufficient documentation", 2)

    if claim.type == ClaimType.ACCIDENT and amount > COMPLEX_ACCIDENT_AMOUNT:
        return EscalationDecision(True, "Complex accident claim requires investigation", 2)

    if len(claim.escalation_history or []) > 1:
        return EscalationDecision(True, "Repeated escalations indicate complex case", 3)

    confidence = claim.voice_data.confidence if claim.voice_data else None
    if confidence is not None and confidence < LOW_VOICE_CONFIDENCE and amount > SIGNIFICANT_AMOUNT:
        return EscalationDecision(True, "Low voice confidence on significant claim", 2)

    return EscalationDecision(False, "Claim meets automated processing criteria", 1)
