import click

from data.models import Claim, ClaimDossier
from scanner.escalation import should_escalate
from scanner.gaps import analyze_gaps
from scanner.payout import DeductionPayoutPolicy, PayoutPolicy
from scanner.rules import PointsScoringPolicy, ScoringPolicy
from scanner.simulation import ClaimSimulator, status_for


def build_dossier(
    claim: Claim,
    scoring_policy: ScoringPolicy | None = None,
    payout_policy: PayoutPolicy | None = None,
    fraud_review_threshold: float | None = None,
) -> ClaimDossier:
    """Run every analysis over one claim and collect the results.

    Fraud scoring and gap analysis are independent; the payout consumes the
    fraud analysis. The claim itself is not modified.
    """
    scoring_policy = scoring_policy or PointsScoringPolicy()
    payout_policy = payout_policy or DeductionPayoutPolicy(scoring_policy)

    click.echo(f"Building dossier for claim {claim.claim_id or '(unsaved)'}...")

    fraud_analysis = scoring_policy.score(claim)
    gap_analysis = analyze_gaps(claim)
    payout = payout_policy.calculate(claim, fraud_analysis)
    simulation = ClaimSimulator(scoring_policy).simulate(claim)

    return ClaimDossier(
        claim=claim,
        fraud_analysis=fraud_analysis,
        gap_analysis=gap_analysis,
        payout=payout,
        simulation=simulation,
        status=status_for(simulation, fraud_review_threshold),
        escalation=should_escalate(claim, fraud_analysis.fraud_score),
    )
