from dataclasses import dataclass
from pathlib import Path

import click
import polars as pl

from data.loader import load_claims
from data.models import Claim, ClaimStatus, SimulationResult
from scanner.simulation import ClaimSimulator, status_for


@dataclass
class ClaimScanResult:
    """One evaluated claim from a batch scan."""
    claim: Claim
    simulation: SimulationResult
    status: ClaimStatus


def scan_all(
    filepath: Path,
    threshold: float = 0.0,
    simulator: ClaimSimulator | None = None,
    fraud_review_threshold: float | None = None,
) -> list[ClaimScanResult]:
    """Evaluate every claim in the file and return those scoring at or above threshold.

    threshold is on the points scale. Results are sorted by fraud score, highest first.
    """
    simulator = simulator or ClaimSimulator()

    click.echo(f"Loading claims from {filepath}...")
    claims = load_claims(filepath)
    click.echo(f"Evaluating {len(claims):,} claims with {simulator.scoring_policy.name}...")

    results = []
    for claim in claims:
        simulation = simulator.simulate(claim)
        if simulation.fraud_score < threshold:
            continue
        results.append(ClaimScanResult(
            claim=claim,
            simulation=simulation,
            status=status_for(simulation, fraud_review_threshold),
        ))

    results.sort(key=lambda r: r.simulation.fraud_score, reverse=True)
    click.echo(f"Found {len(results)} claims at or above fraud score {threshold:g}")
    return results


def results_frame(results: list[ClaimScanResult]) -> pl.DataFrame:
    """One row per evaluated claim."""
    return pl.DataFrame(
        {
            "claim_id": [r.claim.claim_id for r in results],
            "type": [r.claim.type.value if r.claim.type else None for r in results],
            "status": [r.status.value for r in results],
            "fraud_score": [float(r.simulation.fraud_score) for r in results],
            "approved": [r.simulation.approved for r in results],
            "auto_approved": [r.simulation.auto_approved for r in results],
            "approved_amount": [float(r.simulation.approved_amount) for r in results],
            "num_gaps": [len(r.simulation.gaps) for r in results],
            "rules_triggered": [", ".join(r.simulation.rules_triggered) for r in results],
        },
        schema={
            "claim_id": pl.Utf8,
            "type": pl.Utf8,
            "status": pl.Utf8,
            "fraud_score": pl.Float64,
            "approved": pl.Boolean,
            "auto_approved": pl.Boolean,
            "approved_amount": pl.Float64,
            "num_gaps": pl.Int64,
            "rules_triggered": pl.Utf8,
        },
    )


def summarize(results: list[ClaimScanResult]) -> pl.DataFrame:
    """Per-status claim counts, mean fraud score and total approved amount."""
    return (
        results_frame(results)
        .group_by("status")
        .agg([
            pl.len().alias("claims"),
            pl.col("fraud_score").mean().alias("mean_fraud_score"),
            pl.col("approved_amount").sum().alias("total_approved"),
        ])
        .sort(["claims", "status"], descending=[True, False])
    )
