import csv
import json
from datetime import datetime
from pathlib import Path

import click

import config
from data.fetch import find_dataset
from data.loader import claim_to_dict, load_claim
from intake.ocr import DOCUMENT_TYPES, MockDocumentExtractor, validate_document
from intake.voice import MockTranscriber, detect_claim_type, detect_severity, validate_audio
from profiler.dossier import build_dossier
from reports.pdf import generate_dossier_pdf
from scanner.batch import scan_all, summarize
from scanner.escalation import get_escalation_level
from scanner.payout import PAYOUT_POLICIES, get_payout_policy, payout_recommendation
from scanner.rules import SCORING_POLICIES, get_scoring_policy
from scanner.simulation import ClaimSimulator, apply_simulation, review_recommendation

AUDIO_MIME_BY_SUFFIX = {
    ".wav": "audio/wav", ".mp3": "audio/mpeg", ".flac": "audio/flac",
    ".ogg": "audio/ogg", ".webm": "audio/webm",
}
DOCUMENT_MIME_BY_SUFFIX = {
    ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png", ".pdf": "application/pdf",
}

scoring_option = click.option(
    "--scoring-policy", default=config.SCORING_POLICY, show_default=True,
    type=click.Choice(list(SCORING_POLICIES)), help="Fraud scoring policy",
)
threshold_option = click.option(
    "--review-threshold", default=config.FRAUD_REVIEW_THRESHOLD, show_default=True,
    type=click.FloatRange(0.0, 1.0),
    help="Fraud score (0.0-1.0 scale) above which a claim goes to fraud review",
)


@click.group()
def cli():
    """Claim Scoring - Evaluate insurance claims for fraud risk, gaps and payout."""
    pass


@cli.command()
@click.option("--data-path", default=None, type=click.Path(exists=True, path_type=Path),
              help="Claims file (auto-detected if not specified)")
@click.option("--threshold", default=0.0, type=float,
              help="Minimum fraud score (points) to include")
@click.option("--top", default=50, type=int, help="Number of top results to display")
@scoring_option
@threshold_option
def scan(data_path: Path | None, threshold: float, top: int,
         scoring_policy: str, review_threshold: float):
    """Evaluate every claim in a dataset."""
    filepath = data_path or find_dataset()
    simulator = ClaimSimulator(get_scoring_policy(scoring_policy))
    results = scan_all(filepath, threshold=threshold, simulator=simulator,
                       fraud_review_threshold=review_threshold)

    config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    output_path = config.OUTPUT_DIR / "scan_results.csv"

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["rank", "claim_id", "fraud_score", "status", "approved_amount", "rules"])
        for i, result in enumerate(results, 1):
            writer.writerow([
                i, result.claim.claim_id, f"{result.simulation.fraud_score:g}",
                result.status.value, result.simulation.approved_amount,
                ", ".join(result.simulation.rules_triggered),
            ])

    click.echo(f"\nFull results saved to {output_path}")
    click.echo(f"\nTop {min(top, len(results))} riskiest claims:")
    click.echo("-" * 80)

    for i, result in enumerate(results[:top], 1):
        sim = result.simulation
        click.echo(f"  {i:3d}. Claim {result.claim.claim_id or '?'} | Score: {sim.fraud_score:g} | "
                   f"{result.status.value} | Rules: {', '.join(sim.rules_triggered) or 'none'}")

    if results:
        click.echo("\nBy status:")
        for row in summarize(results).iter_rows(named=True):
            click.echo(f"  {row['status']:<14} {row['claims']:>5} claims | "
                       f"mean score {row['mean_fraud_score']:.1f} | "
                       f"approved {row['total_approved']:,.2f}")


@cli.command()
@click.argument("claim_file", type=click.Path(exists=True, path_type=Path))
@click.option("--update", is_flag=True,
              help="Write the simulation and new status back into the claim file")
@scoring_option
@threshold_option
def evaluate(claim_file: Path, update: bool, scoring_policy: str, review_threshold: float):
    """Run the fraud simulation on a single claim and print the result as JSON."""
    claim = load_claim(claim_file)
    simulation = ClaimSimulator(get_scoring_policy(scoring_policy)).simulate(claim)
    status = apply_simulation(claim, simulation, datetime.now(), review_threshold)

    envelope = {
        "status": "success",
        "data": {
            "claimId": claim.claim_id,
            "simulation": simulation.to_dict(),
            "newStatus": status.value,
            "recommendation": review_recommendation(simulation, review_threshold),
        },
    }
    click.echo(json.dumps(envelope, indent=2, default=str))

    if update:
        claim_file.write_text(json.dumps(claim_to_dict(claim), indent=2, default=str))
        click.echo(f"Updated {claim_file}", err=True)


@cli.command()
@click.argument("claim_file", type=click.Path(exists=True, path_type=Path))
@click.option("--policy", default=config.PAYOUT_POLICY, show_default=True,
              type=click.Choice(list(PAYOUT_POLICIES)), help="Payout policy")
def payout(claim_file: Path, policy: str):
    """Calculate the recommended payout for a claim."""
    claim = load_claim(claim_file)
    result = get_payout_policy(policy).calculate(claim)

    click.echo(f"Policy: {result.policy}")
    click.echo(f"Base amount: {result.base_amount:,.2f}")
    for adj in result.adjustments:
        click.echo(f"  {adj.amount:+,.2f}  {adj.type}: {adj.reason}")
    click.echo(f"Final amount: {result.final_amount:,.2f}")
    if result.coverage is not None:
        click.echo(f"Coverage: {result.coverage}%")
    if result.confidence is not None:
        click.echo(f"Confidence: {result.confidence:.0%}")
    for gap in result.gaps:
        click.echo(f"  gap: {gap}")
    if result.policy == "coverage-v1":
        click.echo(f"Recommendation: {payout_recommendation(result)}")


@cli.command()
@click.argument("claim_file", type=click.Path(exists=True, path_type=Path))
@click.option("--payout-policy", default=config.PAYOUT_POLICY, show_default=True,
              type=click.Choice(list(PAYOUT_POLICIES)), help="Payout policy")
@click.option("--output-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Directory for the PDF (defaults to output/dossiers)")
@scoring_option
@threshold_option
def profile(claim_file: Path, payout_policy: str, output_dir: Path | None,
            scoring_policy: str, review_threshold: float):
    """Build a full evaluation dossier for a claim and render it as PDF."""
    claim = load_claim(claim_file)
    dossier = build_dossier(
        claim,
        scoring_policy=get_scoring_policy(scoring_policy),
        payout_policy=get_payout_policy(payout_policy),
        fraud_review_threshold=review_threshold,
    )

    pdf_path = generate_dossier_pdf(dossier, output_dir=output_dir)
    click.echo(f"\nDossier generated: {pdf_path}")

    click.echo(f"\n{'=' * 60}")
    click.echo(f"Claim: {claim.claim_id or '(unsaved)'}")
    click.echo(f"Fraud Score: {dossier.fraud_analysis.fraud_score:g} "
               f"({dossier.fraud_analysis.risk_level.value})")
    click.echo(f"Completeness: {dossier.gap_analysis.completeness_score:.0%}")
    click.echo(f"Payout: {dossier.payout.final_amount:,.2f}")
    click.echo(f"Status: {dossier.status.value}")

    if dossier.fraud_analysis.risk_factors:
        click.echo(f"\nRisk Factors ({len(dossier.fraud_analysis.risk_factors)}):")
        for factor in dossier.fraud_analysis.risk_factors:
            click.echo(f"  - {factor}")

    if dossier.escalation.should_escalate:
        level = get_escalation_level(dossier.escalation.level)
        click.echo(f"\nEscalate to level {level.level} ({level.name}, respond within "
                   f"{level.max_response_hours}h): {dossier.escalation.reason}")

    click.echo(f"{'=' * 60}")


@cli.command()
@click.argument("audio_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--language", default="en-IN", show_default=True, help="Spoken language code")
def transcribe(audio_file: Path, language: str):
    """Transcribe a voice statement (mock speech service)."""
    content = audio_file.read_bytes()
    validate_audio(content, AUDIO_MIME_BY_SUFFIX.get(audio_file.suffix.lower(), "application/octet-stream"))
    voice = MockTranscriber().transcribe(content, language)
    click.echo(json.dumps({
        "transcript": voice.transcript,
        "keywords": voice.keywords,
        "confidence": voice.confidence,
        "language": voice.language,
        "claimType": detect_claim_type(voice.keywords).value,
        "severity": detect_severity(voice.transcript),
    }, indent=2, ensure_ascii=False))


@cli.command()
@click.argument("document_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--type", "document_type", default="other", show_default=True,
              type=click.Choice(DOCUMENT_TYPES), help="Kind of document")
def extract(document_file: Path, document_type: str):
    """Extract text and fields from a document (mock OCR service)."""
    content = document_file.read_bytes()
    validate_document(content, DOCUMENT_MIME_BY_SUFFIX.get(document_file.suffix.lower(), "application/octet-stream"))
    document = MockDocumentExtractor().extract_text(content, document_type)
    click.echo(json.dumps({
        "type": document.type,
        "confidence": document.confidence,
        "ocrMethod": document.ocr_method,
        "extractedData": document.extracted_data,
    }, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
