from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

import config
from data.models import ClaimDossier, RiskLevel
from scanner.escalation import get_escalation_level

SEVERITY_COLORS = {
    RiskLevel.HIGH: colors.Color(0.9, 0.2, 0.2),
    RiskLevel.MEDIUM: colors.Color(0.9, 0.6, 0.1),
    RiskLevel.LOW: colors.Color(0.2, 0.6, 0.3),
}

KEY_VALUE_STYLE = TableStyle([
    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 10),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ("TOPPADDING", (0, 0), (-1, -1), 4),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
])

HEADER_ROW_STYLE = TableStyle([
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.9, 0.9, 0.95)),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ("TOPPADDING", (0, 0), (-1, -1), 4),
])


def _money(value: float) -> str:
    return f"Rs. {value:,.2f}"


def generate_dossier_pdf(dossier: ClaimDossier, output_dir: Path | None = None) -> Path:
    """Render a claim dossier as a PDF and return its path."""
    if output_dir is None:
        output_dir = config.OUTPUT_DIR / "dossiers"
    output_dir.mkdir(parents=True, exist_ok=True)

    claim = dossier.claim
    claim_label = claim.claim_id or "unsaved"
    filename = f"claim_{claim_label}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.pdf"
    output_path = output_dir / filename

    doc = SimpleDocTemplate(str(output_path), pagesize=A4,
                            leftMargin=0.75 * inch, rightMargin=0.75 * inch,
                            topMargin=0.75 * inch, bottomMargin=0.75 * inch)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("CustomTitle", parent=styles["Title"], fontSize=18, spaceAfter=12)
    heading_style = ParagraphStyle("CustomHeading", parent=styles["Heading2"], fontSize=14,
                                   spaceBefore=16, spaceAfter=8,
                                   textColor=colors.Color(0.2, 0.2, 0.4))
    body_style = styles["BodyText"]
    small_style = ParagraphStyle("Small", parent=body_style, fontSize=8, textColor=colors.grey)

    elements = []

    # --- Title ---
    elements.append(Paragraph("Claim Evaluation Dossier", title_style))
    elements.append(Paragraph(f"Generated: {datetime.now().strftime('%B %d, %Y %I:%M %p')}", small_style))
    elements.append(Spacer(1, 12))

    # --- Claim Info ---
    elements.append(Paragraph("Claim Information", heading_style))
    details = claim.claim_details
    info_data = [
        ["Claim ID", claim.claim_id or "N/A"],
        ["Type", claim.type.value.title() if claim.type else "N/A"],
        ["Amount", _money(claim.amount or 0)],
        ["Estimated Amount",
         _money(claim.estimated_amount) if claim.estimated_amount is not None else "N/A"],
        ["Documents", str(len(claim.documents))],
        ["Incident Date",
         str(details.incident_date) if details and details.incident_date else "N/A"],
        ["Status", dossier.status.value],
    ]
    info_table = Table(info_data, colWidths=[1.8 * inch, 4.7 * inch])
    info_table.setStyle(KEY_VALUE_STYLE)
    elements.append(info_table)
    elements.append(Spacer(1, 12))

    # --- Fraud Score ---
    fraud = dossier.fraud_analysis
    elements.append(Paragraph(
        f"Fraud Score: <b>{fraud.fraud_score:g}</b> points "
        f"({fraud.risk_level.value.upper()} risk, policy {fraud.policy})",
        ParagraphStyle("Score", parent=body_style, fontSize=12,
                       textColor=SEVERITY_COLORS[fraud.risk_level])
    ))
    elements.append(Spacer(1, 8))

    if fraud.risk_factors:
        elements.append(Paragraph("Risk Factors", heading_style))
        for i, factor in enumerate(fraud.risk_factors, 1):
            elements.append(Paragraph(f"{i}. {factor}", body_style))
        elements.append(Spacer(1, 8))

    # --- Gaps ---
    gaps = dossier.gap_analysis
    elements.append(Paragraph("Completeness", heading_style))
    elements.append(Paragraph(
        f"Completeness score {gaps.completeness_score:.0%}, "
        f"{gaps.risk_level.value.upper()} documentation risk",
        body_style,
    ))
    if gaps.identified_gaps:
        gap_rows = [["Severity", "Category", "Gap", "Recommendation"]] + [
            [g.severity.value.upper(), g.category, g.description, g.recommendation]
            for g in gaps.identified_gaps
        ]
        gap_table = Table(gap_rows, colWidths=[0.8 * inch, 1.2 * inch, 2 * inch, 2.5 * inch])
        gap_table.setStyle(HEADER_ROW_STYLE)
        elements.append(Spacer(1, 6))
        elements.append(gap_table)
    elements.append(Spacer(1, 8))

    # --- Payout ---
    payout = dossier.payout
    elements.append(Paragraph(f"Payout ({payout.policy})", heading_style))
    payout_rows = [["Adjustment", "Amount", "Reason"], ["base", _money(payout.base_amount), ""]]
    payout_rows += [[a.type, _money(a.amount), a.reason] for a in payout.adjustments]
    payout_rows.append(["final", _money(payout.final_amount), ""])
    payout_table = Table(payout_rows, colWidths=[1.6 * inch, 1.4 * inch, 3.5 * inch])
    payout_table.setStyle(HEADER_ROW_STYLE)
    elements.append(payout_table)
    if payout.confidence is not None:
        elements.append(Paragraph(f"Payout confidence: {payout.confidence:.0%}", small_style))
    elements.append(Spacer(1, 8))

    # --- Simulation ---
    sim = dossier.simulation
    elements.append(Paragraph("Decision", heading_style))
    decision_data = [
        ["Approved", "Yes" if sim.approved else "No"],
        ["Auto-approved", "Yes" if sim.auto_approved else "No"],
        ["Approved Amount", _money(sim.approved_amount)],
        ["Rules Triggered", ", ".join(sim.rules_triggered) or "None"],
    ]
    decision_table = Table(decision_data, colWidths=[1.8 * inch, 4.7 * inch])
    decision_table.setStyle(KEY_VALUE_STYLE)
    elements.append(decision_table)
    for rec in sim.recommendations:
        elements.append(Paragraph(f"&bull; {rec}", body_style))
    elements.append(Spacer(1, 8))

    # --- Escalation ---
    esc = dossier.escalation
    level = get_escalation_level(esc.level)
    elements.append(Paragraph("Escalation", heading_style))
    escalation_data = [
        ["Level", f"{level.level} - {level.name}"],
        ["Escalate", "Yes" if esc.should_escalate else "No"],
        ["Reason", esc.reason],
        ["Response Window", f"{level.max_response_hours} hours"],
        ["Confirmation", "Required" if level.confirmation_required else "Not required"],
    ]
    escalation_table = Table(escalation_data, colWidths=[1.8 * inch, 4.7 * inch])
    escalation_table.setStyle(KEY_VALUE_STYLE)
    elements.append(escalation_table)

    # --- Disclaimer ---
    elements.append(Spacer(1, 24))
    elements.append(Paragraph(
        "This report is generated by automated rule-based scoring. "
        "Fraud indicators identified herein warrant review and do not constitute proof of fraud.",
        ParagraphStyle("Disclaimer", parent=small_style, fontSize=7, textColor=colors.grey)
    ))

    doc.build(elements)
    return output_path
