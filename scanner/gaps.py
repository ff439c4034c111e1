from data.models import Claim, ClaimType, Gap, GapAnalysis, RiskLevel

GAP_MIN_DESCRIPTION = 50
GAP_MIN_DOCUMENTS = 3  # fewer than this (but more than zero) is a medium gap
GOOD_VOICE_CONFIDENCE = 0.8

COMPLETENESS_TOTAL_POINTS = 10
HIGH_RISK_COMPLETENESS = 0.4
MEDIUM_RISK_COMPLETENESS = 0.7


def analyze_gaps(claim: Claim) -> GapAnalysis:
    """Identify missing or weak claim information.

    Every check runs regardless of earlier findings. The overall risk level is
    driven by the count of high-severity gaps and the completeness score.
    """
    gaps: list[Gap] = []
    description = claim.description or ""
    doc_count = len(claim.documents or [])
    voice = claim.voice_data
    transcript = voice.transcript if voice else ""
    confidence = voice.confidence if voice else None

    if len(description) < GAP_MIN_DESCRIPTION:
        gaps.append(Gap(
            category="claim_details",
            description="Insufficient claim description",
            severity=RiskLevel.HIGH,
            recommendation="Provide detailed description of the incident",
        ))

    if not claim.estimated_amount:
        gaps.append(Gap(
            category="financial",
            description="Missing estimated amount",
            severity=RiskLevel.HIGH,
            recommendation="Provide estimated claim amount",
        ))

    if doc_count == 0:
        gaps.append(Gap(
            category="documentation",
            description="No supporting documents provided",
            severity=RiskLevel.HIGH,
            recommendation="Upload relevant documents (photos, receipts, reports)",
        ))
    elif doc_count < GAP_MIN_DOCUMENTS:
        gaps.append(Gap(
            category="documentation",
            description="Limited supporting documentation",
            severity=RiskLevel.MEDIUM,
            recommendation="Consider providing additional supporting documents",
        ))

    if not transcript:
        gaps.append(Gap(
            category="voice_data",
            description="No voice transcript available",
            severity=RiskLevel.MEDIUM,
            recommendation="Provide voice recording for claim verification",
        ))
    elif confidence is not None and confidence < GOOD_VOICE_CONFIDENCE:
        gaps.append(Gap(
            category="voice_data",
            description="Low quality voice data",
            severity=RiskLevel.MEDIUM,
            recommendation="Re-record voice statement in quiet environment",
        ))

    gaps.extend(_type_specific_gaps(claim))

    points = 0
    if len(description) >= GAP_MIN_DESCRIPTION:
        points += 2
    if claim.estimated_amount:
        points += 2
    if doc_count >= GAP_MIN_DOCUMENTS:
        points += 2
    if transcript:
        points += 2
    if confidence is not None and confidence >= GOOD_VOICE_CONFIDENCE:
        points += 1
    if claim.type is not None:
        points += 1
    completeness = min(1.0, max(0.0, points / COMPLETENESS_TOTAL_POINTS))

    analysis = GapAnalysis(identified_gaps=gaps, completeness_score=completeness)
    high_count = analysis.high_severity_count
    if high_count >= 2 or completeness < HIGH_RISK_COMPLETENESS:
        analysis.risk_level = RiskLevel.HIGH
    elif high_count == 1 or completeness < MEDIUM_RISK_COMPLETENESS:
        analysis.risk_level = RiskLevel.MEDIUM
    else:
        analysis.risk_level = RiskLevel.LOW
    return analysis


def _type_specific_gaps(claim: Claim) -> list[Gap]:
    if claim.type == ClaimType.ACCIDENT:
        keywords = claim.voice_data.keywords if claim.voice_data else []
        if "accident" not in (keywords or []):
            return [Gap(
                category="incident_details",
                description="Missing accident details in voice recording",
                severity=RiskLevel.HIGH,
                recommendation="Provide detailed account of accident circumstances",
            )]
    elif claim.type == ClaimType.MEDICAL:
        if not any("medical" in (doc.type or "") for doc in claim.documents or []):
            return [Gap(
                category="medical_records",
                description="Missing medical documentation",
                severity=RiskLevel.HIGH,
                recommendation="Provide medical reports and bills",
            )]
    return []
