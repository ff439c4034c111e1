from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

# Fraud scores are additive points; 100 points maps to 1.0 on the unit scale.
FRAUD_SCORE_SCALE = 100


class ClaimType(Enum):
    MEDICAL = "medical"
    ACCIDENT = "accident"
    PHARMACY = "pharmacy"


class ClaimStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FRAUD_REVIEW = "FRAUD_REVIEW"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ApprovalDecision(Enum):
    AUTO_APPROVE = "auto_approve"
    PARTIAL_APPROVE = "partial_approve"
    REJECT = "reject"


def to_unit_scale(points: float) -> float:
    """Convert a points-based fraud score to the 0.0-1.0 scale."""
    return min(1.0, max(0.0, points / FRAUD_SCORE_SCALE))


@dataclass
class Document:
    """A supporting document attached to a claim, usually produced by OCR."""
    type: str = "other"
    confidence: float | None = None
    url: str = ""
    extracted_data: dict = field(default_factory=dict)
    ocr_method: str = ""


@dataclass
class VoiceData:
    """Transcribed voice statement."""
    transcript: str = ""
    keywords: list[str] = field(default_factory=list)
    confidence: float | None = None
    language: str = ""


@dataclass
class Location:
    address: str = ""
    lat: float | None = None
    lng: float | None = None


@dataclass
class ClaimDetails:
    """Form data captured about the incident."""
    incident_date: date | None = None
    description: str = ""
    severity: str | None = None
    location: Location | None = None
    items: list[dict] = field(default_factory=list)


@dataclass
class ProcessingStep:
    step: str
    completed_at: datetime
    success: bool = True
    details: dict = field(default_factory=dict)


@dataclass
class SimulationResult:
    """Outcome of a claim evaluation. fraud_score is on the points scale."""
    approved: bool
    approved_amount: float
    gaps: list[str] = field(default_factory=list)
    rules_triggered: list[str] = field(default_factory=list)
    fraud_score: float = 0.0
    auto_approved: bool = False
    recommendations: list[str] = field(default_factory=list)

    @property
    def fraud_score_unit(self) -> float:
        return to_unit_scale(self.fraud_score)

    def to_dict(self) -> dict:
        return {
            "approved": self.approved,
            "approvedAmount": self.approved_amount,
            "gaps": list(self.gaps),
            "rulesTriggered": list(self.rules_triggered),
            "fraudScore": self.fraud_score,
            "autoApproved": self.auto_approved,
            "recommendations": list(self.recommendations),
        }


@dataclass
class Claim:
    """A read-only snapshot of the claim fields the scoring core uses."""
    claim_id: str = ""
    type: ClaimType | None = None
    amount: float = 0.0
    estimated_amount: float | None = None
    description: str = ""
    documents: list[Document] = field(default_factory=list)
    voice_data: VoiceData | None = None
    claim_details: ClaimDetails | None = None
    status: ClaimStatus = ClaimStatus.PENDING
    simulation: SimulationResult | None = None
    processing_steps: list[ProcessingStep] = field(default_factory=list)
    escalation_history: list[dict] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def base_amount(self) -> float:
        return self.estimated_amount or self.amount or 0


@dataclass
class FraudAnalysis:
    """Result of running a scoring policy over a claim."""
    fraud_score: float
    risk_level: RiskLevel
    risk_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    confidence: float = 0.0
    policy: str = ""


@dataclass
class Gap:
    """A deficiency in claim completeness."""
    category: str
    description: str
    severity: RiskLevel
    recommendation: str


@dataclass
class GapAnalysis:
    identified_gaps: list[Gap] = field(default_factory=list)
    completeness_score: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW

    @property
    def high_severity_count(self) -> int:
        return sum(1 for g in self.identified_gaps if g.severity == RiskLevel.HIGH)


@dataclass
class Adjustment:
    type: str
    amount: float  # signed: negative is a deduction
    reason: str


@dataclass
class PayoutCalculation:
    """Recommended settlement amount and the adjustments that produced it."""
    policy: str
    base_amount: float
    adjustments: list[Adjustment] = field(default_factory=list)
    final_amount: float = 0.0
    confidence: float | None = None
    gaps: list[str] = field(default_factory=list)
    coverage: int | None = None  # percent of the original amount


@dataclass
class EscalationLevel:
    level: int
    name: str
    description: str
    max_response_hours: int
    confirmation_required: bool


@dataclass
class EscalationDecision:
    should_escalate: bool
    reason: str
    level: int


@dataclass
class ClaimDossier:
    """Everything known about a single evaluated claim."""
    claim: Claim
    fraud_analysis: FraudAnalysis
    gap_analysis: GapAnalysis
    payout: PayoutCalculation
    simulation: SimulationResult
    status: ClaimStatus
    escalation: EscalationDecision
