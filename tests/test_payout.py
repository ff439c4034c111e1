"""Tests for payout policies."""

import click
import pytest

from data.models import (
    Claim,
    ClaimDetails,
    ClaimType,
    Document,
    FraudAnalysis,
    Location,
    RiskLevel,
)
from scanner.payout import (
    CoveragePayoutPolicy,
    DeductionPayoutPolicy,
    accident_coverage,
    get_payout_policy,
    medical_coverage,
    payout_recommendation,
    pharmacy_coverage,
)
from tests.conftest import make_claim


def _analysis(level: RiskLevel, confidence: float = 0.5) -> FraudAnalysis:
    return FraudAnalysis(fraud_score=0, risk_level=level, confidence=confidence)


def _adjustments(payout) -> dict[str, float]:
    return {a.type: a.amount for a in payout.adjustments}


def test_deduction_high_risk_accident_without_documents():
    claim = Claim(type=ClaimType.ACCIDENT, estimated_amount=100000, documents=[])
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.HIGH))
    assert _adjustments(payout) == {
        "fraud_risk": -50000,
        "documentation_penalty": -10000,
        "investigation_fee": -1000,
    }
    assert payout.base_amount == 100000
    assert payout.final_amount == 39000
    assert payout.policy == "deduction-v1"


def test_deduction_medium_risk_well_documented_medical():
    claim = make_claim(estimated_amount=10000, documents=[Document()] * 5)
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.MEDIUM))
    assert _adjustments(payout) == {
        "fraud_risk": -2000,
        "documentation_bonus": pytest.approx(500),
        "medical_standard": 0,
    }
    assert payout.final_amount == pytest.approx(8500)


def test_deduction_low_risk_pharmacy_is_unadjusted():
    claim = make_claim(type=ClaimType.PHARMACY, estimated_amount=4200)
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.LOW))
    assert payout.adjustments == []
    assert payout.final_amount == 4200


def test_investigation_fee_below_cap():
    claim = make_claim(type=ClaimType.ACCIDENT, estimated_amount=8000)
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.LOW))
    assert _adjustments(payout) == {"investigation_fee": -400}
    assert payout.final_amount == 7600


def test_deduction_without_estimate_pays_nothing():
    claim = Claim(type=ClaimType.ACCIDENT, amount=5000, estimated_amount=None)
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.HIGH))
    assert payout.base_amount == 0
    assert payout.final_amount == 0


@pytest.mark.parametrize("amount", [0, 1, 999, 20000, 1_000_000])
@pytest.mark.parametrize("claim_type", [None, *ClaimType])
@pytest.mark.parametrize("documents", [0, 1, 3, 5])
@pytest.mark.parametrize("level", list(RiskLevel))
def test_final_amount_is_never_negative(level, documents, claim_type, amount):
    claim = Claim(type=claim_type, amount=amount, estimated_amount=amount,
                  documents=[Document()] * documents)
    assert DeductionPayoutPolicy().calculate(claim, _analysis(level)).final_amount >= 0
    assert CoveragePayoutPolicy().calculate(claim).final_amount >= 0


def test_deductions_larger_than_base_clamp_to_zero():
    claim = Claim(type=ClaimType.ACCIDENT, amount=-1000, estimated_amount=-1000, documents=[])
    payout = DeductionPayoutPolicy().calculate(claim, _analysis(RiskLevel.HIGH))
    assert payout.base_amount + sum(a.amount for a in payout.adjustments) < 0
    assert payout.final_amount == 0
    assert CoveragePayoutPolicy().calculate(claim).final_amount == 0


def test_deduction_confidence():
    payout = DeductionPayoutPolicy().calculate(make_claim(), _analysis(RiskLevel.LOW, 0.5))
    assert payout.confidence == pytest.approx(0.55)
    payout = DeductionPayoutPolicy().calculate(make_claim(), _analysis(RiskLevel.LOW, 1.0))
    assert payout.confidence == pytest.approx(0.95)


def test_deduction_scores_claim_when_no_analysis_given(risky_claim: Claim):
    payout = DeductionPayoutPolicy().calculate(risky_claim)
    # Scored HIGH by the points policy
    assert _adjustments(payout)["fraud_risk"] == -50000


def test_coverage_medical_with_complete_details():
    claim = make_claim(amount=50000)
    payout = CoveragePayoutPolicy().calculate(claim)
    assert medical_coverage(50000) == 45000
    assert payout.final_amount == 45000
    assert payout.coverage == 90
    assert payout.gaps == []
    assert payout_recommendation(payout) == "ready_for_approval"


def test_medical_coverage_is_capped():
    assert medical_coverage(200000) == 100000


@pytest.mark.parametrize("severity, expected", [
    ("low", 7000), ("medium", 8000), ("high", 9500), (None, 8000), ("unknown", 8000),
])
def test_accident_coverage_by_severity(severity, expected):
    assert accident_coverage(10000, severity) == pytest.approx(expected)


def test_pharmacy_coverage_is_capped():
    assert pharmacy_coverage(10000) == 8000
    assert pharmacy_coverage(40000) == 25000


def test_coverage_gap_deductions_are_capped():
    claim = Claim(type=ClaimType.PHARMACY, amount=10000, documents=[])
    payout = CoveragePayoutPolicy().calculate(claim)
    assert len(payout.gaps) == 3
    # 8000 covered, less 30%
    assert payout.final_amount == 5600
    assert payout.coverage == 56
    assert payout_recommendation(payout) == "requires_additional_information"


def test_coverage_single_gap_deduction():
    claim = Claim(
        amount=1000,
        documents=[],
        claim_details=ClaimDetails(description="Fell down", location=Location(address="Pune")),
    )
    payout = CoveragePayoutPolicy().calculate(claim)
    assert payout.gaps == ["No supporting documents provided"]
    assert payout.final_amount == 720
    assert payout.coverage == 72


def test_coverage_ignores_top_level_description():
    claim = make_claim(amount=1000, claim_details=None)
    payout = CoveragePayoutPolicy().calculate(claim)
    assert "Missing incident description" in payout.gaps
    assert "Incident location not specified" in payout.gaps


def test_coverage_zero_amount():
    payout = CoveragePayoutPolicy().calculate(Claim(amount=0))
    assert payout.final_amount == 0
    assert payout.coverage == 0


def test_coverage_rounds_half_up():
    # 5 * 0.9 = 4.5
    assert CoveragePayoutPolicy().calculate(make_claim(amount=5)).final_amount == 5


def test_get_payout_policy():
    assert isinstance(get_payout_policy("deduction-v1"), DeductionPayoutPolicy)
    assert isinstance(get_payout_policy("coverage-v1"), CoveragePayoutPolicy)
    with pytest.raises(click.BadParameter):
        get_payout_policy("generous")
