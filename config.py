import os
from pathlib import Path

BASE_DIR = Path(__file__).parent

CLAIMS_DATA_DIR = Path(os.environ.get("CLAIMS_DATA_DIR", BASE_DIR / "data" / "raw"))
OUTPUT_DIR = Path(os.environ.get("CLAIMS_OUTPUT_DIR", BASE_DIR / "output"))

SCORING_POLICY = os.environ.get("SCORING_POLICY", "points-v1")
PAYOUT_POLICY = os.environ.get("PAYOUT_POLICY", "deduction-v1")

# Unit scale (0.0-1.0). Callers convert points-based fraud scores before comparing.
FRAUD_REVIEW_THRESHOLD = float(os.environ.get("FRAUD_REVIEW_THRESHOLD", "0.7"))
