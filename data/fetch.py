from pathlib import Path

import click

import config

CLAIM_FILE_PATTERNS = ("*.parquet", "*.ndjson", "*.jsonl", "*.csv", "*.json")


def find_dataset(data_dir: Path | None = None) -> Path:
    """Find the claims export in the data directory.

    Prefers Parquet, then NDJSON, CSV and plain JSON.
    """
    if data_dir is None:
        data_dir = config.CLAIMS_DATA_DIR

    if not data_dir.exists():
        raise click.ClickException(
            f"Data directory {data_dir} not found. "
            "Place a claims export in data/raw/ or set CLAIMS_DATA_DIR."
        )

    for pattern in CLAIM_FILE_PATTERNS:
        data_files = list(data_dir.glob(pattern))
        if data_files:
            # Largest file is most likely the main export
            return max(data_files, key=lambda f: f.stat().st_size)

    raise click.ClickException(
        f"No claims files found in {data_dir}. "
        "Supported formats: Parquet, NDJSON, CSV, JSON."
    )
