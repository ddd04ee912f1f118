from __future__ import annotations

import enum
import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(obj: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = asdict(obj) if is_dataclass(obj) and not isinstance(obj, type) else obj
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=_json_default)


def write_rate_csv(df: pd.DataFrame, path: Path) -> None:
    """Rate tables are filed in currency units: no index, two decimals."""
    if path.suffix.lower() != ".csv":
        raise ValueError(f"Rate tables are filed as .csv, got: {path.name}")
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format="%.2f")


# ---------------------------
# Optional S3 support
# ---------------------------
def _s3_client(region: Optional[str] = None):
    try:
        import boto3  # type: ignore
    except ImportError as e:
        raise ImportError(
            "boto3 is required to upload rate filings to S3. Install with: pip install boto3"
        ) from e
    return boto3.client("s3", region_name=region)


def s3_upload_files(
    paths: Sequence[Path], *, bucket: str, prefix: str, region: Optional[str] = None
) -> List[str]:
    """Upload each file as <prefix>/<file name>. Returns the keys written, in order."""
    missing = [str(p) for p in paths if not Path(p).exists()]
    if missing:
        raise FileNotFoundError(f"Local file(s) not found: {missing}")

    s3 = _s3_client(region)
    keys: List[str] = []
    for p in paths:
        key = f"{prefix.rstrip('/')}/{Path(p).name}"
        s3.upload_file(str(p), bucket, key)
        keys.append(key)
    return keys
