# premium_engine/actuarial/filing.py
"""
Rate filing export.

What it does:
- Flattens the certified rate tables into a long-format DataFrame
- Writes rate tables (CSV) and a filing summary (JSON) under reports/filings/
- Optionally uploads both to S3 (if S3_BUCKET is set)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from premium_engine.actuarial.engine import ActuarialRateResult
from premium_engine.actuarial.schemas import BaseRateStructure
from premium_engine.utils.config import get_aws_config, get_paths
from premium_engine.utils.io import s3_upload_files, write_json, write_rate_csv

logger = logging.getLogger(__name__)

RATE_COLUMNS = ["table", "segment", "rate"]


@dataclass(frozen=True)
class FilingArtifacts:
    rates_path: Path
    summary_path: Path
    s3_keys: List[str]


def rate_tables_frame(rates: BaseRateStructure) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [
        {"table": "base", "segment": "per_member_per_month", "rate": rates.per_member_per_month}
    ]
    rows += [{"table": "age_band", "segment": b.age_band, "rate": b.rate} for b in rates.age_banded_rates.bands]

    fam = rates.family_rates
    for tier in (
        "individual",
        "couple",
        "single_parent_one_child",
        "single_parent_multiple_children",
        "family",
        "per_extra_child",
        "special_needs",
    ):
        rows.append({"table": "family", "segment": tier, "rate": getattr(fam, tier)})

    rows.append({"table": "smoker", "segment": "non_smoker", "rate": rates.smoker_rates.non_smoker})
    rows.append({"table": "smoker", "segment": "smoker", "rate": rates.smoker_rates.smoker})

    rows += [{"table": "region", "segment": k, "rate": v} for k, v in rates.geographic_rates.by_region.items()]
    rows += [
        {"table": "cost_class", "segment": k, "rate": v} for k, v in rates.geographic_rates.by_cost_class.items()
    ]
    return pd.DataFrame(rows, columns=RATE_COLUMNS)


def filing_summary(result: ActuarialRateResult) -> Dict[str, Any]:
    compliance = result.compliance
    return {
        "jurisdiction": result.jurisdiction.code,
        "base_pmpm": result.base_rates.per_member_per_month,
        "certified_pmpm": result.certified_rates.per_member_per_month,
        "loadings": result.loaded_rates.to_dict(),
        "compliance": {
            "compliant": compliance.compliant,
            "compression_ratio": compliance.compression_ratio,
            "tobacco_ratio": compliance.tobacco_ratio,
            "projected_loss_ratio": compliance.projected_loss_ratio,
            "minimum_loss_ratio": compliance.minimum_loss_ratio,
            "violations": [asdict(v) for v in compliance.violations],
            "required_disclosures": list(compliance.required_disclosures),
        },
        "certification": asdict(result.certification),
        "certification_document": result.certification_document.text,
        "sensitivity": {
            f.dimension: {
                "expected_impact": f.expected_impact,
                "range": list(f.impact_range),
                "scenarios": [asdict(s) for s in f.scenarios],
            }
            for f in result.sensitivity.families
        },
        "recommendations": [asdict(r) for r in result.recommendations],
    }


def export_rate_filing(
    result: ActuarialRateResult,
    *,
    filing_id: str,
    out_dir: Optional[Path] = None,
    upload_s3: bool = False,
) -> FilingArtifacts:
    out_dir = Path(out_dir) if out_dir is not None else get_paths().filings_dir
    rates_path = out_dir / f"{filing_id}_rates.csv"
    summary_path = out_dir / f"{filing_id}_summary.json"

    write_rate_csv(rate_tables_frame(result.certified_rates), rates_path)
    write_json(filing_summary(result), summary_path)

    s3_keys: List[str] = []
    if upload_s3:
        aws = get_aws_config()
        if not aws.enabled:
            raise ValueError("upload_s3=True but S3_BUCKET is not set.")
        s3_keys = s3_upload_files(
            [rates_path, summary_path],
            bucket=aws.s3_bucket,  # type: ignore[arg-type]
            prefix=aws.filings_prefix,
            region=aws.region,
        )

    logger.info("Rate filing %s written to %s (%d S3 object(s))", filing_id, out_dir, len(s3_keys))
    return FilingArtifacts(rates_path=rates_path, summary_path=summary_path, s3_keys=s3_keys)
