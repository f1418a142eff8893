import json
import logging
from pathlib import Path
from typing import Iterable
import pandas as pd
import requests

from . import settings
from . import utils
from .schemas import WorkingRecord

logger = logging.getLogger(__name__)

FLOAT_COLUMNS = ["FC Stock", "Uniware Stock", "30D Sale", "Returns", "DRR", "Return %", "Stock Cover"]


def group_by_fc(records: Iterable[WorkingRecord]) -> dict[str, list[WorkingRecord]]:
    """Groups records by fulfillment center, keeping their incoming order."""
    groups: dict[str, list[WorkingRecord]] = {}
    for record in records:
        groups.setdefault(record.fc, []).append(record)
    return groups


def paginate(records: list[WorkingRecord], page_size: int | None = None) -> list[list[WorkingRecord]]:
    """Splits records into display pages (PAGE_SIZE rows each by default)."""
    size = page_size or settings.PAGE_SIZE
    if size < 1:
        raise ValueError(f"page_size must be positive, got {size}")
    return [records[i : i + size] for i in range(0, len(records), size)]


def records_to_frame(records: list[WorkingRecord]) -> pd.DataFrame:
    """Report view of the records: alias headers, floats rounded to 2 places."""
    columns = [info.alias for info in WorkingRecord.model_fields.values()]
    df = pd.DataFrame(
        [r.model_dump(mode="json", by_alias=True) for r in records], columns=columns
    )
    df[FLOAT_COLUMNS] = df[FLOAT_COLUMNS].astype(float).round(2)
    return df


def save_outputs(
    records: list[WorkingRecord],
    report_name: str | None = None,
    output_dir: Path | None = None,
) -> Path:
    """Saves the records to CSV and conditionally to JSON, with dated filenames."""
    output_dir = output_dir or settings.OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    base = report_name or settings.REPORT_FILENAME_BASE
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = output_dir / f"{base}_{date_suffix}.csv"
    json_path = output_dir / f"{base}_{date_suffix}.json"

    records_to_frame(records).to_csv(csv_path, index=False)
    logger.info(f"✅ Restock report saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json_data = [r.model_dump(mode="json", by_alias=True) for r in records]
            json.dump(json_data, f, indent=2, default=str)
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return csv_path


def post_to_webhook(
    records: list[WorkingRecord],
    status_summary: dict[str, str | None],
    report_type: str = "restock",
) -> bool:
    """
    Posts the records AND the status summary to the webhook.
    Returns True when the post succeeded. Failures are logged, not raised.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting {report_type} data and summary to webhook: {settings.WEBHOOK_URL}")

    payload = {
        "reportType": report_type,
        "reportData": [r.model_dump(mode="json", by_alias=True) for r in records],
        "statusSummary": status_summary,
    }

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Data and summary successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
