import logging
import numpy as np
import pandas as pd

from . import settings
from .aggregator import Aggregates
from .schemas import Decision, Remarks, WorkingRecord

logger = logging.getLogger(__name__)

# Quantities are rounded to this many decimals before ceil/floor so float
# noise (e.g. 150.00000000000003) can't move a result by one unit.
QTY_PRECISION = 9


def compute_metrics(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Adds rate, cover and return metrics to an aggregated (sku, fc) frame.
    - drr: units sold per day over the fixed reporting window.
    - return_pct: returns as a share of sales + returns (0 when both are 0).
    - stock_cover: days of FC stock at the current drr (0 when drr is 0).
    - target_stock: units needed for the target cover.
    """
    window = settings.REPORTING_WINDOW_DAYS
    df = frame.copy()

    df["sale_30d"] = df["sales"]
    df["drr"] = df["sale_30d"] / window
    # Multiply before dividing so exact inputs give exact results.
    df["target_stock"] = df["sale_30d"] * settings.TARGET_COVER_DAYS / window

    denominator = df["sale_30d"] + df["returns"]
    df["return_pct"] = (df["returns"] * 100 / denominator.where(denominator != 0)).fillna(0)

    selling = df["drr"] > 0
    df["stock_cover"] = (df["fc_stock"] * window / df["sale_30d"].where(selling)).fillna(0)
    return df


def apply_decision_rule(metrics: pd.DataFrame) -> pd.DataFrame:
    """
    Evaluated in order, first match wins:
    1. Low cover, enough central stock and acceptable returns -> SEND up to
       the target cover.
    2. Overstocked or too many returns -> DO NOT SEND, recall the excess.
    3. Otherwise -> DO NOT SEND, nothing to recall.
    """
    df = metrics.copy()
    target_days = settings.TARGET_COVER_DAYS

    send = (
        (df["stock_cover"] < target_days)
        & (df["central_stock"] >= settings.MIN_CENTRAL_STOCK)
        & (df["return_pct"] <= settings.MAX_RETURN_PCT)
    )
    recall = ~send & (
        (df["stock_cover"] > target_days) | (df["return_pct"] > settings.MAX_RETURN_PCT)
    )

    shortfall = (df["target_stock"] - df["fc_stock"]).round(QTY_PRECISION)
    excess = (df["fc_stock"] - df["target_stock"]).round(QTY_PRECISION)

    df["decision"] = np.where(send, Decision.SEND.value, Decision.DO_NOT_SEND.value)
    # A SKU with stock but no sales has zero cover and a negative shortfall.
    df["send_qty"] = np.where(send, np.maximum(0, np.ceil(shortfall)), 0).astype(int)
    df["recall_qty"] = np.where(recall, np.maximum(0, np.floor(excess)), 0).astype(int)
    df["remarks"] = np.select(
        [send, recall],
        [Remarks.LOW_STOCK_COVER.value, Remarks.OVERSTOCK_OR_RETURNS.value],
        default=Remarks.UNIWARE_CONSTRAINT.value,
    )
    return df


def build_working_records(aggregates: Aggregates) -> list[WorkingRecord]:
    """
    Runs the metrics and the decision rule over every aggregated key and
    returns validated records ordered by fulfillment center, then SKU.
    Raises pydantic.ValidationError if a row doesn't fit the record schema.
    """
    logger.info("--- Computing Restock Decisions ---")

    decided_df = apply_decision_rule(compute_metrics(aggregates.frame))
    decided_df = decided_df.reset_index().sort_values(["fc", "sku"], kind="stable")

    final_columns = list(WorkingRecord.model_fields.keys())
    records = [WorkingRecord(**row) for row in decided_df[final_columns].to_dict("records")]

    sends = sum(1 for r in records if r.decision is Decision.SEND)
    logger.info(f"✅ {len(records)} decisions: {sends} SEND, {len(records) - sends} DO NOT SEND.")
    return records
