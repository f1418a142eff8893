import logging
from dataclasses import dataclass
from datetime import date
import pandas as pd

from . import settings
from .parsers import Table
from .utils import coerce_numeric, parse_day_month_year

logger = logging.getLogger(__name__)

# Every accumulator is keyed by (sku, fulfillment center).
KEY = ["sku", "fc"]
METRIC_COLUMNS = ["sales", "returns", "fc_stock", "central_stock"]


@dataclass(frozen=True, eq=False)
class Aggregates:
    """Per-key accumulators for one run, ready for the decision engine."""

    frame: pd.DataFrame  # index: (sku, fc); columns: METRIC_COLUMNS
    latest_snapshot: date | None

    @property
    def keys(self) -> list[tuple[str, str]]:
        return list(self.frame.index)


def _empty_accumulator(columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=object if col in KEY else float) for col in KEY + columns})


def aggregate_sales(sale: Table) -> pd.DataFrame:
    """
    Sums sold and returned units per (Sku, Warehouse Id).
    'Shipment*' and 'FreeReplacement*' rows count as sales, 'Refund*' rows as
    returns. Every other transaction type is ignored.
    """
    df = sale.to_frame()
    transaction_type = df["Transaction Type"]
    is_sale = transaction_type.str.startswith(settings.SALE_TRANSACTION_PREFIXES)
    is_return = transaction_type.str.startswith(settings.RETURN_TRANSACTION_PREFIXES)
    relevant = is_sale | is_return

    if not relevant.any():
        return _empty_accumulator(["sales", "returns"])

    quantity = coerce_numeric(df["Quantity"])
    temp_df = pd.DataFrame(
        {
            "sku": df["Sku"],
            "fc": df["Warehouse Id"],
            "sales": quantity.where(is_sale, 0),
            "returns": quantity.where(is_return, 0),
        }
    )[relevant]

    # Group by the composite key and sum. This collapses repeated transactions.
    return temp_df.groupby(KEY, as_index=False).sum()


def aggregate_fc_stock(fc: Table) -> tuple[pd.DataFrame, date | None]:
    """
    Sums the sellable Ending Warehouse Balance per (MSKU, Location), using only
    rows from the latest snapshot date. Older snapshots and non-sellable rows
    are skipped, not counted as zero.
    """
    df = fc.to_frame()
    dates = parse_day_month_year(df["Date"])
    latest = dates.max()
    if pd.isna(latest):
        logger.warning("⚠️ No parseable snapshot dates in FC report.")
        return _empty_accumulator(["fc_stock"]), None

    mask = (dates == latest) & (df["Disposition"] == settings.SELLABLE_DISPOSITION)
    if not mask.any():
        return _empty_accumulator(["fc_stock"]), latest.date()

    temp_df = pd.DataFrame(
        {
            "sku": df.loc[mask, "MSKU"],
            "fc": df.loc[mask, "Location"],
            "fc_stock": coerce_numeric(df.loc[mask, "Ending Warehouse Balance"]),
        }
    )
    return temp_df.groupby(KEY, as_index=False).sum(), latest.date()


def build_sku_mapping(mapping: Table) -> pd.Series:
    """Amazon Seller SKU -> Uniware SKU. The last row wins on duplicate keys."""
    df = mapping.to_frame()
    df = df.drop_duplicates(subset="Amazon Seller SKU", keep="last")
    return df.set_index("Amazon Seller SKU")["Uniware SKU"]


def build_central_stock(central: Table) -> pd.Series:
    """Uniware Sku Code -> Total Inventory (non-numeric values count as 0)."""
    df = central.to_frame()
    stock = pd.Series(
        coerce_numeric(df["Total Inventory"]).to_numpy(), index=df["Sku Code"]
    )
    return stock[~stock.index.duplicated(keep="last")]


def lookup_central_stock(skus: pd.Series, sku_mapping: pd.Series, central_stock: pd.Series) -> pd.Series:
    """Marketplace SKU -> central stock, via the mapping. Any miss gives 0."""
    return skus.map(sku_mapping).map(central_stock).fillna(0)


def aggregate(sale: Table, fc: Table, central: Table, mapping: Table) -> Aggregates:
    """
    Reduces the four source tables to one row per (sku, fc) key.
    The key set is the union of sales, returns and FC stock keys; keys with
    neither sales nor FC stock are dropped.
    """
    logger.info("--- Aggregating Sources ---")

    sales = aggregate_sales(sale)
    fc_stock, latest = aggregate_fc_stock(fc)
    logger.info(f"Latest FC snapshot: {latest.isoformat() if latest else 'none'}")

    # An outer join keeps keys that exist in one report but not the other.
    merged_df = pd.merge(sales, fc_stock, on=KEY, how="outer")
    merged_df[["sales", "returns", "fc_stock"]] = (
        merged_df[["sales", "returns", "fc_stock"]].fillna(0).astype(float)
    )

    active = (merged_df["sales"] != 0) | (merged_df["fc_stock"] != 0)
    dropped = int((~active).sum())
    merged_df = merged_df[active].copy()
    if dropped:
        logger.info(f"Dropped {dropped} SKU/FC pairs with no sales and no FC stock.")

    merged_df["central_stock"] = lookup_central_stock(
        merged_df["sku"], build_sku_mapping(mapping), build_central_stock(central)
    ).astype(float)

    merged_df = merged_df.set_index(KEY)[METRIC_COLUMNS]
    logger.info(f"Aggregated {len(merged_df)} SKU/FC pairs.")
    return Aggregates(frame=merged_df, latest_snapshot=latest)
