from enum import Enum
from pydantic import BaseModel, Field

from . import settings


class SourceType(str, Enum):
    SALE = "sale"
    FC = "fc"
    CENTRAL = "central"
    MAPPING = "mapping"

    @property
    def label(self) -> str:
        return self.value.upper()


# --- Required Headers (exact, case-sensitive) ---
SALE_HEADERS = ["Transaction Type", "Sku", "Quantity", "Warehouse Id"]
# Newer sale exports also carry shipping columns; this schema is a strict superset.
SALE_RICH_HEADERS = SALE_HEADERS + ["Ship To State", "Fulfillment Channel"]
FC_HEADERS = ["Date", "MSKU", "Disposition", "Ending Warehouse Balance", "Location"]
CENTRAL_HEADERS = ["Sku Code", "Total Inventory"]
MAPPING_HEADERS = ["Amazon Seller SKU", "Uniware SKU"]

SALE_SCHEMAS = {
    "minimal": SALE_HEADERS,
    "rich": SALE_RICH_HEADERS,
}


def required_headers(source: SourceType, sale_schema: str | None = None) -> list[str]:
    """Returns the header schema a table of `source` type must satisfy."""
    if source is SourceType.SALE:
        schema = sale_schema or settings.SALE_SCHEMA
        if schema not in SALE_SCHEMAS:
            raise ValueError(f"Unknown sale schema '{schema}'. Expected one of {sorted(SALE_SCHEMAS)}.")
        return SALE_SCHEMAS[schema]
    if source is SourceType.FC:
        return FC_HEADERS
    if source is SourceType.CENTRAL:
        return CENTRAL_HEADERS
    return MAPPING_HEADERS


class Decision(str, Enum):
    SEND = "SEND"
    DO_NOT_SEND = "DO NOT SEND"


class Remarks(str, Enum):
    LOW_STOCK_COVER = "Low stock cover"
    OVERSTOCK_OR_RETURNS = "Overstock / Returns"
    UNIWARE_CONSTRAINT = "Uniware constraint"


class WorkingRecord(BaseModel):
    """
    One SKU at one fulfillment center, with its metrics and the restock decision.
    Aliases are the column headers used in the exported report.
    """

    sku: str = Field(..., alias="SKU")
    fc: str = Field(..., alias="FC")
    fc_stock: float = Field(default=0, alias="FC Stock")
    central_stock: float = Field(default=0, alias="Uniware Stock")
    sale_30d: float = Field(default=0, alias="30D Sale")
    returns: float = Field(default=0, alias="Returns")
    drr: float = Field(default=0, alias="DRR")
    return_pct: float = Field(default=0, alias="Return %")
    stock_cover: float = Field(default=0, alias="Stock Cover")
    decision: Decision = Field(..., alias="Decision")
    send_qty: int = Field(default=0, ge=0, alias="Send Qty")
    recall_qty: int = Field(default=0, ge=0, alias="Recall Qty")
    remarks: Remarks = Field(..., alias="Remarks")

    class Config:
        # Build records from DataFrame rows keyed by field name, export with aliases.
        populate_by_name = True
        frozen = True
