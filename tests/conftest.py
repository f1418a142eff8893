import pytest

from restock import settings
from restock.logger import DiagnosticLog
from restock.parsers import parse_csv
from restock.schemas import CENTRAL_HEADERS, FC_HEADERS, MAPPING_HEADERS, SALE_HEADERS


def make_csv(headers, rows, delimiter=","):
    lines = [delimiter.join(headers)]
    lines += [delimiter.join(str(cell) for cell in row) for row in rows]
    return "\n".join(lines) + "\n"


def sale_csv(rows):
    return make_csv(SALE_HEADERS, rows)


def fc_csv(rows):
    return make_csv(FC_HEADERS, rows)


def central_csv(rows):
    return make_csv(CENTRAL_HEADERS, rows)


def mapping_csv(rows):
    return make_csv(MAPPING_HEADERS, rows)


def build_tables(sale_rows, fc_rows, central_rows, mapping_rows):
    return (
        parse_csv(sale_csv(sale_rows)),
        parse_csv(fc_csv(fc_rows)),
        parse_csv(central_csv(central_rows)),
        parse_csv(mapping_csv(mapping_rows)),
    )


@pytest.fixture
def scenario_a_texts():
    """One SKU at one FC: 100 units sold, 200 sellable on hand, 500 centrally."""
    return {
        "sale": sale_csv([("Shipment", "SKU1", 100, "FC1")]),
        "fc": fc_csv([("01-01-2024", "SKU1", "SELLABLE", 200, "FC1")]),
        "central": central_csv([("USKU1", 500)]),
        "mapping": mapping_csv([("SKU1", "USKU1")]),
    }


@pytest.fixture
def diagnostic_log():
    log = DiagnosticLog().attach()
    yield log
    log.detach()


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    out = tmp_path / "output"
    monkeypatch.setattr(settings, "OUTPUT_DIR", out)
    monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", False)
    monkeypatch.setattr(settings, "WEBHOOK_URL", None)
    return out
