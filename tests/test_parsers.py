import pytest

from restock.errors import ParseError, ValidationError
from restock.parsers import Table, detect_delimiter, load_table, parse_csv, validate_headers
from restock.schemas import (
    FC_HEADERS,
    SALE_HEADERS,
    SALE_RICH_HEADERS,
    SourceType,
    required_headers,
)

from conftest import make_csv


class TestDetectDelimiter:
    def test_tab_wins_over_semicolon_and_comma(self):
        assert detect_delimiter("a\tb;c,d") == "\t"

    def test_semicolon_wins_over_comma(self):
        assert detect_delimiter("a;b,c") == ";"

    def test_comma(self):
        assert detect_delimiter("a,b") == ","

    def test_defaults_to_comma(self):
        assert detect_delimiter("single") == ","


class TestParseCsv:
    def test_basic(self):
        table = parse_csv("Sku,Quantity\nA1,5\nB2,7\n")
        assert table.headers == ("Sku", "Quantity")
        assert table.rows == (("A1", "5"), ("B2", "7"))

    def test_bom_and_crlf(self):
        table = parse_csv("\ufeffSku,Quantity\r\nA1,5\r\nB2,7\r\n")
        assert table.headers == ("Sku", "Quantity")
        assert table.rows == (("A1", "5"), ("B2", "7"))

    def test_tab_delimited(self):
        table = parse_csv("Sku\tQuantity\nA1\t5")
        assert table.headers == ("Sku", "Quantity")
        assert table.rows == (("A1", "5"),)

    def test_semicolon_header_keeps_commas_in_cells(self):
        table = parse_csv("Sku;Note\nA1;x,y")
        assert table.headers == ("Sku", "Note")
        assert table.rows == (("A1", "x,y"),)

    def test_strips_quotes_and_whitespace(self):
        table = parse_csv('"Sku", "Quantity"\n"A1" , 5 \n')
        assert table.headers == ("Sku", "Quantity")
        assert table.rows == (("A1", "5"),)

    def test_unmatched_quote_stays_on_its_line(self):
        table = parse_csv('Sku,Quantity\nA,"1\nB,2"\nC,3\n')
        assert table.rows == (("A", "1"), ("B", "2"), ("C", "3"))

    def test_unmatched_leading_quote_on_first_cell(self):
        table = parse_csv('Sku,Quantity\n"A,1\nB,2\nC,3\n')
        assert table.rows == (("A", "1"), ("B", "2"), ("C", "3"))

    def test_mid_cell_quote_is_kept(self):
        table = parse_csv('Sku,Note,Quantity\nA,5" screen,2\nB,x,3')
        assert table.rows == (("A", '5" screen', "2"), ("B", "x", "3"))

    def test_quoted_delimiter_still_splits(self):
        table = parse_csv('Sku,Quantity,Warehouse Id\n"A,1",FC1')
        assert table.rows == (("A", "1", "FC1"),)

    def test_outer_whitespace_trimmed(self):
        table = parse_csv("\n\n  Sku,Quantity\nA1,5\n\n  ")
        assert table.headers == ("Sku", "Quantity")
        assert len(table) == 1

    def test_blank_lines_skipped(self):
        table = parse_csv("Sku,Quantity\nA1,5\n\nB2,7")
        assert len(table) == 2

    def test_header_only(self):
        table = parse_csv("Sku,Quantity")
        assert table.headers == ("Sku", "Quantity")
        assert table.rows == ()

    @pytest.mark.parametrize("text", ["", "   \n\t", "\ufeff"])
    def test_empty_text_raises(self, text):
        with pytest.raises(ParseError, match="Empty file"):
            parse_csv(text)

    def test_short_rows_are_padded(self):
        table = parse_csv("Sku,Quantity,Warehouse Id\nA1,5")
        assert table.rows == (("A1", "5", ""),)
        assert all(len(row) == len(table.headers) for row in table.rows)

    def test_long_rows_raise(self):
        with pytest.raises(ParseError):
            parse_csv("Sku,Quantity\nA1,5,extra")

    def test_values_stay_strings(self):
        table = parse_csv("Sku,Quantity\n007,1.50")
        assert table.rows == (("007", "1.50"),)


class TestTableIndex:
    def test_index_matches_header_positions(self):
        table = parse_csv(make_csv(FC_HEADERS, [("01-01-2024", "A", "SELLABLE", "1", "FC1")]))
        for header in table.headers:
            assert table.index[header] == table.headers.index(header)

    def test_duplicate_header_later_column_wins(self):
        table = parse_csv("Sku,Quantity,Sku\nfirst,1,second")
        assert table.index == {"Sku": 2, "Quantity": 1}
        assert table.column("Sku") == ["second"]

    def test_to_frame_routes_through_index(self):
        table = parse_csv("Sku,Quantity,Sku\nfirst,1,second")
        df = table.to_frame()
        assert list(df.columns) == ["Sku", "Quantity"]
        assert df["Sku"].tolist() == ["second"]

    def test_to_frame_without_rows(self):
        df = parse_csv("Sku,Quantity").to_frame()
        assert list(df.columns) == ["Sku", "Quantity"]
        assert df.empty

    def test_tables_with_same_content_are_equal(self):
        assert parse_csv("a,b\n1,2") == Table(headers=("a", "b"), rows=(("1", "2"),))


class TestValidateHeaders:
    def test_all_present(self):
        validate_headers(["Quantity", "Warehouse Id", "Sku", "Transaction Type"], SALE_HEADERS)

    def test_extra_headers_are_fine(self):
        validate_headers(SALE_HEADERS + ["Invoice Number"], SALE_HEADERS)

    def test_names_first_missing_header(self):
        with pytest.raises(ValidationError, match="Missing required header: Sku") as exc:
            validate_headers(["Transaction Type", "Quantity"], SALE_HEADERS)
        assert exc.value.missing == ["Sku", "Warehouse Id"]

    def test_case_sensitive(self):
        with pytest.raises(ValidationError, match="Missing required header: Sku"):
            validate_headers(["Transaction Type", "SKU", "Quantity", "Warehouse Id"], SALE_HEADERS)

    @pytest.mark.parametrize("order", [0, 1, 2])
    def test_order_does_not_matter(self, order):
        headers = FC_HEADERS[order:] + FC_HEADERS[:order]
        validate_headers(headers, FC_HEADERS)

    @pytest.mark.parametrize("missing", FC_HEADERS)
    def test_fails_when_any_header_is_absent(self, missing):
        headers = [h for h in FC_HEADERS if h != missing]
        with pytest.raises(ValidationError) as exc:
            validate_headers(headers, FC_HEADERS)
        assert exc.value.missing == [missing]


class TestSaleSchemaCompatibility:
    def test_minimal_is_the_default(self):
        assert required_headers(SourceType.SALE, "minimal") == SALE_HEADERS

    def test_rich_is_a_superset_of_minimal(self):
        assert set(SALE_HEADERS) < set(SALE_RICH_HEADERS)

    def test_rich_export_passes_minimal_schema(self):
        text = make_csv(SALE_RICH_HEADERS, [("Shipment", "A", "1", "FC1", "KA", "AFN")])
        table = load_table(text, SourceType.SALE, sale_schema="minimal")
        assert len(table) == 1

    def test_minimal_export_fails_rich_schema(self):
        text = make_csv(SALE_HEADERS, [("Shipment", "A", "1", "FC1")])
        with pytest.raises(ValidationError, match="Missing required header: Ship To State"):
            load_table(text, SourceType.SALE, sale_schema="rich")

    def test_unknown_schema(self):
        with pytest.raises(ValueError):
            required_headers(SourceType.SALE, "legacy")
