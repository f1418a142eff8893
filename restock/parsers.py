import csv
import io
import re
from dataclasses import dataclass, field
from typing import Iterable
import pandas as pd

from .errors import ParseError, ValidationError
from .schemas import SourceType, required_headers

# Checked in order; the first one present in the header line wins.
DELIMITER_PRIORITY = ("\t", ";", ",")
DEFAULT_DELIMITER = ","


@dataclass(frozen=True)
class Table:
    """
    A parsed CSV: the header row, the data rows and a header -> column lookup.
    Every row has exactly len(headers) cells.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    index: dict[str, int] = field(init=False, compare=False)

    def __post_init__(self):
        # Left-to-right enumeration: with duplicate headers the later column wins.
        object.__setattr__(self, "index", {h: i for i, h in enumerate(self.headers)})

    def column(self, name: str) -> list[str]:
        position = self.index[name]
        return [row[position] for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        """One string column per distinct header, routed through `index`."""
        raw = pd.DataFrame(
            [list(row) for row in self.rows], columns=range(len(self.headers)), dtype=str
        )
        return pd.DataFrame({name: raw[position] for name, position in self.index.items()})

    def __len__(self) -> int:
        return len(self.rows)


def detect_delimiter(header_line: str) -> str:
    for delimiter in DELIMITER_PRIORITY:
        if delimiter in header_line:
            return delimiter
    return DEFAULT_DELIMITER


def _clean_cells(column: pd.Series) -> pd.Series:
    # Surrounding whitespace, then one pair of surrounding quotes.
    return (
        column.fillna("")
        .str.strip()
        .str.replace(r'^"|"$', "", regex=True)
        .str.strip()
    )


def parse_csv(text: str) -> Table:
    """
    Parses raw CSV text into a Table.
    - Strips a byte-order mark and outer whitespace.
    - Accepts CRLF or LF line endings; blank lines are skipped.
    - Auto-detects the delimiter from the header line (tab > semicolon > comma).
    - Every line is split on the delimiter as is; quotes are not special, so a
      stray quote never spans lines or swallows a delimiter.
    - Short rows are padded with empty cells. Long rows are a ParseError.
    """
    text = text.removeprefix("\ufeff").strip()
    if not text:
        raise ParseError("Empty file")

    header_line = re.split(r"\r?\n", text, maxsplit=1)[0]
    delimiter = detect_delimiter(header_line)

    try:
        raw = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            quoting=csv.QUOTE_NONE,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Malformed CSV: {e}") from e

    raw = raw.apply(_clean_cells)
    headers = tuple(raw.iloc[0])
    rows = tuple(tuple(row) for row in raw.iloc[1:].itertuples(index=False, name=None))
    return Table(headers=headers, rows=rows)


def validate_headers(headers: Iterable[str], required: Iterable[str]) -> None:
    """
    Raises ValidationError naming the first required header that is absent.
    Exact, case-sensitive matching; header order doesn't matter.
    """
    present = set(headers)
    missing = [h for h in required if h not in present]
    if missing:
        raise ValidationError(missing)


def load_table(text: str, source: SourceType, sale_schema: str | None = None) -> Table:
    """Parses `text` and checks it against the header schema for `source`."""
    table = parse_csv(text)
    validate_headers(table.headers, required_headers(source, sale_schema))
    return table
