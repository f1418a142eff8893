class RestockError(Exception):
    """Base class for every error raised by the restock planner."""


class ParseError(RestockError):
    """The raw text of a source could not be turned into a table."""


class ValidationError(RestockError):
    """A source table is missing one or more required headers."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        # Report the first missing header, in schema order.
        super().__init__(f"Missing required header: {self.missing[0]}")


class LoadError(RestockError):
    """A source could not be read or fetched."""
