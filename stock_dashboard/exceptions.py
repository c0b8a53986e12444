"""
Error taxonomy for the ingestion pipeline.

Only EmptyOrMalformedInput, RecordValidationError and PersistenceFailure ever
reach the caller. The per-row and per-field errors are recovered where they
are raised.
"""


class InventoryError(Exception):
    """Base class for every error raised by the stock dashboard core."""


class EmptyOrMalformedInput(InventoryError):
    """The CSV text has no header or no data lines."""


class RowFieldCountMismatch(InventoryError):
    def __init__(self, line_number: int, found: int, expected: int, line: str = ""):
        self.line_number = line_number
        self.found = found
        self.expected = expected
        self.line = line
        super().__init__(
            f"Line {line_number}: {found} values vs {expected} expected headers"
        )


class NumericCoercionFailure(InventoryError, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Not a number: {value!r}")


class RecordValidationError(InventoryError):
    """A derived record broke the record schema."""


class PersistenceFailure(InventoryError):
    """The record store rejected the replace-all write."""
