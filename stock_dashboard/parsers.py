import logging
import re

from .exceptions import EmptyOrMalformedInput, RowFieldCountMismatch
from .schemas import ParsedCsv

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Splits raw CSV text on bare or CR-prefixed line breaks and trims each line."""
    return [line.strip() for line in LINE_BREAK.split(text.strip())]


def split_csv_line(line: str) -> list[str]:
    """
    Splits a line on the commas that sit outside a double-quoted field.
    A comma is outside a quote when an even number of '"' precede it on the line.
    """
    fields = []
    current = []
    quote_count = 0
    for char in line:
        if char == '"':
            quote_count += 1
        if char == "," and quote_count % 2 == 0:
            fields.append("".join(current))
            current = []
            continue
        current.append(char)
    fields.append("".join(current))
    return fields


def strip_enclosing_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_header(line: str) -> list[str]:
    return [header.replace('"', "").strip() for header in split_csv_line(line)]


def parse_row(line: str, headers: list[str], line_number: int) -> dict[str, str]:
    """
    Turns one data line into a header -> raw string mapping.
    Raises RowFieldCountMismatch when the line does not split into len(headers) fields.
    """
    values = [strip_enclosing_quotes(value.strip()) for value in split_csv_line(line)]
    if len(values) != len(headers):
        raise RowFieldCountMismatch(line_number, len(values), len(headers), line)
    return dict(zip(headers, values))


def parse_csv_text(text: str) -> ParsedCsv:
    """
    Parses an in-memory CSV export into raw rows plus the header list in file order.
    Rows with the wrong number of fields are skipped with a warning, never fatal.
    """
    lines = split_lines(text or "")
    if sum(1 for line in lines if line) < 2:
        raise EmptyOrMalformedInput(
            "CSV file is empty or malformed. Please check the CSV format."
        )

    headers = parse_header(lines[0])
    rows = []
    skipped_lines = []

    for index, line in enumerate(lines[1:], start=2):
        if line == "":
            continue
        try:
            rows.append(parse_row(line, headers, index))
        except RowFieldCountMismatch as e:
            logger.warning(f"⚠️ Skipping malformed row. {e}: {e.line!r}")
            skipped_lines.append(e.line_number)

    return ParsedCsv(
        headers=headers,
        rows=rows,
        skipped_lines=skipped_lines,
        total_lines=len(lines) - 1,
    )
