"""Read and write the product catalog as delimited text."""

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from url_enricher.catalog.models import DEFAULT_COLUMNS, REQUIRED_COLUMNS, CatalogRecord

logger = logging.getLogger(__name__)

DELIMITER = ","
QUOTECHAR = '"'


class CatalogFormatError(ValueError):
    """Raised when a catalog file cannot be interpreted."""
    pass


def parse_catalog_text(text: str) -> List[CatalogRecord]:
    """
    Parse catalog text into records.

    Quoted fields may contain delimiters, doubled quotes and newlines.
    Rows shorter than the header are padded with empty values. Each complete
    record remembers its source line so an unchanged record can be written
    back byte for byte.

    Raises:
        CatalogFormatError: If the header lacks a required column
    """
    physical_lines = io.StringIO(text, newline="").readlines()
    reader = csv.reader(
        iter(physical_lines),
        delimiter=DELIMITER,
        quotechar=QUOTECHAR,
        doublequote=True,
        strict=False,
    )

    header: List[str] | None = None
    records: List[CatalogRecord] = []
    consumed = 0

    for cells in reader:
        line_no = reader.line_num
        raw = "".join(physical_lines[consumed:line_no])
        consumed = line_no

        if not cells or (len(cells) == 1 and not cells[0].strip() and header is not None):
            continue

        if header is None:
            header = [c.strip() for c in cells]
            missing = [c for c in REQUIRED_COLUMNS if c not in header]
            if missing:
                raise CatalogFormatError(f"Catalog header is missing required columns: {', '.join(missing)}")
            continue

        complete = len(cells) == len(header)
        if len(cells) > len(header):
            logger.warning(
                f"Row {line_no} has {len(cells)} cells for {len(header)} columns, dropping the overflow"
            )
            cells = cells[: len(header)]
        cells = cells + [""] * (len(header) - len(cells))

        record = CatalogRecord.from_row(dict(zip(header, cells)), columns=header)
        if complete:
            body = raw.rstrip("\r\n")
            record.remember_source(body, cells, raw[len(body):])
        records.append(record)

    return records


def detect_line_terminator(records: Sequence[CatalogRecord]) -> str:
    """The line terminator the records were read with, defaulting to "\\n"."""
    for record in records:
        if record.line_terminator:
            return record.line_terminator
    return "\n"


def read_catalog(path: str | Path) -> List[CatalogRecord]:
    """Read a catalog file. An empty file yields no records."""
    with open(path, encoding="utf-8-sig", newline="") as fh:
        text = fh.read()
    records = parse_catalog_text(text)
    logger.info(f"Read {len(records)} records from {path}")
    return records


def catalog_columns(records: Sequence[CatalogRecord]) -> List[str]:
    """Column order for output: first record's columns, then any seen later."""
    if not records:
        return list(DEFAULT_COLUMNS)

    columns: List[str] = []
    for record in records:
        for column in record.columns:
            if column not in columns:
                columns.append(column)
    return columns


def format_catalog(records: Sequence[CatalogRecord], line_terminator: str | None = None) -> str:
    """
    Render records as catalog text (header line plus one line per record).

    Unchanged records keep their original line text. Lines end with
    ``line_terminator``, or with the terminator the records were read with.
    """
    terminator = line_terminator or detect_line_terminator(records)
    lines: List[str] = []
    columns = catalog_columns(records)
    lines.append(_format_row(columns))
    for record in records:
        text = record.unchanged_text(columns)
        lines.append(text if text is not None else _format_row(record.get(c) for c in columns))
    return terminator.join(lines) + terminator


def write_catalog(path: str | Path, records: Sequence[CatalogRecord]) -> None:
    """Write records to a catalog file, replacing it."""
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(format_catalog(records))
    logger.info(f"Wrote {len(records)} records to {path}")


def escape_field(value: str) -> str:
    """Quote a value when it holds a delimiter, quote or line break."""
    if value is None:
        return ""
    if any(ch in value for ch in (DELIMITER, QUOTECHAR, "\n", "\r")):
        return QUOTECHAR + value.replace(QUOTECHAR, QUOTECHAR * 2) + QUOTECHAR
    return value


def _format_row(values: Iterable[str]) -> str:
    return DELIMITER.join(escape_field(v) for v in values)
