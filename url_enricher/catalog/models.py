"""Catalog record schema."""

from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, PrivateAttr

# Column order used when a catalog has no header to inherit
DEFAULT_COLUMNS: Tuple[str, ...] = (
    "brand",
    "product_name",
    "category",
    "form",
    "variant_generic",
    "size_label",
    "brand_domain",
    "source_priority",
    "canonical_product_url",
    "review_url_1",
    "review_url_2",
    "last_verified_utc",
    "notes",
)

REQUIRED_COLUMNS: Tuple[str, ...] = ("brand", "product_name")

NOTES_SEPARATOR = " | "


class RecordOutcome(str, Enum):
    """Terminal state of one record in the pipeline."""

    SKIPPED = "skipped"
    ENRICHED = "enriched"
    NO_MATCH = "no_match"
    ERROR = "error"


class SourceLine(NamedTuple):
    """A record's line as read: text without terminator, cell values, terminator."""

    text: str
    values: Tuple[str, ...]
    terminator: str


class CatalogRecord(BaseModel):
    """One product identity row.

    Known columns are typed fields; any other column is kept verbatim in
    ``extra_fields`` so that a read/write cycle never loses data.
    """

    brand: str = ""
    product_name: str = ""
    category: str = ""
    form: str = ""
    variant_generic: str = ""
    size_label: str = ""
    brand_domain: str = ""
    source_priority: str = ""
    canonical_product_url: str = ""
    review_url_1: str = ""
    review_url_2: str = ""
    last_verified_utc: str = ""
    notes: str = ""

    extra_fields: Dict[str, str] = Field(default_factory=dict)

    # Header order the record was read with
    _columns: Tuple[str, ...] = PrivateAttr(default=())
    _source: Optional[SourceLine] = PrivateAttr(default=None)

    def __eq__(self, other: object) -> bool:
        # Equal when the data matches, however the record was built
        if not isinstance(other, CatalogRecord):
            return NotImplemented
        return self.model_dump() == other.model_dump()

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, str],
        columns: Optional[List[str]] = None,
    ) -> "CatalogRecord":
        """Build a record from a column -> value mapping."""
        known = {}
        extra = {}
        for column, value in row.items():
            value = "" if value is None else str(value)
            if column in DEFAULT_COLUMNS:
                known[column] = value
            else:
                extra[column] = value

        record = cls(**known, extra_fields=extra)
        record._columns = tuple(columns) if columns is not None else tuple(row.keys())
        return record

    @property
    def columns(self) -> List[str]:
        """Output column order: the read header plus newly populated fields."""
        if self._columns:
            order = list(self._columns)
        else:
            order = list(DEFAULT_COLUMNS) + [c for c in self.extra_fields if c not in DEFAULT_COLUMNS]

        for column in DEFAULT_COLUMNS:
            if column not in order and getattr(self, column):
                order.append(column)
        return order

    def get(self, column: str) -> str:
        if column in DEFAULT_COLUMNS:
            return getattr(self, column)
        return self.extra_fields.get(column, "")

    def to_row(self) -> Dict[str, str]:
        return {column: self.get(column) for column in self.columns}

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}{NOTES_SEPARATOR}{note}" if self.notes else note

    def remember_source(self, text: str, values: Sequence[str], terminator: str) -> None:
        self._source = SourceLine(text=text, values=tuple(values), terminator=terminator)

    @property
    def line_terminator(self) -> str:
        """Terminator of the line the record was read from, or ""."""
        return self._source.terminator if self._source is not None else ""

    def unchanged_text(self, columns: Sequence[str]) -> Optional[str]:
        """
        The original line text, if writing under ``columns`` would reproduce it.

        Requires the read header and every value to be unchanged.
        """
        if self._source is None or tuple(columns) != self._columns:
            return None
        if tuple(self.get(c) for c in columns) != self._source.values:
            return None
        return self._source.text

    @property
    def has_canonical_url(self) -> bool:
        return bool(self.canonical_product_url.strip())

    @property
    def identity(self) -> str:
        """Product identity compared against page names and titles."""
        return " ".join(p for p in (self.product_name.strip(), self.variant_generic.strip()) if p)
