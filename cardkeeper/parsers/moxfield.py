"""
Parser for Moxfield collection CSV exports.

Moxfield exports one row per distinct printing and finish:

    "Count","Tradelist Count","Name","Edition","Condition","Language","Foil",...
    "4","0","Lightning Bolt","2xm","Near Mint","English","",...
"""

import csv
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from cardkeeper.models.db import CardCondition
from cardkeeper.services.errors import MoxfieldRowError

REQUIRED_COLUMNS = ("Count", "Name", "Edition", "Condition", "Language", "Foil")

OPTIONAL_COLUMNS = (
    "Tags",
    "Purchase Price",
    "Alter",
    "Proxy",
    "Collector Number",
    "Tradelist Count",
    "Last Modified",
)

CONDITION_MAPPING: dict[str, CardCondition] = {
    "Mint": CardCondition.MINT,
    "Near Mint": CardCondition.NEAR_MINT,
    "Lightly Played": CardCondition.LIGHTLY_PLAYED,
    "Moderately Played": CardCondition.MODERATELY_PLAYED,
    "Heavily Played": CardCondition.HEAVILY_PLAYED,
    "Damaged": CardCondition.DAMAGED,
}

# Everything but digits and separators ("$1,234.50" -> "1,234.50")
_PRICE_NOISE = re.compile(r"[^\d.,]")


@dataclass(frozen=True)
class MoxfieldRow:
    """One validated CSV row. ``count`` copies of the card are owned."""

    count: int
    name: str
    edition: str | None
    collector_number: str | None
    condition: CardCondition
    language: str
    foil: bool
    tags: list[str] | None
    alter: bool
    proxy: bool
    purchase_price: Decimal | None


def _split_line(line: str) -> list[str]:
    return next(csv.reader([line]))


def parse_moxfield_csv(text: str) -> list[dict[str, str]]:
    """
    Split CSV text into rows keyed by header column.

    Blank lines are ignored and the first non-blank line is the header. Rows
    whose field count doesn't match the header are dropped.
    """
    header: list[str] | None = None
    rows: list[dict[str, str]] = []

    for line in text.strip().split("\n"):
        if not line.strip():
            continue

        fields = _split_line(line.rstrip("\r"))
        if header is None:
            header = fields
            continue

        if len(fields) == len(header):
            rows.append(dict(zip(header, fields, strict=True)))

    return rows


def validate_moxfield_header(text: str) -> bool:
    """Check that the first line names every required Moxfield column."""
    lines = text.strip().split("\n")
    if not lines or not lines[0].strip():
        return False

    header = _split_line(lines[0].rstrip("\r"))
    return all(column in header for column in REQUIRED_COLUMNS)


def map_condition(condition: str) -> CardCondition:
    """Map a Moxfield condition label. Unknown labels count as near mint."""
    return CONDITION_MAPPING.get(condition, CardCondition.NEAR_MINT)


def parse_tags(tags: str) -> list[str] | None:
    """Comma-separated tags, or None when there are none."""
    cleaned = [tag.strip() for tag in tags.split(",")]
    cleaned = [tag for tag in cleaned if tag]
    return cleaned or None


def parse_purchase_price(price: str) -> Decimal | None:
    """
    Numeric price with currency symbols and thousands separators removed.

    "$1,234.50" -> Decimal("1234.50"); returns None if nothing numeric is left.
    """
    if not price.strip():
        return None

    numeric = _PRICE_NOISE.sub("", price).replace(",", "")
    try:
        return Decimal(numeric)
    except InvalidOperation:
        return None


def _flag(value: str) -> bool:
    return value.strip().lower() == "true"


def _optional(value: str) -> str | None:
    value = value.strip()
    return value or None


def parse_row(row: dict[str, str]) -> MoxfieldRow:
    """
    Validate one CSV row.

    Raises:
        MoxfieldRowError: If the name is missing or the count is not a
            positive integer
    """
    name = row.get("Name", "").strip()
    if not name:
        raise MoxfieldRowError("Card name is required")

    count_text = row.get("Count", "").strip()
    try:
        count = int(count_text)
    except ValueError as e:
        raise MoxfieldRowError(f"Invalid count '{count_text}'") from e
    if count <= 0:
        raise MoxfieldRowError("Count must be greater than 0")

    return MoxfieldRow(
        count=count,
        name=name,
        edition=_optional(row.get("Edition", "")),
        collector_number=_optional(row.get("Collector Number", "")),
        condition=map_condition(row.get("Condition", "").strip()),
        language=row.get("Language", "").strip() or "English",
        foil=row.get("Foil", "").strip().lower() == "foil",
        tags=parse_tags(row.get("Tags", "")),
        alter=_flag(row.get("Alter", "")),
        proxy=_flag(row.get("Proxy", "")),
        purchase_price=parse_purchase_price(row.get("Purchase Price", "")),
    )
