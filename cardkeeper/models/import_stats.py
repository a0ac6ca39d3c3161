from dataclasses import dataclass, field
from typing import Any

from cardkeeper.config import ERROR_LOG_LIMIT


@dataclass
class CardError:
    """One record that could not be imported."""

    card_id: str
    card_name: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"card_id": self.card_id, "card_name": self.card_name, "error": self.error}


@dataclass
class ImportStats:
    """
    Counters for one Scryfall import run.

    Every run gets a fresh instance. ``errors`` counts all failed records;
    ``error_log`` keeps only the first ``error_log_limit`` of them.
    """

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_log: list[CardError] = field(default_factory=list)
    error_log_limit: int = ERROR_LOG_LIMIT

    def record_error(self, card_id: str, card_name: str, message: str) -> None:
        """Count a failed record and keep it in the log while there is room."""
        self.errors += 1
        if len(self.error_log) < self.error_log_limit:
            self.error_log.append(CardError(card_id, card_name, message))

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that were created or updated."""
        if self.processed == 0:
            return 0
        return round((self.created + self.updated) / self.processed * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "error_log": [entry.to_dict() for entry in self.error_log],
            "success_rate": self.success_rate,
        }


@dataclass
class RowError:
    """A CSV row that failed; row 0 marks a failure of the whole run."""

    row: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "message": self.message}


@dataclass
class MoxfieldImportStats:
    """Counters for one Moxfield CSV import run."""

    processed: int = 0
    cards_created: int = 0
    cards_found: int = 0
    instances_created: int = 0
    errors: list[RowError] = field(default_factory=list)

    def add_error(self, row: int, message: str) -> None:
        self.errors.append(RowError(row, message))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "cards_created": self.cards_created,
            "cards_found": self.cards_found,
            "instances_created": self.instances_created,
            "errors": [error.to_dict() for error in self.errors],
        }
