"""
Import pipeline exceptions.

Remote, download and lookup failures are fatal to a run and propagate.
Mapping and row errors are recovered per record by the importers.
ImportFailedError marks a run that was rolled back as a whole.
"""


class CardImportError(Exception):
    """Base exception for all import pipeline failures."""

    pass


class RemoteApiError(CardImportError):
    """Raised when the Scryfall API answers with a non-success status or is unreachable."""

    def __init__(self, url: str, status_code: int | None, body: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"Scryfall API request failed: {url}: {body}")
        else:
            super().__init__(f"Scryfall API request failed: {status_code} - {body}")


class DownloadError(CardImportError):
    """Raised when a bulk data file cannot be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download file from {url}: {reason}")


class BulkDataNotFoundError(CardImportError):
    """Raised when the requested bulk data type is not in the Scryfall manifest."""

    def __init__(self, data_type: str) -> None:
        self.data_type = data_type
        super().__init__(f"Bulk data type '{data_type}' not found")


class BulkDataParseError(CardImportError):
    """Raised when a bulk data file is not a well-formed JSON array."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed bulk data in {path}: {reason}")


class CardMappingError(CardImportError):
    """Raised when a single Scryfall record cannot be mapped to card fields."""

    def __init__(self, card_id: str, card_name: str, reason: str) -> None:
        self.card_id = card_id
        self.card_name = card_name
        self.reason = reason
        super().__init__(reason)


class MoxfieldRowError(CardImportError):
    """Raised when a Moxfield CSV row is structurally invalid."""

    pass


class ImportFailedError(CardImportError):
    """Raised when an import run is aborted and its transaction rolled back."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Import from {source} failed: {reason}")
