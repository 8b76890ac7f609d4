"""Map HubSpot file records onto the NormalizedFile shape."""

from typing import Iterable

from pdf_chooser.models import NormalizedFile, RawRecord


def normalize_file_url(record: RawRecord) -> str:
    """Prefer the search index URL, falling back to the canonical hosting URL."""
    return record.get("url") or record.get("defaultHostingUrl") or ""


def normalize_file(record: RawRecord) -> NormalizedFile:
    file_id = record.get("id")
    return NormalizedFile(
        id="" if file_id is None else str(file_id),
        name=record.get("name") or "Unnamed",
        url=normalize_file_url(record),
        size=int(record.get("size") or 0),
        path=record.get("path") or "",
        createdAt=record.get("createdAt") or "",
    )


def normalize_files(records: Iterable[RawRecord]) -> list[NormalizedFile]:
    return [normalize_file(record) for record in records]
