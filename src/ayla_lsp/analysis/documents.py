from __future__ import annotations

import logging
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    uri: str
    text: str
    version: int | None = None


class DocumentStore:
    """The open documents of one editor session, one live snapshot per URI."""

    def __init__(self) -> None:
        self._documents: dict[str, DocumentSnapshot] = {}

    def open(self, uri: str, text: str, version: int | None = None) -> DocumentSnapshot:
        snapshot = DocumentSnapshot(uri=uri, text=text, version=version)
        self._documents[uri] = snapshot
        LOGGER.debug("Stored %s (version %s, %s chars)", uri, version, len(text))
        return snapshot

    replace = open

    def get(self, uri: str) -> DocumentSnapshot | None:
        return self._documents.get(uri)

    def close(self, uri: str) -> DocumentSnapshot | None:
        LOGGER.debug("Dropped %s", uri)
        return self._documents.pop(uri, None)

    def clear(self) -> None:
        self._documents.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)
