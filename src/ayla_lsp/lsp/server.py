from __future__ import annotations

import logging

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from ayla_lsp import __version__
from ayla_lsp.analysis.documents import DocumentSnapshot, DocumentStore
from ayla_lsp.analysis.options import AnalysisOptions
from ayla_lsp.analysis.queries import definition, document_diagnostics, hover
from ayla_lsp.config.types import AylaConfig
from ayla_lsp.lsp.convert import (
    definition_to_lsp,
    diagnostic_to_lsp,
    hover_to_lsp,
    position_from_lsp,
)

LOGGER = logging.getLogger(__name__)


class AylaLanguageServer(LanguageServer):
    """pygls server owning the document store of one editor session."""

    def __init__(self, config: AylaConfig | None = None) -> None:
        super().__init__(
            name="ayla-lsp",
            version=__version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Full,
        )
        self.config = config or AylaConfig()
        self.documents = DocumentStore()

    def options_for(self, uri: str) -> AnalysisOptions:
        return AnalysisOptions.from_settings(self.config.analysis, filename=uri)

    def publish(self, snapshot: DocumentSnapshot) -> None:
        diagnostics = document_diagnostics(snapshot.text, self.options_for(snapshot.uri))
        LOGGER.info("Publishing %s diagnostic(s) for %s", len(diagnostics), snapshot.uri)
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(
                uri=snapshot.uri,
                version=snapshot.version,
                diagnostics=[diagnostic_to_lsp(d, snapshot.uri, snapshot.text) for d in diagnostics],
            )
        )

    def clear_diagnostics(self, uri: str) -> None:
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=[])
        )


def did_open(ls: AylaLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
    doc = params.text_document
    ls.publish(ls.documents.open(doc.uri, doc.text, doc.version))


def did_change(ls: AylaLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
    if not params.content_changes:
        return
    doc = params.text_document
    text = params.content_changes[-1].text
    ls.publish(ls.documents.replace(doc.uri, text, doc.version))


def did_close(ls: AylaLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    ls.documents.close(uri)
    ls.clear_diagnostics(uri)


def on_hover(ls: AylaLanguageServer, params: types.HoverParams) -> types.Hover | None:
    snapshot = ls.documents.get(params.text_document.uri)
    if snapshot is None:
        LOGGER.debug("Hover for unknown document %s", params.text_document.uri)
        return None
    position = position_from_lsp(params.position, snapshot.text)
    result = hover(snapshot, position, ls.options_for(snapshot.uri))
    return None if result is None else hover_to_lsp(result, snapshot.text)


def on_definition(ls: AylaLanguageServer, params: types.DefinitionParams) -> types.Location | None:
    snapshot = ls.documents.get(params.text_document.uri)
    if snapshot is None:
        LOGGER.debug("Definition for unknown document %s", params.text_document.uri)
        return None
    result = definition(
        snapshot, position_from_lsp(params.position, snapshot.text), ls.options_for(snapshot.uri)
    )
    return None if result is None else definition_to_lsp(result, snapshot.text)


def create_server(config: AylaConfig | None = None) -> AylaLanguageServer:
    server = AylaLanguageServer(config)
    server.feature(types.TEXT_DOCUMENT_DID_OPEN)(did_open)
    server.feature(types.TEXT_DOCUMENT_DID_CHANGE)(did_change)
    server.feature(types.TEXT_DOCUMENT_DID_CLOSE)(did_close)
    server.feature(types.TEXT_DOCUMENT_HOVER)(on_hover)
    server.feature(types.TEXT_DOCUMENT_DEFINITION)(on_definition)
    return server


def start(config: AylaConfig | None = None) -> None:
    server = create_server(config)
    LOGGER.info("Starting ayla-lsp %s on stdio", __version__)
    try:
        server.start_io()
    finally:
        server.documents.clear()
        LOGGER.info("ayla-lsp stopped")
