"""Minimal LSP server for Lox: static diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from plox import __version__
from plox.errors import Diagnostic as LoxDiagnostic
from plox.errors import ResolveError, ScanError
from plox.interpreter import DEFAULT_MAX_CALL_DEPTH, ensure_recursion_limit
from plox.parser import Parser
from plox.resolver import Resolver
from plox.scanner import scan

server = LanguageServer("plox-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def check_source(source: str) -> list[LoxDiagnostic]:
    """Run scan, parse and resolve; collect every static problem.

    The program is never executed.
    """
    ensure_recursion_limit(DEFAULT_MAX_CALL_DEPTH)
    try:
        tokens = list(scan(source))
    except ScanError as exc:
        return exc.diagnostics

    statements, errors = Parser(tokens, source).parse_with_errors()
    if errors:
        return errors

    try:
        Resolver(source).resolve(statements)
    except ResolveError as exc:
        return exc.diagnostics
    return []


def _to_lsp(diag: LoxDiagnostic) -> Diagnostic:
    line = diag.line - 1
    col = diag.column - 1
    return Diagnostic(
        range=Range(
            start=Position(line=line, character=col),
            end=Position(line=line, character=col + diag.length),
        ),
        message=diag.message,
        severity=DiagnosticSeverity.Error,
        source="plox",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Check the document and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    diagnostics = [_to_lsp(d) for d in check_source(doc.source)]
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
