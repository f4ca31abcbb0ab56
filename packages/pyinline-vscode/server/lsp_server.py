from __future__ import annotations

import sys
from pathlib import Path


def _fatal(msg: str) -> None:
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()


try:
    try:
        # pygls 2.x
        from pygls.lsp.server import LanguageServer
    except Exception:
        # pygls 1.x fallback
        from pygls.server import LanguageServer
    from lsprotocol.types import (
        TEXT_DOCUMENT_DID_CHANGE,
        TEXT_DOCUMENT_DID_OPEN,
        Diagnostic,
        DiagnosticSeverity,
        Position,
        PublishDiagnosticsParams,
        Range,
    )
except Exception as e:
    _fatal(f"pyinline: Failed to import LSP dependencies: {e}")
    raise


SERVER = LanguageServer("pyinline-server", "v0.1")

# Ensure inline_python is importable from ../../../ when not installed.
SERVER_DIR = Path(__file__).resolve().parent
ROOT_DIR = SERVER_DIR.parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

try:
    from inline_python import EmbedConfig, HostLexError, check_source
    from inline_python import Diagnostic as BlockDiagnostic
    from inline_python import Span
    from inline_python.build import lex_diagnostic
except ImportError:
    _fatal("pyinline: Could not import 'inline_python'. Ensure repo root is in PYTHONPATH.")
    raise


def _range_for(span: Span | None) -> Range:
    if span is None:
        return Range(start=Position(line=0, character=0), end=Position(line=0, character=0))
    start = Position(line=max(span.start.line - 1, 0), character=max(span.start.column, 0))
    end = Position(line=max(span.end.line - 1, 0), character=max(span.end.column, 0))
    return Range(start=start, end=end)


def to_lsp(diag: BlockDiagnostic, call_site: Span | None = None) -> Diagnostic:
    return Diagnostic(
        range=_range_for(diag.span or call_site),
        message=diag.message,
        severity=DiagnosticSeverity.Error,
        source="pyinline",
    )


def collect_diagnostics(source: str, path: str | None = None) -> list[Diagnostic]:
    """Compile every block in the document; build-time blocks are not executed."""
    try:
        reports = check_source(source, path, EmbedConfig.from_env(), run_build_time=False)
    except HostLexError as e:
        return [to_lsp(lex_diagnostic(e))]
    return [to_lsp(r.diagnostic, r.invocation.call_site) for r in reports if r.diagnostic is not None]


def _get_document(ls, uri: str):
    workspace = ls.workspace
    getter = getattr(workspace, "get_text_document", None) or workspace.get_document
    return getter(uri)


def _publish(ls, uri: str, diags: list[Diagnostic]) -> None:
    if hasattr(ls, "publish_diagnostics"):
        ls.publish_diagnostics(uri, diags)
    else:
        ls.text_document_publish_diagnostics(PublishDiagnosticsParams(uri=uri, diagnostics=diags))


def validate(ls: LanguageServer, uri: str) -> None:
    doc = _get_document(ls, uri)
    path = getattr(doc, "path", None)
    _publish(ls, uri, collect_diagnostics(doc.source, path))


@SERVER.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls, params):
    validate(ls, params.text_document.uri)


@SERVER.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls, params):
    validate(ls, params.text_document.uri)


if __name__ == "__main__":
    SERVER.start_io()
