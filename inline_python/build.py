"""Processes every embedded block of a host source file, as a host build would."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .block import PythonBlock
from .compiler import embed, run_ct_python
from .config import EmbedConfig
from .exceptions import BuildError, HostLexError
from .lexer import HostLexer, Invocation, find_invocations
from .models import Diagnostic, Position, Span, Token

logger = logging.getLogger(__name__)


@dataclass
class BlockReport:
    invocation: Invocation
    block: Optional[PythonBlock] = None
    output: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None

    def render(self) -> str:
        return self.diagnostic.render(self.invocation.call_site) if self.diagnostic else ""


def check_tokens(
    tokens: Sequence[Token], config: Optional[EmbedConfig] = None, run_build_time: bool = True
) -> List[BlockReport]:
    config = config or EmbedConfig.default()
    reports: List[BlockReport] = []
    for inv in find_invocations(tokens, config):
        report = BlockReport(inv)
        try:
            if inv.build_time:
                if run_build_time:
                    report.output = run_ct_python(inv.tokens, call_site=inv.call_site, config=config)
                    check_output(report.output, inv)
                else:
                    embed(inv.tokens, call_site=inv.call_site, interpolate=False, config=config)
            else:
                report.block = embed(inv.tokens, call_site=inv.call_site, config=config)
        except BuildError as e:
            report.diagnostic = e.diagnostic
            logger.debug("Block at %s rejected: %s", inv.call_site, e.diagnostic.message)
        reports.append(report)
    return reports


def lex_diagnostic(error: HostLexError) -> Diagnostic:
    pos = Position(error.line, error.column)
    return Diagnostic(error.message, Span(pos, Position(error.line, error.column + 1), error.file))


def check_output(output: str, inv: Invocation) -> None:
    """Build-time output replaces the invocation, so it has to lex as host source."""
    try:
        HostLexer().tokenize(output, inv.call_site.file)
    except HostLexError as e:
        message = f"{inv.name}! printed invalid host source: {e.message} (output line {e.line})"
        raise BuildError(Diagnostic(message, inv.call_site), inv.call_site) from e


def check_source(
    text: str, path: Optional[str] = None, config: Optional[EmbedConfig] = None, run_build_time: bool = True
) -> List[BlockReport]:
    tokens = HostLexer().tokenize(text, path)
    return check_tokens(tokens, config, run_build_time)


def _offset(line_starts: Sequence[int], pos: Position) -> int:
    return line_starts[pos.line - 1] + pos.column


def expand_source(text: str, path: Optional[str] = None, config: Optional[EmbedConfig] = None) -> str:
    """Replace every build-time block with the text it prints.

    Raises ``BuildError`` for the first block that fails.
    """
    reports = check_source(text, path, config)
    line_starts = [0]
    for line in text.split("\n")[:-1]:
        line_starts.append(line_starts[-1] + len(line) + 1)

    pieces: List[str] = []
    cursor = 0
    for report in reports:
        if report.diagnostic is not None:
            raise BuildError(report.diagnostic, report.invocation.call_site)
        if not report.invocation.build_time:
            continue
        site = report.invocation.call_site
        start, end = _offset(line_starts, site.start), _offset(line_starts, site.end)
        pieces.append(text[cursor:start])
        pieces.append((report.output or "").rstrip("\n"))
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)
