"""Rebuilds Python source text from a host token tree.

Host tokens carry positions but no whitespace, so the layout is recreated from
the gaps between token spans. Line numbers of the output match host line
numbers, which is what lets compiler errors be mapped back onto host spans.
"""

from typing import Dict, List, Optional, Sequence

from .config import EmbedConfig
from .exceptions import InvalidIndentation
from .models import Group, Ident, Literal, Punct, Span, Token


class SourceBuilder:
    def __init__(self, config: Optional[EmbedConfig] = None, interpolate: bool = True):
        self.config = config or EmbedConfig.default()
        self.interpolate = interpolate
        self.parts: List[str] = []
        self.variables: Dict[str, str] = {}
        self.first_indent: Optional[int] = None
        self.line = 1
        self.column = 0

    @property
    def python(self) -> str:
        return "".join(self.parts)

    def _emit(self, text: str) -> None:
        if text:
            self.parts.append(text)

    def _add_whitespace(self, span: Span, line: int, column: int) -> None:
        if line > self.line:
            self._emit("\n" * (line - self.line))
            self.line = line
            if self.first_indent is None:
                self.first_indent = column
            indent = column - self.first_indent
            if indent < 0:
                raise InvalidIndentation(line, span)
            self._emit(" " * indent)
            self.column = column
        elif line == self.line and column > self.column:
            self._emit(" " * (column - self.column))
            self.column = column

    def add(self, tokens: Sequence[Token]) -> "SourceBuilder":
        i = 0
        while i < len(tokens):
            token = tokens[i]
            self._add_whitespace(token.span, token.span.start.line, token.span.start.column)

            if isinstance(token, Group):
                start, end = token.delimiter.brackets
                self._emit(start)
                self.column += len(start)
                self.add(token.children)
                end_pos = token.span.end
                self._add_whitespace(token.span, end_pos.line, max(end_pos.column - len(end), 0))
                self._emit(end)
                self.column += len(end)
            elif isinstance(token, Punct):
                i += self._add_punct(token, tokens[i + 1] if i + 1 < len(tokens) else None)
            elif isinstance(token, (Ident, Literal)):
                if isinstance(token, Literal):
                    self._retract_prefix_space(token.text)
                self._emit(token.text)
                self.line = token.span.end.line
                self.column = token.span.end.column
            i += 1
        return self

    def _add_punct(self, punct: Punct, nxt: Optional[Token]) -> int:
        """Emit one punctuation token; returns how many extra tokens it consumed."""
        cfg = self.config
        if self.interpolate and punct.char == cfg.interpolation_sigil and punct.joint and isinstance(nxt, Ident):
            placeholder = cfg.placeholder(nxt.text)
            self._emit(placeholder)
            self.column += len(placeholder)
            self.variables.setdefault(nxt.text, placeholder)
            return 1
        if punct.char == cfg.operator_sigil and punct.joint and isinstance(nxt, Punct):
            if nxt.char == cfg.operator_sigil:
                self._emit(cfg.operator_replacement)
            else:
                self._emit(punct.char + nxt.char)
            self.column += 2
            return 1
        self._emit(punct.char)
        self.column += 1
        return 0

    def _tail(self, n: int) -> str:
        """The last ``n`` emitted characters, or fewer at the start."""
        tail = ""
        for part in reversed(self.parts):
            tail = part[-(n - len(tail)):] + tail
            if len(tail) >= n:
                break
        return tail

    def _retract_prefix_space(self, text: str) -> None:
        # `f "..."` is how a prefixed string has to be written in the host
        # language; Python wants `f"..."`.
        if text[:1] not in ('"', "'"):
            return
        tail = self._tail(2)
        if len(tail) == 2 and tail[1] == " " and tail[0].isascii() and tail[0].isalpha():
            last = self.parts.pop()[:-1]
            self._emit(last)


def rebuild_source(tokens: Sequence[Token], config: Optional[EmbedConfig] = None, interpolate: bool = True) -> SourceBuilder:
    return SourceBuilder(config, interpolate).add(tokens)
