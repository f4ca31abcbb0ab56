"""Host token source: turns host program text into a positioned token tree.

The host language is brace-delimited with C-family lexical rules, so a
Python fragment written inside it arrives already split into groups,
punctuation, identifiers and literals. Columns are converted from lark's
1-based convention to 0-based offsets.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from lark import Lark, Token as LarkToken, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from .config import EmbedConfig
from .exceptions import HostLexError
from .grammar import HOST_GRAMMAR
from .models import Delimiter, Group, Ident, Literal, Punct, Spacing, Span, Token

logger = logging.getLogger(__name__)

_PARSER: Optional[Lark] = None


def get_parser() -> Lark:
    """Lazily construct and cache the host grammar parser."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Lark(HOST_GRAMMAR, parser="lalr", lexer="basic")
    return _PARSER


def _span(tok: LarkToken, file: Optional[str]) -> Span:
    return Span.at(tok.line, tok.column - 1, tok.end_line, tok.end_column - 1, file)


def _join_spacing(items: Sequence[Token]) -> Tuple[Token, ...]:
    # Punctuation is joint when the next token touches it: another punctuation
    # character, or an identifier right after a quote.
    out: List[Token] = []
    for i, item in enumerate(items):
        if isinstance(item, Punct) and i + 1 < len(items):
            nxt = items[i + 1]
            touching = nxt.span.start == item.span.end
            if touching and (
                isinstance(nxt, Punct) or (item.char == "'" and isinstance(nxt, Ident))
            ):
                item = replace(item, spacing=Spacing.JOINT)
        out.append(item)
    return tuple(out)


class HostTreeBuilder(Transformer):
    def __init__(self, file: Optional[str] = None):
        super().__init__()
        self.file = file

    def start(self, items):
        return _join_spacing(items)

    def _group(self, delimiter: Delimiter, items) -> Group:
        open_tok, *inner, close_tok = items
        span = Span(_span(open_tok, self.file).start, _span(close_tok, self.file).end, self.file)
        return Group(delimiter, _join_spacing(inner), span)

    def paren(self, items):
        return self._group(Delimiter.PARENTHESIS, items)

    def brace(self, items):
        return self._group(Delimiter.BRACE, items)

    def bracket(self, items):
        return self._group(Delimiter.BRACKET, items)

    def PUNCT(self, t):
        return Punct(str(t), Spacing.ALONE, _span(t, self.file))

    def IDENT(self, t):
        return Ident(str(t), _span(t, self.file))

    def _literal(self, t):
        return Literal(str(t), _span(t, self.file))

    STRING = RAW_STRING = CHAR = NUMBER = _literal


class HostLexer:
    def __init__(self, parser: Optional[Lark] = None):
        self.parser = parser or get_parser()

    def tokenize(self, text: str, path: Optional[str] = None) -> Tuple[Token, ...]:
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise _lex_error(e, text, path) from None
        return HostTreeBuilder(path).transform(tree)

    def tokenize_file(self, path: str) -> Tuple[Token, ...]:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        logger.debug("Tokenizing host file %s", path)
        return self.tokenize(text, path)


def _lex_error(e: UnexpectedInput, text: str, path: Optional[str]) -> HostLexError:
    if isinstance(e, UnexpectedCharacters):
        message = f"unexpected character {e.char!r}"
    elif isinstance(e, UnexpectedEOF):
        message = "unexpected end of input, unclosed delimiter"
    elif isinstance(e, UnexpectedToken) and e.token.type == "$END":
        message = "unexpected end of input, unclosed delimiter"
    elif isinstance(e, UnexpectedToken):
        message = f"unexpected {str(e.token)!r}"
    else:
        message = str(e).split("\n")[0]

    line = getattr(e, "line", -1)
    column = getattr(e, "column", -1)
    if line is None or line < 1:
        lines = text.split("\n")
        line, column = len(lines), len(lines[-1]) + 1
    return HostLexError(message, line, max(column - 1, 0), path)


@dataclass(frozen=True)
class Invocation:
    """A ``name! { ... }`` embedding site found in host tokens."""

    name: str
    tokens: Tuple[Token, ...]
    call_site: Span
    build_time: bool


def find_invocations(
    tokens: Sequence[Token], config: Optional[EmbedConfig] = None
) -> Iterator[Invocation]:
    config = config or EmbedConfig.default()
    names = set(config.macro_names) | set(config.ct_macro_names)
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if (
            isinstance(tok, Ident)
            and tok.text in names
            and i + 2 < len(tokens)
            and isinstance(tokens[i + 1], Punct)
            and tokens[i + 1].char == "!"
            and isinstance(tokens[i + 2], Group)
        ):
            body = tokens[i + 2]
            call_site = tok.span.join(body.span) or tok.span
            yield Invocation(
                tok.text, body.children, call_site, tok.text in config.ct_macro_names
            )
            i += 3
            continue
        if isinstance(tok, Group):
            yield from find_invocations(tok.children, config)
        i += 1
