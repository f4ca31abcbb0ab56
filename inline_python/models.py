from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True, order=True)
class Position:
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column + 1}"


@dataclass(frozen=True)
class Span:
    start: Position
    end: Position
    file: Optional[str] = None

    @classmethod
    def at(cls, line: int, column: int, end_line: int, end_column: int, file: Optional[str] = None) -> "Span":
        return cls(Position(line, column), Position(end_line, end_column), file)

    def join(self, other: "Span") -> Optional["Span"]:
        # Spans from different files cannot be merged.
        if self.file != other.file:
            return None
        return Span(min(self.start, other.start), max(self.end, other.end), self.file)

    def __str__(self) -> str:
        return f"{self.file or '<unknown>'}:{self.start}"


class Delimiter(Enum):
    PARENTHESIS = "parenthesis"
    BRACE = "brace"
    BRACKET = "bracket"
    NONE = "none"

    @property
    def brackets(self) -> Tuple[str, str]:
        return _BRACKETS[self]


_BRACKETS = {
    Delimiter.PARENTHESIS: ("(", ")"),
    Delimiter.BRACE: ("{", "}"),
    Delimiter.BRACKET: ("[", "]"),
    Delimiter.NONE: ("", ""),
}


class Spacing(Enum):
    ALONE = "alone"
    JOINT = "joint"


@dataclass(frozen=True)
class Group:
    delimiter: Delimiter
    children: Tuple["Token", ...]
    span: Span

    def __str__(self) -> str:
        open_, close = self.delimiter.brackets
        return open_ + " ".join(str(c) for c in self.children) + close


@dataclass(frozen=True)
class Punct:
    char: str
    spacing: Spacing
    span: Span

    @property
    def joint(self) -> bool:
        return self.spacing is Spacing.JOINT

    def __str__(self) -> str:
        return self.char


@dataclass(frozen=True)
class Ident:
    text: str
    span: Span

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Literal:
    text: str
    span: Span

    def __str__(self) -> str:
        return self.text


Token = Union[Group, Punct, Ident, Literal]


@dataclass(frozen=True)
class Diagnostic:
    message: str
    span: Optional[Span] = None
    location: Optional[str] = None

    def render(self, call_site: Optional[Span] = None) -> str:
        """Format as ``file:line:col: error: message``."""
        where = self.span or call_site
        prefix = str(where) if where is not None else "<unknown>"
        return f"{prefix}: error: {self.message}"
