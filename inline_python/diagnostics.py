"""Maps CPython compile and runtime errors back onto host source spans."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from .models import Diagnostic, Span


@dataclass(frozen=True)
class NoPayload:
    kind: str

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True)
class Syntax:
    message: str
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.message} at {self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Traceback:
    file: str
    line: int
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Generic:
    text: str

    def __str__(self) -> str:
        return self.text


ForeignError = Union[NoPayload, Syntax, Traceback, Generic]


def classify(exc: BaseException) -> ForeignError:
    """Reduce a CPython exception to the parts the span mapper can use."""
    if isinstance(exc, SyntaxError) and exc.lineno is not None and exc.msg:
        return Syntax(exc.msg, exc.filename or "<unknown>", exc.lineno, exc.offset or 0)

    text = _safe_str(exc)
    tb = exc.__traceback__
    if not text and tb is None:
        return NoPayload(type(exc).__name__)
    if tb is not None:
        while tb.tb_next is not None:
            tb = tb.tb_next
        frame = tb.tb_frame
        return Traceback(frame.f_code.co_filename, tb.tb_lineno, text or type(exc).__name__)
    return Generic(text)


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return repr(value)


def span_for_line(tokens: Iterable[Any], line: int) -> Optional[Span]:
    """Cover every top-level token that starts on ``line``."""
    result: Optional[Span] = None
    for token in tokens:
        span = token.span
        if span.start.line < line:
            continue
        if span.start.line > line:
            break
        if result is None:
            result = span
            continue
        joined = result.join(span)
        if joined is None:
            return result
        result = joined
    return result


def map_error(
    error: ForeignError,
    tokens: Iterable[Any],
    filename: str,
) -> Diagnostic:
    """Turn a classified error into a diagnostic for the host build.

    A diagnostic without span or location is reported at the call site of
    the block.
    """
    tokens = tuple(tokens)

    if isinstance(error, NoPayload):
        return Diagnostic(f"python: {error.kind}")

    if isinstance(error, Syntax):
        span = span_for_line(tokens, error.line)
        if span is not None:
            return Diagnostic(f"python: {error.message}", span)
        location = f"{error.file}:{error.line}:{error.column}"
        return Diagnostic(f"python: {error.message} at {location}", location=location)

    if isinstance(error, Traceback):
        if error.file == filename:
            span = span_for_line(tokens, error.line)
            if span is not None:
                return Diagnostic(f"python: {error.text}", span)
        return Diagnostic(f"python: {error.text}")

    return Diagnostic(f"python: {error.text}")
