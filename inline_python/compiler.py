"""Turns host tokens into compiled blocks, or into diagnostics for the build."""

import io
import logging
from contextlib import redirect_stdout
from types import CodeType
from typing import Optional, Sequence, Tuple

from . import bytecode
from .block import PythonBlock
from .config import EmbedConfig
from .diagnostics import Syntax, classify, map_error
from .exceptions import (
    BuildError,
    CompileError,
    InvalidIndentation,
    PythonSyntaxError,
    SerializationError,
)
from .lexer import HostLexer
from .models import Delimiter, Diagnostic, Group, Punct, Span, Token
from .reconstruct import SourceBuilder
from .runtime import ForeignRuntime, acquire_runtime

logger = logging.getLogger(__name__)

ATTRIBUTE_MESSAGE = (
    "Attributes in python!{} are no longer supported. "
    "Use context.run(python!{..}) to use a context."
)


def check_no_attribute(tokens: Sequence[Token]) -> None:
    if (
        len(tokens) >= 3
        and isinstance(tokens[0], Punct)
        and tokens[0].char == "#"
        and isinstance(tokens[1], Punct)
        and tokens[1].char == "!"
        and isinstance(tokens[2], Group)
        and tokens[2].delimiter is Delimiter.BRACKET
    ):
        raise BuildError(Diagnostic(ATTRIBUTE_MESSAGE, tokens[0].span))


def block_filename(tokens: Sequence[Token]) -> str:
    if tokens and tokens[0].span.file:
        return tokens[0].span.file
    return "<unknown>"


def block_span(tokens: Sequence[Token]) -> Optional[Span]:
    if not tokens:
        return None
    first, last = tokens[0].span, tokens[-1].span
    return first.join(last) or first


def _reconstruct(tokens: Sequence[Token], config: EmbedConfig, interpolate: bool) -> SourceBuilder:
    try:
        return SourceBuilder(config, interpolate).add(tokens)
    except InvalidIndentation as e:
        raise BuildError(Diagnostic("Invalid indentation", e.span)) from e


def _compile(
    runtime: ForeignRuntime,
    source: str,
    tokens: Tuple[Token, ...],
    filename: str,
    mode: str,
    call_site: Optional[Span] = None,
) -> CodeType:
    try:
        return runtime.compile(source, filename, mode)
    except Exception as e:
        error = classify(e)
        cause = PythonSyntaxError(error) if isinstance(error, Syntax) else CompileError(error)
        diagnostic = map_error(error, tokens, filename)
        logger.debug("Compiling %s failed: %s", filename, error)
        raise BuildError(diagnostic, call_site) from cause


def embed(
    tokens: Sequence[Token],
    *,
    filename: Optional[str] = None,
    call_site: Optional[Span] = None,
    mode: str = "exec",
    interpolate: bool = True,
    config: Optional[EmbedConfig] = None,
) -> PythonBlock:
    """Reconstruct, compile and pack one block of embedded Python.

    Raises ``BuildError`` carrying the diagnostic when the block is rejected.
    """
    config = config or EmbedConfig.default()
    tokens = tuple(tokens)
    filename = filename or block_filename(tokens)
    call_site = call_site or block_span(tokens)

    check_no_attribute(tokens)
    builder = _reconstruct(tokens, config, interpolate)

    with acquire_runtime() as runtime:
        code = _compile(runtime, builder.python, tokens, filename, mode, call_site)

    try:
        blob = bytecode.pack(code)
    except SerializationError as e:
        raise BuildError(Diagnostic(str(e)), call_site) from e

    logger.debug(
        "Compiled block at %s (%d bytes, variables: %s)",
        call_site or filename,
        len(blob),
        ", ".join(builder.variables) or "none",
    )
    return PythonBlock(
        bytecode=blob,
        filename=filename,
        variables=tuple(builder.variables),
        tokens=tokens,
        call_site=call_site,
        mode=mode,
        bindings_name=config.bindings_name,
    )


def run_ct_python(
    tokens: Sequence[Token],
    *,
    filename: Optional[str] = None,
    call_site: Optional[Span] = None,
    config: Optional[EmbedConfig] = None,
) -> str:
    """Run a block at build time and return what it printed.

    Host variables are not available here, so ``'name`` is left as plain
    punctuation.
    """
    config = config or EmbedConfig.default()
    tokens = tuple(tokens)
    filename = filename or block_filename(tokens)
    call_site = call_site or block_span(tokens)

    check_no_attribute(tokens)
    builder = _reconstruct(tokens, config, interpolate=False)

    with acquire_runtime() as runtime:
        code = _compile(runtime, builder.python, tokens, filename, "exec", call_site)
        namespace = runtime.main_namespace()
        stdout = io.StringIO()
        try:
            with redirect_stdout(stdout):
                runtime.execute(code, namespace)
        except Exception as e:
            raise BuildError(map_error(classify(e), tokens, filename), call_site) from e

    return stdout.getvalue()


def embed_source(
    text: str,
    *,
    path: Optional[str] = None,
    mode: str = "exec",
    config: Optional[EmbedConfig] = None,
) -> PythonBlock:
    """Lex host text and embed all of it as one block."""
    return embed(HostLexer().tokenize(text, path), mode=mode, config=config)
