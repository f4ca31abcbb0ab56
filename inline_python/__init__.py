from .grammar import HOST_GRAMMAR
from .exceptions import (
    InlinePythonError,
    HostLexError,
    InvalidIndentation,
    CompileError,
    PythonSyntaxError,
    SerializationError,
    BuildError,
    BindingError,
    RuntimeUnavailable,
    VariableNotFound,
    TypeMismatch,
)
from .models import (
    Position,
    Span,
    Delimiter,
    Spacing,
    Group,
    Punct,
    Ident,
    Literal,
    Diagnostic,
)
from .config import EmbedConfig
from .lexer import HostLexer, Invocation, find_invocations
from .reconstruct import SourceBuilder, rebuild_source
from .diagnostics import classify, map_error, span_for_line
from .runtime import ForeignRuntime, acquire_runtime
from .block import PythonBlock
from .compiler import embed, embed_source, run_ct_python
from .context import Context, ContextState
from .build import BlockReport, check_source, check_tokens, expand_source
from .disassembler import disassemble, disassemble_block

__all__ = [
    "HOST_GRAMMAR",
    "InlinePythonError",
    "HostLexError",
    "InvalidIndentation",
    "CompileError",
    "PythonSyntaxError",
    "SerializationError",
    "BuildError",
    "BindingError",
    "RuntimeUnavailable",
    "VariableNotFound",
    "TypeMismatch",
    "Position",
    "Span",
    "Delimiter",
    "Spacing",
    "Group",
    "Punct",
    "Ident",
    "Literal",
    "Diagnostic",
    "EmbedConfig",
    "HostLexer",
    "Invocation",
    "find_invocations",
    "SourceBuilder",
    "rebuild_source",
    "classify",
    "map_error",
    "span_for_line",
    "ForeignRuntime",
    "acquire_runtime",
    "PythonBlock",
    "embed",
    "embed_source",
    "run_ct_python",
    "Context",
    "ContextState",
    "BlockReport",
    "check_source",
    "check_tokens",
    "expand_source",
    "disassemble",
    "disassemble_block",
]
