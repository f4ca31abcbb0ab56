from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .diagnostics import ForeignError
    from .models import Diagnostic, Span


class InlinePythonError(Exception):
    """Base exception for the embedding toolchain."""

    pass


class HostLexError(InlinePythonError):
    """Raised when host source cannot be turned into a token tree."""

    def __init__(self, message: str, line: int, column: int, file: Optional[str] = None):
        super().__init__(f"{file or '<unknown>'}:{line}:{column + 1}: {message}")
        self.message = message
        self.line = line
        self.column = column
        self.file = file


class InvalidIndentation(InlinePythonError):
    """A block line is indented left of the first line's baseline."""

    def __init__(self, line: int, span: Optional["Span"] = None):
        super().__init__(f"Invalid indentation on line {line}")
        self.line = line
        self.span = span


class CompileError(InlinePythonError):
    """CPython refused to compile the reconstructed source."""

    def __init__(self, error: "ForeignError"):
        super().__init__(str(error))
        self.error = error


class PythonSyntaxError(CompileError):
    pass


class SerializationError(InlinePythonError):
    """A compiled block could not be packed or unpacked."""

    pass


class BuildError(InlinePythonError):
    """Carries the diagnostic that aborts a host build."""

    def __init__(self, diagnostic: "Diagnostic", call_site: Optional["Span"] = None):
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic
        self.call_site = call_site

    def render(self) -> str:
        return self.diagnostic.render(self.call_site)


class BindingError(InlinePythonError):
    """A block was run without a value for one of its host variables."""

    pass


class RuntimeUnavailable(InlinePythonError):
    """The interpreter's top-level namespace could not be reached."""

    pass


class VariableNotFound(InlinePythonError):
    def __init__(self, name: str):
        super().__init__(f"Python context does not contain a variable named `{name}`")
        self.name = name


class TypeMismatch(InlinePythonError):
    def __init__(self, name: str, type_name: str):
        super().__init__(f"Unable to convert `{name}` to `{type_name}`")
        self.name = name
        self.type_name = type_name
