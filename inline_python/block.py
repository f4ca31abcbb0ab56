from dataclasses import dataclass
from types import CodeType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

from . import bytecode
from .diagnostics import classify, map_error
from .models import Diagnostic, Span, Token

if TYPE_CHECKING:
    from .context import Context


@dataclass(frozen=True)
class PythonBlock:
    """A compiled ``python! { ... }`` block.

    Holds the packed byte-code and the host variables it references, in the
    order their values are installed when the block runs. The reconstructed
    source is not kept; the host tokens are, so runtime errors can still be
    pinned to a host line.
    """

    bytecode: bytes
    filename: str
    variables: Tuple[str, ...] = ()
    tokens: Tuple[Token, ...] = ()
    call_site: Optional[Span] = None
    mode: str = "exec"
    bindings_name: str = "_HOST_"

    def code(self) -> CodeType:
        return bytecode.unpack(self.bytecode)

    def diagnose(self, exc: BaseException) -> Diagnostic:
        return map_error(classify(exc), self.tokens, self.filename)

    def run(self, bindings: Optional[Mapping[str, Any]] = None, **values: Any) -> Any:
        """Run in a fresh context that is thrown away afterwards."""
        from .context import Context

        return Context().run(self, bindings, **values)

    def into_context(self, bindings: Optional[Mapping[str, Any]] = None, **values: Any) -> "Context":
        """Run in a fresh context and hand that context back."""
        from .context import Context

        context = Context()
        context.run(self, bindings, **values)
        return context
