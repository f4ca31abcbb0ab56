import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from .block import PythonBlock
from .exceptions import BindingError, InlinePythonError, TypeMismatch, VariableNotFound
from .runtime import ForeignRuntime, acquire_runtime

logger = logging.getLogger(__name__)


class ContextState(Enum):
    FRESH = "fresh"
    RUNNING = "running"


class Context:
    """An execution context for embedded Python code.

    Keeps global variables and imports intact between runs::

        c = Context()
        c.run(embed_source("foo = 5"))
        c.run(embed_source("assert foo == 5"))

    It can also be used to pass values in and out::

        c.set("x", 13)
        c.run(embed_source("y = x + 2"))
        c.get("y")  # 15

    The namespace starts as a private copy of ``__main__``'s globals and is
    owned by this context alone.
    """

    def __init__(self):
        with acquire_runtime() as runtime:
            self._globals: Dict[str, Any] = runtime.main_namespace()
        self.state = ContextState.FRESH
        logger.debug("Created context with %d globals", len(self._globals))

    @classmethod
    def create(cls) -> "Context":
        return cls()

    def __copy__(self):
        raise TypeError("a Context owns its namespace and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("a Context owns its namespace and cannot be copied")

    @property
    def globals(self) -> Mapping[str, Any]:
        """Read-only snapshot of the namespace, taken under the runtime lock.

        Later runs do not show up in a snapshot already handed out.
        """
        with acquire_runtime() as runtime:
            runtime.ensure_held()
            return MappingProxyType(dict(self._globals))

    # --- Running code ---

    def run(self, block: PythonBlock, bindings: Optional[Mapping[str, Any]] = None, **values: Any) -> Any:
        """Run a block in this context.

        Host variables referenced as ``'name`` are looked up in ``bindings``
        and the keyword arguments. Errors raised by the Python code are logged
        and propagated unchanged; whatever the code changed before failing
        stays changed.
        """
        with acquire_runtime() as runtime:
            return self.run_with_runtime(runtime, block, bindings, **values)

    def run_with_runtime(
        self,
        runtime: ForeignRuntime,
        block: PythonBlock,
        bindings: Optional[Mapping[str, Any]] = None,
        **values: Any,
    ) -> Any:
        supplied = dict(bindings or {})
        supplied.update(values)
        self._install_bindings(runtime, block, supplied)
        try:
            result = runtime.run_blob(block.bytecode, self._globals)
        except Exception as e:
            logger.error(
                "python!{...} failed to execute: %s", block.diagnose(e).render(block.call_site), exc_info=e
            )
            raise
        self.state = ContextState.RUNNING
        return result

    def _install_bindings(self, runtime: ForeignRuntime, block: PythonBlock, supplied: Dict[str, Any]) -> None:
        missing = [name for name in block.variables if name not in supplied]
        if missing:
            raise BindingError(
                f"no value given for host variable{'s' if len(missing) > 1 else ''} "
                + ", ".join(f"'{name}" for name in missing)
            )
        self.set_with_runtime(
            runtime, block.bindings_name, MappingProxyType({var: supplied[var] for var in block.variables})
        )

    # --- Variables ---

    def get(self, name: str, as_type: Optional[type] = None) -> Any:
        with acquire_runtime() as runtime:
            return self.get_with_runtime(runtime, name, as_type)

    def get_with_runtime(self, runtime: ForeignRuntime, name: str, as_type: Optional[type] = None) -> Any:
        runtime.ensure_held()
        if name not in self._globals:
            raise VariableNotFound(name)
        value = self._globals[name]
        if as_type is None:
            return value
        return _extract(name, value, as_type)

    def set(self, name: str, value: Any) -> None:
        with acquire_runtime() as runtime:
            self.set_with_runtime(runtime, name, value)

    def set_with_runtime(self, runtime: ForeignRuntime, name: str, value: Any) -> None:
        runtime.ensure_held()
        self._globals[name] = value

    def add_function(self, func: Callable[..., Any]) -> None:
        """Make a callable available to Python code under its own ``__name__``."""
        name = getattr(func, "__name__", None)
        if not isinstance(name, str) or not name.isidentifier():
            raise InlinePythonError(f"cannot add {func!r}: it has no usable __name__")
        self.set(name, func)


def _extract(name: str, value: Any, as_type: type) -> Any:
    # bool is an int subclass, but a flag never converts to a number here.
    if isinstance(value, bool) and as_type in (int, float):
        raise TypeMismatch(name, as_type.__name__)
    if isinstance(value, as_type):
        return value
    if as_type is float and isinstance(value, int):
        return float(value)
    if as_type in (list, tuple) and isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return as_type(value)
    raise TypeMismatch(name, getattr(as_type, "__name__", repr(as_type)))
