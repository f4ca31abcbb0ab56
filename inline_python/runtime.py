"""The process-wide interpreter lock and the handle that proves it is held.

Every compile, execution and namespace access of embedded code goes through a
``ForeignRuntime`` obtained from ``acquire_runtime()``. The handle stops
working once its ``with`` block exits.
"""

import sys
import threading
from contextlib import contextmanager
from types import CodeType
from typing import Any, Dict, Iterator

from . import bytecode
from .exceptions import RuntimeUnavailable


_LOCK = threading.RLock()


class ForeignRuntime:
    def __init__(self):
        self._held = True

    def ensure_held(self) -> None:
        if not self._held:
            raise RuntimeError("runtime handle used outside of its lock scope")

    def compile(self, source: str, filename: str, mode: str = "exec") -> CodeType:
        self.ensure_held()
        return compile(source, filename, mode, dont_inherit=True)

    def execute(self, code: CodeType, namespace: Dict[str, Any]) -> Any:
        self.ensure_held()
        return eval(code, namespace, namespace)

    def run_blob(self, blob: bytes, namespace: Dict[str, Any]) -> Any:
        return self.execute(bytecode.unpack(blob), namespace)

    def main_namespace(self) -> Dict[str, Any]:
        """Return a private copy of the ``__main__`` module's globals."""
        self.ensure_held()
        main = sys.modules.get("__main__")
        if main is None:
            raise RuntimeUnavailable("the __main__ module is not loaded")
        return dict(vars(main))

    def _release(self) -> None:
        self._held = False


@contextmanager
def acquire_runtime() -> Iterator[ForeignRuntime]:
    """Block until the interpreter lock is free, then hold it for the scope."""
    with _LOCK:
        runtime = ForeignRuntime()
        try:
            yield runtime
        finally:
            runtime._release()
