import os
import tomllib
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .exceptions import InlinePythonError


@dataclass(frozen=True)
class EmbedConfig:
    interpolation_sigil: str = "'"
    operator_sigil: str = "#"
    operator_replacement: str = "//"
    bindings_name: str = "_HOST_"
    macro_names: Tuple[str, ...] = ("python",)
    ct_macro_names: Tuple[str, ...] = ("ct_python",)

    @classmethod
    def default(cls) -> "EmbedConfig":
        return cls()

    @classmethod
    def from_env(cls, base: Optional["EmbedConfig"] = None) -> "EmbedConfig":
        cfg = base or cls()
        bindings_name = os.environ.get("PYINLINE_BINDINGS_NAME")
        if bindings_name:
            cfg = replace(cfg, bindings_name=bindings_name)
        macros = os.environ.get("PYINLINE_MACROS")
        if macros:
            cfg = replace(cfg, macro_names=_split_names(macros))
        ct_macros = os.environ.get("PYINLINE_CT_MACROS")
        if ct_macros:
            cfg = replace(cfg, ct_macro_names=_split_names(ct_macros))
        cfg.validate()
        return cfg

    @classmethod
    def from_pyproject(cls, path: str) -> "EmbedConfig":
        """Read the ``[tool.pyinline]`` table of a pyproject.toml."""
        if not os.path.isfile(path):
            raise InlinePythonError(f"Configuration file not found: {path}")
        with open(path, "rb") as f:
            data = tomllib.load(f)
        table = data.get("tool", {}).get("pyinline", {})
        if not isinstance(table, dict):
            raise InlinePythonError("[tool.pyinline] must be a table")

        cfg = cls()
        if "bindings-name" in table:
            cfg = replace(cfg, bindings_name=str(table["bindings-name"]))
        if "macros" in table:
            cfg = replace(cfg, macro_names=tuple(str(m) for m in table["macros"]))
        if "ct-macros" in table:
            cfg = replace(cfg, ct_macro_names=tuple(str(m) for m in table["ct-macros"]))
        cfg.validate()
        return cfg

    def placeholder(self, name: str) -> str:
        # A call expression, so it can never be an assignment target.
        return f'{self.bindings_name}.get("{name}")'

    def validate(self) -> None:
        if not self.bindings_name.isidentifier():
            raise InlinePythonError(
                f"bindings name '{self.bindings_name}' is not a valid Python identifier"
            )
        for sigil in (self.interpolation_sigil, self.operator_sigil):
            if len(sigil) != 1:
                raise InlinePythonError(f"sigil '{sigil}' must be a single character")
        if set(self.macro_names) & set(self.ct_macro_names):
            raise InlinePythonError("a macro name cannot be both run-time and build-time")


def _split_names(value: str) -> Tuple[str, ...]:
    return tuple(n.strip() for n in value.split(",") if n.strip())
