"""pyinline entrypoint module exposing the public API and CLI."""

import argparse
import logging
import os
import sys

from inline_python import (
    BuildError,
    Context,
    EmbedConfig,
    HostLexError,
    InlinePythonError,
    check_source,
    disassemble_block,
    embed,
    embed_source,
    expand_source,
)
from inline_python.build import lex_diagnostic

__all__ = [
    "Context",
    "EmbedConfig",
    "embed",
    "embed_source",
    "check_source",
    "expand_source",
    "main",
]

logger = logging.getLogger("pyinline")


def _load_config(args) -> EmbedConfig:
    if args.config:
        return EmbedConfig.from_env(EmbedConfig.from_pyproject(args.config))
    return EmbedConfig.from_env()


def _read(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_check(args, config: EmbedConfig) -> int:
    try:
        reports = check_source(_read(args.file), args.file, config)
    except HostLexError as e:
        print(lex_diagnostic(e).render(), file=sys.stderr)
        return 1
    failed = 0
    for report in reports:
        if report.ok:
            continue
        failed += 1
        print(report.render(), file=sys.stderr)
    print(f"{len(reports)} block(s) checked, {failed} error(s)")
    return 1 if failed else 0


def cmd_expand(args, config: EmbedConfig) -> int:
    expanded = expand_source(_read(args.file), args.file, config)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(expanded)
        logger.info("Wrote %s", args.out)
    else:
        sys.stdout.write(expanded)
    return 0


def cmd_dis(args, config: EmbedConfig) -> int:
    for report in check_source(_read(args.file), args.file, config, run_build_time=False):
        if report.diagnostic is not None:
            raise BuildError(report.diagnostic, report.invocation.call_site)
        if report.block is not None:
            disassemble_block(report.block)
            print()
    return 0


def cmd_run(args, config: EmbedConfig) -> int:
    context = Context()
    for report in check_source(_read(args.file), args.file, config, run_build_time=False):
        if report.diagnostic is not None:
            raise BuildError(report.diagnostic, report.invocation.call_site)
        block = report.block
        if block is None:
            continue
        if block.variables:
            logger.warning(
                "Skipping block at %s: it needs host variables (%s)",
                block.call_site,
                ", ".join(block.variables),
            )
            continue
        context.run(block)
    return 0


COMMANDS = {
    "check": cmd_check,
    "expand": cmd_expand,
    "dis": cmd_dis,
    "run": cmd_run,
}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Python embedded in host source")
    parser.add_argument("--config", help="pyproject.toml with a [tool.pyinline] table")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    p_check = sub.add_parser("check", help="Compile every embedded block and report errors")
    p_check.add_argument("file")
    p_expand = sub.add_parser("expand", help="Replace build-time blocks with their output")
    p_expand.add_argument("file")
    p_expand.add_argument("-o", "--out", default=None, help="Output file path")
    p_dis = sub.add_parser("dis", help="Disassemble every compiled block")
    p_dis.add_argument("file")
    p_run = sub.add_parser("run", help="Run blocks without host variables in one context")
    p_run.add_argument("file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = os.path.abspath(args.file)
    if not os.path.isfile(path):
        print(f"error: no such file: {args.file}", file=sys.stderr)
        sys.exit(1)

    try:
        code = COMMANDS[args.command](args, _load_config(args))
    except BuildError as e:
        if e.diagnostic.span is None and e.call_site is None:
            print(f"{args.file}: error: {e.diagnostic.message}", file=sys.stderr)
        else:
            print(e.render(), file=sys.stderr)
        sys.exit(1)
    except InlinePythonError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"FATAL ERROR\n{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
