from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

import pyinline

HOST_SOURCE = "\n".join(
    [
        "fn main() {",
        "    let n = 3;",
        "    python! {",
        '        print("hello from python")',
        "    }",
        "    python! {",
        "        print('n)",
        "    }",
        "}",
        "ct_python! {",
        '    print("static ANSWER: u32 = 42;")',
        "}",
        "",
    ]
)

BROKEN_SOURCE = "fn main() {\n    python! {\n        x = = 1\n    }\n}\n"


class CliTests(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.addCleanup(self._td.cleanup)

    def _write(self, name: str, text: str) -> str:
        path = os.path.join(self._td.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def _main(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with redirect_stdout(out), redirect_stderr(err):
            try:
                pyinline.main(list(argv))
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def test_check_reports_counts(self) -> None:
        code, out, _ = self._main("check", self._write("ok.rs", HOST_SOURCE))
        self.assertEqual(code, 0)
        self.assertIn("3 block(s) checked, 0 error(s)", out)

    def test_check_fails_on_broken_block(self) -> None:
        path = self._write("broken.rs", BROKEN_SOURCE)
        code, out, err = self._main("check", path)
        self.assertEqual(code, 1)
        self.assertIn("1 error(s)", out)
        self.assertIn(f"{path}:3:9: error: python:", err)

    def test_check_reports_lex_errors(self) -> None:
        code, _, err = self._main("check", self._write("lex.rs", "fn main() {\n"))
        self.assertEqual(code, 1)
        self.assertIn("unclosed delimiter", err)

    def test_expand_replaces_build_time_blocks(self) -> None:
        code, out, _ = self._main("expand", self._write("ok.rs", HOST_SOURCE))
        self.assertEqual(code, 0)
        self.assertIn("static ANSWER: u32 = 42;", out)
        self.assertNotIn("ct_python!", out)
        self.assertIn("python! {", out)

    def test_expand_to_file(self) -> None:
        src = self._write("ok.rs", HOST_SOURCE)
        dest = os.path.join(self._td.name, "out.rs")
        code, _, _ = self._main("expand", src, "-o", dest)
        self.assertEqual(code, 0)
        with open(dest, encoding="utf-8") as f:
            self.assertTrue(f.read().endswith("static ANSWER: u32 = 42;\n"))

    def test_run_skips_blocks_with_host_variables(self) -> None:
        path = self._write("ok.rs", HOST_SOURCE)
        with self.assertLogs("pyinline", level="WARNING") as logs:
            code, out, _ = self._main("run", path)
        self.assertEqual(code, 0)
        self.assertEqual(out, "hello from python\n")
        self.assertIn("host variables (n)", logs.output[0])

    def test_dis_lists_every_run_time_block(self) -> None:
        code, out, _ = self._main("dis", self._write("ok.rs", HOST_SOURCE))
        self.assertEqual(code, 0)
        self.assertEqual(out.count("Block at"), 2)
        self.assertIn("host variables: 'n", out)

    def test_missing_file(self) -> None:
        code, _, err = self._main("check", os.path.join(self._td.name, "nope.rs"))
        self.assertEqual(code, 1)
        self.assertIn("no such file", err)

    def test_error_without_span_is_reported_at_call_site(self) -> None:
        self._write("cli_helper_mod.py", "def boom():\n    raise ValueError(\"from module\")\n")
        path = self._write(
            "outside.rs",
            "fn main() {}\nct_python! {\n    import cli_helper_mod\n    cli_helper_mod.boom()\n}\n",
        )
        with patch.object(sys, "path", [self._td.name, *sys.path]), patch.dict(sys.modules):
            code, _, err = self._main("expand", path)
        self.assertEqual(code, 1)
        self.assertIn(f"{path}:2:1: error: python: from module", err)

    def test_build_error_exits_nonzero(self) -> None:
        code, _, err = self._main("run", self._write("broken.rs", BROKEN_SOURCE))
        self.assertEqual(code, 1)
        self.assertIn("error: python:", err)


if __name__ == "__main__":
    unittest.main(verbosity=2)
