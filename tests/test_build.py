import unittest

from inline_python import BuildError, Position, check_source, expand_source

SOURCE = "\n".join(
    [
        "// generated constants",
        "const A: u8 = ct_python! { print(1 + 1) };",
        "fn main() {",
        "    ct_python! {",
        '        print("let b = 3;")',
        "    }",
        "    python! { print('b) }",
        "}",
    ]
)


class CheckSourceTests(unittest.TestCase):
    def test_reports_every_block_in_order(self) -> None:
        reports = check_source(SOURCE, "lib.rs")
        self.assertEqual([r.invocation.name for r in reports], ["ct_python", "ct_python", "python"])
        self.assertTrue(all(r.ok for r in reports))
        self.assertEqual(reports[0].output, "2\n")
        self.assertEqual(reports[2].block.variables, ("b",))

    def test_build_time_blocks_can_be_left_unexecuted(self) -> None:
        reports = check_source('ct_python! {\n    raise ValueError("x")\n}', run_build_time=False)
        self.assertTrue(reports[0].ok)
        self.assertIsNone(reports[0].output)

    def test_failed_block_renders_at_its_line(self) -> None:
        (report,) = check_source("\nct_python! {\n    1 / 0\n}", "lib.rs")
        self.assertFalse(report.ok)
        self.assertTrue(report.render().startswith("lib.rs:3:5: error: python: division by zero"))


class ExpandSourceTests(unittest.TestCase):
    def test_build_time_blocks_are_replaced_in_place(self) -> None:
        expanded = expand_source(SOURCE, "lib.rs")
        lines = expanded.split("\n")
        self.assertEqual(lines[1], "const A: u8 = 2;")
        self.assertEqual(lines[3], "    let b = 3;")
        self.assertEqual(lines[4], "    python! { print('b) }")

    def test_first_failure_aborts(self) -> None:
        with self.assertRaises(BuildError):
            expand_source("\nct_python! { 1 / 0 }")

    def test_output_must_lex_as_host_source(self) -> None:
        source = '\nconst A: u8 = ct_python! { print("\\"unclosed") };'
        with self.assertRaises(BuildError) as ctx:
            expand_source(source, "lib.rs")
        self.assertIn("ct_python! printed invalid host source", ctx.exception.diagnostic.message)
        self.assertEqual(ctx.exception.call_site.start, Position(2, 14))
        self.assertEqual(ctx.exception.diagnostic.span, ctx.exception.call_site)

    def test_unbalanced_output_is_reported(self) -> None:
        (report,) = check_source('\nct_python! { print("{") }', "lib.rs")
        self.assertFalse(report.ok)
        self.assertEqual(report.output, "{\n")
        self.assertIn("unclosed delimiter", report.diagnostic.message)


if __name__ == "__main__":
    unittest.main(verbosity=2)
