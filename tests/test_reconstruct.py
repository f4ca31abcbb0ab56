import unittest

from inline_python import (
    EmbedConfig,
    HostLexer,
    InvalidIndentation,
    Literal,
    Position,
    Punct,
    SourceBuilder,
    Spacing,
    Span,
    rebuild_source,
)


def _rebuild(text: str, **kwargs) -> SourceBuilder:
    return rebuild_source(HostLexer().tokenize(text), **kwargs)


class ReconstructionTests(unittest.TestCase):
    def test_layout_is_reproduced(self) -> None:
        source = "x = [1, 2]\nif x:\n    print(x)"
        self.assertEqual(_rebuild(source).python, source)

    def test_identical_modulo_whitespace(self) -> None:
        source = "\ndef f(a,  b):\n    return {a: b,\n            b: a}\nf( 1 , 2 )"
        rebuilt = _rebuild(source).python
        self.assertEqual("".join(rebuilt.split()), "".join(source.split()))
        self.assertEqual(rebuilt.count("\n"), source.count("\n"))

    def test_host_lines_match_python_lines(self) -> None:
        tokens = HostLexer().tokenize("fn main() {\n    python! {\n        a = 1\n\n        b = 2\n    }\n}")
        body = tokens[-1].children[2].children
        rebuilt = rebuild_source(body).python
        lines = rebuilt.split("\n")
        self.assertEqual(lines[2], "a = 1")
        self.assertEqual(lines[4], "b = 2")

    def test_first_line_sets_the_baseline(self) -> None:
        builder = _rebuild("\n    if a:\n        b")
        self.assertEqual(builder.first_indent, 4)
        self.assertEqual(builder.python, "\nif a:\n    b")

    def test_dedent_below_baseline_is_rejected(self) -> None:
        with self.assertRaises(InvalidIndentation) as ctx:
            _rebuild("\n    a = 1\n  b = 2")
        self.assertEqual(ctx.exception.line, 3)
        self.assertEqual(ctx.exception.span.start, Position(3, 2))

    def test_long_block(self) -> None:
        source = "\n".join(f"v{i} = f \"{{{i}}}\"" for i in range(5000))
        rebuilt = _rebuild(source).python
        self.assertEqual(rebuilt.count("\n"), 4999)
        self.assertTrue(rebuilt.endswith('v4999 = f"{4999}"'))

    def test_closing_delimiter_on_own_line(self) -> None:
        source = "\nx = [\n    1,\n]"
        self.assertEqual(_rebuild(source).python, source)


class InterpolationTests(unittest.TestCase):
    def test_host_variable_becomes_placeholder(self) -> None:
        builder = _rebuild("print('x)")
        self.assertEqual(builder.python, 'print(_HOST_.get("x"))')
        self.assertEqual(list(builder.variables), ["x"])

    def test_repeated_variable_is_recorded_once(self) -> None:
        builder = _rebuild("y = 'a + 'b + 'a")
        self.assertEqual(list(builder.variables), ["a", "b"])
        self.assertEqual(builder.python.count('_HOST_.get("a")'), 2)

    def test_placeholder_uses_configured_bindings_name(self) -> None:
        builder = _rebuild("'x", config=EmbedConfig(bindings_name="_RS"))
        self.assertEqual(builder.python, '_RS.get("x")')

    def test_detached_quote_is_not_a_variable(self) -> None:
        builder = _rebuild("a = ' x")
        self.assertEqual(builder.variables, {})
        self.assertEqual(builder.python, "a = ' x")

    def test_interpolation_can_be_disabled(self) -> None:
        builder = _rebuild("'x", interpolate=False)
        self.assertEqual(builder.python, "'x")
        self.assertEqual(builder.variables, {})


class PunctuationTests(unittest.TestCase):
    def test_double_hash_is_floor_division(self) -> None:
        self.assertEqual(_rebuild("y = 7 ## 2").python, "y = 7 // 2")

    def test_double_hash_assignment_is_floor_division_assignment(self) -> None:
        self.assertEqual(_rebuild("y ##= 2").python, "y //= 2")

    def test_hash_before_other_punctuation_is_kept(self) -> None:
        self.assertEqual(_rebuild("a #! b").python, "a #! b")

    def test_lone_hash_is_kept(self) -> None:
        self.assertEqual(_rebuild("x = 1 # note").python, "x = 1 # note")

    def test_space_before_prefixed_string_is_removed(self) -> None:
        self.assertEqual(_rebuild('y = f "{1 + 1}"').python, 'y = f"{1 + 1}"')
        self.assertEqual(_rebuild("z = b 'c'").python, "z = b'c'")

    def test_space_after_punctuation_before_string_is_kept(self) -> None:
        self.assertEqual(_rebuild('y = ( "a" )').python, 'y = ( "a" )')

    def test_joint_quote_before_non_identifier_is_punctuation(self) -> None:
        tokens = [
            Punct("'", Spacing.JOINT, Span.at(1, 0, 1, 1)),
            Literal('"s"', Span.at(1, 1, 1, 4)),
            Punct("'", Spacing.JOINT, Span.at(1, 5, 1, 6)),
            Punct("+", Spacing.ALONE, Span.at(1, 6, 1, 7)),
        ]
        builder = rebuild_source(tokens)
        self.assertEqual(builder.python, "'\"s\" '+")
        self.assertEqual(builder.variables, {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
