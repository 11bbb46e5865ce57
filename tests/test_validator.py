"""
Tests for syntax validation of rewritten content.
"""

from ai_i18n.processing.validator import SyntaxValidator, scan_delimiters


class TestScriptValidation:
    """Tests for the JavaScript/TypeScript delimiter scan."""

    def setup_method(self):
        self.validator = SyntaxValidator()

    def test_balanced_component(self):
        """Test a well-formed TSX component is valid."""
        content = (
            "export function App() {\n"
            '  return <button onClick={() => save([1, 2])}>{$t("ti_jiao")}</button>;\n'
            "}\n"
        )
        report = self.validator.validate(content, ".tsx")
        assert report.valid
        assert report.errors == []

    def test_unclosed_brace(self):
        """Test a missing closing brace is an error with its line."""
        report = self.validator.validate("function f() {\n  return 1;\n", ".js")
        assert not report.valid
        assert report.errors == ["line 1: '{' is never closed"]

    def test_mismatched_delimiter(self):
        """Test a closer of the wrong kind is an error."""
        errors, _ = scan_delimiters("call(a]")
        assert errors[0] == "line 1: ']' does not match '(' opened on line 1"

    def test_unexpected_closer(self):
        """Test a closer without opener is an error."""
        errors, _ = scan_delimiters("a)")
        assert errors == ["line 1: unexpected ')'"]

    def test_delimiters_in_strings_and_comments_ignored(self):
        """Test brackets inside literals and comments do not count."""
        source = (
            'const a = "(";\n'
            "const b = '}';\n"
            "// ) unmatched in a comment\n"
            "/* { also ignored */\n"
        )
        errors, warnings = scan_delimiters(source)
        assert errors == []
        assert warnings == []

    def test_template_literal_expressions(self):
        """Test ${...} expressions inside template literals are followed."""
        errors, _ = scan_delimiters("const s = `total: ${items.map((i) => i.n).join(`,`)}`;")
        assert errors == []

    def test_unterminated_template_literal(self):
        """Test an open template literal is an error."""
        errors, _ = scan_delimiters("const s = `abc")
        assert "unterminated template literal" in errors

    def test_apostrophe_in_jsx_text_is_a_warning(self):
        """Test a bare apostrophe only produces a warning."""
        report = self.validator.validate("const a = <p>Don't</p>;\nconst b = [1];\n", ".jsx")
        assert report.valid
        assert report.warnings == ["line 1: unterminated string literal"]


class TestOtherCategories:
    """Tests for Vue, Python, JSON and unknown files."""

    def setup_method(self):
        self.validator = SyntaxValidator()

    def test_vue_valid(self):
        """Test a Vue component with balanced script and template."""
        content = (
            "<template>\n  <p>{{ $t('ti_jiao') }}</p>\n</template>\n"
            "<script>\nexport default { data() { return {}; } };\n</script>\n"
        )
        assert self.validator.validate(content, ".vue").valid

    def test_vue_script_error_reports_file_line(self):
        """Test script errors carry the block number and file line."""
        content = "<template><p/></template>\n<script>\nfoo(\n</script>\n"
        report = self.validator.validate(content, ".vue")
        assert not report.valid
        assert report.errors == ["<script> block 1: line 3: '(' is never closed"]

    def test_vue_unbalanced_mustache(self):
        """Test unbalanced interpolations in the template."""
        report = self.validator.validate("<template><p>{{ a }</p></template>", ".vue")
        assert not report.valid

    def test_python(self):
        """Test Python content is parsed."""
        assert self.validator.validate("x = _('ti_jiao')\n", ".py").valid
        report = self.validator.validate("def f(:\n", ".py")
        assert not report.valid
        assert report.errors[0].startswith("line 1:")

    def test_json(self):
        """Test JSON content is parsed."""
        assert self.validator.validate('{"a": 1}', ".json").valid
        assert not self.validator.validate('{"a": }', ".json").valid

    def test_unknown_category_accepted_with_warning(self):
        """Test categories without a checker pass with a warning."""
        report = self.validator.validate("anything {", ".md")
        assert report.valid
        assert report.warnings == ["No syntax check available for '.md' files"]
