"""
Tests for the tree-sitter Go source parser.

Exercises declaration extraction, complexity, interfaces, imports, the
syntax check and the static scan of test functions.
"""

import pytest

from conftest import CALC_GO, STORE_GO
from gocovgen.domain.models import StructuralParseError


class TestParseSource:
    """Test suite for GoSourceParser.parse_source."""

    @pytest.fixture
    def calc(self, parser):
        return parser.parse_source(CALC_GO, "calc.go")

    def test_package_and_imports(self, calc):
        assert calc.package == "calc"
        assert calc.imports == {"errors": "errors"}
        assert calc.path == "calc.go"

    def test_functions_in_source_order(self, calc):
        names = [fn.name for fn in calc.functions]
        assert names == ["Add", "Divide", "Classify", "Increment", "helper"]

    def test_grouped_parameters_are_expanded(self, calc):
        add = calc.functions[0]
        assert [p.name for p in add.parameters] == ["a", "b"]
        assert [p.type.text for p in add.parameters] == ["int", "int"]
        assert [r.type.text for r in add.results] == ["int"]
        assert add.signature == "func Add(a int, b int) int"
        assert (add.start_line, add.end_line) == (6, 8)

    def test_error_result(self, calc):
        divide = calc.functions[1]
        assert divide.has_error_result
        assert [r.type.text for r in divide.results] == ["float64", "error"]

    def test_complexity(self, calc):
        by_name = {fn.name: fn for fn in calc.functions}
        assert by_name["Add"].complexity == 1
        assert by_name["Divide"].complexity == 2
        # switch plus two cases plus default
        assert by_name["Classify"].complexity == 5

    def test_method_receiver(self, calc):
        increment = calc.functions[3]
        assert increment.is_method
        assert increment.owner == "Counter"
        assert increment.receiver_pointer
        assert increment.test_name == "TestCounter_Increment"
        assert increment.qualified_name == "Counter.Increment"

    def test_unexported_functions_are_not_testable(self, calc):
        helper = calc.functions[4]
        assert not helper.is_exported
        assert not helper.is_testable

    def test_type_declarations(self, calc):
        assert "Counter" in calc.type_decls
        assert calc.type_decls["Counter"].startswith("struct")

    def test_interfaces(self, parser):
        model = parser.parse_source(STORE_GO, "service/store.go")

        assert [i.name for i in model.interfaces] == ["Store"]
        store = model.interfaces[0]
        assert [m.name for m in store.methods] == ["Get", "Put", "Close"]
        get = store.methods[0]
        assert [(p.name, p.type.text) for p in get.parameters] == [
            ("ctx", "context.Context"),
            ("key", "string"),
        ]
        assert [r.type.text for r in get.results] == ["string", "error"]
        assert [p.name for p in store.methods[1].parameters] == ["key", "value"]
        assert store.methods[2].parameters == []

    def test_embedded_interfaces(self, parser):
        source = (
            "package io2\n\n"
            "type Reader interface {\n\tRead(key string) (string, error)\n}\n\n"
            "type ReadCloser interface {\n\tReader\n\tClose() error\n}\n"
        )
        model = parser.parse_source(source, "io2.go")
        read_closer = model.interfaces[1]
        assert read_closer.embedded == ["Reader"]
        assert [m.name for m in read_closer.methods] == ["Close"]

    def test_variadic_parameter(self, parser):
        model = parser.parse_source(
            "package calc\n\nfunc Sum(nums ...int) int {\n\treturn 0\n}\n", "sum.go"
        )
        param = model.functions[0].parameters[0]
        assert param.type.variadic
        assert param.type.declared == "...int"
        assert model.functions[0].signature == "func Sum(nums ...int) int"

    def test_generic_function(self, parser):
        model = parser.parse_source(
            "package calc\n\nfunc Map[T any](xs []T) []T {\n\treturn xs\n}\n", "generic.go"
        )
        fn = model.functions[0]
        assert fn.type_parameters == ["T"]
        assert fn.is_generic

    def test_aliased_imports(self, parser):
        source = (
            'package calc\n\nimport (\n\tpb "example.com/proto/v2"\n\t"net/http"\n'
            '\t_ "embed"\n)\n'
        )
        model = parser.parse_source(source, "imports.go")
        assert model.imports == {"pb": "example.com/proto/v2", "http": "net/http"}

    def test_syntax_error_raises(self, parser):
        with pytest.raises(StructuralParseError) as exc_info:
            parser.parse_source("package calc\n\nfunc Broken( {\n", "broken.go")
        assert exc_info.value.file == "broken.go"
        assert exc_info.value.line >= 1


class TestCheckSyntax:
    """Test suite for GoSourceParser.check_syntax."""

    def test_valid_source(self, parser):
        assert parser.check_syntax(CALC_GO, "calc.go") == []

    def test_invalid_source(self, parser):
        errors = parser.check_syntax("package calc\n\nfunc Broken( {\n", "broken.go")
        assert errors
        assert all(e.file == "broken.go" for e in errors)

    def test_missing_package_clause(self, parser):
        assert parser.check_syntax("func A() {}\n", "nopkg.go")


class TestScanTestFunctions:
    """Test suite for the static test-function scan."""

    SOURCE = """package calc

import "testing"

func TestEmpty(t *testing.T) {
}

func TestNoAssert(t *testing.T) {
\t_ = Add(1, 2)
}

func TestChecks(t *testing.T) {
\tif Add(1, 2) != 3 {
\t\tt.Errorf("bad")
\t}
}

func TestTable(t *testing.T) {
\ttests := []struct{ name string }{{name: "a"}}
\tfor _, tt := range tests {
\t\t_ = tt
\t}
}

func TestSubtests(t *testing.T) {
\tt.Run("x", func(t *testing.T) {
\t\tassert.Equal(t, 3, Add(1, 2))
\t})
}

func helperFunc() {}
"""

    @pytest.fixture
    def scans(self, parser):
        return {scan.name: scan for scan in parser.scan_test_functions(self.SOURCE)}

    def test_only_test_functions_are_scanned(self, scans):
        assert set(scans) == {"TestEmpty", "TestNoAssert", "TestChecks", "TestTable", "TestSubtests"}

    def test_empty_body(self, scans):
        assert scans["TestEmpty"].empty_body
        assert not scans["TestChecks"].empty_body

    def test_assertions(self, scans):
        assert not scans["TestNoAssert"].has_assertion
        assert scans["TestChecks"].has_assertion
        assert scans["TestSubtests"].has_assertion

    def test_table_driven(self, scans):
        assert scans["TestTable"].is_table_driven
        assert not scans["TestTable"].uses_subtests
        assert scans["TestSubtests"].uses_subtests
