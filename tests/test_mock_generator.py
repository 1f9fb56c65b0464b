"""
Tests for interface classification, lookup and testify mock rendering.
"""

from unittest.mock import MagicMock

import pytest

from conftest import STORE_GO
from gocovgen.application.generation.mock_generator import (
    MockGenerator,
    is_interface_type,
    mock_file_path,
)
from gocovgen.application.generation.template_engine import TemplateEngine
from gocovgen.domain.go_types import parse_type_expr
from gocovgen.domain.models import MockInterfaceDecl, MockMethod, MockParam, MockResult

EMBEDDING_GO = """package service

type Reader interface {
\tRead(key string) (string, error)
}

type ReadCloser interface {
\tReader
\tClose() error
}

type Streamer interface {
\tio.Reader
}
"""


@pytest.fixture
def store_file(parser):
    return parser.parse_source(STORE_GO, "service/store.go")


@pytest.fixture
def generator():
    return MockGenerator(TemplateEngine().render_mock)


class TestClassification:
    """Test interface detection for parameter types."""

    @pytest.mark.parametrize(
        "type_text,expected",
        [
            ("io.Reader", True),
            ("*io.Reader", True),
            ("Store", True),
            ("interface{ Get() int }", True),
            ("interface{}", False),
            ("any", False),
            ("error", False),
            ("string", False),
            ("[]Store", False),
            ("config", False),
        ],
    )
    def test_heuristic(self, type_text, expected):
        assert is_interface_type(parse_type_expr(type_text)) is expected

    def test_declared_types_override_heuristic(self):
        declared = {"Point": False, "store": True}
        assert not is_interface_type(parse_type_expr("Point"), declared)
        assert is_interface_type(parse_type_expr("store"), declared)

    def test_classify_from_source(self, generator, parser, store_file):
        declared = generator.classify([store_file])
        assert declared["Store"] is True
        assert declared["Service"] is False

    def test_interface_parameters(self, generator, store_file):
        lookup = next(fn for fn in store_file.functions if fn.name == "Lookup")
        [(index, type_)] = generator.interface_parameters(lookup, [store_file])
        assert index == 0
        assert type_.name == "Store"


class TestLocate:
    """Test interface lookup within a package."""

    def test_same_package_interface(self, generator, store_file):
        decl = generator.locate(parse_type_expr("Store"), store_file, [store_file])

        assert decl.name == "Store"
        assert decl.mock_name == "MockStore"
        assert decl.package == "service"
        assert decl.file == "service/store.go"
        assert [m.name for m in decl.methods] == ["Get", "Put", "Close"]
        assert [p.name for p in decl.methods[1].parameters] == ["key", "value"]

    def test_qualified_types_are_not_resolved(self, generator, store_file):
        assert generator.locate(parse_type_expr("io.Reader"), store_file, [store_file]) is None
        assert generator.locate(parse_type_expr("Missing"), store_file, [store_file]) is None

    def test_embedded_interfaces_are_flattened(self, generator, parser):
        file_model = parser.parse_source(EMBEDDING_GO, "service/io.go")
        decl = generator.locate(parse_type_expr("ReadCloser"), file_model, [file_model])
        assert [m.name for m in decl.methods] == ["Read", "Close"]

    def test_unresolvable_embedding(self, generator, parser):
        file_model = parser.parse_source(EMBEDDING_GO, "service/io.go")
        assert generator.locate(parse_type_expr("Streamer"), file_model, [file_model]) is None


class TestGenerate:
    """Test mock rendering."""

    def test_store_mock(self, generator, parser, store_file):
        decl = generator.locate(parse_type_expr("Store"), store_file, [store_file])
        mock = generator.generate(decl)

        assert mock.path == "service/mock_store.go"
        assert mock.content.startswith("// Code generated by gocovgen. DO NOT EDIT.\n\npackage service\n")
        assert '\t"context"\n\t"github.com/stretchr/testify/mock"\n' in mock.content
        assert "type MockStore struct {\n\tmock.Mock\n}" in mock.content
        assert (
            "func (_m *MockStore) Get(ctx context.Context, key string) (string, error) {\n"
            "\tret := _m.Called(ctx, key)\n"
            "\treturn ret.String(0), ret.Error(1)\n"
            "}"
        ) in mock.content
        assert "func (_m *MockStore) Close() {\n\t_m.Called()\n}" in mock.content
        assert parser.check_syntax(mock.content, mock.path) == []

    def test_typed_results_use_guarded_assertions(self, generator, parser):
        decl = MockInterfaceDecl(
            name="Counter",
            package="calc",
            file="counter.go",
            methods=[
                MockMethod(
                    name="Count",
                    parameters=[MockParam(name="ret_", type=parse_type_expr("...int"))],
                    results=[
                        MockResult(name="ret0", type=parse_type_expr("int64")),
                        MockResult(name="ret1", type=parse_type_expr("error")),
                    ],
                )
            ],
        )
        mock = generator.generate(decl)

        assert mock.path == "mock_counter.go"
        assert "func (_m *MockCounter) Count(ret_ ...int) (int64, error) {" in mock.content
        assert "\tvar r0 int64\n\tif v, ok := ret.Get(0).(int64); ok {\n\t\tr0 = v\n\t}\n" in mock.content
        assert "\treturn r0, ret.Error(1)\n" in mock.content
        assert parser.check_syntax(mock.content, mock.path) == []

    def test_renderer_receives_method_context(self, store_file):
        render = MagicMock(return_value="// mock\n")
        generator = MockGenerator(render)
        decl = generator.locate(parse_type_expr("Store"), store_file, [store_file])

        mock = generator.generate(decl)

        assert mock.content == "// mock\n"
        _, methods, imports = render.call_args[0]
        assert imports == ['"context"', '"github.com/stretchr/testify/mock"']
        assert methods[2] == {
            "name": "Close",
            "params": "",
            "results": "",
            "call_args": "",
            "prelude": [],
            "returns": "",
            "has_results": False,
        }

    def test_mock_file_path(self):
        decl = MockInterfaceDecl(name="UserRepo", package="repo", file="internal/repo/repo.go")
        assert mock_file_path(decl) == "internal/repo/mock_userrepo.go"


class TestExpectations:
    """Test permissive expectation construction."""

    def test_zero_value_returns(self, generator, store_file):
        decl = generator.locate(parse_type_expr("Store"), store_file, [store_file])
        get, put, close = generator.expectations("mockStore", decl)

        assert get.mock_var == "mockStore"
        assert get.arguments == ["mock.Anything", "mock.Anything"]
        assert get.returns == ['""', "nil"]
        assert put.returns == ["nil"]
        assert close.arguments == []
        assert close.returns == []

    def test_numeric_zero_values_are_typed(self, generator):
        decl = MockInterfaceDecl(
            name="Sizer",
            package="calc",
            file="sizer.go",
            methods=[
                MockMethod(
                    name="Size",
                    results=[
                        MockResult(name="ret0", type=parse_type_expr("int64")),
                        MockResult(name="ret1", type=parse_type_expr("int")),
                    ],
                )
            ],
        )
        [size] = generator.expectations("mockSizer", decl)
        assert size.returns == ["int64(0)", "0"]
