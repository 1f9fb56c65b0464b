"""
Go test rendering with Jinja2 templates.

Built-in templates live next to this module; a ``templates_dir`` earlier in
the loader search path overrides any of them by file name. Python builds the
render context (call expressions, declarations, comparisons); templates only
lay the Go source out.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ...domain.go_types import TypeDescriptor, default_import_name
from ...domain.models import (
    FunctionDecl,
    GeneratedTestCase,
    MockBinding,
    MockExpectation,
    MockInterfaceDecl,
    Strategy,
)
from .data_generator import go_string_literal, parameter_name

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).with_name("templates")

TESTIFY_ASSERT_IMPORT = "github.com/stretchr/testify/assert"
TESTIFY_MOCK_IMPORT = "github.com/stretchr/testify/mock"

# Qualifier to import path for packages generated code may reference
STANDARD_IMPORTS = {
    "testing": "testing",
    "reflect": "reflect",
    "context": "context",
    "strings": "strings",
    "time": "time",
}
TESTIFY_IMPORTS = {"assert": TESTIFY_ASSERT_IMPORT, "mock": TESTIFY_MOCK_IMPORT}

# Identifiers the generated test bodies declare or reference themselves
RESERVED_IDENTIFIERS = frozenset(
    {"t", "b", "i", "tt", "tests", "got", "err", "want", "wantErr", "receiver", "args", "new"}
    | set(STANDARD_IMPORTS)
    | set(TESTIFY_IMPORTS)
)

_STRING_LITERAL = re.compile(r'"(?:[^"\\\n]|\\.)*"|`[^`]*`')
_LINE_COMMENT = re.compile(r"//[^\n]*")
_QUALIFIER = re.compile(r"(?<![\w.])([A-Za-z_]\w*)\.[A-Za-z_]")
_LEADING_SPACES = re.compile(r"^((?:    )+)", re.MULTILINE)
_PACKAGE_CLAUSE = re.compile(r"^package\s+\w+[^\n]*\n", re.MULTILINE)


class TemplateRenderError(Exception):
    """A template is missing or failed to render."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


def tabify(source: str) -> str:
    """Convert four-space indentation units to tabs, as gofmt does."""
    return _LEADING_SPACES.sub(lambda m: "\t" * (len(m.group(1)) // 4), source)


def referenced_qualifiers(body: str) -> set[str]:
    """Identifiers used as ``X.`` qualifiers outside literals and comments."""
    stripped = _LINE_COMMENT.sub("", _STRING_LITERAL.sub('""', body))
    return set(_QUALIFIER.findall(stripped))


def import_line(alias: str, path: str) -> str:
    if default_import_name(path) == alias:
        return f'"{path}"'
    return f'{alias} "{path}"'


def local_name(name: str, taken: Iterable[str] = ()) -> str:
    """Rename a parameter that would collide with a generated identifier."""
    reserved = RESERVED_IDENTIFIERS | set(taken)
    while name in reserved:
        name = f"{name}_"
    return name


def mock_variable(param: str) -> str:
    return f"mock{param[:1].upper()}{param[1:]}"


def render_expectation(expectation: MockExpectation) -> str:
    arguments = ", ".join([go_string_literal(expectation.method), *expectation.arguments])
    returns = ", ".join(expectation.returns)
    return f"{expectation.mock_var}.On({arguments}).Return({returns}).Maybe()"


class TemplateEngine:
    """
    Renders test functions, benchmarks, file headers and mocks.

    Args:
        style: One of standard, testify, table or ginkgo
        table_driven: Force the table template for functions with more than
            one parameter
        templates_dir: Directory searched before the built-in templates
    """

    def __init__(
        self,
        style: str = "standard",
        table_driven: bool = True,
        templates_dir: str | Path | None = None,
    ) -> None:
        if style == "ginkgo":
            logger.warning("Template style 'ginkgo' is not supported; rendering as standard")
            style = "standard"
        self.style = style
        self.table_driven = table_driven

        search_path = [str(BUILTIN_TEMPLATES_DIR)]
        if templates_dir:
            search_path.insert(0, str(templates_dir))
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["go_string"] = go_string_literal

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_style(self, fn: FunctionDecl) -> str:
        """Table is forced for multi-parameter functions when table mode is on."""
        if self.style == "table":
            return "table"
        if self.table_driven and len(fn.parameters) > 1:
            return "table"
        return self.style

    def template_names(self, fn: FunctionDecl, style: str) -> list[str]:
        """Candidate template files, most specific first."""
        if fn.is_method:
            shape = "method"
        elif fn.has_error_result:
            shape = "error"
        else:
            shape = "function"
        return [f"test_{style}_{shape}.go.j2", f"test_{style}.go.j2"]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_test(
        self,
        fn: FunctionDecl,
        cases: Sequence[GeneratedTestCase],
        bindings: Sequence[MockBinding] = (),
        type_decls: dict[str, str] | None = None,
        style: str | None = None,
    ) -> str:
        """Render the ``Test*`` function for one target."""
        style = style or self.select_style(fn)
        context = self.test_context(fn, cases, bindings, type_decls)
        try:
            template = self.env.select_template(self.template_names(fn, style))
        except TemplateNotFound as e:
            raise TemplateRenderError(f"No template for style {style!r}", cause=e) from e
        return self._render(template, test=context)

    def render_benchmark(
        self,
        fn: FunctionDecl,
        cases: Sequence[GeneratedTestCase],
        bindings: Sequence[MockBinding] = (),
        type_decls: dict[str, str] | None = None,
    ) -> str:
        """Render a ``Benchmark*`` function using the first nominal case."""
        context = self.test_context(fn, cases, bindings, type_decls)
        chosen = next(
            (c for c in context["cases"] if c["strategy"] == Strategy.POSITIVE),
            context["cases"][0] if context["cases"] else {"declarations": []},
        )
        template = self._template("benchmark.go.j2")
        return self._render(template, test=context, bench=chosen)

    def render_file(
        self, package: str, bodies: Sequence[str], file_imports: dict[str, str] | None = None
    ) -> str:
        """A complete test compilation unit: header, imports and bodies."""
        code = "\n\n".join(body.rstrip() for body in bodies)
        imports = self.required_imports(code, file_imports or {})
        header = self._render(self._template("header.go.j2"), package=package, imports=imports)
        return f"{header.rstrip()}\n\n{code}\n"

    def append_to_file(
        self,
        existing: str,
        bodies: Sequence[str],
        file_imports: dict[str, str] | None = None,
        existing_imports: dict[str, str] | None = None,
    ) -> str:
        """
        Append test functions to an existing test file.

        Imports the new bodies need and the file lacks are added as a
        separate import declaration directly after the package clause.
        """
        code = "\n\n".join(body.rstrip() for body in bodies)
        present = set((existing_imports or {}).values())
        missing = [
            line
            for line in self.required_imports(code, file_imports or {})
            if line.rsplit(" ", 1)[-1].strip('"') not in present
        ]

        content = existing.rstrip() + "\n"
        if missing:
            match = _PACKAGE_CLAUSE.search(content)
            if match is None:
                raise TemplateRenderError("Existing test file has no package clause")
            block = "\nimport (\n" + "".join(f"\t{line}\n" for line in missing) + ")\n"
            content = content[: match.end()] + block + content[match.end():]
        return f"{content}\n{code}\n"

    def render_mock(self, decl: MockInterfaceDecl, methods: list[dict], imports: list[str]) -> str:
        """Render a mock file; used as the mock generator's renderer."""
        template = self._template("mock.go.j2")
        return self._render(template, decl=decl, methods=methods, imports=imports).rstrip() + "\n"

    def required_imports(self, code: str, file_imports: dict[str, str]) -> list[str]:
        """Import lines for every known qualifier referenced by code."""
        candidates = dict(STANDARD_IMPORTS)
        candidates.update(file_imports)
        candidates.update(TESTIFY_IMPORTS)
        candidates["testing"] = "testing"

        lines = {
            import_line(alias, candidates[alias])
            for alias in referenced_qualifiers(code)
            if alias in candidates
        }
        return sorted(lines, key=lambda line: line.rsplit(" ", 1)[-1])

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def test_context(
        self,
        fn: FunctionDecl,
        cases: Sequence[GeneratedTestCase],
        bindings: Sequence[MockBinding] = (),
        type_decls: dict[str, str] | None = None,
    ) -> dict:
        bound = {b.parameter_index: b for b in bindings}
        locals_: list[str] = []
        for index, param in enumerate(fn.parameters):
            locals_.append(local_name(parameter_name(param, index), taken=locals_))

        setup: list[str] = []
        if fn.owner:
            setup.append(f"receiver := {receiver_literal(fn.owner, type_decls or {})}")
        for binding in bindings:
            setup.append(f"{binding.variable} := new({binding.mock_name})")
            setup.extend(render_expectation(e) for e in binding.expectations)

        call_args, table_args, table_fields = [], [], []
        for index, param in enumerate(fn.parameters):
            spread = "..." if param.type.variadic else ""
            if index in bound:
                call_args.append((bound[index].variable + spread,) * 2)
                continue
            name = locals_[index]
            call_args.append((name + spread, f"tt.args.{name}{spread}"))
            table_args.append({"name": name, "type": param.type.text})
            table_fields.append(index)

        target = f"receiver.{fn.name}" if fn.owner else fn.name
        call = f"{target}({', '.join(a for a, _ in call_args)})"
        table_call = f"{target}({', '.join(a for _, a in call_args)})"

        lhs = result_bindings(fn)
        has_got = "got" in lhs
        result_type = None
        if has_got:
            result_type = fn.results[lhs.index("got")].type
        assign = ":=" if ("got" in lhs or "err" in lhs) else "="
        invocation = f"{', '.join(lhs)} {assign} {call}" if lhs else call
        table_invocation = f"{', '.join(lhs)} {assign} {table_call}" if lhs else table_call

        rendered_cases = []
        for case in unique_cases(cases):
            inputs = {i: case.inputs[i] for i in range(min(len(case.inputs), len(fn.parameters)))}
            declarations = [
                f"var {locals_[i]} {fn.parameters[i].type.text} = {inputs[i].literal}"
                for i in table_fields
                if i in inputs
            ]
            fields = ", ".join(
                f"{locals_[i]}: {inputs[i].literal}" for i in table_fields if i in inputs
            )
            want = case.expected.literal if (has_got and case.expected is not None) else None
            rendered_cases.append(
                {
                    "name": case.name,
                    "description": case.description,
                    "strategy": case.strategy,
                    "declarations": declarations,
                    "fields": fields,
                    "want": want,
                    "want_typed": typed_literal(want, result_type) if want is not None else None,
                    "expect_error": case.expect_error,
                    "want_err": "true" if case.expect_error else "false",
                }
            )

        comparable = result_type is None or result_type.supports_equality
        return {
            "test_name": fn.test_name,
            "benchmark_name": fn.benchmark_name,
            "label": fn.qualified_name,
            "setup": setup,
            "call": call,
            "invocation": invocation,
            "table_invocation": table_invocation,
            "has_got": has_got,
            "has_err": "err" in lhs,
            "result_type": result_type.text if result_type else "",
            "mismatch": "got != want" if comparable else "!reflect.DeepEqual(got, want)",
            "table_mismatch": (
                "got != tt.want" if comparable else "!reflect.DeepEqual(got, tt.want)"
            ),
            "table_args": table_args,
            "any_want": any(c["want"] is not None for c in rendered_cases),
            "cases": rendered_cases,
        }

    def _template(self, name: str):
        try:
            return self.env.get_template(name)
        except TemplateNotFound as e:
            raise TemplateRenderError(f"Template not found: {name}", cause=e) from e

    def _render(self, template, **context) -> str:
        try:
            return tabify(template.render(**context))
        except Exception as e:
            raise TemplateRenderError(f"Failed to render {template.name}: {e}", cause=e) from e


def result_bindings(fn: FunctionDecl) -> list[str]:
    """
    Left-hand side names for the call under test.

    The first non-error result binds ``got``, a trailing error binds ``err``
    and every other result is discarded.
    """
    names: list[str] = []
    last = len(fn.results) - 1
    for index, result in enumerate(fn.results):
        if result.type.is_error and index == last:
            names.append("err")
        elif not result.type.is_error and "got" not in names:
            names.append("got")
        else:
            names.append("_")
    return names


def receiver_literal(owner: str, type_decls: dict[str, str]) -> str:
    underlying = type_decls.get(owner)
    if underlying is None or underlying.startswith("struct"):
        return f"&{owner}{{}}"
    return f"new({owner})"


def typed_literal(literal: str, type_: TypeDescriptor | None) -> str:
    """Literal converted to its result type so testify compares like types."""
    if type_ is None or type_.text in ("int", "bool", "string", "float64"):
        return literal
    return f"{type_.text}({literal})"


def unique_cases(cases: Iterable[GeneratedTestCase]) -> list[GeneratedTestCase]:
    """Drop cases whose inputs and expectations repeat an earlier case."""
    seen: set[tuple] = set()
    unique: list[GeneratedTestCase] = []
    for case in cases:
        key = (
            tuple(i.literal for i in case.inputs),
            case.expect_error,
            case.expected.literal if case.expected else None,
        )
        if key in seen:
            continue
        seen.add(key)
        unique.append(case)
    return unique

