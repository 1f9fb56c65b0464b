"""
Go source parser adapter implementation.

This module implements ``SourceModelPort`` with the tree-sitter Go grammar.
It extracts function and method declarations (with parameters, results,
spans and cyclomatic complexity), interface declarations, and import
aliases from a single compilation unit. It also provides the syntax check
and the static test-function scan used by the validation pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import tree_sitter
import tree_sitter_go as tsgo

from ...domain.go_types import TypeDescriptor, default_import_name, parse_type_expr
from ...domain.models import (
    FileModel,
    FunctionDecl,
    InterfaceDecl,
    MethodSpec,
    ParamDecl,
    ParseErrorRecord,
    ResultDecl,
    StructuralParseError,
    TestFunctionScan,
)

logger = logging.getLogger(__name__)

GO_LANGUAGE = tree_sitter.Language(tsgo.language())

# Each of these adds one independent path through a function body.
COMPLEXITY_NODE_TYPES = frozenset(
    {
        "if_statement",
        "for_statement",
        "expression_switch_statement",
        "type_switch_statement",
        "select_statement",
        "expression_case",
        "type_case",
        "default_case",
        "communication_case",
    }
)

NON_TESTABLE_NAMES = frozenset({"init", "main"})
TEST_FUNCTION_PREFIXES = ("Test", "Benchmark", "Example")
TABLE_VARIABLE_NAMES = frozenset({"tests", "testCases", "cases", "tcs", "table"})
ASSERTION_QUALIFIERS = frozenset({"assert", "require"})
MAX_SYNTAX_ERRORS = 20


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def is_testable(name: str, exported: bool) -> bool:
    """A declaration is a generation target when it is exported and not test- or lifecycle-shaped."""
    if name.startswith(TEST_FUNCTION_PREFIXES):
        return False
    if name in NON_TESTABLE_NAMES:
        return False
    return exported


class GoSourceParser:
    """
    Adapter for parsing Go source files with tree-sitter.

    Implements the SourceModelPort interface. The grammar recovers from
    syntax errors, so any ERROR or MISSING node in the tree is treated as a
    parse failure of the whole file.
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser(GO_LANGUAGE)

    # ------------------------------------------------------------------
    # SourceModelPort
    # ------------------------------------------------------------------

    def parse_source(self, source: bytes | str, path: str) -> FileModel:
        source = _as_bytes(source)
        root = self._parser.parse(source).root_node

        if root.has_error:
            errors = self._collect_errors(root, path, limit=1)
            first = errors[0] if errors else ParseErrorRecord(file=path, message="syntax error")
            raise StructuralParseError(
                f"{path}:{first.line}:{first.column}: {first.message}",
                file=path,
                line=first.line,
                column=first.column,
            )

        package = self._package_name(root, source)
        if not package:
            raise StructuralParseError(f"{path}: missing package clause", file=path)

        functions: list[FunctionDecl] = []
        interfaces: list[InterfaceDecl] = []
        type_decls: dict[str, str] = {}
        for node in root.named_children:
            if node.type in ("function_declaration", "method_declaration"):
                functions.append(self._build_function(node, source, path, package))
            elif node.type == "type_declaration":
                interfaces.extend(self._extract_interfaces(node, source, path, package))
                type_decls.update(self._extract_type_decls(node, source))

        logger.debug(
            f"Parsed {path}: package {package}, {len(functions)} functions, "
            f"{len(interfaces)} interfaces"
        )
        return FileModel(
            path=path,
            package=package,
            imports=self._extract_imports(root, source),
            type_decls=type_decls,
            functions=functions,
            interfaces=interfaces,
            line_count=_count_lines(source),
        )

    def check_syntax(self, source: bytes | str, path: str) -> list[ParseErrorRecord]:
        source = _as_bytes(source)
        root = self._parser.parse(source).root_node
        errors = self._collect_errors(root, path, limit=MAX_SYNTAX_ERRORS) if root.has_error else []
        if not errors and not self._package_name(root, source):
            errors.append(ParseErrorRecord(file=path, message="missing package clause", line=1, column=1))
        return errors

    def scan_test_functions(self, source: bytes | str) -> list[TestFunctionScan]:
        source = _as_bytes(source)
        root = self._parser.parse(source).root_node
        scans: list[TestFunctionScan] = []

        for node in root.named_children:
            if node.type != "function_declaration":
                continue
            name = _text(node.child_by_field_name("name"), source)
            if not name.startswith("Test"):
                continue

            body = node.child_by_field_name("body")
            has_assertion = False
            uses_subtests = False
            table_driven = "Table" in name

            if body is not None:
                for child in _walk_named(body):
                    if child.type == "call_expression":
                        qualifier, call_name = _call_target(child, source)
                        if any(word in call_name for word in ("Error", "Fail", "Fatal")):
                            has_assertion = True
                        if qualifier in ASSERTION_QUALIFIERS:
                            has_assertion = True
                        if call_name == "Run":
                            uses_subtests = True
                    elif child.type == "short_var_declaration":
                        left = _text(child.child_by_field_name("left"), source)
                        right = _text(child.child_by_field_name("right"), source)
                        if left.strip() in TABLE_VARIABLE_NAMES and right.lstrip().startswith("[]"):
                            table_driven = True

            scans.append(
                TestFunctionScan(
                    name=name,
                    start_line=node.start_point[0] + 1,
                    empty_body=body is None or not _block_statements(body),
                    has_assertion=has_assertion,
                    is_table_driven=table_driven,
                    uses_subtests=uses_subtests,
                )
            )

        return scans

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _build_function(
        self, node: tree_sitter.Node, source: bytes, path: str, package: str
    ) -> FunctionDecl:
        name = _text(node.child_by_field_name("name"), source)
        is_method = node.type == "method_declaration"

        owner = None
        receiver_pointer = False
        receiver_text = ""
        type_parameters = self._type_parameter_names(
            node.child_by_field_name("type_parameters"), source
        )
        if is_method:
            receiver = node.child_by_field_name("receiver")
            receiver_text = _text(receiver, source).strip("()").strip()
            for param in _parameter_nodes(receiver):
                type_text = _text(param.child_by_field_name("type"), source).strip()
                receiver_pointer = type_text.startswith("*")
                owner, _, type_args = type_text.lstrip("*").strip().partition("[")
                if type_args:
                    type_parameters = [
                        arg.strip() for arg in type_args.rstrip("]").split(",") if arg.strip()
                    ]
                break

        parameters = [
            ParamDecl(name=param_name, type=descriptor)
            for param_name, descriptor in self._parameters(
                node.child_by_field_name("parameters"), source
            )
        ]
        results = [
            ResultDecl(name=result_name, type=descriptor)
            for result_name, descriptor in self._results(
                node.child_by_field_name("result"), source
            )
        ]

        exported = is_exported(name)
        return FunctionDecl(
            name=name,
            owner=owner,
            receiver_pointer=receiver_pointer,
            parameters=parameters,
            results=results,
            file=path,
            package=package,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            is_exported=exported,
            is_method=is_method,
            complexity=self._complexity(node.child_by_field_name("body")),
            is_testable=is_testable(name, exported),
            has_error_result=any(result.type.is_error for result in results),
            signature=build_signature(name, receiver_text, parameters, results),
            type_parameters=type_parameters,
        )

    def _parameters(
        self, params_node: tree_sitter.Node | None, source: bytes
    ) -> list[tuple[str, TypeDescriptor]]:
        declared: list[tuple[str, TypeDescriptor]] = []
        for param in _parameter_nodes(params_node):
            type_text = _text(param.child_by_field_name("type"), source)
            if param.type == "variadic_parameter_declaration":
                type_text = "..." + type_text
            descriptor = parse_type_expr(type_text)
            names = [_text(n, source) for n in param.children_by_field_name("name")]
            if names:
                declared.extend((param_name, descriptor) for param_name in names)
            else:
                declared.append(("", descriptor))
        return declared

    def _results(
        self, result_node: tree_sitter.Node | None, source: bytes
    ) -> list[tuple[str, TypeDescriptor]]:
        if result_node is None:
            return []
        if result_node.type == "parameter_list":
            return self._parameters(result_node, source)
        return [("", parse_type_expr(_text(result_node, source)))]

    def _complexity(self, body: tree_sitter.Node | None) -> int:
        if body is None:
            return 1
        return 1 + sum(1 for node in _walk_named(body) if node.type in COMPLEXITY_NODE_TYPES)

    def _extract_interfaces(
        self, node: tree_sitter.Node, source: bytes, path: str, package: str
    ) -> list[InterfaceDecl]:
        interfaces = []
        for spec in node.named_children:
            if spec.type != "type_spec":
                continue
            type_node = spec.child_by_field_name("type")
            if type_node is None or type_node.type != "interface_type":
                continue

            methods: list[MethodSpec] = []
            embedded: list[str] = []
            for element in type_node.named_children:
                if element.type in ("method_elem", "method_spec"):
                    methods.append(
                        MethodSpec(
                            name=_text(element.child_by_field_name("name"), source),
                            parameters=[
                                ParamDecl(name=n, type=t)
                                for n, t in self._parameters(
                                    element.child_by_field_name("parameters"), source
                                )
                            ],
                            results=[
                                ResultDecl(name=n, type=t)
                                for n, t in self._results(
                                    element.child_by_field_name("result"), source
                                )
                            ],
                        )
                    )
                elif element.type != "comment":
                    embedded.append(_text(element, source).strip())

            interfaces.append(
                InterfaceDecl(
                    name=_text(spec.child_by_field_name("name"), source),
                    file=path,
                    package=package,
                    start_line=spec.start_point[0] + 1,
                    methods=methods,
                    embedded=embedded,
                )
            )
        return interfaces

    def _extract_type_decls(self, node: tree_sitter.Node, source: bytes) -> dict[str, str]:
        declared = {}
        for spec in node.named_children:
            if spec.type not in ("type_spec", "type_alias"):
                continue
            # Generic types cannot be instantiated without type arguments
            if spec.child_by_field_name("type_parameters") is not None:
                continue
            name = _text(spec.child_by_field_name("name"), source)
            underlying = _text(spec.child_by_field_name("type"), source).strip()
            if name and underlying:
                declared[name] = underlying
        return declared

    def _type_parameter_names(
        self, params_node: tree_sitter.Node | None, source: bytes
    ) -> list[str]:
        if params_node is None:
            return []
        names = []
        for param in params_node.named_children:
            if param.type in ("type_parameter_declaration", "parameter_declaration"):
                names.extend(_text(n, source) for n in param.children_by_field_name("name"))
        return names

    def _extract_imports(self, root: tree_sitter.Node, source: bytes) -> dict[str, str]:
        imports: dict[str, str] = {}
        for node in root.named_children:
            if node.type != "import_declaration":
                continue
            for spec in _walk_named(node):
                if spec.type != "import_spec":
                    continue
                path = _text(spec.child_by_field_name("path"), source).strip("\"`")
                alias_node = spec.child_by_field_name("name")
                if alias_node is None:
                    imports[default_import_name(path)] = path
                elif alias_node.type == "package_identifier":
                    imports[_text(alias_node, source)] = path
                # Dot and blank imports cannot be referenced through a qualifier.
        return imports

    def _package_name(self, root: tree_sitter.Node, source: bytes) -> str:
        for node in root.named_children:
            if node.type == "package_clause":
                for child in node.named_children:
                    if child.type == "package_identifier":
                        return _text(child, source)
        return ""

    def _collect_errors(
        self, root: tree_sitter.Node, path: str, limit: int
    ) -> list[ParseErrorRecord]:
        errors: list[ParseErrorRecord] = []
        stack = [root]
        while stack and len(errors) < limit:
            node = stack.pop()
            if node.is_missing:
                message = f"missing {node.type}"
            elif node.type == "ERROR":
                message = "unexpected syntax"
            else:
                stack.extend(reversed(node.children))
                continue
            errors.append(
                ParseErrorRecord(
                    file=path,
                    message=message,
                    line=node.start_point[0] + 1,
                    column=node.start_point[1] + 1,
                )
            )
        return errors


def build_signature(
    name: str,
    receiver: str,
    parameters: list[ParamDecl],
    results: list[ResultDecl],
) -> str:
    """Render a declaration header such as ``func (c *Calc) Add(a int, b int) (int, error)``."""
    params = ", ".join(f"{p.name} {p.type.declared}".strip() for p in parameters)
    header = f"func ({receiver}) {name}({params})" if receiver else f"func {name}({params})"
    if not results:
        return header
    if len(results) == 1 and not results[0].name:
        return f"{header} {results[0].type.text}"
    rendered = ", ".join(f"{r.name} {r.type.text}".strip() for r in results)
    return f"{header} ({rendered})"


def _as_bytes(source: bytes | str) -> bytes:
    return source.encode("utf-8") if isinstance(source, str) else source


def _count_lines(source: bytes) -> int:
    if not source:
        return 0
    return source.count(b"\n") + (0 if source.endswith(b"\n") else 1)


def _text(node: tree_sitter.Node | None, source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _walk_named(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield every named descendant of node, depth first, in source order."""
    stack = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def _parameter_nodes(params_node: tree_sitter.Node | None) -> list[tree_sitter.Node]:
    if params_node is None:
        return []
    return [
        child
        for child in params_node.named_children
        if child.type in ("parameter_declaration", "variadic_parameter_declaration")
    ]


def _block_statements(block: tree_sitter.Node) -> list[tree_sitter.Node]:
    statements = []
    for child in block.named_children:
        if child.type == "statement_list":
            statements.extend(c for c in child.named_children if c.type != "comment")
        elif child.type != "comment":
            statements.append(child)
    return statements


def _call_target(call: tree_sitter.Node, source: bytes) -> tuple[str, str]:
    """Return (qualifier, name) of a call expression's callee."""
    function = call.child_by_field_name("function")
    if function is None:
        return "", ""
    if function.type == "selector_expression":
        operand = function.child_by_field_name("operand")
        field = function.child_by_field_name("field")
        return _text(operand, source), _text(field, source)
    return "", _text(function, source)
