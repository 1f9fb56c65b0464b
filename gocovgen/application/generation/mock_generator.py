"""
Mock generation for interface-typed parameters.

Classifies parameter types as capability sets (Go interfaces), locates their
declarations in the package's source model and renders testify
call-recording mocks. Interfaces that cannot be located are reported as
warnings and never fail the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import PurePosixPath

from ...domain.go_types import (
    BASIC_TYPES,
    TypeDescriptor,
    TypeKind,
    default_import_name,
    parse_type_expr,
)
from ...domain.models import (
    FileModel,
    FunctionDecl,
    GeneratedMock,
    InterfaceDecl,
    MockExpectation,
    MockInterfaceDecl,
    MockMethod,
    MockParam,
    MockResult,
)

logger = logging.getLogger(__name__)

TESTIFY_MOCK_IMPORT = "github.com/stretchr/testify/mock"

# testify accessors that coerce a recorded return value to its type
ACCESSORS = {"string": "String", "int": "Int", "bool": "Bool", "error": "Error"}
RESERVED_LOCALS = frozenset({"_m", "ret"})


def is_interface_type(type_: TypeDescriptor, declared: dict[str, bool] | None = None) -> bool:
    """
    Decide whether a parameter type looks like an interface.

    Args:
        type_: Parameter type
        declared: Package-local type name to "is an interface"; an entry
            here is an explicit classification and overrides the heuristic
    """
    if type_.kind == TypeKind.POINTER and type_.elem is not None:
        return is_interface_type(type_.elem, declared)
    if type_.kind == TypeKind.INTERFACE:
        return not type_.is_empty_interface and not type_.is_error
    if type_.kind != TypeKind.NAMED:
        return False
    if declared and not type_.package and type_.name in declared:
        return declared[type_.name]
    if type_.text in BASIC_TYPES:
        return False
    return bool(type_.package) or bool(type_.name and type_.name[0].isupper())


def mock_file_path(decl: MockInterfaceDecl) -> str:
    directory = PurePosixPath(decl.file).parent
    return str(directory / f"mock_{decl.name.lower()}.go")


class MockGenerator:
    """
    Locates interface declarations and renders testify mocks for them.

    Args:
        render: Callable rendering a MockInterfaceDecl plus render context
            into Go source (provided by the template engine)
        zero_literal: Callable returning the zero literal of a type
    """

    def __init__(
        self,
        render: Callable[[MockInterfaceDecl, list[dict], list[str]], str],
        zero_literal: Callable[[TypeDescriptor], str] | None = None,
    ) -> None:
        self._render = render
        self._zero_literal = zero_literal or (lambda t: t.zero_literal())

    def classify(self, package_files: list[FileModel]) -> dict[str, bool]:
        """Explicit classification of package-local type names."""
        declared: dict[str, bool] = {}
        for file_model in package_files:
            for name, underlying in file_model.type_decls.items():
                try:
                    declared[name] = parse_type_expr(underlying).kind == TypeKind.INTERFACE
                except ValueError:
                    continue
            for iface in file_model.interfaces:
                declared[iface.name] = True
        return declared

    def interface_parameters(
        self, fn: FunctionDecl, package_files: list[FileModel]
    ) -> list[tuple[int, TypeDescriptor]]:
        """(parameter index, type) for every interface-looking parameter."""
        declared = self.classify(package_files)
        return [
            (index, param.type)
            for index, param in enumerate(fn.parameters)
            if is_interface_type(param.type, declared)
        ]

    def locate(
        self,
        type_: TypeDescriptor,
        referencing: FileModel,
        package_files: list[FileModel],
    ) -> MockInterfaceDecl | None:
        """
        Find the declaration of an interface type.

        Same-directory non-test files are searched first, then the
        referencing file. Cross-package declarations are not resolved.
        """
        if type_.kind != TypeKind.NAMED or type_.package or not type_.name:
            return None

        candidates = [f for f in package_files if not f.path.endswith("_test.go")]
        if referencing not in candidates:
            candidates.append(referencing)

        index = {iface.name: (iface, f) for f in candidates for iface in f.interfaces}
        if type_.name not in index:
            return None
        iface, declaring_file = index[type_.name]

        methods = self._method_set(iface, index, seen=set())
        if methods is None:
            return None
        return MockInterfaceDecl(
            name=iface.name,
            package=iface.package,
            file=declaring_file.path,
            imports=declaring_file.imports,
            methods=methods,
        )

    def _method_set(
        self,
        iface: InterfaceDecl,
        index: dict[str, tuple[InterfaceDecl, FileModel]],
        seen: set[str],
    ) -> list[MockMethod] | None:
        if iface.name in seen:
            return []
        seen.add(iface.name)

        methods: list[MockMethod] = []
        for embedded in iface.embedded:
            if embedded not in index:
                logger.warning(
                    f"Interface {iface.name} embeds {embedded}, which cannot be resolved"
                )
                return None
            inner = self._method_set(index[embedded][0], index, seen)
            if inner is None:
                return None
            methods.extend(inner)

        for spec in iface.methods:
            methods.append(
                MockMethod(
                    name=spec.name,
                    parameters=[
                        MockParam(name=_local_name(p.name, f"arg{i}"), type=p.type)
                        for i, p in enumerate(spec.parameters)
                    ],
                    results=[
                        MockResult(name=r.name or f"ret{i}", type=r.type)
                        for i, r in enumerate(spec.results)
                    ],
                )
            )

        unique: dict[str, MockMethod] = {}
        for method in methods:
            unique.setdefault(method.name, method)
        return list(unique.values())

    def generate(self, decl: MockInterfaceDecl) -> GeneratedMock:
        """Render the mock file for a located interface."""
        methods = [self._method_context(decl, method) for method in decl.methods]
        content = self._render(decl, methods, self._imports(decl))
        return GeneratedMock(interface=decl, path=mock_file_path(decl), content=content)

    def expectations(self, mock_var: str, decl: MockInterfaceDecl) -> list[MockExpectation]:
        """Permissive expectations returning zero values for every method."""
        return [
            MockExpectation(
                mock_var=mock_var,
                method=method.name,
                arguments=["mock.Anything"] * len(method.parameters),
                returns=[self._typed_zero(r.type) for r in method.results],
            )
            for method in decl.methods
        ]

    def _typed_zero(self, type_: TypeDescriptor) -> str:
        # Recorded values are type-asserted, so numeric zeros need their type
        if type_.kind == TypeKind.BASIC and type_.text not in ("string", "bool", "int"):
            return f"{type_.text}(0)"
        return self._zero_literal(type_)

    def _method_context(self, decl: MockInterfaceDecl, method: MockMethod) -> dict:
        params = ", ".join(f"{p.name} {p.type.declared}" for p in method.parameters)
        result_types = [r.type.text for r in method.results]
        if not result_types:
            results = ""
        elif len(result_types) == 1:
            results = f" {result_types[0]}"
        else:
            results = f" ({', '.join(result_types)})"

        prelude: list[str] = []
        returns: list[str] = []
        for index, result in enumerate(method.results):
            accessor = ACCESSORS.get(result.type.text)
            if accessor:
                returns.append(f"ret.{accessor}({index})")
            elif result.type.is_empty_interface:
                returns.append(f"ret.Get({index})")
            else:
                local = f"r{index}"
                prelude.extend(
                    [
                        f"var {local} {result.type.text}",
                        f"if v, ok := ret.Get({index}).({result.type.text}); ok {{",
                        f"\t{local} = v",
                        "}",
                    ]
                )
                returns.append(local)

        return {
            "name": method.name,
            "params": params,
            "results": results,
            "call_args": ", ".join(p.name for p in method.parameters),
            "prelude": prelude,
            "returns": ", ".join(returns),
            "has_results": bool(method.results),
        }

    def _imports(self, decl: MockInterfaceDecl) -> list[str]:
        qualifiers: set[str] = set()
        for method in decl.methods:
            for param in method.parameters:
                qualifiers |= param.type.qualifiers()
            for result in method.results:
                qualifiers |= result.type.qualifiers()

        lines = [f'"{TESTIFY_MOCK_IMPORT}"']
        for alias in sorted(qualifiers):
            path = decl.imports.get(alias)
            if path is None:
                logger.debug(f"Mock {decl.mock_name}: no import found for qualifier {alias}")
                continue
            if default_import_name(path) == alias:
                lines.append(f'"{path}"')
            else:
                lines.append(f'{alias} "{path}"')
        return sorted(lines)


def _local_name(name: str, fallback: str) -> str:
    if not name or name == "_":
        return fallback
    if name in RESERVED_LOCALS:
        return f"{name}_"
    return name
