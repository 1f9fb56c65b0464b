"""
Go type descriptors.

A ``TypeDescriptor`` is the structural encoding of a Go type expression as it
appears in a declaration: basic, pointer, slice, array, map, named,
interface, struct, function or channel. Descriptors are built from source
text so that every consumer (data generation, templates, mocks) shares one
interpretation of a type.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

INTEGER_TYPES = frozenset(
    {
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
    }
)
UNSIGNED_TYPES = frozenset(
    {"uint", "uint8", "uint16", "uint32", "uint64", "uintptr", "byte"}
)
FLOAT_TYPES = frozenset({"float32", "float64"})
COMPLEX_TYPES = frozenset({"complex64", "complex128"})
BASIC_TYPES = INTEGER_TYPES | FLOAT_TYPES | COMPLEX_TYPES | {"string", "bool"}

_WS = re.compile(r"\s+")


class TypeKind(str, Enum):
    """Structural kinds of Go type expressions."""

    BASIC = "basic"
    POINTER = "pointer"
    SLICE = "slice"
    ARRAY = "array"
    MAP = "map"
    NAMED = "named"
    INTERFACE = "interface"
    STRUCT = "struct"
    FUNCTION = "function"
    CHANNEL = "channel"


class TypeDescriptor(BaseModel):
    """Parsed Go type expression."""

    model_config = ConfigDict(frozen=True)

    kind: TypeKind = Field(..., description="Structural kind of the type")
    text: str = Field(..., description="Canonical Go text of the type")
    elem: TypeDescriptor | None = Field(
        None, description="Element type for pointers, slices, arrays, channels and map values"
    )
    key: TypeDescriptor | None = Field(None, description="Key type for maps")
    package: str | None = Field(
        None, description="Package qualifier of a named type (e.g. 'context')"
    )
    name: str | None = Field(None, description="Bare name of a named type")
    variadic: bool = Field(
        False, description="True for a variadic parameter ('...T'); text holds '[]T'"
    )

    @property
    def declared(self) -> str:
        """Text as written in a parameter list."""
        if self.variadic and self.elem is not None:
            return f"...{self.elem.text}"
        return self.text

    @property
    def is_error(self) -> bool:
        return self.text == "error"

    @property
    def is_empty_interface(self) -> bool:
        return self.text in ("interface{}", "any")

    @property
    def is_integer(self) -> bool:
        return self.kind == TypeKind.BASIC and self.text in INTEGER_TYPES

    @property
    def is_unsigned(self) -> bool:
        return self.kind == TypeKind.BASIC and self.text in UNSIGNED_TYPES

    @property
    def is_float(self) -> bool:
        return self.kind == TypeKind.BASIC and self.text in FLOAT_TYPES

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float

    @property
    def is_nillable(self) -> bool:
        return self.kind in (
            TypeKind.POINTER,
            TypeKind.SLICE,
            TypeKind.MAP,
            TypeKind.INTERFACE,
            TypeKind.FUNCTION,
            TypeKind.CHANNEL,
        )

    @property
    def supports_equality(self) -> bool:
        """Whether generated code may compare values of this type with ``!=``."""
        return self.kind in (TypeKind.BASIC, TypeKind.POINTER, TypeKind.CHANNEL)

    def zero_literal(self) -> str:
        """Go literal for the zero value of this type."""
        if self.kind == TypeKind.BASIC:
            if self.text == "string":
                return '""'
            if self.text == "bool":
                return "false"
            return "0"
        if self.is_nillable:
            return "nil"
        return f"{self.text}{{}}"

    def qualifiers(self) -> set[str]:
        """Package qualifiers referenced anywhere in this type."""
        return set(re.findall(r"\b([A-Za-z_]\w*)\.[A-Za-z_]", self.text))


TypeDescriptor.model_rebuild()


def normalize_type_text(text: str) -> str:
    """Collapse whitespace in a type expression to a canonical form."""
    text = _WS.sub(" ", text).strip()
    text = re.sub(r"\[\s+", "[", text)
    text = re.sub(r"\s*\]\s*", "]", text)
    text = re.sub(r"\*\s+", "*", text)
    return text


def _matching_bracket(text: str, start: int) -> int:
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
    raise ValueError(f"Unbalanced brackets in type expression: {text}")


def parse_type_expr(text: str) -> TypeDescriptor:
    """
    Build a TypeDescriptor from Go type source text.

    Args:
        text: Type expression as written in source, e.g. ``map[string][]*pkg.T``
            or ``...int`` for a variadic parameter

    Returns:
        Descriptor for the expression

    Raises:
        ValueError: If the text is empty or has unbalanced brackets
    """
    t = normalize_type_text(text)
    if not t:
        raise ValueError("Empty type expression")

    if t.startswith("..."):
        elem = parse_type_expr(t[3:])
        return TypeDescriptor(
            kind=TypeKind.SLICE, text=f"[]{elem.text}", elem=elem, variadic=True
        )
    if t.startswith("(") and t.endswith(")"):
        return parse_type_expr(t[1:-1])
    if t.startswith("*"):
        elem = parse_type_expr(t[1:])
        return TypeDescriptor(kind=TypeKind.POINTER, text=f"*{elem.text}", elem=elem)
    if t.startswith("[]"):
        elem = parse_type_expr(t[2:])
        return TypeDescriptor(kind=TypeKind.SLICE, text=f"[]{elem.text}", elem=elem)
    if t.startswith("["):
        close = _matching_bracket(t, 0)
        elem = parse_type_expr(t[close + 1 :])
        return TypeDescriptor(
            kind=TypeKind.ARRAY, text=f"{t[: close + 1]}{elem.text}", elem=elem
        )
    if t.startswith("map["):
        close = _matching_bracket(t, 3)
        key = parse_type_expr(t[4:close])
        elem = parse_type_expr(t[close + 1 :])
        return TypeDescriptor(
            kind=TypeKind.MAP, text=f"map[{key.text}]{elem.text}", key=key, elem=elem
        )
    if re.match(r"(<-)?chan\b", t):
        if t.startswith("<-chan"):
            prefix, rest = "<-chan", t[6:]
        elif t.startswith("chan<-"):
            prefix, rest = "chan<-", t[6:]
        else:
            prefix, rest = "chan", t[4:]
        elem = parse_type_expr(rest)
        return TypeDescriptor(
            kind=TypeKind.CHANNEL, text=f"{prefix} {elem.text}", elem=elem
        )
    if re.match(r"func\b", t):
        return TypeDescriptor(kind=TypeKind.FUNCTION, text=t)
    if t == "any" or re.match(r"interface\s*\{", t):
        compact = "interface{}" if re.fullmatch(r"interface\s*\{\s*\}", t) else t
        return TypeDescriptor(kind=TypeKind.INTERFACE, text=compact)
    if re.match(r"struct\s*\{", t):
        compact = "struct{}" if re.fullmatch(r"struct\s*\{\s*\}", t) else t
        return TypeDescriptor(kind=TypeKind.STRUCT, text=compact)
    if t == "error":
        return TypeDescriptor(kind=TypeKind.INTERFACE, text=t, name="error")
    if t in BASIC_TYPES:
        return TypeDescriptor(kind=TypeKind.BASIC, text=t)

    # Named type, optionally qualified and/or instantiated with type arguments.
    base = t.split("[", 1)[0]
    package, _, name = base.rpartition(".")
    return TypeDescriptor(
        kind=TypeKind.NAMED, text=t, package=package or None, name=name
    )


def default_import_name(path: str) -> str:
    """Package name Go assumes for an unaliased import path."""
    segments = [s for s in path.split("/") if s]
    if not segments:
        return path
    last = segments[-1]
    if re.fullmatch(r"v\d+", last) and len(segments) > 1:
        last = segments[-2]
    last = re.sub(r"\.v\d+$", "", last)
    if last.startswith("go-"):
        last = last[3:]
    return last.replace("-", "_").replace(".", "_")
