"""
Test data generation for Go function parameters.

Produces a Python value plus the Go literal source text for a
``TypeDescriptor`` under one of five strategies, and derives heuristic
expectations from function names. Seeded generators are deterministic.
"""

from __future__ import annotations

import logging
import random
import string
from collections.abc import Iterable

from ...domain.go_types import TypeDescriptor, TypeKind, parse_type_expr
from ...domain.models import (
    CaseInput,
    FunctionDecl,
    GeneratedTestCase,
    GeneratedValue,
    ParamDecl,
    Strategy,
)

logger = logging.getLogger(__name__)

INT_RANGES: dict[str, tuple[int, int]] = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "rune": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
    "int": (-(2**63), 2**63 - 1),
    "uint8": (0, 2**8 - 1),
    "byte": (0, 2**8 - 1),
    "uint16": (0, 2**16 - 1),
    "uint32": (0, 2**32 - 1),
    "uint64": (0, 2**64 - 1),
    "uint": (0, 2**64 - 1),
    "uintptr": (0, 2**64 - 1),
}

FLOAT_EDGES = {
    "float32": ["3.4028235e+38", "-3.4028235e+38", "1.175494e-38"],
    "float64": [
        "1.7976931348623157e+308",
        "-1.7976931348623157e+308",
        "4.9406564584124654e-324",
    ],
}
COMMON_FLOAT_EDGES = ["0.0", "0.1", "-0.1", "1.0", "-1.0"]

POSITIVE_STRINGS = ["test", "hello", "example", "valid_input", "sample_data"]
NEGATIVE_STRINGS = ["", "null", "undefined", "<script>", "'; DROP TABLE;", "../../etc/passwd"]
LONG_STRING_LENGTH = 1000
EDGE_STRINGS = ["", " ", "\n", "\t", "\x00", "a" * LONG_STRING_LENGTH]
RANDOM_CHARSET = string.ascii_letters + string.digits

# Well-known interfaces from the standard library; generated as nil.
STDLIB_INTERFACES = frozenset(
    {
        "io.Reader",
        "io.Writer",
        "io.Closer",
        "io.ReadCloser",
        "io.WriteCloser",
        "io.ReadWriter",
        "io.ReadWriteCloser",
        "fmt.Stringer",
        "http.Handler",
        "http.ResponseWriter",
        "sql.Result",
        "net.Conn",
    }
)

DIVISOR_NAMES = ("divisor", "denominator")

STRATEGY_DESCRIPTIONS = {
    Strategy.POSITIVE: "Test {name} with valid positive inputs",
    Strategy.NEGATIVE: "Test {name} with invalid/negative inputs",
    Strategy.EDGE: "Test {name} with edge case inputs",
    Strategy.ZERO: "Test {name} with zero/empty inputs",
    Strategy.RANDOM: "Test {name} with random inputs",
}


def go_string_literal(value: str) -> str:
    """Quote a Python string as an interpreted Go string literal."""
    out = []
    for char in value:
        if char == "\\":
            out.append("\\\\")
        elif char == '"':
            out.append('\\"')
        elif char == "\n":
            out.append("\\n")
        elif char == "\t":
            out.append("\\t")
        elif char == "\r":
            out.append("\\r")
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\x{ord(char):02x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def float_literal(value: float) -> str:
    text = repr(round(value, 4))
    return text if any(c in text for c in ".e") else f"{text}.0"


def parameter_name(param: ParamDecl, index: int) -> str:
    if param.name and param.name != "_":
        return param.name
    return f"arg{index}"


def default_strategies(fn: FunctionDecl) -> list[Strategy]:
    strategies = [Strategy.POSITIVE, Strategy.EDGE, Strategy.ZERO]
    if fn.has_error_result:
        strategies.append(Strategy.NEGATIVE)
    return strategies


class DataGenerator:
    """
    Generates typed Go test inputs and heuristic expectations.

    Args:
        seed: Seed for the internal ``random.Random``; None is non-deterministic
        type_decls: Package-local type name to underlying type text, used to
            build literals for defined types such as ``type Celsius float64``
        interfaces: Names of package-local interface types
    """

    def __init__(
        self,
        seed: int | None = None,
        type_decls: dict[str, str] | None = None,
        interfaces: Iterable[str] = (),
    ) -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self.type_decls = dict(type_decls or {})
        self.interfaces = set(interfaces)

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    def generate_cases(
        self,
        fn: FunctionDecl,
        max_cases: int = 10,
        strategies: list[Strategy] | None = None,
    ) -> list[GeneratedTestCase]:
        """
        Generate up to max_cases test cases for a function.

        Each strategy contributes ``max_cases // len(strategies)`` cases (at
        least one) until the cap is reached.
        """
        strategies = strategies or default_strategies(fn)
        per_strategy = max(1, max_cases // len(strategies))

        cases: list[GeneratedTestCase] = []
        for strategy in strategies:
            for index in range(per_strategy):
                cases.append(self.generate_case(fn, strategy, index + 1))
            if len(cases) >= max_cases:
                break

        cases = cases[:max_cases]
        logger.debug(f"Generated {len(cases)} test cases for {fn.qualified_name}")
        return cases

    def generate_case(self, fn: FunctionDecl, strategy: Strategy, number: int) -> GeneratedTestCase:
        inputs = []
        for index, param in enumerate(fn.parameters):
            name = parameter_name(param, index)
            value = self.generate_value(param.type, strategy, name)
            inputs.append(
                CaseInput(
                    name=name,
                    type_text=param.type.declared,
                    value=value.value,
                    literal=value.literal,
                )
            )

        expect_error = self.should_expect_error(fn, strategy, inputs)
        return GeneratedTestCase(
            name=f"{strategy.value}_case_{number}",
            strategy=strategy,
            description=STRATEGY_DESCRIPTIONS[strategy].format(name=fn.name),
            inputs=inputs,
            expected=None if expect_error else self.expected_result(fn, inputs, strategy),
            expect_error=expect_error,
            error_pattern=self.error_pattern(fn) if expect_error else None,
            tags=[strategy.value],
        )

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def generate_value(
        self, type_: TypeDescriptor, strategy: Strategy, param_name: str = ""
    ) -> GeneratedValue:
        """Generate a value and Go literal for a type under a strategy."""
        if (
            strategy == Strategy.NEGATIVE
            and type_.is_numeric
            and any(word in param_name.lower() for word in DIVISOR_NAMES)
        ):
            return GeneratedValue(value=0, literal="0")

        kind = type_.kind
        if kind == TypeKind.BASIC:
            return self._basic_value(type_.text, strategy)
        if kind in (TypeKind.SLICE, TypeKind.ARRAY):
            return self._collection_value(type_, strategy)
        if kind == TypeKind.MAP:
            if strategy == Strategy.ZERO:
                return GeneratedValue(value=None, literal="nil")
            return GeneratedValue(value={}, literal=f"make({type_.text})")
        if kind == TypeKind.POINTER:
            return self._pointer_value(type_, strategy)
        if kind == TypeKind.CHANNEL:
            if strategy in (Strategy.ZERO, Strategy.EDGE):
                return GeneratedValue(value=None, literal="nil")
            return GeneratedValue(value=None, literal=f"make({type_.text}, 1)")
        if kind == TypeKind.INTERFACE:
            if type_.is_empty_interface:
                return self._empty_interface_value(strategy)
            return GeneratedValue(value=None, literal="nil")
        if kind == TypeKind.FUNCTION:
            return GeneratedValue(value=None, literal="nil")
        if kind == TypeKind.STRUCT:
            return GeneratedValue(value=None, literal=f"{type_.text}{{}}")
        return self._named_value(type_, strategy)

    def zero_literal(self, type_: TypeDescriptor) -> str:
        """Zero value literal, resolving package-local defined types."""
        if type_.kind == TypeKind.NAMED:
            if type_.text in STDLIB_INTERFACES or type_.text == "context.Context":
                return "nil"
            underlying = self.resolve(type_)
            if underlying is not None:
                if underlying.kind == TypeKind.BASIC:
                    return f"{type_.text}({underlying.zero_literal()})"
                if underlying.is_nillable:
                    return "nil"
        return type_.zero_literal()

    def resolve(self, type_: TypeDescriptor, depth: int = 0) -> TypeDescriptor | None:
        """Underlying descriptor of a package-local defined type, if known."""
        if type_.kind != TypeKind.NAMED or type_.package or depth > 8:
            return None
        if type_.name in self.interfaces:
            return TypeDescriptor(kind=TypeKind.INTERFACE, text=type_.text)
        text = self.type_decls.get(type_.name or "")
        if not text:
            return None
        try:
            underlying = parse_type_expr(text)
        except ValueError:
            return None
        if underlying.kind == TypeKind.NAMED:
            return self.resolve(underlying, depth + 1) or underlying
        return underlying

    def _basic_value(self, type_text: str, strategy: Strategy) -> GeneratedValue:
        if type_text == "string":
            return self._string_value(strategy)
        if type_text == "bool":
            if strategy == Strategy.POSITIVE:
                return GeneratedValue(value=True, literal="true")
            if strategy == Strategy.RANDOM:
                value = self.rng.random() < 0.5
                return GeneratedValue(value=value, literal="true" if value else "false")
            return GeneratedValue(value=False, literal="false")
        if type_text in INT_RANGES:
            value = self._int_value(type_text, strategy)
            return GeneratedValue(value=value, literal=str(value))
        if type_text in ("float32", "float64"):
            return self._float_value(type_text, strategy)
        return self._complex_value(strategy)

    def _string_value(self, strategy: Strategy) -> GeneratedValue:
        if strategy == Strategy.ZERO:
            return GeneratedValue(value="", literal='""')
        if strategy == Strategy.POSITIVE:
            value = self.rng.choice(POSITIVE_STRINGS)
        elif strategy == Strategy.NEGATIVE:
            value = self.rng.choice(NEGATIVE_STRINGS)
        elif strategy == Strategy.EDGE:
            value = self.rng.choice(EDGE_STRINGS)
            if len(value) == LONG_STRING_LENGTH:
                return GeneratedValue(
                    value=value, literal=f'strings.Repeat("a", {LONG_STRING_LENGTH})'
                )
        else:
            length = self.rng.randint(1, 50)
            value = "".join(self.rng.choice(RANDOM_CHARSET) for _ in range(length))
        return GeneratedValue(value=value, literal=go_string_literal(value))

    def _int_value(self, type_text: str, strategy: Strategy) -> int:
        low, high = INT_RANGES[type_text]
        if strategy == Strategy.ZERO:
            return 0
        if strategy == Strategy.POSITIVE:
            return self.rng.randint(1, min(1000, high))
        if strategy == Strategy.NEGATIVE:
            if low == 0:
                return 0
            return -self.rng.randint(1, min(1000, -low))
        if strategy == Strategy.EDGE:
            if low == 0:
                edges = [0, 1, high >> 1, high]
            else:
                edges = [low, -1, 0, 1, high]
            return self.rng.choice(edges)
        return self.rng.randint(max(low, -1_000_000), min(high, 1_000_000))

    def _float_value(self, type_text: str, strategy: Strategy) -> GeneratedValue:
        if strategy == Strategy.ZERO:
            return GeneratedValue(value=0.0, literal="0.0")
        if strategy == Strategy.EDGE:
            literal = self.rng.choice(COMMON_FLOAT_EDGES + FLOAT_EDGES[type_text])
            return GeneratedValue(value=float(literal), literal=literal)
        if strategy == Strategy.POSITIVE:
            value = self.rng.random() * 100
        elif strategy == Strategy.NEGATIVE:
            value = -(self.rng.random() * 100)
        else:
            value = (self.rng.random() - 0.5) * 2_000_000
        value = round(value, 4)
        return GeneratedValue(value=value, literal=float_literal(value))

    def _complex_value(self, strategy: Strategy) -> GeneratedValue:
        if strategy == Strategy.ZERO:
            return GeneratedValue(value=0j, literal="0")
        if strategy == Strategy.EDGE:
            return GeneratedValue(value=1j, literal="complex(0, 1)")
        if strategy == Strategy.NEGATIVE:
            return GeneratedValue(value=complex(-1, -1), literal="complex(-1, -1)")
        real = round(self.rng.random() * 100, 2)
        imag = round(self.rng.random() * 100, 2)
        return GeneratedValue(
            value=complex(real, imag),
            literal=f"complex({float_literal(real)}, {float_literal(imag)})",
        )

    def _collection_value(self, type_: TypeDescriptor, strategy: Strategy) -> GeneratedValue:
        if type_.kind == TypeKind.ARRAY:
            return GeneratedValue(value=None, literal=f"{type_.text}{{}}")
        if strategy == Strategy.ZERO:
            return GeneratedValue(value=None, literal="nil")

        if strategy == Strategy.POSITIVE:
            length = self.rng.randint(1, 5)
        elif strategy == Strategy.NEGATIVE:
            length = self.rng.randint(1, 3)
        elif strategy == Strategy.EDGE:
            length = self.rng.choice([0, 1])
        else:
            length = self.rng.randint(0, 9)

        elem = type_.elem
        assert elem is not None
        elements = [self.generate_value(elem, strategy) for _ in range(length)]
        literal = f"{type_.text}{{{', '.join(e.literal for e in elements)}}}"
        return GeneratedValue(value=[e.value for e in elements], literal=literal)

    def _pointer_value(self, type_: TypeDescriptor, strategy: Strategy) -> GeneratedValue:
        if strategy in (Strategy.ZERO, Strategy.EDGE):
            return GeneratedValue(value=None, literal="nil")
        base = type_.elem
        assert base is not None
        inner = self.generate_value(base, strategy)
        if base.kind != TypeKind.BASIC and inner.literal.startswith(f"{base.text}{{"):
            return GeneratedValue(value=inner.value, literal=f"&{inner.literal}")
        # Literals that are not composite are not addressable
        literal = f"func() *{base.text} {{ var v {base.text} = {inner.literal}; return &v }}()"
        return GeneratedValue(value=inner.value, literal=literal)

    def _empty_interface_value(self, strategy: Strategy) -> GeneratedValue:
        if strategy == Strategy.POSITIVE:
            return GeneratedValue(value="test", literal='"test"')
        if strategy == Strategy.EDGE:
            value, literal = self.rng.choice([(None, "nil"), ("", '""'), (0, "0"), (False, "false")])
            return GeneratedValue(value=value, literal=literal)
        if strategy == Strategy.RANDOM:
            return GeneratedValue(value=42, literal="42")
        return GeneratedValue(value=None, literal="nil")

    def _named_value(self, type_: TypeDescriptor, strategy: Strategy) -> GeneratedValue:
        if type_.text == "context.Context":
            return GeneratedValue(value=None, literal="context.Background()")
        if type_.text in STDLIB_INTERFACES:
            return GeneratedValue(value=None, literal="nil")
        if type_.text == "time.Duration":
            value = self._int_value("int64", strategy)
            return GeneratedValue(value=value, literal=f"time.Duration({value})")

        underlying = self.resolve(type_)
        if underlying is not None:
            if underlying.kind == TypeKind.BASIC:
                inner = self._basic_value(underlying.text, strategy)
                return GeneratedValue(value=inner.value, literal=f"{type_.text}({inner.literal})")
            if underlying.kind in (TypeKind.INTERFACE, TypeKind.FUNCTION, TypeKind.CHANNEL, TypeKind.POINTER):
                return GeneratedValue(value=None, literal="nil")
            if underlying.is_nillable and strategy == Strategy.ZERO:
                return GeneratedValue(value=None, literal="nil")
        return GeneratedValue(value=None, literal=f"{type_.text}{{}}")

    # ------------------------------------------------------------------
    # Expectations
    # ------------------------------------------------------------------

    def expected_result(
        self, fn: FunctionDecl, inputs: list[CaseInput], strategy: Strategy
    ) -> GeneratedValue | None:
        """
        Infer the first non-error result from the function name.

        Returns None when nothing can be inferred; callers must then treat
        the result as unknown rather than asserting on it.
        """
        result = next((r.type for r in fn.results if not r.type.is_error), None)
        if result is None:
            return None

        name = fn.name.lower()
        int_inputs = [
            i.value
            for i, p in zip(inputs, fn.parameters)
            if p.type.is_integer and not p.type.variadic and isinstance(i.value, int)
        ]
        all_integer = bool(fn.parameters) and len(int_inputs) == len(fn.parameters)

        if "add" in name or "sum" in name:
            if result.is_integer and all_integer:
                return _fitting_int(sum(int_inputs), result.text)
            return None
        if "multiply" in name or "mul" in name:
            if result.is_integer and all_integer:
                product = 1
                for value in int_inputs:
                    product *= value
                return _fitting_int(product, result.text)
            return None
        if "length" in name or "len" in name:
            if not result.is_integer:
                return None
            for case_input in inputs:
                if isinstance(case_input.value, str):
                    return _fitting_int(len(case_input.value.encode("utf-8")), result.text)
            return None
        if "empty" in name and result.text == "bool":
            flag = strategy in (Strategy.EDGE, Strategy.ZERO)
            return GeneratedValue(value=flag, literal="true" if flag else "false")
        if "valid" in name and result.text == "bool":
            flag = strategy == Strategy.POSITIVE
            return GeneratedValue(value=flag, literal="true" if flag else "false")
        return None

    def should_expect_error(
        self, fn: FunctionDecl, strategy: Strategy, inputs: list[CaseInput]
    ) -> bool:
        if not fn.has_error_result:
            return False
        if strategy == Strategy.NEGATIVE:
            return True
        if strategy != Strategy.EDGE:
            return False

        if "div" in fn.name.lower():
            for case_input in inputs:
                lowered = case_input.name.lower()
                value = case_input.value
                if (
                    any(word in lowered for word in DIVISOR_NAMES)
                    and isinstance(value, (int, float))
                    and not isinstance(value, bool)
                    and value == 0
                ):
                    return True
        return any(case_input.literal == "nil" for case_input in inputs)

    def error_pattern(self, fn: FunctionDecl) -> str:
        name = fn.name.lower()
        if "div" in name:
            return "division by zero"
        if "parse" in name:
            return "invalid"
        if "open" in name or "read" in name:
            return "no such file"
        if "connect" in name:
            return "connection"
        return "error"


def _fitting_int(value: int, type_text: str) -> GeneratedValue | None:
    low, high = INT_RANGES[type_text]
    if low <= value <= high:
        return GeneratedValue(value=value, literal=str(value))
    return None
