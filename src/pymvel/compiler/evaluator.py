"""
The contract between translation and the host that runs translated code.

pymvel stops at source text. A host compiler (a JVM bridge, a test double)
turns an `EvaluatorSource` into an `Evaluator`; this module defines both
sides of that hand-off and renders the Java class text a host compiles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pymvel.compiler.registry import Declaration, Registry
from pymvel.compiler.translator import TranslatedUnit
from pymvel.utils.errors import EvaluatorNotImplementedError

C = TypeVar("C")
K = TypeVar("K")
R = TypeVar("R")

EVALUATOR_PACKAGE = "org.mvel3"
EVALUATOR_INTERFACE = "org.mvel3.Evaluator"
CONTEXT_TYPE = "java.util.Map<String, Object>"

DEFAULT_IMPORTS: tuple[str, ...] = (
    "java.util.*",
    "java.util.regex.Pattern",
    "java.util.stream.Collectors",
    "java.math.BigDecimal",
    "java.math.BigInteger",
    "java.math.MathContext",
)

_NO_ROOT: Any = object()


class Evaluator(ABC, Generic[C, K, R]):
    """
    A compiled expression or program.

    Hosts override the arities they support. Calling one that is not
    overridden raises `EvaluatorNotImplementedError` at call time.

    Usage:
        evaluator.eval({"x": 1})          # context only
        evaluator.eval({"x": 1}, person)  # context and root object
        evaluator.eval_root(person)       # root object only
    """

    def eval(self, context: C, root: K = _NO_ROOT) -> R:
        if root is _NO_ROOT:
            return self.eval_context(context)
        return self.eval_with_root(context, root)

    def eval_context(self, context: C) -> R:
        raise EvaluatorNotImplementedError("eval(context)", type(self).__name__)

    def eval_with_root(self, context: C, root: K) -> R:
        raise EvaluatorNotImplementedError("eval(context, root)", type(self).__name__)

    def eval_root(self, root: K) -> R:
        raise EvaluatorNotImplementedError("eval_root(root)", type(self).__name__)


@dataclass(frozen=True)
class EvaluatorSource:
    """
    Everything a host needs to build an evaluator class.

    Attributes:
        class_name: Simple name of the generated class
        body: Translated text (an expression, or statements for programs)
        return_type: Qualified Java return type
        declarations: Typed locals read from the context map
        imports: Import lines, without `import` and `;`
        is_program: Whether `body` is statements rather than an expression
        context_parameter: Name of the context map parameter
    """

    class_name: str
    body: str
    return_type: str = "java.lang.Object"
    declarations: tuple[Declaration, ...] = ()
    imports: tuple[str, ...] = DEFAULT_IMPORTS
    is_program: bool = False
    context_parameter: str = "__context"

    @property
    def qualified_name(self) -> str:
        return f"{EVALUATOR_PACKAGE}.{self.class_name}"

    @classmethod
    def for_unit(
        cls,
        unit: TranslatedUnit,
        registry: Registry,
        class_name: str = "GeneratedEvaluator",
        return_type: str = "java.lang.Object",
        *,
        is_program: bool = False,
        imports: tuple[str, ...] = DEFAULT_IMPORTS,
    ) -> "EvaluatorSource":
        """Build a source for a translation, declaring only the names it references."""
        declarations = []
        for name in unit.referenced_names:
            declaration = registry.lookup(name)
            if declaration is not None:
                declarations.append(declaration)
        return cls(
            class_name=class_name,
            body=unit.body,
            return_type=return_type,
            declarations=tuple(declarations),
            imports=imports,
            is_program=is_program,
        )


def _indent_block(text: str, prefix: str) -> list[str]:
    return [prefix + line if line.strip() else "" for line in text.splitlines()]


def render_evaluator_source(source: EvaluatorSource) -> str:
    """
    Render the Java class wrapping a translated body.

    The class implements `Evaluator<Map<String, Object>, Void, R>`, binds
    one typed local per declaration from the context map and then returns
    the expression (or runs the statements).
    """
    context = source.context_parameter
    lines = [f"package {EVALUATOR_PACKAGE};", ""]
    lines.extend(f"import {name};" for name in source.imports)
    if source.imports:
        lines.append("")

    lines.append(
        f"public class {source.class_name} implements "
        f"{EVALUATOR_INTERFACE}<{CONTEXT_TYPE}, java.lang.Void, {source.return_type}> {{"
    )
    lines.append("")
    lines.append(f"    public {source.return_type} eval({CONTEXT_TYPE} {context}) {{")

    for declaration in source.declarations:
        type_text = str(declaration.type)
        lines.append(
            f"        {type_text} {declaration.name} = "
            f'(({type_text}) {context}.get("{declaration.name}"));'
        )

    if source.is_program:
        lines.extend(_indent_block(source.body, " " * 8))
        if source.return_type == "java.lang.Void" and not source.body.rstrip().endswith(
            "return null;"
        ):
            lines.append("        return null;")
    else:
        lines.append(f"        return {source.body};")

    lines.append("    }")
    lines.append("}")
    return "\n".join(lines) + "\n"


class HostCompiler(ABC):
    """Compiles evaluator sources into callables."""

    @abstractmethod
    def compile(self, source: EvaluatorSource) -> Evaluator:
        """
        Compile and load a generated class.

        Raises:
            HostCompileError: If the generated text does not compile
        """

    def compile_unit(
        self,
        unit: TranslatedUnit,
        registry: Registry,
        class_name: str = "GeneratedEvaluator",
        return_type: str = "java.lang.Object",
        *,
        is_program: bool = False,
    ) -> Evaluator:
        source = EvaluatorSource.for_unit(
            unit, registry, class_name, return_type, is_program=is_program
        )
        return self.compile(source)


__all__ = [
    "DEFAULT_IMPORTS",
    "Evaluator",
    "EvaluatorSource",
    "HostCompiler",
    "render_evaluator_source",
]
