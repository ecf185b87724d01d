"""
Type-directed translation of pymvel ASTs into Java source text.

`translate()` is a pure function of the tree, the registry and the
options: the `Translator` keeps no state of its own, and everything a rule
needs (registry, indentation depth, iteration variable counter) travels in
an immutable `TranslationContext` passed down the recursion.

When type information is missing, each rule falls back to a name-based
guess from the `DisambiguationPolicy` and records a `TranslationAmbiguity`.
The one construct that is not translated is a guarded access whose
receiver is itself guarded (`a?.b?.c`); it produces an explicit
placeholder and an `UnresolvedConstruct`.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Optional

from pymvel.compiler.ast_nodes import (
    ArrayInitializer,
    AssignmentExpression,
    AssignmentOperator,
    ASTNode,
    ASTVisitor,
    BaseASTVisitor,
    BinaryExpression,
    BinaryOperator,
    Block,
    BooleanLiteral,
    BreakStatement,
    CastExpression,
    CatchClause,
    CharLiteral,
    CoercionExpression,
    CompilationUnit,
    ConditionalExpression,
    ContinueStatement,
    DoWhileStatement,
    EmptyLiteral,
    EmptyStatement,
    Expression,
    ExpressionStatement,
    FieldAccess,
    FloatLiteral,
    ForEachStatement,
    ForStatement,
    Identifier,
    IfStatement,
    IncrementExpression,
    IndexAccess,
    InstanceOfExpression,
    IntegerLiteral,
    IsDefinedExpression,
    LabeledStatement,
    LambdaExpression,
    ListLiteral,
    LocalVariableDeclaration,
    MapLiteral,
    MethodCall,
    MethodReference,
    MutationBlock,
    NewArray,
    NewObject,
    NilLiteral,
    NullLiteral,
    ParenthesizedExpression,
    PredicateBlock,
    ProjectionExpression,
    RegexLiteral,
    RegexMatchExpression,
    ReturnStatement,
    SafeFieldAccess,
    SafeIndexAccess,
    SafeMethodCall,
    SelectionExpression,
    Statement,
    StringLiteral,
    SuperFieldAccess,
    SwitchCase,
    SwitchExpression,
    SwitchLabelGroup,
    SwitchRule,
    SwitchStatement,
    TextBlockLiteral,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    TypePattern,
    TypeReference,
    UnaryExpression,
    UnaryOperator,
    UndefinedLiteral,
    UnitLiteral,
    WhileStatement,
    YieldStatement,
)
from pymvel.compiler.policy import DefaultDisambiguationPolicy, DisambiguationPolicy
from pymvel.compiler.registry import Registry, TypeDescriptor
from pymvel.utils.diagnostics import (
    Diagnostic,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    diagnostic,
    suggest_similar,
)
from pymvel.utils.errors import SourceLocation

logger = logging.getLogger(__name__)

UNRESOLVED_SAFE_NAVIGATION = "/* unresolved: nested safe navigation */"

# -----------------------------------------------------------------------------
# Operator Tables
# -----------------------------------------------------------------------------

BINARY_OP_TO_JAVA: dict[BinaryOperator, str] = {
    BinaryOperator.MUL: "*",
    BinaryOperator.DIV: "/",
    BinaryOperator.MOD: "%",
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.LT: "<",
    BinaryOperator.GT: ">",
    BinaryOperator.LE: "<=",
    BinaryOperator.GE: ">=",
    BinaryOperator.EQ: "==",
    BinaryOperator.NE: "!=",
    BinaryOperator.BIT_AND: "&",
    BinaryOperator.BIT_XOR: "^",
    BinaryOperator.BIT_OR: "|",
    BinaryOperator.AND: "&&",
    BinaryOperator.OR: "||",
}

UNARY_OP_TO_JAVA: dict[UnaryOperator, str] = {
    UnaryOperator.POS: "+",
    UnaryOperator.NEG: "-",
    UnaryOperator.NOT: "!",
    UnaryOperator.BIT_NOT: "~",
}

ASSIGNMENT_OP_TO_JAVA: dict[AssignmentOperator, str] = {
    AssignmentOperator.ASSIGN: "=",
    AssignmentOperator.ADD: "+=",
    AssignmentOperator.SUB: "-=",
    AssignmentOperator.MUL: "*=",
    AssignmentOperator.DIV: "/=",
    AssignmentOperator.MOD: "%=",
    AssignmentOperator.BIT_AND: "&=",
    AssignmentOperator.BIT_OR: "|=",
    AssignmentOperator.BIT_XOR: "^=",
}

# The binary operator a compound assignment applies
COMPOUND_TO_BINARY: dict[AssignmentOperator, BinaryOperator] = {
    AssignmentOperator.ADD: BinaryOperator.ADD,
    AssignmentOperator.SUB: BinaryOperator.SUB,
    AssignmentOperator.MUL: BinaryOperator.MUL,
    AssignmentOperator.DIV: BinaryOperator.DIV,
    AssignmentOperator.MOD: BinaryOperator.MOD,
    AssignmentOperator.BIT_AND: BinaryOperator.BIT_AND,
    AssignmentOperator.BIT_OR: BinaryOperator.BIT_OR,
    AssignmentOperator.BIT_XOR: BinaryOperator.BIT_XOR,
}

BIG_DECIMAL_METHODS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "add",
    BinaryOperator.SUB: "subtract",
    BinaryOperator.MUL: "multiply",
    BinaryOperator.DIV: "divide",
    BinaryOperator.MOD: "remainder",
}

BIG_INTEGER_METHODS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "add",
    BinaryOperator.SUB: "subtract",
    BinaryOperator.MUL: "multiply",
    BinaryOperator.DIV: "divide",
    BinaryOperator.MOD: "mod",
}

COMPARISON_OPERATORS = frozenset(
    {
        BinaryOperator.LT,
        BinaryOperator.GT,
        BinaryOperator.LE,
        BinaryOperator.GE,
        BinaryOperator.EQ,
        BinaryOperator.NE,
    }
)

BOOLEAN_OPERATORS = COMPARISON_OPERATORS | {
    BinaryOperator.AND,
    BinaryOperator.OR,
    BinaryOperator.STRSIM,
    BinaryOperator.SOUNDSLIKE,
    BinaryOperator.CONTAINS,
    BinaryOperator.IN,
}

# Text-to-value conversions used by coercion and by typed setters
PARSE_METHODS: dict[str, str] = {
    "int": "Integer.parseInt",
    "Integer": "Integer.parseInt",
    "long": "Long.parseLong",
    "Long": "Long.parseLong",
    "double": "Double.parseDouble",
    "Double": "Double.parseDouble",
    "float": "Float.parseFloat",
    "Float": "Float.parseFloat",
    "short": "Short.parseShort",
    "Short": "Short.parseShort",
    "byte": "Byte.parseByte",
    "Byte": "Byte.parseByte",
    "boolean": "Boolean.parseBoolean",
    "Boolean": "Boolean.parseBoolean",
}

NUMERIC_TYPES = frozenset(
    {
        "byte",
        "short",
        "int",
        "long",
        "float",
        "double",
        "char",
        "Byte",
        "Short",
        "Integer",
        "Long",
        "Float",
        "Double",
    }
)

_NUMERIC_SUFFIX = re.compile(r"[lLdDfF]$")

# Map.of accepts at most ten key/value pairs
MAP_OF_LIMIT = 10


# -----------------------------------------------------------------------------
# Translation Records
# -----------------------------------------------------------------------------


def _span(location: Optional[SourceLocation], length: int) -> Optional[SourceSpan]:
    if location is None:
        return None
    return SourceSpan.from_location(
        location.line, location.column, max(1, length), location.filename or "<input>"
    )


@dataclass(frozen=True, slots=True)
class TranslationAmbiguity:
    """
    A fallback applied because type information was missing.

    Attributes:
        rule: The rewrite rule that fell back (e.g. "field-access")
        subject: The construct, in translated form
        resolution: What was generated instead
        location: Source location of the construct
        code: Diagnostic code (W03xx)
        suggestions: Declared members with similar names
    """

    rule: str
    subject: str
    resolution: str
    location: Optional[SourceLocation] = None
    code: str = ErrorCode.W0301
    suggestions: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return f"{self.rule}: '{self.subject}' translated as {self.resolution}"

    def to_diagnostic(self) -> Diagnostic:
        builder = diagnostic(
            self.code, DiagnosticLevel.NOTE, self.message, _span(self.location, 1)
        )
        if self.suggestions:
            names = ", ".join(f"'{name}'" for name in self.suggestions)
            builder.help(f"did you mean {names}?")
        else:
            builder.help("declare the receiver's type in the registry to resolve this")
        return builder.build()


@dataclass(frozen=True, slots=True)
class UnresolvedConstruct:
    """A construct left as a placeholder in the generated text."""

    construct: str
    subject: str
    placeholder: str
    location: Optional[SourceLocation] = None

    def to_diagnostic(self) -> Diagnostic:
        return (
            diagnostic(
                ErrorCode.W0307,
                DiagnosticLevel.WARNING,
                f"{self.construct} is not translated: '{self.subject}'",
                _span(self.location, 1),
            )
            .note(f"the generated text contains {self.placeholder}")
            .help("split the chain with explicit null checks")
            .build()
        )


@dataclass(frozen=True, slots=True)
class TranslatedUnit:
    """
    Result of one translation.

    Attributes:
        body: Generated source text
        referenced_names: Registry-bound names the text uses, in order of
            first reference
        ambiguities: Fallbacks applied during translation
        unresolved: Constructs left as placeholders
    """

    body: str
    referenced_names: tuple[str, ...]
    ambiguities: tuple[TranslationAmbiguity, ...] = ()
    unresolved: tuple[UnresolvedConstruct, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def diagnostics(self) -> list[Diagnostic]:
        return [u.to_diagnostic() for u in self.unresolved] + [
            a.to_diagnostic() for a in self.ambiguities
        ]


class TranslationLog:
    """Collects the records of one `translate` call."""

    def __init__(self) -> None:
        self.ambiguities: list[TranslationAmbiguity] = []
        self.unresolved: list[UnresolvedConstruct] = []

    def ambiguity(self, record: TranslationAmbiguity) -> None:
        if record not in self.ambiguities:
            self.ambiguities.append(record)

    def unresolved_construct(self, record: UnresolvedConstruct) -> None:
        self.unresolved.append(record)


# -----------------------------------------------------------------------------
# Configuration and Context
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TranslatorOptions:
    """
    Output settings.

    Attributes:
        indent_size: Spaces per indentation level
        context_variable: Name of the evaluation context map
        write_back_context: Write assignments to bound names through to the
            context map (`context.put("x", ...)`)
        math_context: Rounding context for BigDecimal arithmetic
    """

    indent_size: int = 4
    context_variable: str = "context"
    write_back_context: bool = False
    math_context: str = "java.math.MathContext.DECIMAL128"


@dataclass(frozen=True, slots=True)
class TranslationContext:
    """
    Immutable state threaded through one translation.

    Derive modified copies with the helper methods (or
    `dataclasses.replace`); a context is never changed in place.
    """

    registry: Registry
    policy: DisambiguationPolicy
    options: TranslatorOptions
    log: TranslationLog = field(default_factory=TranslationLog)
    indent_depth: int = 0
    temp_var_counter: int = 0
    iteration_variable: Optional[str] = None
    iteration_type: Optional[TypeDescriptor] = None
    subject: Optional[str] = None
    subject_type: Optional[TypeDescriptor] = None
    bound_names: frozenset[str] = frozenset()

    @property
    def indent(self) -> str:
        return " " * (self.options.indent_size * self.indent_depth)

    def indented(self) -> "TranslationContext":
        return replace(self, indent_depth=self.indent_depth + 1)

    def with_iteration(
        self, element_type: Optional[TypeDescriptor]
    ) -> "TranslationContext":
        """Bind a fresh iteration variable (`item`, `item1`, ...)."""
        base = self.policy.iteration_variable
        name = base if self.temp_var_counter == 0 else f"{base}{self.temp_var_counter}"
        return replace(
            self,
            temp_var_counter=self.temp_var_counter + 1,
            iteration_variable=name,
            iteration_type=element_type,
        )

    def with_subject(
        self, subject: str, subject_type: Optional[TypeDescriptor]
    ) -> "TranslationContext":
        return replace(self, subject=subject, subject_type=subject_type)

    def binding(self, *names: str) -> "TranslationContext":
        return replace(self, bound_names=self.bound_names | frozenset(names))


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def descriptor_of(type_ref: TypeReference) -> TypeDescriptor:
    generics = None
    if type_ref.arguments:
        generics = ", ".join(arg.source_text for arg in type_ref.arguments)
    return TypeDescriptor(type_ref.name + "[]" * type_ref.dimensions, generics)


def java_string(value: str) -> str:
    """Quote a value as a Java string literal."""
    chars = ['"']
    for char in value:
        if char == "\\":
            chars.append("\\\\")
        elif char == '"':
            chars.append('\\"')
        elif char == "\n":
            chars.append("\\n")
        elif char == "\t":
            chars.append("\\t")
        elif char == "\r":
            chars.append("\\r")
        elif ord(char) < 0x20:
            chars.append(f"\\u{ord(char):04x}")
        else:
            chars.append(char)
    chars.append('"')
    return "".join(chars)


def is_wrapped(text: str) -> bool:
    """Whether the whole text is one parenthesized group."""
    if not text.startswith("(") or not text.endswith(")"):
        return False
    depth = 0
    quote: Optional[str] = None
    escaped = False
    for index, char in enumerate(text):
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index != len(text) - 1:
                return False
    return depth == 0


def wrap(text: str) -> str:
    return text if is_wrapped(text) else f"({text})"


def _is_primary(node: ASTNode) -> bool:
    """Whether the node's text can be a receiver without parentheses."""
    match node:
        case (
            Identifier()
            | ThisExpression()
            | SuperFieldAccess()
            | FieldAccess()
            | IndexAccess()
            | MethodCall()
            | SafeFieldAccess()
            | SafeIndexAccess()
            | SafeMethodCall()
            | ParenthesizedExpression()
            | NewObject()
            | ListLiteral()
            | MapLiteral()
            | EmptyLiteral()
            | ProjectionExpression()
            | SelectionExpression()
            | CoercionExpression()
            | MutationBlock()
            | PredicateBlock()
            | IsDefinedExpression()
            | StringLiteral()
            | TextBlockLiteral()
            | RegexLiteral()
            | NullLiteral()
            | BooleanLiteral()
        ):
            return True
        case _:
            return False


def _needs_grouping(node: ASTNode) -> bool:
    """Whether the node's text must be grouped as an infix operand."""
    match node:
        case (
            BinaryExpression()
            | ConditionalExpression()
            | AssignmentExpression()
            | LambdaExpression()
            | InstanceOfExpression()
            | SwitchExpression()
        ):
            return True
        case _:
            return False


def _numeric_text(text: str) -> str:
    """A numeric literal's digits without suffix or separators."""
    return _NUMERIC_SUFFIX.sub("", text.replace("_", ""))


def _is_radix_literal(text: str) -> bool:
    lowered = text.lower()
    return lowered.startswith("0x") or lowered.startswith("0b")


def _unwrap(node: ASTNode) -> ASTNode:
    while isinstance(node, ParenthesizedExpression):
        node = node.expression
    return node


# -----------------------------------------------------------------------------
# Referenced Names
# -----------------------------------------------------------------------------


class ReferencedNameCollector(BaseASTVisitor):
    """
    Collects registry-bound identifiers in order of first reference.

    Names introduced by the text itself (lambda parameters, locals, loop and
    catch variables, pattern bindings, the projection element) shadow the
    registry inside their scope and are not collected there.
    """

    def __init__(self, registry: Registry, iteration_variable: str = "item") -> None:
        self.registry = registry
        self.iteration_variable = iteration_variable
        self.names: dict[str, None] = {}
        self.scopes: list[set[str]] = [set()]

    def collect(self, node: ASTNode) -> tuple[str, ...]:
        self.names = {}
        self.scopes = [set()]
        self.visit(node)
        return tuple(self.names)

    def _is_local(self, name: str) -> bool:
        return any(name in scope for scope in self.scopes)

    def _visit_scoped(self, names, *nodes: Optional[ASTNode]) -> None:
        self.scopes.append(set(names))
        try:
            for node in nodes:
                if node is not None:
                    self.visit(node)
        finally:
            self.scopes.pop()

    def visit_identifier(self, node: Identifier, *args) -> None:
        if self._is_local(node.name):
            return
        declaration = self.registry.lookup(node.name)
        if declaration is not None:
            self.names.setdefault(declaration.name, None)

    def visit_type_pattern(self, node: TypePattern, *args) -> None:
        self.scopes[-1].add(node.name)

    def visit_instanceof_expression(self, node: InstanceOfExpression, *args) -> None:
        self.visit(node.operand)
        if node.binding is not None:
            self.scopes[-1].add(node.binding)

    def visit_lambda_expression(self, node: LambdaExpression, *args) -> None:
        self._visit_scoped((p.name for p in node.parameters), node.body)

    def visit_projection_expression(self, node: ProjectionExpression, *args) -> None:
        self.visit(node.collection)
        self._visit_scoped((self.iteration_variable,), node.projection)

    def visit_selection_expression(self, node: SelectionExpression, *args) -> None:
        self.visit(node.collection)
        self._visit_scoped((self.iteration_variable,), node.condition)

    def visit_local_variable_declaration(self, node: LocalVariableDeclaration, *args) -> None:
        for declarator in node.declarators:
            if declarator.initializer is not None:
                self.visit(declarator.initializer)
            self.scopes[-1].add(declarator.name)

    def visit_block(self, node: Block, *args) -> None:
        self._visit_scoped((), *node.statements)

    def visit_for_statement(self, node: ForStatement, *args) -> None:
        self._visit_scoped((), *node.init, node.condition, *node.update, node.body)

    def visit_foreach_statement(self, node: ForEachStatement, *args) -> None:
        self.visit(node.iterable)
        self._visit_scoped((node.name,), node.body)

    def visit_catch_clause(self, node: CatchClause, *args) -> None:
        self._visit_scoped((node.name,), node.body)

    def visit_switch_rule(self, node: SwitchRule, *args) -> None:
        self._visit_scoped((), *node.labels, node.body)

    def visit_switch_label_group(self, node: SwitchLabelGroup, *args) -> None:
        self._visit_scoped((), *node.labels, *node.statements)


# -----------------------------------------------------------------------------
# Translator
# -----------------------------------------------------------------------------


class Translator(ASTVisitor):
    """
    Rewrites an AST into Java source text, one rule per node kind.

    Every `visit_*` method takes the node and a `TranslationContext` and
    returns text. The translator holds no state, so one instance may serve
    any number of concurrent translations.
    """

    def translate(self, node: ASTNode, ctx: TranslationContext) -> str:
        return self.visit(node, ctx)

    # -------------------------------------------------------------------------
    # Shared Helpers
    # -------------------------------------------------------------------------

    def _receiver(self, node: ASTNode, ctx: TranslationContext) -> str:
        text = self.visit(node, ctx)
        return text if _is_primary(node) else wrap(text)

    def _operand(self, node: ASTNode, ctx: TranslationContext) -> str:
        text = self.visit(node, ctx)
        return wrap(text) if _needs_grouping(node) else text

    def _arguments(self, arguments: tuple[Expression, ...], ctx: TranslationContext) -> str:
        return ", ".join(self.visit(arg, ctx) for arg in arguments)

    def _type_text(self, type_ref: TypeReference, ctx: TranslationContext) -> str:
        """Source text of a type, resolving a bare name against available types."""
        if "." in type_ref.name or type_ref.name == "?":
            return type_ref.source_text
        resolved = ctx.registry.resolve_type_name(type_ref.name)
        if resolved is None or resolved == type_ref.name:
            return type_ref.source_text
        return replace(type_ref, name=resolved).source_text

    def _has_guard(self, node: ASTNode) -> bool:
        """Whether a receiver chain contains a null-guarded access."""
        match node:
            case SafeFieldAccess() | SafeIndexAccess() | SafeMethodCall():
                return True
            case FieldAccess(target=target) | IndexAccess(target=target):
                return self._has_guard(target)
            case MethodCall(callee=FieldAccess(target=target)):
                return self._has_guard(target)
            case ParenthesizedExpression(expression=inner):
                return self._has_guard(inner)
            case _:
                return False

    def _unresolved(self, node: Expression, ctx: TranslationContext, subject: str) -> str:
        ctx.log.unresolved_construct(
            UnresolvedConstruct(
                "nested safe navigation", subject, UNRESOLVED_SAFE_NAVIGATION, node.location
            )
        )
        return UNRESOLVED_SAFE_NAVIGATION

    def _note(
        self,
        ctx: TranslationContext,
        rule: str,
        subject: str,
        resolution: str,
        location: Optional[SourceLocation],
        code: str,
        suggestions: tuple[str, ...] = (),
    ) -> None:
        ctx.log.ambiguity(
            TranslationAmbiguity(rule, subject, resolution, location, code, suggestions)
        )

    # -------------------------------------------------------------------------
    # Static Types
    # -------------------------------------------------------------------------

    def _static_type(self, node: ASTNode, ctx: TranslationContext) -> Optional[TypeDescriptor]:
        """Best-effort declared type of an expression; None when unknown."""
        registry = ctx.registry
        match node:
            case Identifier(name=name):
                if ctx.iteration_variable and name == ctx.policy.iteration_variable:
                    return ctx.iteration_type
                if name in ctx.bound_names:
                    return None
                declaration = registry.lookup(name)
                if declaration is not None:
                    return declaration.type
                if self._is_subject_member(name, ctx) and ctx.subject_type is not None:
                    return registry.field_type(ctx.subject_type, name)
                return None
            case FieldAccess(target=target, name=name) | SafeFieldAccess(
                target=target, name=name
            ):
                owner = self._static_type(target, ctx)
                if owner is None:
                    return None
                if owner.is_array and name == "length":
                    return TypeDescriptor("int")
                return registry.field_type(owner, name)
            case IndexAccess(target=target) | SafeIndexAccess(target=target):
                owner = self._static_type(target, ctx)
                return owner.element_type if owner is not None else None
            case MethodCall(callee=FieldAccess(target=target, name=name)) | SafeMethodCall(
                target=target, name=name
            ):
                if name in ("size", "length", "hashCode"):
                    return TypeDescriptor("int")
                if name == "toString":
                    return TypeDescriptor("String")
                owner = self._static_type(target, ctx)
                return registry.method_return_type(owner, name) if owner is not None else None
            case MethodCall(callee=Identifier(name=name)) if ctx.subject_type is not None:
                return registry.method_return_type(ctx.subject_type, name)
            case ParenthesizedExpression(expression=inner):
                return self._static_type(inner, ctx)
            case IntegerLiteral(text=text):
                return TypeDescriptor("long" if text[-1] in "lL" else "int")
            case FloatLiteral(text=text):
                return TypeDescriptor("float" if text[-1] in "fF" else "double")
            case CharLiteral():
                return TypeDescriptor("char")
            case StringLiteral() | TextBlockLiteral():
                return TypeDescriptor("String")
            case BooleanLiteral() | IsDefinedExpression() | InstanceOfExpression():
                return TypeDescriptor("boolean")
            case UnitLiteral(unit="B"):
                return TypeDescriptor("java.math.BigDecimal")
            case UnitLiteral(unit="I"):
                return TypeDescriptor("java.math.BigInteger")
            case CastExpression(type=type_ref) | CoercionExpression(target_type=type_ref):
                return descriptor_of(type_ref)
            case NewObject(type=type_ref):
                resolved = ctx.registry.resolve_type_name(type_ref.name) or type_ref.name
                return TypeDescriptor(resolved)
            case ConditionalExpression(then_expr=then_expr):
                return self._static_type(then_expr, ctx)
            case AssignmentExpression(target=target):
                return self._static_type(target, ctx)
            case UnaryExpression(operator=UnaryOperator.NOT):
                return TypeDescriptor("boolean")
            case UnaryExpression(operand=operand) | IncrementExpression(operand=operand):
                return self._static_type(operand, ctx)
            case BinaryExpression(left=left, operator=operator, right=right):
                if operator in BOOLEAN_OPERATORS:
                    return TypeDescriptor("boolean")
                if operator == BinaryOperator.POW:
                    return TypeDescriptor("double")
                left_type = self._static_type(left, ctx)
                right_type = self._static_type(right, ctx)
                for candidate in (left_type, right_type):
                    if candidate is not None and candidate.is_big_decimal:
                        return candidate
                for candidate in (left_type, right_type):
                    if candidate is not None and candidate.is_big_integer:
                        return candidate
                if operator == BinaryOperator.ADD and any(
                    t is not None and t.is_string for t in (left_type, right_type)
                ):
                    return TypeDescriptor("String")
                return left_type or right_type
            case _:
                return None

    @staticmethod
    def _is_numeric(descriptor: Optional[TypeDescriptor]) -> bool:
        return descriptor is not None and not descriptor.is_array and (
            descriptor.base_name in NUMERIC_TYPES
        )

    # -------------------------------------------------------------------------
    # Member Resolution
    # -------------------------------------------------------------------------

    def _accessor(
        self, owner: Optional[TypeDescriptor], name: str, ctx: TranslationContext
    ) -> str:
        accessor = ctx.policy.accessor_name(name)
        if owner is not None:
            info = ctx.registry.type_info(owner)
            boolean_accessor = "is" + name[:1].upper() + name[1:]
            if info is not None and info.method(accessor) is None and info.method(boolean_accessor):
                return boolean_accessor
        return accessor

    def _member(
        self,
        target_text: str,
        owner: Optional[TypeDescriptor],
        name: str,
        location: Optional[SourceLocation],
        ctx: TranslationContext,
    ) -> str:
        """
        Resolve a member read `target.name`, in priority order: built-in or
        declared method, static member, package path, public field, type
        path, and finally an accessor call.
        """
        registry, policy = ctx.registry, ctx.policy
        subject = f"{target_text}.{name}"

        if owner is not None and owner.is_array and name == "length":
            return f"{target_text}.length"
        if policy.is_builtin_method(name) or (
            owner is not None and registry.has_method(owner, name)
        ):
            return f"{target_text}.{name}()"
        if policy.is_static_member(name):
            return f"{target_text}.{name}"
        if policy.is_namespace_segment(name):
            return f"{target_text}.{name}"
        if owner is not None and registry.is_public_field(owner, name):
            return f"{target_text}.{name}"

        info = registry.type_info(owner) if owner is not None else None
        if policy.is_public_field_name(name):
            if info is None:
                self._note(
                    ctx, "field-access", subject, "a public field read", location, ErrorCode.W0303
                )
            return f"{target_text}.{name}"
        if policy.is_type_name(name):
            return f"{target_text}.{name}"

        accessor = self._accessor(owner, name, ctx)
        if info is None:
            self._note(
                ctx,
                "field-access",
                subject,
                f"accessor call {accessor}()",
                location,
                ErrorCode.W0301,
            )
        elif registry.field_type(owner, name) is None:
            self._note(
                ctx,
                "field-access",
                subject,
                f"accessor call {accessor}() on undeclared member of {info.name}",
                location,
                ErrorCode.W0306,
                tuple(suggest_similar(name, registry.member_names(owner))),
            )
        return f"{target_text}.{accessor}()"

    def _is_subject_member(self, name: str, ctx: TranslationContext) -> bool:
        """Whether a bare name inside a predicate block means `subject.name`."""
        return (
            ctx.subject is not None
            and name[:1].islower()
            and name not in ctx.bound_names
            and not (ctx.iteration_variable and name == ctx.policy.iteration_variable)
            and ctx.registry.lookup(name) is None
        )

    def _is_direct_field(
        self,
        owner: Optional[TypeDescriptor],
        name: str,
        subject: str,
        location: Optional[SourceLocation],
        ctx: TranslationContext,
    ) -> bool:
        """Whether a write to `owner.name` is a field write rather than a mutator call."""
        registry, policy = ctx.registry, ctx.policy
        if owner is not None and registry.is_public_field(owner, name):
            return True
        if policy.is_static_member(name) or policy.is_type_name(name):
            return True
        if policy.is_public_field_name(name):
            if owner is None or registry.type_info(owner) is None:
                self._note(
                    ctx, "assignment", subject, "a public field write", location, ErrorCode.W0303
                )
            return True
        return False

    def _collection_shape(
        self, target: ASTNode, target_text: str, location: Optional[SourceLocation], ctx: TranslationContext
    ) -> str:
        """Classify an indexed receiver as "array", "map" or "list"."""
        owner = self._static_type(target, ctx)
        if owner is not None:
            if owner.is_array:
                return "array"
            if owner.is_map:
                return "map"
            if owner.is_list:
                return "list"

        policy = ctx.policy
        if policy.looks_like_array(target_text):
            shape = "array"
        elif policy.looks_like_map(target_text):
            shape = "map"
        else:
            shape = "list"
        self._note(
            ctx, "index-access", target_text, f"{shape} access", location, ErrorCode.W0302
        )
        return shape

    # -------------------------------------------------------------------------
    # Arbitrary Precision Arithmetic
    # -------------------------------------------------------------------------

    def _promote(
        self,
        node: ASTNode,
        text: str,
        big_type: str,
        ctx: TranslationContext,
        operand_type: Optional[TypeDescriptor] = None,
    ) -> str:
        """Convert an operand to BigDecimal or BigInteger text."""
        node = _unwrap(node)
        if operand_type is None:
            operand_type = self._static_type(node, ctx)
        if operand_type is not None:
            if big_type == "BigDecimal" and operand_type.is_big_decimal:
                return text
            if big_type == "BigInteger" and operand_type.is_big_integer:
                return text
            if big_type == "BigDecimal" and operand_type.is_big_integer:
                return f"new BigDecimal({text})"
        match node:
            case IntegerLiteral(text=literal) | FloatLiteral(text=literal) if not _is_radix_literal(
                literal
            ):
                return f'new {big_type}("{_numeric_text(literal)}")'
            case StringLiteral():
                return f"new {big_type}({text})"
        return f"{big_type}.valueOf({text})"

    def _arithmetic(
        self,
        left: ASTNode,
        left_text: str,
        operator: BinaryOperator,
        right: ASTNode,
        right_text: str,
        ctx: TranslationContext,
        left_type: Optional[TypeDescriptor] = None,
    ) -> Optional[str]:
        """
        Rewrite arithmetic or comparison on BigDecimal/BigInteger operands
        into method calls; None when ordinary infix syntax applies.
        """
        if left_type is None:
            left_type = self._static_type(left, ctx)
        right_type = self._static_type(right, ctx)
        types = (left_type, right_type)

        if operator == BinaryOperator.ADD and any(t is not None and t.is_string for t in types):
            return None
        if any(isinstance(_unwrap(n), (NullLiteral, NilLiteral)) for n in (left, right)):
            return None

        if any(t is not None and t.is_big_decimal for t in types):
            big_type, methods = "BigDecimal", BIG_DECIMAL_METHODS
        elif any(t is not None and t.is_big_integer for t in types):
            big_type, methods = "BigInteger", BIG_INTEGER_METHODS
        else:
            return None

        receiver = self._promote(left, left_text, big_type, ctx, left_type)
        if receiver == left_text and not _is_primary(_unwrap(left)):
            receiver = wrap(receiver)
        argument = self._promote(right, right_text, big_type, ctx)

        if operator in COMPARISON_OPERATORS:
            return f"{receiver}.compareTo({argument}) {BINARY_OP_TO_JAVA[operator]} 0"
        method = methods.get(operator)
        if method is None:
            return None
        if big_type == "BigDecimal":
            return f"{receiver}.{method}({argument}, {ctx.options.math_context})"
        return f"{receiver}.{method}({argument})"

    def _power(
        self,
        base: ASTNode,
        base_text: str,
        base_type: Optional[TypeDescriptor],
        exponent: ASTNode,
        exponent_text: str,
        ctx: TranslationContext,
    ) -> str:
        """`base ** exponent`; BigDecimal and BigInteger bases use their own `pow`."""
        exponent_type = self._static_type(exponent, ctx)
        big_exponent = exponent_type is not None and (
            exponent_type.is_big_decimal or exponent_type.is_big_integer
        )
        if big_exponent and not _is_primary(_unwrap(exponent)):
            exponent_text = wrap(exponent_text)

        if base_type is not None and (base_type.is_big_decimal or base_type.is_big_integer):
            receiver = base_text if _is_primary(_unwrap(base)) else wrap(base_text)
            if big_exponent:
                exponent_text += ".intValueExact()"
            if base_type.is_big_decimal:
                return f"{receiver}.pow({exponent_text}, {ctx.options.math_context})"
            return f"{receiver}.pow({exponent_text})"

        if big_exponent:
            exponent_text += ".doubleValue()"
        return f"Math.pow({base_text}, {exponent_text})"

    def _combine(
        self,
        current: str,
        current_type: Optional[TypeDescriptor],
        operator: AssignmentOperator,
        value: ASTNode,
        value_text: str,
        ctx: TranslationContext,
    ) -> str:
        """The new value of a compound assignment: `current op value`."""
        if operator == AssignmentOperator.POW:
            return self._power(Identifier(current), current, current_type, value, value_text, ctx)
        binary = COMPOUND_TO_BINARY[operator]
        operand = wrap(value_text) if _needs_grouping(value) else value_text
        rewritten = self._arithmetic(
            Identifier(current), current, binary, value, operand, ctx, current_type
        )
        if rewritten is not None:
            return rewritten
        return f"{current} {BINARY_OP_TO_JAVA[binary]} {operand}"

    def _coerce_value(
        self,
        value: ASTNode,
        value_text: str,
        target_type: Optional[TypeDescriptor],
        ctx: TranslationContext,
    ) -> str:
        """Convert a value for a typed destination (setter argument, declaration)."""
        if target_type is None:
            return value_text
        node = _unwrap(value)
        value_type = self._static_type(node, ctx)

        if target_type.is_big_decimal or target_type.is_big_integer:
            big_type = "BigDecimal" if target_type.is_big_decimal else "BigInteger"
            match node:
                case IntegerLiteral() | FloatLiteral() | StringLiteral():
                    return self._promote(node, value_text, big_type, ctx)
                case NullLiteral() | NilLiteral() | UndefinedLiteral():
                    return value_text
            if self._is_numeric(value_type) or (
                big_type == "BigDecimal" and value_type is not None and value_type.is_big_integer
            ):
                return self._promote(node, value_text, big_type, ctx)
            return value_text

        if target_type.is_string and value_type is not None:
            if value_type.is_big_decimal or value_type.is_big_integer:
                return f"java.util.Objects.toString({value_text}, null)"
            return value_text

        parse_method = PARSE_METHODS.get(target_type.base_name)
        if parse_method is not None and value_type is not None and value_type.is_string:
            return f"{parse_method}({value_text})"
        return value_text

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def visit_type_reference(self, node: TypeReference, ctx: TranslationContext) -> str:
        return self._type_text(node, ctx)

    def visit_type_pattern(self, node: TypePattern, ctx: TranslationContext) -> str:
        return f"{self._type_text(node.type, ctx)} {node.name}"

    # -------------------------------------------------------------------------
    # Literals
    # -------------------------------------------------------------------------

    def visit_integer_literal(self, node: IntegerLiteral, ctx: TranslationContext) -> str:
        return node.text

    def visit_float_literal(self, node: FloatLiteral, ctx: TranslationContext) -> str:
        return node.text

    def visit_char_literal(self, node: CharLiteral, ctx: TranslationContext) -> str:
        return node.text

    def visit_string_literal(self, node: StringLiteral, ctx: TranslationContext) -> str:
        if node.raw.startswith('"'):
            return node.raw
        return java_string(node.value)

    def visit_text_block_literal(self, node: TextBlockLiteral, ctx: TranslationContext) -> str:
        return node.raw

    def visit_boolean_literal(self, node: BooleanLiteral, ctx: TranslationContext) -> str:
        return "true" if node.value else "false"

    def visit_null_literal(self, node: NullLiteral, ctx: TranslationContext) -> str:
        return "null"

    def visit_regex_literal(self, node: RegexLiteral, ctx: TranslationContext) -> str:
        return f"Pattern.compile({java_string(node.pattern)})"

    def visit_unit_literal(self, node: UnitLiteral, ctx: TranslationContext) -> str:
        if node.unit == "B":
            return f'new BigDecimal("{_numeric_text(node.value)}")'
        if node.unit == "I":
            return f'new BigInteger("{_numeric_text(node.value)}")'
        text = node.value + node.unit
        self._note(
            ctx, "unit-literal", text, "the literal text unchanged", node.location, ErrorCode.W0304
        )
        return text

    # -------------------------------------------------------------------------
    # Primary Forms
    # -------------------------------------------------------------------------

    def visit_identifier(self, node: Identifier, ctx: TranslationContext) -> str:
        name = node.name
        if ctx.iteration_variable and name == ctx.policy.iteration_variable:
            return ctx.iteration_variable
        if name in ctx.bound_names:
            return name
        declaration = ctx.registry.lookup(name)
        if declaration is not None:
            return declaration.name
        if self._is_subject_member(name, ctx):
            return self._member(ctx.subject, ctx.subject_type, name, node.location, ctx)
        return name

    def visit_this_expression(self, node: ThisExpression, ctx: TranslationContext) -> str:
        return "this"

    def visit_super_field_access(self, node: SuperFieldAccess, ctx: TranslationContext) -> str:
        return self._member("super", None, node.name, node.location, ctx)

    def visit_new_object(self, node: NewObject, ctx: TranslationContext) -> str:
        return f"new {self._type_text(node.type, ctx)}({self._arguments(node.arguments, ctx)})"

    def visit_new_array(self, node: NewArray, ctx: TranslationContext) -> str:
        dimensions = "".join(
            "[]" if size is None else f"[{self.visit(size, ctx)}]" for size in node.dimensions
        )
        text = f"new {self._type_text(node.element_type, ctx)}{dimensions}"
        if node.initializer is not None:
            text += self.visit(node.initializer, ctx)
        return text

    def visit_array_initializer(self, node: ArrayInitializer, ctx: TranslationContext) -> str:
        return "{" + self._arguments(node.elements, ctx) + "}"

    def visit_list_literal(self, node: ListLiteral, ctx: TranslationContext) -> str:
        return f"List.of({self._arguments(node.elements, ctx)})"

    def _map_key(self, key: Expression, ctx: TranslationContext) -> str:
        match key:
            case Identifier(name=name) if ctx.registry.lookup(name) is None:
                return java_string(name)
            case _:
                return self.visit(key, ctx)

    def visit_map_literal(self, node: MapLiteral, ctx: TranslationContext) -> str:
        pairs = [
            (self._map_key(entry.key, ctx), self.visit(entry.value, ctx))
            for entry in node.entries
        ]
        if len(pairs) <= MAP_OF_LIMIT:
            return "Map.of(" + ", ".join(f"{k}, {v}" for k, v in pairs) + ")"
        entries = ", ".join(f"Map.entry({k}, {v})" for k, v in pairs)
        return f"Map.ofEntries({entries})"

    def visit_empty_literal(self, node: EmptyLiteral, ctx: TranslationContext) -> str:
        return "Collections.emptyList()"

    def visit_nil_literal(self, node: NilLiteral, ctx: TranslationContext) -> str:
        return "null"

    def visit_undefined_literal(self, node: UndefinedLiteral, ctx: TranslationContext) -> str:
        return "null"

    def visit_lambda_expression(self, node: LambdaExpression, ctx: TranslationContext) -> str:
        inner = ctx.binding(*(p.name for p in node.parameters))
        params = []
        for parameter in node.parameters:
            if parameter.type is not None:
                params.append(f"{self._type_text(parameter.type, ctx)} {parameter.name}")
            else:
                params.append(parameter.name)
        if len(params) == 1 and not node.parameters[0].type and not node.parenthesized:
            head = params[0]
        else:
            head = "(" + ", ".join(params) + ")"
        return f"{head} -> {self.visit(node.body, inner)}"

    def visit_method_reference(self, node: MethodReference, ctx: TranslationContext) -> str:
        match node.target:
            case TypeReference() as type_ref:
                target = self._type_text(type_ref, ctx)
            case Identifier(name=name) if ctx.policy.is_type_name(name):
                target = self._type_text(TypeReference(name), ctx)
            case target_node:
                target = self._receiver(target_node, ctx)
        return f"{target}::{node.name}"

    def visit_parenthesized_expression(
        self, node: ParenthesizedExpression, ctx: TranslationContext
    ) -> str:
        return wrap(self.visit(node.expression, ctx))

    def visit_cast_expression(self, node: CastExpression, ctx: TranslationContext) -> str:
        operand = self.visit(node.operand, ctx)
        if _needs_grouping(node.operand):
            operand = wrap(operand)
        return f"({self._type_text(node.type, ctx)}) {operand}"

    # -------------------------------------------------------------------------
    # Access and Calls
    # -------------------------------------------------------------------------

    def visit_field_access(self, node: FieldAccess, ctx: TranslationContext) -> str:
        target = self._receiver(node.target, ctx)
        owner = self._static_type(node.target, ctx)
        return self._member(target, owner, node.name, node.location, ctx)

    def visit_index_access(self, node: IndexAccess, ctx: TranslationContext) -> str:
        target = self._receiver(node.target, ctx)
        index = self.visit(node.index, ctx)
        if self._collection_shape(node.target, target, node.location, ctx) == "array":
            return f"{target}[{index}]"
        return f"{target}.get({index})"

    def visit_safe_field_access(self, node: SafeFieldAccess, ctx: TranslationContext) -> str:
        if self._has_guard(node.target):
            return self._unresolved(node, ctx, f"?.{node.name}")
        target = self._receiver(node.target, ctx)
        owner = self._static_type(node.target, ctx)
        inner = self._member(target, owner, node.name, node.location, ctx)
        return f"({target} != null ? {inner} : null)"

    def visit_safe_index_access(self, node: SafeIndexAccess, ctx: TranslationContext) -> str:
        if self._has_guard(node.target):
            return self._unresolved(node, ctx, "?[...]")
        target = self._receiver(node.target, ctx)
        index = self.visit(node.index, ctx)
        if self._collection_shape(node.target, target, node.location, ctx) == "array":
            inner = f"{target}[{index}]"
        else:
            inner = f"{target}.get({index})"
        return f"({target} != null ? {inner} : null)"

    def visit_method_call(self, node: MethodCall, ctx: TranslationContext) -> str:
        arguments = self._arguments(node.arguments, ctx)
        match node.callee:
            case FieldAccess(target=target, name=name):
                return f"{self._receiver(target, ctx)}.{name}({arguments})"
            case SuperFieldAccess(name=name):
                return f"super.{name}({arguments})"
            case Identifier(name=name) if self._is_subject_member(name, ctx):
                return f"{ctx.subject}.{name}({arguments})"
            case Identifier(name=name):
                return f"{name}({arguments})"
            case callee:
                return f"{self._receiver(callee, ctx)}({arguments})"

    def visit_safe_method_call(self, node: SafeMethodCall, ctx: TranslationContext) -> str:
        if self._has_guard(node.target):
            return self._unresolved(node, ctx, f"?.{node.name}(...)")
        target = self._receiver(node.target, ctx)
        arguments = self._arguments(node.arguments, ctx)
        return f"({target} != null ? {target}.{node.name}({arguments}) : null)"

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def visit_increment_expression(
        self, node: IncrementExpression, ctx: TranslationContext
    ) -> str:
        match node.operand:
            case FieldAccess() | IndexAccess():
                operator = (
                    AssignmentOperator.ADD if node.operator == "++" else AssignmentOperator.SUB
                )
                rewritten = self._write(node.operand, operator, IntegerLiteral("1"), "1", node, ctx)
                if rewritten is not None:
                    return rewritten
        operand = self._receiver(node.operand, ctx)
        if node.prefix:
            return f"{node.operator}{operand}"
        return f"{operand}{node.operator}"

    def visit_unary_expression(self, node: UnaryExpression, ctx: TranslationContext) -> str:
        operand_type = self._static_type(node.operand, ctx)
        if node.operator == UnaryOperator.NEG and operand_type is not None and (
            operand_type.is_big_decimal or operand_type.is_big_integer
        ):
            return f"{self._receiver(node.operand, ctx)}.negate()"
        operand = self.visit(node.operand, ctx)
        if _needs_grouping(node.operand):
            operand = wrap(operand)
        return f"{UNARY_OP_TO_JAVA[node.operator]}{operand}"

    def _container_method(self, container: ASTNode, ctx: TranslationContext) -> str:
        container_type = self._static_type(container, ctx)
        if container_type is not None and container_type.is_map:
            return "containsKey"
        return "contains"

    def visit_binary_expression(self, node: BinaryExpression, ctx: TranslationContext) -> str:
        operator = node.operator

        if operator == BinaryOperator.POW:
            return self._power(
                node.left,
                self.visit(node.left, ctx),
                self._static_type(node.left, ctx),
                node.right,
                self.visit(node.right, ctx),
                ctx,
            )
        if operator in (BinaryOperator.STRSIM, BinaryOperator.SOUNDSLIKE):
            method = "strsim" if operator == BinaryOperator.STRSIM else "soundslike"
            left, right = self.visit(node.left, ctx), self.visit(node.right, ctx)
            return f"StringUtils.{method}({left}, {right})"
        if operator == BinaryOperator.CONTAINS:
            container = self._receiver(node.left, ctx)
            method = self._container_method(node.left, ctx)
            return f"{container}.{method}({self.visit(node.right, ctx)})"
        if operator == BinaryOperator.IN:
            container = self._receiver(node.right, ctx)
            method = self._container_method(node.right, ctx)
            return f"{container}.{method}({self.visit(node.left, ctx)})"

        left = self._operand(node.left, ctx)
        right = self._operand(node.right, ctx)
        rewritten = self._arithmetic(node.left, left, operator, node.right, right, ctx)
        if rewritten is not None:
            return rewritten
        return f"{left} {BINARY_OP_TO_JAVA[operator]} {right}"

    def visit_instanceof_expression(
        self, node: InstanceOfExpression, ctx: TranslationContext
    ) -> str:
        text = f"{self._operand(node.operand, ctx)} instanceof {self._type_text(node.type, ctx)}"
        if node.binding:
            text += f" {node.binding}"
        return text

    def visit_conditional_expression(
        self, node: ConditionalExpression, ctx: TranslationContext
    ) -> str:
        condition = self._operand(node.condition, ctx)
        then_expr = self.visit(node.then_expr, ctx)
        else_expr = self.visit(node.else_expr, ctx)
        return f"{condition} ? {then_expr} : {else_expr}"

    def _write(
        self,
        target: ASTNode,
        operator: AssignmentOperator,
        value: ASTNode,
        value_text: str,
        node: ASTNode,
        ctx: TranslationContext,
    ) -> Optional[str]:
        """
        Rewrite a write to a property or collection slot; None when the
        target is written with plain assignment syntax.
        """
        match target:
            case FieldAccess(target=owner_node, name=name):
                receiver = self._receiver(owner_node, ctx)
                owner = self._static_type(owner_node, ctx)
                subject = f"{receiver}.{name}"
                if self._is_direct_field(owner, name, subject, node.location, ctx):
                    return None
                return receiver + self._mutator_call(
                    receiver, owner, name, operator, value, value_text, node.location, ctx
                )
            case IndexAccess(target=collection, index=index):
                receiver = self._receiver(collection, ctx)
                shape = self._collection_shape(collection, receiver, node.location, ctx)
                if shape == "array":
                    return None
                index_text = self.visit(index, ctx)
                current = f"{receiver}.get({index_text})"
                if operator == AssignmentOperator.ASSIGN:
                    new_value = value_text
                else:
                    new_value = self._combine(
                        current, self._static_type(target, ctx), operator, value, value_text, ctx
                    )
                method = "put" if shape == "map" else "set"
                return f"{receiver}.{method}({index_text}, {new_value})"
            case _:
                return None

    def _mutator_call(
        self,
        receiver: str,
        owner: Optional[TypeDescriptor],
        name: str,
        operator: AssignmentOperator,
        value: ASTNode,
        value_text: str,
        location: Optional[SourceLocation],
        ctx: TranslationContext,
    ) -> str:
        """`.setX(v)` (or `.setX(getX() op v)`) applied to the receiver text."""
        registry = ctx.registry
        mutator = ctx.policy.mutator_name(name)
        field_type = registry.field_type(owner, name) if owner is not None else None
        if owner is None or registry.type_info(owner) is None:
            self._note(
                ctx,
                "assignment",
                f"{receiver}.{name}",
                f"mutator call {mutator}(...)",
                location,
                ErrorCode.W0301,
            )

        if operator == AssignmentOperator.ASSIGN:
            return f".{mutator}({self._coerce_value(value, value_text, field_type, ctx)})"

        current = f"{receiver}.{self._accessor(owner, name, ctx)}()"
        combined = self._combine(current, field_type, operator, value, value_text, ctx)
        return f".{mutator}({combined})"

    def visit_assignment_expression(
        self, node: AssignmentExpression, ctx: TranslationContext
    ) -> str:
        operator = node.operator
        value_text = self.visit(node.value, ctx)

        rewritten = self._write(node.target, operator, node.value, value_text, node, ctx)
        if rewritten is not None:
            return rewritten

        match node.target:
            case Identifier() as identifier:
                return self._variable_assignment(
                    identifier, operator, node.value, value_text, ctx
                )
            case FieldAccess(target=owner_node, name=name):
                target = f"{self._receiver(owner_node, ctx)}.{name}"
            case SuperFieldAccess(name=name):
                target = f"super.{name}"
            case other:
                target = self.visit(other, ctx)
        if operator == AssignmentOperator.POW:
            target_type = self._static_type(node.target, ctx)
            power = self._power(
                Identifier(target), target, target_type, node.value, value_text, ctx
            )
            return f"{target} = {power}"
        return f"{target} {ASSIGNMENT_OP_TO_JAVA[operator]} {value_text}"

    def _variable_assignment(
        self,
        target: Identifier,
        operator: AssignmentOperator,
        value: ASTNode,
        value_text: str,
        ctx: TranslationContext,
    ) -> str:
        declaration = None if target.name in ctx.bound_names else ctx.registry.lookup(target.name)
        name = declaration.name if declaration is not None else target.name
        declared = declaration.type if declaration is not None else None

        if operator == AssignmentOperator.ASSIGN:
            new_value = self._coerce_value(value, value_text, declared, ctx)
        else:
            new_value = self._combine(name, declared, operator, value, value_text, ctx)

        if declaration is not None and ctx.options.write_back_context:
            return f'{ctx.options.context_variable}.put("{name}", {new_value})'

        big = declared is not None and (declared.is_big_decimal or declared.is_big_integer)
        if operator == AssignmentOperator.POW or (big and operator != AssignmentOperator.ASSIGN):
            return f"{name} = {new_value}"
        if operator == AssignmentOperator.ASSIGN:
            return f"{name} = {new_value}"
        return f"{name} {ASSIGNMENT_OP_TO_JAVA[operator]} {value_text}"

    # -------------------------------------------------------------------------
    # Collection Querying and Object Mutation
    # -------------------------------------------------------------------------

    def _stream(self, collection: ASTNode, ctx: TranslationContext) -> tuple[str, TranslationContext]:
        text = self._receiver(collection, ctx)
        collection_type = self._static_type(collection, ctx)
        element_type = collection_type.element_type if collection_type is not None else None
        if collection_type is not None and collection_type.is_array:
            stream = f"Arrays.stream({text})"
        else:
            stream = f"{text}.stream()"
        return stream, ctx.with_iteration(element_type)

    def visit_projection_expression(
        self, node: ProjectionExpression, ctx: TranslationContext
    ) -> str:
        stream, inner = self._stream(node.collection, ctx)
        body = self.visit(node.projection, inner)
        return f"{stream}.map({inner.iteration_variable} -> {body}).collect(Collectors.toList())"

    def visit_selection_expression(
        self, node: SelectionExpression, ctx: TranslationContext
    ) -> str:
        stream, inner = self._stream(node.collection, ctx)
        body = self.visit(node.condition, inner)
        return (
            f"{stream}.filter({inner.iteration_variable} -> {body}).collect(Collectors.toList())"
        )

    def visit_is_defined_expression(
        self, node: IsDefinedExpression, ctx: TranslationContext
    ) -> str:
        return f"({self._operand(node.operand, ctx)} != null)"

    def visit_regex_match_expression(
        self, node: RegexMatchExpression, ctx: TranslationContext
    ) -> str:
        subject = self.visit(node.operand, ctx)
        match _unwrap(node.pattern):
            case RegexLiteral(pattern=pattern):
                return f"Pattern.compile({java_string(pattern)}).matcher({subject}).matches()"
            case StringLiteral() as literal:
                return f"{self._receiver(node.operand, ctx)}.matches({self.visit(literal, ctx)})"
        pattern_type = self._static_type(node.pattern, ctx)
        if pattern_type is not None and pattern_type.simple_name == "Pattern":
            return f"{self._receiver(node.pattern, ctx)}.matcher({subject}).matches()"
        pattern_text = self.visit(node.pattern, ctx)
        return f"{self._receiver(node.operand, ctx)}.matches({pattern_text})"

    def visit_coercion_expression(
        self, node: CoercionExpression, ctx: TranslationContext
    ) -> str:
        target = node.target_type
        type_text = target.source_text if node.quoted else self._type_text(target, ctx)
        operand = self.visit(node.operand, ctx)
        if target.dimensions:
            return f"(({type_text}) {operand})"

        operand_node = _unwrap(node.operand)
        operand_type = self._static_type(operand_node, ctx)
        textual = operand_type is not None and operand_type.is_string
        simple = target.simple_name

        if simple in PARSE_METHODS and textual:
            return f"{PARSE_METHODS[simple]}({operand})"
        if simple in ("BigDecimal", "BigInteger"):
            if textual:
                return f"new {simple}({operand})"
            if self._is_numeric(operand_type) or (
                simple == "BigDecimal" and operand_type is not None and operand_type.is_big_integer
            ):
                return self._promote(operand_node, operand, simple, ctx)
        if simple == "String" and operand_type is not None and not textual:
            return f"String.valueOf({operand})"
        if _needs_grouping(node.operand):
            operand = wrap(operand)
        return f"(({type_text}) {operand})"

    def _mutation_parts(
        self, node: MutationBlock, receiver: str, ctx: TranslationContext, chained: bool
    ) -> list[str]:
        """Each mutation as `.setX(v)`, `.m(args)` or (unchained) `.x = v`."""
        owner = self._static_type(node.target, ctx)
        parts: list[str] = []
        for operation in node.operations:
            match operation:
                case AssignmentExpression(target=Identifier(name=name), operator=op, value=value):
                    value_text = self.visit(value, ctx)
                    subject = f"{receiver}.{name}"
                    if self._is_direct_field(owner, name, subject, operation.location, ctx):
                        if not chained:
                            if op == AssignmentOperator.POW:
                                parts.append(f".{name} = Math.pow({subject}, {value_text})")
                            else:
                                parts.append(f".{name} {ASSIGNMENT_OP_TO_JAVA[op]} {value_text}")
                            continue
                        self._note(
                            ctx,
                            "mutation-block",
                            subject,
                            f"mutator call {ctx.policy.mutator_name(name)}(...)",
                            operation.location,
                            ErrorCode.W0305,
                        )
                    parts.append(
                        self._mutator_call(
                            receiver, owner, name, op, value, value_text, operation.location, ctx
                        )
                    )
                case MethodCall(callee=Identifier(name=name), arguments=arguments):
                    parts.append(f".{name}({self._arguments(arguments, ctx)})")
        return parts

    def visit_mutation_block(self, node: MutationBlock, ctx: TranslationContext) -> str:
        receiver = self._receiver(node.target, ctx)
        if not node.operations:
            return receiver
        return "(" + receiver + "".join(self._mutation_parts(node, receiver, ctx, True)) + ")"

    def visit_predicate_block(self, node: PredicateBlock, ctx: TranslationContext) -> str:
        if not node.conditions:
            return "true"
        subject = self._receiver(node.target, ctx)
        inner = ctx.with_subject(subject, self._static_type(node.target, ctx))
        tests = []
        for condition in node.conditions:
            text = self.visit(condition, inner)
            match condition:
                case BinaryExpression(operator=BinaryOperator.OR) | ConditionalExpression() | (
                    AssignmentExpression() | LambdaExpression()
                ):
                    text = wrap(text)
            tests.append(text)
        return "(" + " && ".join(tests) + ")"

    # -------------------------------------------------------------------------
    # Switch
    # -------------------------------------------------------------------------

    def _case_label(self, labels: tuple, is_default: bool, ctx: TranslationContext) -> str:
        rendered = [self.visit(label, ctx) for label in labels]
        if not rendered:
            return "default"
        if is_default:
            rendered.append("default")
        return "case " + ", ".join(rendered)

    def _yielding(self, case: SwitchCase) -> SwitchCase:
        """In a switch expression, an arrow block's last expression is its value."""
        match case:
            case SwitchRule(body=Block(statements=statements) as block) if statements:
                match statements[-1]:
                    case ExpressionStatement(expression=expression, location=location):
                        last = YieldStatement(expression, location)
                        body = replace(block, statements=statements[:-1] + (last,))
                        return replace(case, body=body)
        return case

    def _switch(
        self,
        selector: Expression,
        cases: tuple[SwitchCase, ...],
        ctx: TranslationContext,
        is_expression: bool,
    ) -> str:
        inner = ctx.indented()
        lines = [f"switch ({self.visit(selector, ctx)}) {{"]
        for case in cases:
            if is_expression:
                case = self._yielding(case)
            lines.append(inner.indent + self.visit(case, inner))
        lines.append(ctx.indent + "}")
        return "\n".join(lines)

    def visit_switch_expression(self, node: SwitchExpression, ctx: TranslationContext) -> str:
        return self._switch(node.selector, node.cases, ctx, is_expression=True)

    def visit_switch_rule(self, node: SwitchRule, ctx: TranslationContext) -> str:
        label = self._case_label(node.labels, node.is_default, ctx)
        match node.body:
            case Block() | ThrowStatement() as body:
                return f"{label} -> {self.visit(body, ctx)}"
            case body:
                return f"{label} -> {self.visit(body, ctx)};"

    def visit_switch_label_group(self, node: SwitchLabelGroup, ctx: TranslationContext) -> str:
        lines = [self._case_label(node.labels, node.is_default, ctx) + ":"]
        inner = ctx.indented()
        for statement in node.statements:
            lines.append(inner.indent + self.visit(statement, inner))
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    @staticmethod
    def _scoped(statements: tuple[Statement, ...], ctx: TranslationContext):
        """Pair each statement with a context that sees the locals declared before it."""
        for statement in statements:
            yield statement, ctx
            if isinstance(statement, LocalVariableDeclaration):
                ctx = ctx.binding(*(d.name for d in statement.declarators))

    def visit_block(self, node: Block, ctx: TranslationContext) -> str:
        if not node.statements:
            return "{}"
        inner = ctx.indented()
        lines = ["{"]
        for statement, scoped in self._scoped(node.statements, inner):
            lines.append(inner.indent + self.visit(statement, scoped))
        lines.append(ctx.indent + "}")
        return "\n".join(lines)

    def visit_if_statement(self, node: IfStatement, ctx: TranslationContext) -> str:
        text = f"if ({self.visit(node.condition, ctx)}) {self.visit(node.then_branch, ctx)}"
        if node.else_branch is not None:
            text += f" else {self.visit(node.else_branch, ctx)}"
        return text

    def visit_while_statement(self, node: WhileStatement, ctx: TranslationContext) -> str:
        return f"while ({self.visit(node.condition, ctx)}) {self.visit(node.body, ctx)}"

    def visit_for_statement(self, node: ForStatement, ctx: TranslationContext) -> str:
        init_parts = []
        for part in node.init:
            match part:
                case LocalVariableDeclaration() as declaration:
                    init_parts.append(self._declaration(declaration, ctx))
                    ctx = ctx.binding(*(d.name for d in declaration.declarators))
                case expression:
                    init_parts.append(self.visit(expression, ctx))
        condition = self.visit(node.condition, ctx) if node.condition is not None else ""
        update = ", ".join(self.visit(u, ctx) for u in node.update)
        header = f"for ({', '.join(init_parts)}; {condition}; {update})"
        return f"{header} {self.visit(node.body, ctx)}"

    def visit_foreach_statement(self, node: ForEachStatement, ctx: TranslationContext) -> str:
        variable_type = (
            self._type_text(node.variable_type, ctx) if node.variable_type is not None else "var"
        )
        final = "final " if node.final else ""
        iterable = self.visit(node.iterable, ctx)
        body = self.visit(node.body, ctx.binding(node.name))
        return f"for ({final}{variable_type} {node.name} : {iterable}) {body}"

    def visit_do_while_statement(self, node: DoWhileStatement, ctx: TranslationContext) -> str:
        return f"do {self.visit(node.body, ctx)} while ({self.visit(node.condition, ctx)});"

    def visit_catch_clause(self, node: CatchClause, ctx: TranslationContext) -> str:
        types = " | ".join(self._type_text(t, ctx) for t in node.types)
        final = "final " if node.final else ""
        body = self.visit(node.body, ctx.binding(node.name))
        return f"catch ({final}{types} {node.name}) {body}"

    def visit_try_statement(self, node: TryStatement, ctx: TranslationContext) -> str:
        parts = [f"try {self.visit(node.body, ctx)}"]
        parts.extend(self.visit(clause, ctx) for clause in node.catches)
        if node.finally_block is not None:
            parts.append(f"finally {self.visit(node.finally_block, ctx)}")
        return " ".join(parts)

    def visit_switch_statement(self, node: SwitchStatement, ctx: TranslationContext) -> str:
        return self._switch(node.selector, node.cases, ctx, is_expression=False)

    def visit_return_statement(self, node: ReturnStatement, ctx: TranslationContext) -> str:
        if node.value is None:
            return "return;"
        return f"return {self.visit(node.value, ctx)};"

    def visit_throw_statement(self, node: ThrowStatement, ctx: TranslationContext) -> str:
        return f"throw {self.visit(node.expression, ctx)};"

    def visit_yield_statement(self, node: YieldStatement, ctx: TranslationContext) -> str:
        return f"yield {self.visit(node.value, ctx)};"

    def visit_break_statement(self, node: BreakStatement, ctx: TranslationContext) -> str:
        return f"break {node.label};" if node.label else "break;"

    def visit_continue_statement(self, node: ContinueStatement, ctx: TranslationContext) -> str:
        return f"continue {node.label};" if node.label else "continue;"

    def visit_empty_statement(self, node: EmptyStatement, ctx: TranslationContext) -> str:
        return ";"

    def visit_expression_statement(
        self, node: ExpressionStatement, ctx: TranslationContext
    ) -> str:
        match node.expression:
            case MutationBlock(target=Identifier() | ThisExpression() as target) as block if (
                block.operations
            ):
                receiver = self.visit(target, ctx)
                parts = self._mutation_parts(block, receiver, ctx, chained=False)
                return f"\n{ctx.indent}".join(f"{receiver}{part};" for part in parts)
        return f"{self.visit(node.expression, ctx)};"

    def _declaration(self, node: LocalVariableDeclaration, ctx: TranslationContext) -> str:
        """A declaration without its trailing semicolon."""
        declared = descriptor_of(node.type) if node.type is not None else None
        type_text = self._type_text(node.type, ctx) if node.type is not None else "var"
        declarators = []
        for declarator in node.declarators:
            text = declarator.name + "[]" * declarator.dimensions
            if declarator.initializer is not None:
                value = self.visit(declarator.initializer, ctx)
                if declarator.dimensions == 0:
                    value = self._coerce_value(declarator.initializer, value, declared, ctx)
                text += f" = {value}"
            declarators.append(text)
        final = "final " if node.final else ""
        return f"{final}{type_text} {', '.join(declarators)}"

    def visit_local_variable_declaration(
        self, node: LocalVariableDeclaration, ctx: TranslationContext
    ) -> str:
        return self._declaration(node, ctx) + ";"

    def visit_labeled_statement(self, node: LabeledStatement, ctx: TranslationContext) -> str:
        return f"{node.label}: {self.visit(node.statement, ctx)}"

    def visit_compilation_unit(self, node: CompilationUnit, ctx: TranslationContext) -> str:
        return "\n".join(
            scoped.indent + self.visit(statement, scoped)
            for statement, scoped in self._scoped(node.statements, ctx)
        )


def translate(
    node: ASTNode,
    registry: Registry,
    *,
    policy: Optional[DisambiguationPolicy] = None,
    options: Optional[TranslatorOptions] = None,
) -> TranslatedUnit:
    """
    Translate an AST into Java source text.

    Args:
        node: An expression node or a CompilationUnit
        registry: Declarations available to the translation
        policy: Heuristics used when type information is missing
        options: Output settings

    Returns:
        The generated body with the referenced names and any fallback
        records. Translating the same tree against the same registry
        always yields identical output.
    """
    ctx = TranslationContext(
        registry=registry,
        policy=policy or DefaultDisambiguationPolicy(),
        options=options or TranslatorOptions(),
        log=TranslationLog(),
    )
    body = Translator().translate(node, ctx)
    referenced = ReferencedNameCollector(registry, ctx.policy.iteration_variable).collect(node)

    for record in ctx.log.ambiguities:
        logger.debug("Translation fallback [%s] %s", record.code, record.message)
    for record in ctx.log.unresolved:
        logger.debug("Unresolved %s at %s", record.construct, record.location)

    return TranslatedUnit(
        body=body,
        referenced_names=referenced,
        ambiguities=tuple(ctx.log.ambiguities),
        unresolved=tuple(ctx.log.unresolved),
    )
