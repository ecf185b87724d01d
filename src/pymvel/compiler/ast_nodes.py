"""
Abstract Syntax Tree (AST) node definitions for pymvel.

This module defines all AST node types representing the structure of an
expression or statement sequence after parsing. Each node is immutable,
owns its children exclusively and carries source location information.

Every ``visit_*`` method of `ASTVisitor` is abstract: a visitor that does
not handle every node kind cannot be instantiated, so adding a node kind
forces every rewrite site to be updated.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Union

from pymvel.utils.errors import SourceLocation


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        """Accept a visitor for tree traversal."""
        pass


class Expression(ASTNode):
    """Base class for expression nodes."""

    pass


class Statement(ASTNode):
    """Base class for statement nodes."""

    pass


# -----------------------------------------------------------------------------
# Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TypeReference(ASTNode):
    """
    A reference to a type as written in source.

    Examples:
        int, String[], java.util.List<String>, Map<String, ?>, ArrayList<>

    Attributes:
        name: Dotted type name, or "?" for a wildcard argument
        arguments: Generic arguments; None when absent, () for a diamond
        dimensions: Number of trailing [] pairs
        bound_kind: "extends" or "super" for bounded wildcards
        bound: The wildcard's bound
    """

    name: str
    arguments: Optional[tuple["TypeReference", ...]] = None
    dimensions: int = 0
    bound_kind: Optional[str] = None
    bound: Optional["TypeReference"] = None
    location: Optional[SourceLocation] = None

    @property
    def source_text(self) -> str:
        """The type rendered back to source form."""
        if self.name == "?":
            text = "?"
            if self.bound_kind and self.bound is not None:
                text = f"? {self.bound_kind} {self.bound.source_text}"
        else:
            text = self.name
            if self.arguments is not None:
                text += "<" + ", ".join(arg.source_text for arg in self.arguments) + ">"
        return text + "[]" * self.dimensions

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_type_reference(self, *args)


@dataclass(frozen=True, slots=True)
class TypePattern(ASTNode):
    """
    A type pattern in a case label.

    Example:
        case String s -> ...
    """

    type: TypeReference
    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_type_pattern(self, *args)


# -----------------------------------------------------------------------------
# Literals
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IntegerLiteral(Expression):
    """An integer literal, kept as written (42, 0x1F, 10L)."""

    text: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_integer_literal(self, *args)


@dataclass(frozen=True, slots=True)
class FloatLiteral(Expression):
    """A floating-point literal, kept as written (3.14, 1e-3, 2.5f)."""

    text: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_float_literal(self, *args)


@dataclass(frozen=True, slots=True)
class CharLiteral(Expression):
    """A character literal including its quotes ('a', '\\n')."""

    text: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_char_literal(self, *args)


@dataclass(frozen=True, slots=True)
class StringLiteral(Expression):
    """
    A string literal.

    Attributes:
        value: The decoded string value
        raw: The lexeme as written, quotes included
    """

    value: str
    raw: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_string_literal(self, *args)


@dataclass(frozen=True, slots=True)
class TextBlockLiteral(Expression):
    """A multi-line \"\"\"...\"\"\" text block."""

    raw: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_text_block_literal(self, *args)


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Expression):
    value: bool
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_boolean_literal(self, *args)


@dataclass(frozen=True, slots=True)
class NullLiteral(Expression):
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_null_literal(self, *args)


@dataclass(frozen=True, slots=True)
class RegexLiteral(Expression):
    """
    A regular expression literal.

    Example:
        ~/[a-z]+/
    """

    pattern: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_regex_literal(self, *args)


@dataclass(frozen=True, slots=True)
class UnitLiteral(Expression):
    """
    A numeric value with a trailing unit tag.

    Examples:
        10litres, 100B (BigDecimal), 7I (BigInteger)
    """

    value: str
    unit: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_unit_literal(self, *args)


# -----------------------------------------------------------------------------
# Primary Forms
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    """A bare name reference."""

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_identifier(self, *args)


@dataclass(frozen=True, slots=True)
class ThisExpression(Expression):
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_this_expression(self, *args)


@dataclass(frozen=True, slots=True)
class SuperFieldAccess(Expression):
    """
    A member of the superclass.

    Example:
        super.name
    """

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_super_field_access(self, *args)


@dataclass(frozen=True, slots=True)
class NewObject(Expression):
    """
    Object construction.

    Example:
        new ArrayList<>(10)
    """

    type: TypeReference
    arguments: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_new_object(self, *args)


@dataclass(frozen=True, slots=True)
class ArrayInitializer(Expression):
    """
    A brace-enclosed array initializer.

    Example:
        {1, 2, 3} in `int[] a = {1, 2, 3};`
    """

    elements: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_array_initializer(self, *args)


@dataclass(frozen=True, slots=True)
class NewArray(Expression):
    """
    Array creation.

    Examples:
        new int[3][], new String[]{"a", "b"}

    Attributes:
        element_type: The element type without dimensions
        dimensions: One entry per [] pair; None for an unsized dimension
        initializer: Optional initializer
    """

    element_type: TypeReference
    dimensions: tuple[Optional[Expression], ...]
    initializer: Optional[ArrayInitializer] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_new_array(self, *args)


@dataclass(frozen=True, slots=True)
class ListLiteral(Expression):
    """
    An inline list.

    Example:
        [1, 2, 3]
    """

    elements: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_list_literal(self, *args)


@dataclass(frozen=True, slots=True)
class MapEntry:
    """A key/value pair of a map literal."""

    key: Expression
    value: Expression


@dataclass(frozen=True, slots=True)
class MapLiteral(Expression):
    """
    An inline map.

    Example:
        {"a": 1, b: 2}
    """

    entries: tuple[MapEntry, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_map_literal(self, *args)


@dataclass(frozen=True, slots=True)
class EmptyLiteral(Expression):
    """The `empty` sentinel (an empty collection)."""

    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_empty_literal(self, *args)


@dataclass(frozen=True, slots=True)
class NilLiteral(Expression):
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_nil_literal(self, *args)


@dataclass(frozen=True, slots=True)
class UndefinedLiteral(Expression):
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_undefined_literal(self, *args)


@dataclass(frozen=True, slots=True)
class Parameter:
    """A lambda parameter with an optional declared type."""

    name: str
    type: Optional[TypeReference] = None


@dataclass(frozen=True, slots=True)
class LambdaExpression(Expression):
    """
    A lambda.

    Examples:
        x -> x * 2, (a, b) -> a + b, (String s) -> { return s.trim(); }
    """

    parameters: tuple[Parameter, ...]
    body: Union[Expression, "Block"]
    parenthesized: bool = True
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_lambda_expression(self, *args)


@dataclass(frozen=True, slots=True)
class MethodReference(Expression):
    """
    A method reference.

    Examples:
        String::valueOf, this::process, ArrayList::new
    """

    target: Union[Expression, TypeReference]
    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_method_reference(self, *args)


@dataclass(frozen=True, slots=True)
class ParenthesizedExpression(Expression):
    expression: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_parenthesized_expression(self, *args)


@dataclass(frozen=True, slots=True)
class CastExpression(Expression):
    """
    A host-language cast.

    Example:
        (String) value
    """

    type: TypeReference
    operand: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_cast_expression(self, *args)


# -----------------------------------------------------------------------------
# Access and Calls
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldAccess(Expression):
    """
    A member read; whether it is a property, a field or a type path is
    decided during translation.

    Example:
        user.address
    """

    target: Expression
    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_field_access(self, *args)


@dataclass(frozen=True, slots=True)
class IndexAccess(Expression):
    """
    An indexed access.

    Example:
        items[0], prices["apple"]
    """

    target: Expression
    index: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_index_access(self, *args)


@dataclass(frozen=True, slots=True)
class SafeFieldAccess(Expression):
    """
    A null-guarded member read.

    Example:
        user?.address
    """

    target: Expression
    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_safe_field_access(self, *args)


@dataclass(frozen=True, slots=True)
class SafeIndexAccess(Expression):
    """
    A null-guarded indexed access.

    Example:
        items?[0]
    """

    target: Expression
    index: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_safe_index_access(self, *args)


@dataclass(frozen=True, slots=True)
class MethodCall(Expression):
    """
    A call. The callee is an Identifier for plain calls, a FieldAccess for
    method invocations and a SuperFieldAccess for `super.m()`.
    """

    callee: Expression
    arguments: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_method_call(self, *args)


@dataclass(frozen=True, slots=True)
class SafeMethodCall(Expression):
    """
    A null-guarded method invocation.

    Example:
        name?.trim()
    """

    target: Expression
    name: str
    arguments: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_safe_method_call(self, *args)


# -----------------------------------------------------------------------------
# Operators
# -----------------------------------------------------------------------------


class UnaryOperator(Enum):
    """Prefix unary operator types."""

    POS = auto()  # +
    NEG = auto()  # -
    NOT = auto()  # !
    BIT_NOT = auto()  # ~


class BinaryOperator(Enum):
    """Binary operator types."""

    # Arithmetic
    POW = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()
    ADD = auto()
    SUB = auto()

    # Comparison
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    EQ = auto()
    NE = auto()

    # Custom similarity
    STRSIM = auto()
    SOUNDSLIKE = auto()

    # Custom membership
    CONTAINS = auto()
    IN = auto()

    # Bitwise
    BIT_AND = auto()
    BIT_XOR = auto()
    BIT_OR = auto()

    # Logical
    AND = auto()
    OR = auto()


class AssignmentOperator(Enum):
    """Simple and compound assignment operators."""

    ASSIGN = auto()  # =
    ADD = auto()  # +=
    SUB = auto()  # -=
    MUL = auto()  # *=
    DIV = auto()  # /=
    MOD = auto()  # %=
    POW = auto()  # **=
    BIT_AND = auto()  # &=
    BIT_OR = auto()  # |=
    BIT_XOR = auto()  # ^=


@dataclass(frozen=True, slots=True)
class IncrementExpression(Expression):
    """
    Prefix or postfix increment/decrement.

    Examples:
        i++, --count
    """

    operator: str  # "++" or "--"
    operand: Expression
    prefix: bool
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_increment_expression(self, *args)


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    """
    A prefix unary operation.

    Example:
        -x, !flag, ~mask
    """

    operator: UnaryOperator
    operand: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_unary_expression(self, *args)


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    """
    A binary operation.

    Example:
        a + b, name strsim "Bob", x in list
    """

    left: Expression
    operator: BinaryOperator
    right: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_binary_expression(self, *args)


@dataclass(frozen=True, slots=True)
class InstanceOfExpression(Expression):
    """
    A type test, optionally binding a pattern variable.

    Examples:
        o instanceof String, o is String, o instanceof String s
    """

    operand: Expression
    type: TypeReference
    binding: Optional[str] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_instanceof_expression(self, *args)


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Expression):
    """
    The ternary operator.

    Example:
        age >= 18 ? "adult" : "minor"
    """

    condition: Expression
    then_expr: Expression
    else_expr: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_conditional_expression(self, *args)


@dataclass(frozen=True, slots=True)
class AssignmentExpression(Expression):
    """
    An assignment.

    Examples:
        x = 1, p.age += 10, map["k"] = v
    """

    target: Expression
    operator: AssignmentOperator
    value: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_assignment_expression(self, *args)


# -----------------------------------------------------------------------------
# Collection Querying and Object Mutation
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectionExpression(Expression):
    """
    Transforms each element of a collection.

    Example:
        people.{name}
    """

    collection: Expression
    projection: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_projection_expression(self, *args)


@dataclass(frozen=True, slots=True)
class SelectionExpression(Expression):
    """
    Filters a collection.

    Example:
        people.?(age > 18)
    """

    collection: Expression
    condition: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_selection_expression(self, *args)


@dataclass(frozen=True, slots=True)
class IsDefinedExpression(Expression):
    """
    The is-defined test.

    Example:
        isdef name
    """

    operand: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_is_defined_expression(self, *args)


@dataclass(frozen=True, slots=True)
class RegexMatchExpression(Expression):
    """
    A regex match.

    Examples:
        name ~ ~/[A-Z].*/, code ~ "[0-9]+"
    """

    operand: Expression
    pattern: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_regex_match_expression(self, *args)


@dataclass(frozen=True, slots=True)
class CoercionExpression(Expression):
    """
    An explicit coercion.

    Examples:
        value#Integer, value#"java.math.BigDecimal"

    Attributes:
        operand: The expression being coerced
        target_type: The target type
        quoted: Whether the type was written as a string
    """

    operand: Expression
    target_type: TypeReference
    quoted: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_coercion_expression(self, *args)


@dataclass(frozen=True, slots=True)
class MutationBlock(Expression):
    """
    Bulk mutation of one receiver.

    Example:
        person{ name = "Bob", age = 30, activate() }

    Each operation is an AssignmentExpression whose target is a bare
    Identifier, or a MethodCall on a bare Identifier callee.
    """

    target: Expression
    operations: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_mutation_block(self, *args)


@dataclass(frozen=True, slots=True)
class PredicateBlock(Expression):
    """
    A conjunction of tests against one subject.

    Example:
        person[age > 18, name == "Bob"]
    """

    target: Expression
    conditions: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_predicate_block(self, *args)


# -----------------------------------------------------------------------------
# Switch
# -----------------------------------------------------------------------------


SwitchLabel = Union[Expression, TypePattern]


@dataclass(frozen=True, slots=True)
class SwitchRule(ASTNode):
    """
    An arrow-form case.

    Examples:
        case 1, 2 -> "low"
        case String s -> { yield s.length(); }
        default -> throw new IllegalStateException()
    """

    labels: tuple[SwitchLabel, ...]
    is_default: bool
    body: Union[Expression, "Block", "ThrowStatement"]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_switch_rule(self, *args)


@dataclass(frozen=True, slots=True)
class SwitchLabelGroup(ASTNode):
    """
    A colon-form case group with fallthrough statements.

    Example:
        case 1: case 2: yield "low";
    """

    labels: tuple[SwitchLabel, ...]
    is_default: bool
    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_switch_label_group(self, *args)


SwitchCase = Union[SwitchRule, SwitchLabelGroup]


@dataclass(frozen=True, slots=True)
class SwitchExpression(Expression):
    selector: Expression
    cases: tuple[SwitchCase, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_switch_expression(self, *args)


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Block(Statement):
    """
    A block of statements enclosed in braces.

    Example:
        { stmt1; stmt2; stmt3 }
    """

    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_block(self, *args)


@dataclass(frozen=True, slots=True)
class IfStatement(Statement):
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_if_statement(self, *args)


@dataclass(frozen=True, slots=True)
class WhileStatement(Statement):
    condition: Expression
    body: Statement
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_while_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ForStatement(Statement):
    """
    A basic for loop.

    Example:
        for (int i = 0; i < n; i++) { ... }

    Attributes:
        init: A single LocalVariableDeclaration or a list of expressions
        condition: Optional loop condition
        update: Update expressions
        body: Loop body
    """

    init: tuple[ASTNode, ...]
    condition: Optional[Expression]
    update: tuple[Expression, ...]
    body: Statement
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_for_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ForEachStatement(Statement):
    """
    An enhanced for loop. A None type means the element type is inferred.

    Examples:
        for (String s : names) { ... }
        for (item : items) { ... }
    """

    variable_type: Optional[TypeReference]
    name: str
    iterable: Expression
    body: Statement
    final: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_foreach_statement(self, *args)


@dataclass(frozen=True, slots=True)
class DoWhileStatement(Statement):
    body: Statement
    condition: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_do_while_statement(self, *args)


@dataclass(frozen=True, slots=True)
class CatchClause(ASTNode):
    """
    A catch clause; several types form a multi-catch.

    Example:
        catch (IOException | RuntimeException e) { ... }
    """

    types: tuple[TypeReference, ...]
    name: str
    body: Block
    final: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_catch_clause(self, *args)


@dataclass(frozen=True, slots=True)
class TryStatement(Statement):
    body: Block
    catches: tuple[CatchClause, ...]
    finally_block: Optional[Block] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_try_statement(self, *args)


@dataclass(frozen=True, slots=True)
class SwitchStatement(Statement):
    selector: Expression
    cases: tuple[SwitchCase, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_switch_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ReturnStatement(Statement):
    value: Optional[Expression] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_return_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ThrowStatement(Statement):
    expression: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_throw_statement(self, *args)


@dataclass(frozen=True, slots=True)
class YieldStatement(Statement):
    """Produces the value of the enclosing switch expression."""

    value: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_yield_statement(self, *args)


@dataclass(frozen=True, slots=True)
class BreakStatement(Statement):
    label: Optional[str] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_break_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ContinueStatement(Statement):
    label: Optional[str] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_continue_statement(self, *args)


@dataclass(frozen=True, slots=True)
class EmptyStatement(Statement):
    """A lone semicolon."""

    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_empty_statement(self, *args)


@dataclass(frozen=True, slots=True)
class ExpressionStatement(Statement):
    expression: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_expression_statement(self, *args)


@dataclass(frozen=True, slots=True)
class VariableDeclarator:
    """One name of a local declaration, e.g. `b[] = {1}` in `int a, b[] = {1};`."""

    name: str
    dimensions: int = 0
    initializer: Optional[Expression] = None


@dataclass(frozen=True, slots=True)
class LocalVariableDeclaration(Statement):
    """
    A local variable declaration. A None type stands for `var`.

    Examples:
        int x = 1, y;
        final var total = price * qty;
    """

    type: Optional[TypeReference]
    declarators: tuple[VariableDeclarator, ...]
    final: bool = False
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_local_variable_declaration(self, *args)


@dataclass(frozen=True, slots=True)
class LabeledStatement(Statement):
    label: str
    statement: Statement
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_labeled_statement(self, *args)


@dataclass(frozen=True, slots=True)
class CompilationUnit(ASTNode):
    """
    The root of a parsed statement sequence.

    Example:
        x = 1; y = x + 1;
    """

    statements: tuple[Statement, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: "ASTVisitor", *args: Any) -> Any:
        return visitor.visit_compilation_unit(self, *args)


# -----------------------------------------------------------------------------
# Visitors
# -----------------------------------------------------------------------------


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Extra positional arguments given to `visit` are passed on to the
    ``visit_*`` method, which lets a visitor thread an immutable context
    through the walk instead of keeping mutable state on itself.
    """

    def visit(self, node: ASTNode, *args: Any) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self, *args)

    # Types
    @abstractmethod
    def visit_type_reference(self, node: TypeReference, *args: Any) -> Any: ...

    @abstractmethod
    def visit_type_pattern(self, node: TypePattern, *args: Any) -> Any: ...

    # Literals
    @abstractmethod
    def visit_integer_literal(self, node: IntegerLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_float_literal(self, node: FloatLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_char_literal(self, node: CharLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_string_literal(self, node: StringLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_text_block_literal(self, node: TextBlockLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_boolean_literal(self, node: BooleanLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_null_literal(self, node: NullLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_regex_literal(self, node: RegexLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_unit_literal(self, node: UnitLiteral, *args: Any) -> Any: ...

    # Primary forms
    @abstractmethod
    def visit_identifier(self, node: Identifier, *args: Any) -> Any: ...

    @abstractmethod
    def visit_this_expression(self, node: ThisExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_super_field_access(self, node: SuperFieldAccess, *args: Any) -> Any: ...

    @abstractmethod
    def visit_new_object(self, node: NewObject, *args: Any) -> Any: ...

    @abstractmethod
    def visit_new_array(self, node: NewArray, *args: Any) -> Any: ...

    @abstractmethod
    def visit_array_initializer(self, node: ArrayInitializer, *args: Any) -> Any: ...

    @abstractmethod
    def visit_list_literal(self, node: ListLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_map_literal(self, node: MapLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_empty_literal(self, node: EmptyLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_nil_literal(self, node: NilLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_undefined_literal(self, node: UndefinedLiteral, *args: Any) -> Any: ...

    @abstractmethod
    def visit_lambda_expression(self, node: LambdaExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_method_reference(self, node: MethodReference, *args: Any) -> Any: ...

    @abstractmethod
    def visit_parenthesized_expression(
        self, node: ParenthesizedExpression, *args: Any
    ) -> Any: ...

    @abstractmethod
    def visit_cast_expression(self, node: CastExpression, *args: Any) -> Any: ...

    # Access and calls
    @abstractmethod
    def visit_field_access(self, node: FieldAccess, *args: Any) -> Any: ...

    @abstractmethod
    def visit_index_access(self, node: IndexAccess, *args: Any) -> Any: ...

    @abstractmethod
    def visit_safe_field_access(self, node: SafeFieldAccess, *args: Any) -> Any: ...

    @abstractmethod
    def visit_safe_index_access(self, node: SafeIndexAccess, *args: Any) -> Any: ...

    @abstractmethod
    def visit_method_call(self, node: MethodCall, *args: Any) -> Any: ...

    @abstractmethod
    def visit_safe_method_call(self, node: SafeMethodCall, *args: Any) -> Any: ...

    # Operators
    @abstractmethod
    def visit_increment_expression(self, node: IncrementExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_unary_expression(self, node: UnaryExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_binary_expression(self, node: BinaryExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_instanceof_expression(self, node: InstanceOfExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_conditional_expression(
        self, node: ConditionalExpression, *args: Any
    ) -> Any: ...

    @abstractmethod
    def visit_assignment_expression(self, node: AssignmentExpression, *args: Any) -> Any: ...

    # Collection querying and object mutation
    @abstractmethod
    def visit_projection_expression(self, node: ProjectionExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_selection_expression(self, node: SelectionExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_is_defined_expression(self, node: IsDefinedExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_regex_match_expression(
        self, node: RegexMatchExpression, *args: Any
    ) -> Any: ...

    @abstractmethod
    def visit_coercion_expression(self, node: CoercionExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_mutation_block(self, node: MutationBlock, *args: Any) -> Any: ...

    @abstractmethod
    def visit_predicate_block(self, node: PredicateBlock, *args: Any) -> Any: ...

    # Switch
    @abstractmethod
    def visit_switch_expression(self, node: SwitchExpression, *args: Any) -> Any: ...

    @abstractmethod
    def visit_switch_rule(self, node: SwitchRule, *args: Any) -> Any: ...

    @abstractmethod
    def visit_switch_label_group(self, node: SwitchLabelGroup, *args: Any) -> Any: ...

    # Statements
    @abstractmethod
    def visit_block(self, node: Block, *args: Any) -> Any: ...

    @abstractmethod
    def visit_if_statement(self, node: IfStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_while_statement(self, node: WhileStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_for_statement(self, node: ForStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_foreach_statement(self, node: ForEachStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_do_while_statement(self, node: DoWhileStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_catch_clause(self, node: CatchClause, *args: Any) -> Any: ...

    @abstractmethod
    def visit_try_statement(self, node: TryStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_switch_statement(self, node: SwitchStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_return_statement(self, node: ReturnStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_throw_statement(self, node: ThrowStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_yield_statement(self, node: YieldStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_break_statement(self, node: BreakStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_continue_statement(self, node: ContinueStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_empty_statement(self, node: EmptyStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_expression_statement(self, node: ExpressionStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_local_variable_declaration(
        self, node: LocalVariableDeclaration, *args: Any
    ) -> Any: ...

    @abstractmethod
    def visit_labeled_statement(self, node: LabeledStatement, *args: Any) -> Any: ...

    @abstractmethod
    def visit_compilation_unit(self, node: CompilationUnit, *args: Any) -> Any: ...


class BaseASTVisitor(ASTVisitor):
    """
    Base visitor with default implementations that traverse children.

    Subclass this and override specific visit_* methods as needed.
    """

    def _visit_all(self, nodes: Any, *args: Any) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node, *args)

    # Types
    def visit_type_reference(self, node: TypeReference, *args: Any) -> Any:
        pass

    def visit_type_pattern(self, node: TypePattern, *args: Any) -> Any:
        pass

    # Literals
    def visit_integer_literal(self, node: IntegerLiteral, *args: Any) -> Any:
        pass

    def visit_float_literal(self, node: FloatLiteral, *args: Any) -> Any:
        pass

    def visit_char_literal(self, node: CharLiteral, *args: Any) -> Any:
        pass

    def visit_string_literal(self, node: StringLiteral, *args: Any) -> Any:
        pass

    def visit_text_block_literal(self, node: TextBlockLiteral, *args: Any) -> Any:
        pass

    def visit_boolean_literal(self, node: BooleanLiteral, *args: Any) -> Any:
        pass

    def visit_null_literal(self, node: NullLiteral, *args: Any) -> Any:
        pass

    def visit_regex_literal(self, node: RegexLiteral, *args: Any) -> Any:
        pass

    def visit_unit_literal(self, node: UnitLiteral, *args: Any) -> Any:
        pass

    # Primary forms
    def visit_identifier(self, node: Identifier, *args: Any) -> Any:
        pass

    def visit_this_expression(self, node: ThisExpression, *args: Any) -> Any:
        pass

    def visit_super_field_access(self, node: SuperFieldAccess, *args: Any) -> Any:
        pass

    def visit_new_object(self, node: NewObject, *args: Any) -> Any:
        self._visit_all(node.arguments, *args)

    def visit_new_array(self, node: NewArray, *args: Any) -> Any:
        self._visit_all(node.dimensions, *args)
        if node.initializer is not None:
            self.visit(node.initializer, *args)

    def visit_array_initializer(self, node: ArrayInitializer, *args: Any) -> Any:
        self._visit_all(node.elements, *args)

    def visit_list_literal(self, node: ListLiteral, *args: Any) -> Any:
        self._visit_all(node.elements, *args)

    def visit_map_literal(self, node: MapLiteral, *args: Any) -> Any:
        for entry in node.entries:
            self.visit(entry.key, *args)
            self.visit(entry.value, *args)

    def visit_empty_literal(self, node: EmptyLiteral, *args: Any) -> Any:
        pass

    def visit_nil_literal(self, node: NilLiteral, *args: Any) -> Any:
        pass

    def visit_undefined_literal(self, node: UndefinedLiteral, *args: Any) -> Any:
        pass

    def visit_lambda_expression(self, node: LambdaExpression, *args: Any) -> Any:
        self.visit(node.body, *args)

    def visit_method_reference(self, node: MethodReference, *args: Any) -> Any:
        self.visit(node.target, *args)

    def visit_parenthesized_expression(
        self, node: ParenthesizedExpression, *args: Any
    ) -> Any:
        self.visit(node.expression, *args)

    def visit_cast_expression(self, node: CastExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    # Access and calls
    def visit_field_access(self, node: FieldAccess, *args: Any) -> Any:
        self.visit(node.target, *args)

    def visit_index_access(self, node: IndexAccess, *args: Any) -> Any:
        self.visit(node.target, *args)
        self.visit(node.index, *args)

    def visit_safe_field_access(self, node: SafeFieldAccess, *args: Any) -> Any:
        self.visit(node.target, *args)

    def visit_safe_index_access(self, node: SafeIndexAccess, *args: Any) -> Any:
        self.visit(node.target, *args)
        self.visit(node.index, *args)

    def visit_method_call(self, node: MethodCall, *args: Any) -> Any:
        self.visit(node.callee, *args)
        self._visit_all(node.arguments, *args)

    def visit_safe_method_call(self, node: SafeMethodCall, *args: Any) -> Any:
        self.visit(node.target, *args)
        self._visit_all(node.arguments, *args)

    # Operators
    def visit_increment_expression(self, node: IncrementExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    def visit_unary_expression(self, node: UnaryExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    def visit_binary_expression(self, node: BinaryExpression, *args: Any) -> Any:
        self.visit(node.left, *args)
        self.visit(node.right, *args)

    def visit_instanceof_expression(self, node: InstanceOfExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    def visit_conditional_expression(
        self, node: ConditionalExpression, *args: Any
    ) -> Any:
        self.visit(node.condition, *args)
        self.visit(node.then_expr, *args)
        self.visit(node.else_expr, *args)

    def visit_assignment_expression(self, node: AssignmentExpression, *args: Any) -> Any:
        self.visit(node.target, *args)
        self.visit(node.value, *args)

    # Collection querying and object mutation
    def visit_projection_expression(self, node: ProjectionExpression, *args: Any) -> Any:
        self.visit(node.collection, *args)
        self.visit(node.projection, *args)

    def visit_selection_expression(self, node: SelectionExpression, *args: Any) -> Any:
        self.visit(node.collection, *args)
        self.visit(node.condition, *args)

    def visit_is_defined_expression(self, node: IsDefinedExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    def visit_regex_match_expression(
        self, node: RegexMatchExpression, *args: Any
    ) -> Any:
        self.visit(node.operand, *args)
        self.visit(node.pattern, *args)

    def visit_coercion_expression(self, node: CoercionExpression, *args: Any) -> Any:
        self.visit(node.operand, *args)

    def visit_mutation_block(self, node: MutationBlock, *args: Any) -> Any:
        self.visit(node.target, *args)
        self._visit_all(node.operations, *args)

    def visit_predicate_block(self, node: PredicateBlock, *args: Any) -> Any:
        self.visit(node.target, *args)
        self._visit_all(node.conditions, *args)

    # Switch
    def visit_switch_expression(self, node: SwitchExpression, *args: Any) -> Any:
        self.visit(node.selector, *args)
        self._visit_all(node.cases, *args)

    def visit_switch_rule(self, node: SwitchRule, *args: Any) -> Any:
        self._visit_all(node.labels, *args)
        self.visit(node.body, *args)

    def visit_switch_label_group(self, node: SwitchLabelGroup, *args: Any) -> Any:
        self._visit_all(node.labels, *args)
        self._visit_all(node.statements, *args)

    # Statements
    def visit_block(self, node: Block, *args: Any) -> Any:
        self._visit_all(node.statements, *args)

    def visit_if_statement(self, node: IfStatement, *args: Any) -> Any:
        self.visit(node.condition, *args)
        self.visit(node.then_branch, *args)
        if node.else_branch is not None:
            self.visit(node.else_branch, *args)

    def visit_while_statement(self, node: WhileStatement, *args: Any) -> Any:
        self.visit(node.condition, *args)
        self.visit(node.body, *args)

    def visit_for_statement(self, node: ForStatement, *args: Any) -> Any:
        self._visit_all(node.init, *args)
        if node.condition is not None:
            self.visit(node.condition, *args)
        self._visit_all(node.update, *args)
        self.visit(node.body, *args)

    def visit_foreach_statement(self, node: ForEachStatement, *args: Any) -> Any:
        self.visit(node.iterable, *args)
        self.visit(node.body, *args)

    def visit_do_while_statement(self, node: DoWhileStatement, *args: Any) -> Any:
        self.visit(node.body, *args)
        self.visit(node.condition, *args)

    def visit_catch_clause(self, node: CatchClause, *args: Any) -> Any:
        self.visit(node.body, *args)

    def visit_try_statement(self, node: TryStatement, *args: Any) -> Any:
        self.visit(node.body, *args)
        self._visit_all(node.catches, *args)
        if node.finally_block is not None:
            self.visit(node.finally_block, *args)

    def visit_switch_statement(self, node: SwitchStatement, *args: Any) -> Any:
        self.visit(node.selector, *args)
        self._visit_all(node.cases, *args)

    def visit_return_statement(self, node: ReturnStatement, *args: Any) -> Any:
        if node.value is not None:
            self.visit(node.value, *args)

    def visit_throw_statement(self, node: ThrowStatement, *args: Any) -> Any:
        self.visit(node.expression, *args)

    def visit_yield_statement(self, node: YieldStatement, *args: Any) -> Any:
        self.visit(node.value, *args)

    def visit_break_statement(self, node: BreakStatement, *args: Any) -> Any:
        pass

    def visit_continue_statement(self, node: ContinueStatement, *args: Any) -> Any:
        pass

    def visit_empty_statement(self, node: EmptyStatement, *args: Any) -> Any:
        pass

    def visit_expression_statement(self, node: ExpressionStatement, *args: Any) -> Any:
        self.visit(node.expression, *args)

    def visit_local_variable_declaration(
        self, node: LocalVariableDeclaration, *args: Any
    ) -> Any:
        for declarator in node.declarators:
            if declarator.initializer is not None:
                self.visit(declarator.initializer, *args)

    def visit_labeled_statement(self, node: LabeledStatement, *args: Any) -> Any:
        self.visit(node.statement, *args)

    def visit_compilation_unit(self, node: CompilationUnit, *args: Any) -> Any:
        self._visit_all(node.statements, *args)
