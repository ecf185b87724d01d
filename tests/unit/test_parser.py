"""
Unit tests for the pymvel Parser.
"""

import dataclasses

import pytest

from pymvel.compiler.ast_nodes import (
    ArrayInitializer,
    AssignmentExpression,
    AssignmentOperator,
    BinaryExpression,
    BinaryOperator,
    Block,
    CastExpression,
    CoercionExpression,
    CompilationUnit,
    ConditionalExpression,
    DoWhileStatement,
    ExpressionStatement,
    FieldAccess,
    ForEachStatement,
    ForStatement,
    Identifier,
    IfStatement,
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
    StringLiteral,
    SwitchExpression,
    SwitchLabelGroup,
    SwitchRule,
    SwitchStatement,
    TryStatement,
    TypePattern,
    TypeReference,
    UnaryExpression,
    UnaryOperator,
    UnitLiteral,
    WhileStatement,
)
from pymvel.compiler.parser import ParseMode, detect_mode, parse
from pymvel.utils.diagnostics import ErrorCode
from pymvel.utils.errors import LexerError, ParserError


class TestParseEntryPoint:
    """Tests for the module-level parse function and mode handling."""

    def test_expression_mode_returns_expression(self):
        """Expression mode yields the expression node itself."""
        assert isinstance(parse("a + 1"), BinaryExpression)

    def test_program_mode_accepts_strings(self):
        """The mode may be given by name."""
        tree = parse("x = 1; y = 2;", "program")
        assert isinstance(tree, CompilationUnit)
        assert len(tree.statements) == 2

    def test_unknown_mode_rejected(self):
        """Unknown mode names are rejected."""
        with pytest.raises(ValueError):
            parse("x", "statement")

    def test_trailing_semicolon_in_expression_mode(self):
        """An expression may end with a single semicolon."""
        assert isinstance(parse("a + 1;"), BinaryExpression)

    def test_nodes_are_immutable(self):
        """AST nodes cannot be modified after parsing."""
        node = parse("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.name = "b"

    def test_locations_recorded(self):
        """Nodes carry the location of their first token."""
        node = parse("  foo")
        assert node.location.line == 1
        assert node.location.column == 3


class TestDetectMode:
    """Tests for mode detection from text."""

    def test_plain_expression(self):
        assert detect_mode("a + b") == ParseMode.EXPRESSION

    def test_trailing_semicolon(self):
        assert detect_mode("x = 1;  ") == ParseMode.PROGRAM

    @pytest.mark.parametrize("opener", ["if(", "for(", "while(", "switch(", "modify("])
    def test_control_openers(self, opener):
        assert detect_mode(f"{opener}x) y") == ParseMode.PROGRAM


class TestPrecedence:
    """Tests for operator precedence and associativity."""

    def test_multiplication_binds_tighter(self, parse_expression):
        """`1 + 2 * 3` groups the product on the right."""
        node = parse_expression("1 + 2 * 3")
        assert node.operator == BinaryOperator.ADD
        assert isinstance(node.right, BinaryExpression)
        assert node.right.operator == BinaryOperator.MUL

    def test_subtraction_is_left_associative(self, parse_expression):
        node = parse_expression("1 - 2 - 3")
        assert isinstance(node.left, BinaryExpression)
        assert isinstance(node.right, IntegerLiteral)

    def test_power_binds_tighter_than_multiplication(self, parse_expression):
        node = parse_expression("2 * 3 ** 2")
        assert node.operator == BinaryOperator.MUL
        assert node.right.operator == BinaryOperator.POW

    def test_power_is_left_associative(self, parse_expression):
        node = parse_expression("2 ** 3 ** 2")
        assert node.operator == BinaryOperator.POW
        assert isinstance(node.left, BinaryExpression)

    def test_logical_and_binds_tighter_than_or(self, parse_expression):
        node = parse_expression("a || b && c")
        assert node.operator == BinaryOperator.OR
        assert node.right.operator == BinaryOperator.AND

    def test_membership_below_equality(self, parse_expression):
        """Equality groups before `contains`."""
        node = parse_expression("names contains a == b")
        assert node.operator == BinaryOperator.CONTAINS
        assert node.right.operator == BinaryOperator.EQ

    def test_similarity_operators(self, parse_expression):
        assert parse_expression("a strsim b").operator == BinaryOperator.STRSIM
        assert parse_expression("a soundslike b").operator == BinaryOperator.SOUNDSLIKE

    def test_ternary_is_right_associative(self, parse_expression):
        node = parse_expression("a ? b : c ? d : e")
        assert isinstance(node, ConditionalExpression)
        assert isinstance(node.else_expr, ConditionalExpression)

    def test_assignment_is_right_associative(self, parse_expression):
        node = parse_expression("a = b = 1")
        assert isinstance(node, AssignmentExpression)
        assert isinstance(node.value, AssignmentExpression)

    def test_compound_assignment(self, parse_expression):
        node = parse_expression("total **= 2")
        assert node.operator == AssignmentOperator.POW

    def test_unary_operators(self, parse_expression):
        node = parse_expression("!done")
        assert isinstance(node, UnaryExpression)
        assert node.operator == UnaryOperator.NOT

    def test_parentheses_override_precedence(self, parse_expression):
        node = parse_expression("(1 + 2) * 3")
        assert node.operator == BinaryOperator.MUL
        assert isinstance(node.left, ParenthesizedExpression)


class TestMemberAccess:
    """Tests for member, index and call postfix forms."""

    def test_field_chain(self, parse_expression):
        node = parse_expression("a.b.c")
        assert isinstance(node, FieldAccess)
        assert node.name == "c"
        assert isinstance(node.target, FieldAccess)

    def test_method_call(self, parse_expression):
        node = parse_expression("a.b(1, 2)")
        assert isinstance(node, MethodCall)
        assert isinstance(node.callee, FieldAccess)
        assert len(node.arguments) == 2

    def test_reserved_word_as_member(self, parse_expression):
        """Reserved words are valid member names."""
        node = parse_expression("list.contains(x)")
        assert node.callee.name == "contains"

    def test_safe_forms(self, parse_expression):
        assert isinstance(parse_expression("a?.b"), SafeFieldAccess)
        assert isinstance(parse_expression("a?.b()"), SafeMethodCall)
        assert isinstance(parse_expression("a?[0]"), SafeIndexAccess)

    def test_index_access(self, parse_expression):
        node = parse_expression("items[i + 1]")
        assert isinstance(node, IndexAccess)
        assert isinstance(node.index, BinaryExpression)

    def test_method_reference(self, parse_expression):
        node = parse_expression("String::valueOf")
        assert isinstance(node, MethodReference)
        assert node.name == "valueOf"

    def test_constructor_reference(self, parse_expression):
        assert parse_expression("Person::new").name == "new"

    def test_generic_type_method_reference(self, parse_expression):
        node = parse_expression("List<String>::size")
        assert isinstance(node, MethodReference)
        assert isinstance(node.target, TypeReference)
        assert node.target.source_text == "List<String>"
        assert node.name == "size"

    def test_array_constructor_reference(self, parse_expression):
        node = parse_expression("String[]::new")
        assert node.target.dimensions == 1
        assert node.name == "new"

    def test_comparison_is_not_a_type(self, parse_expression):
        assert isinstance(parse_expression("a < b"), BinaryExpression)


class TestMvelForms:
    """Tests for projection, selection, blocks and the other MVEL postfix forms."""

    def test_projection(self, parse_expression):
        node = parse_expression("people.{name}")
        assert isinstance(node, ProjectionExpression)
        assert node.projection == Identifier("name", node.projection.location)

    def test_selection(self, parse_expression):
        node = parse_expression("list.?(x > 5)")
        assert isinstance(node, SelectionExpression)
        assert node.condition.operator == BinaryOperator.GT

    def test_member_access_after_projection(self, parse_expression):
        """Ordinary postfix operators keep applying after a projection."""
        node = parse_expression("people.{name}.size()")
        assert isinstance(node, MethodCall)
        assert isinstance(node.callee.target, ProjectionExpression)

    def test_predicate_block(self, parse_expression):
        node = parse_expression("person[age > 18, name == 'Bob']")
        assert isinstance(node, PredicateBlock)
        assert len(node.conditions) == 2

    def test_single_test_is_predicate_block(self, parse_expression):
        assert isinstance(parse_expression("person[age > 18]"), PredicateBlock)

    def test_empty_brackets_are_predicate_block(self, parse_expression):
        node = parse_expression("person[]")
        assert isinstance(node, PredicateBlock)
        assert node.conditions == ()

    def test_mutation_block(self, parse_expression):
        node = parse_expression("person{name = 'Bob', age = 30}")
        assert isinstance(node, MutationBlock)
        assert len(node.operations) == 2
        assert all(isinstance(op, AssignmentExpression) for op in node.operations)

    def test_mutation_block_method_call(self, parse_expression):
        node = parse_expression("list{clear()}")
        assert isinstance(node.operations[0], MethodCall)

    def test_mutation_block_rejects_other_expressions(self, parse_expression):
        with pytest.raises(ParserError, match="Expected 'field = value'"):
            parse_expression("person{age + 1}")

    def test_coercion(self, parse_expression):
        node = parse_expression("value#int")
        assert isinstance(node, CoercionExpression)
        assert node.target_type.name == "int"
        assert not node.quoted

    def test_quoted_coercion(self, parse_expression):
        node = parse_expression('value#"java.math.BigDecimal"')
        assert node.quoted
        assert node.target_type.name == "java.math.BigDecimal"

    def test_navigation_after_coercion(self, parse_expression):
        """Safe navigation continues after a coercion."""
        node = parse_expression("obj?.field#String?.toUpperCase()")
        assert isinstance(node, SafeMethodCall)
        assert isinstance(node.target, CoercionExpression)

    def test_regex_match(self, parse_expression):
        node = parse_expression("name ~ ~/[A-Z].*/")
        assert isinstance(node, RegexMatchExpression)
        assert node.pattern == RegexLiteral("[A-Z].*", node.pattern.location)

    def test_is_defined(self, parse_expression):
        node = parse_expression("isdef user")
        assert isinstance(node, IsDefinedExpression)

    def test_unit_literal(self, parse_expression):
        node = parse_expression("10litres")
        assert isinstance(node, UnitLiteral)
        assert (node.value, node.unit) == ("10", "litres")

    def test_instanceof_binding(self, parse_expression):
        node = parse_expression("o instanceof String s")
        assert isinstance(node, InstanceOfExpression)
        assert node.binding == "s"


class TestLiteralsAndCreation:
    """Tests for inline collections, lambdas, casts and object creation."""

    def test_list_literal(self, parse_expression):
        node = parse_expression("[1, 2, 3]")
        assert isinstance(node, ListLiteral)
        assert len(node.elements) == 3

    def test_map_literals(self, parse_expression):
        assert len(parse_expression("[a: 1, b: 2]").entries) == 2
        empty = parse_expression("[:]")
        assert isinstance(empty, MapLiteral)
        assert empty.entries == ()
        assert isinstance(parse_expression("{}"), MapLiteral)
        assert isinstance(parse_expression("{'k': 1}"), MapLiteral)

    def test_empty_list(self, parse_expression):
        assert parse_expression("[]").elements == ()

    def test_string_literal_value(self, parse_expression):
        node = parse_expression("'it\\'s'")
        assert isinstance(node, StringLiteral)
        assert node.value == "it's"

    def test_lambda_forms(self, parse_expression):
        single = parse_expression("x -> x + 1")
        assert isinstance(single, LambdaExpression)
        assert not single.parenthesized
        pair = parse_expression("(a, b) -> a + b")
        assert [p.name for p in pair.parameters] == ["a", "b"]
        typed = parse_expression("(String s) -> s")
        assert typed.parameters[0].type.name == "String"

    def test_cast(self, parse_expression):
        node = parse_expression("(int) x")
        assert isinstance(node, CastExpression)
        assert node.type.name == "int"

    def test_parenthesized_name_is_not_cast(self, parse_expression):
        """`(a) - b` is a subtraction."""
        node = parse_expression("(a) - b")
        assert isinstance(node, BinaryExpression)

    def test_new_object_with_diamond(self, parse_expression):
        node = parse_expression("new ArrayList<>()")
        assert isinstance(node, NewObject)
        assert node.type.arguments == ()

    def test_new_array(self, parse_expression):
        sized = parse_expression("new int[3][]")
        assert isinstance(sized, NewArray)
        assert len(sized.dimensions) == 2
        initialized = parse_expression("new int[]{1, 2}")
        assert isinstance(initialized.initializer, ArrayInitializer)

    def test_new_array_needs_size(self, parse_expression):
        with pytest.raises(ParserError, match="needs a size or an initializer"):
            parse_expression("new int[]")

    def test_switch_expression(self, parse_expression):
        node = parse_expression("switch (d) { case 1 -> 'one'; default -> 'other'; }")
        assert isinstance(node, SwitchExpression)
        assert all(isinstance(c, SwitchRule) for c in node.cases)
        assert node.cases[1].is_default

    def test_type_pattern_case(self, parse_expression):
        node = parse_expression("switch (o) { case String s -> s; default -> null; }")
        assert isinstance(node.cases[0].labels[0], TypePattern)

    def test_mixed_switch_forms_rejected(self, parse_expression):
        with pytest.raises(ParserError, match="Cannot mix"):
            parse_expression("switch (d) { case 1 -> 1; default: 2; }")


class TestStatements:
    """Tests for program mode statement parsing."""

    def test_expression_statements(self, parse_program):
        tree = parse_program("x = 1; y = 2;")
        assert all(isinstance(s, ExpressionStatement) for s in tree.statements)

    def test_last_semicolon_optional(self, parse_program):
        assert len(parse_program("x = 1; y = 2").statements) == 2

    def test_missing_semicolon(self, parse_program):
        with pytest.raises(ParserError, match="Expected ';' after statement"):
            parse_program("x = 1 y = 2")

    def test_local_declarations(self, parse_program):
        declaration = parse_program("int a = 1, b;").statements[0]
        assert isinstance(declaration, LocalVariableDeclaration)
        assert [d.name for d in declaration.declarators] == ["a", "b"]
        assert declaration.declarators[1].initializer is None

    def test_var_and_final(self, parse_program):
        inferred = parse_program("var total = 1;").statements[0]
        assert inferred.type is None
        final = parse_program("final String s = 'x';").statements[0]
        assert final.final

    def test_array_initializer(self, parse_program):
        declaration = parse_program("int[] xs = {1, 2};").statements[0]
        assert isinstance(declaration.declarators[0].initializer, ArrayInitializer)

    def test_if_else(self, parse_program):
        statement = parse_program("if (x > 1) { y = 2; } else { y = 3; }").statements[0]
        assert isinstance(statement, IfStatement)
        assert isinstance(statement.then_branch, Block)
        assert isinstance(statement.else_branch, Block)

    def test_loops(self, parse_program):
        tree = parse_program(
            "while (a) { a = false; } do { n++; } while (n < 3); "
            "for (int i = 0; i < 10; i++) { sum += i; }"
        )
        kinds = [type(s) for s in tree.statements]
        assert kinds == [WhileStatement, DoWhileStatement, ForStatement]

    def test_foreach(self, parse_program):
        typed = parse_program("for (String n : names) {}").statements[0]
        assert isinstance(typed, ForEachStatement)
        assert typed.variable_type.name == "String"
        untyped = parse_program("for (n : names) {}").statements[0]
        assert untyped.variable_type is None

    def test_try_multi_catch(self, parse_program):
        statement = parse_program(
            "try { a(); } catch (IOException | RuntimeException e) { b(); } finally { c(); }"
        ).statements[0]
        assert isinstance(statement, TryStatement)
        assert len(statement.catches[0].types) == 2
        assert statement.finally_block is not None

    def test_try_with_resources_rejected(self, parse_program):
        with pytest.raises(ParserError, match="try-with-resources"):
            parse_program("try (r) { a(); }")

    def test_try_needs_handler(self, parse_program):
        with pytest.raises(ParserError, match="Expected 'catch' or 'finally'"):
            parse_program("try { a(); }")

    def test_labeled_statement(self, parse_program):
        statement = parse_program("outer: while (true) { break outer; }").statements[0]
        assert isinstance(statement, LabeledStatement)
        assert statement.label == "outer"

    def test_switch_statement_groups(self, parse_program):
        statement = parse_program(
            "switch (d) { case 1: y = 1; break; default: y = 0; }"
        ).statements[0]
        assert isinstance(statement, SwitchStatement)
        assert all(isinstance(c, SwitchLabelGroup) for c in statement.cases)
        assert len(statement.cases[0].statements) == 2

    def test_return(self, parse_program):
        statement = parse_program("return x;").statements[0]
        assert isinstance(statement, ReturnStatement)


class TestParserErrors:
    """Tests for syntax error reporting."""

    def test_unexpected_end(self, parse_expression):
        with pytest.raises(ParserError, match="Unexpected end of input") as exc_info:
            parse_expression("1 +")
        assert exc_info.value.line == 1
        assert exc_info.value.rule == "primary"

    def test_unclosed_paren(self, parser_factory):
        parser = parser_factory("(1 + 2")
        with pytest.raises(ParserError, match="Unclosed delimiter"):
            parser.parse_expression()
        assert parser.get_diagnostics()[0].code == ErrorCode.E0202

    @pytest.mark.parametrize("source", ["foo(", "foo(1, ", "p.setName(", "new Person("])
    def test_arguments_cut_short(self, parser_factory, source):
        parser = parser_factory(source)
        with pytest.raises(ParserError, match="Unclosed delimiter '\\('"):
            parser.parse_expression()
        assert parser.get_diagnostics()[0].code == ErrorCode.E0202

    def test_trailing_tokens(self, parser_factory):
        parser = parser_factory("a b")
        with pytest.raises(ParserError, match="Unexpected 'b' after expression"):
            parser.parse_expression()
        assert parser.get_diagnostics()[0].code == ErrorCode.E0204

    def test_invalid_assignment_target(self, parse_expression):
        with pytest.raises(ParserError, match="Invalid assignment target"):
            parse_expression("1 = 2")

    def test_lexer_errors_surface(self):
        with pytest.raises(LexerError):
            parse('"abc')

    def test_error_carries_source_line(self, parse_expression):
        with pytest.raises(ParserError) as exc_info:
            parse_expression("a + )")
        assert exc_info.value.source_line == "a + )"
        assert exc_info.value.column == 5

    def test_rendered_diagnostics(self, parser_factory):
        parser = parser_factory("foo(")
        with pytest.raises(ParserError):
            parser.parse_expression()
        rendered = parser.render_diagnostics(use_color=False)
        assert "error[E0202]" in rendered
        assert "foo(" in rendered
