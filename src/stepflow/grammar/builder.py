"""
Lark parse tree -> Node conversion.

Walks the trees produced by javascript.lark rule by rule (``_build_<rule>``)
and returns the node dataclasses from nodes.py. Source offsets from
``propagate_positions`` are copied onto each node as ``span``.
"""

import re
from typing import List, Optional, Tuple, Union

from lark import Token, Tree

from ..textscan import string_literal_value
from .nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    AssignmentExpression,
    AssignmentPattern,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    ConditionalExpression,
    EmptyStatement,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    ExpressionStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    ImportDeclaration,
    Literal,
    LogicalExpression,
    MemberExpression,
    NewExpression,
    Node,
    ObjectExpression,
    Program,
    Property,
    RestElement,
    ReturnStatement,
    SequenceExpression,
    SpreadElement,
    TaggedTemplateExpression,
    TemplateLiteral,
    ThisExpression,
    ThrowStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    VariableDeclarator,
    WhileStatement,
)

_DECIMAL_INT_RE = re.compile(r"\d+")


class TreeBuildError(ValueError):
    """Raised when a parse tree contains a shape the builder does not know."""


class TreeBuilder:
    """
    Converts parse trees from ScriptParser into Program nodes.

    Usage:
        tree = lark_parser.parse(source)
        program = TreeBuilder().build(tree, dialect="module")
    """

    def build(self, tree: Tree, dialect: str = "script") -> Program:
        """Build a Program from a ``module`` or ``script`` tree."""
        program = Program(body=self._statements(tree.children), dialect=dialect)
        self._set_span(program, tree)
        return program

    def build_node(self, item: Union[Tree, Token]) -> Node:
        """Build the node for a single subtree."""
        if isinstance(item, Token):
            raise TreeBuildError(f"Unexpected token {item.type} at offset {item.start_pos}")

        method = getattr(self, "_build_" + str(item.data), None)
        if method is None:
            raise TreeBuildError(f"Unsupported syntax: {item.data}")

        node = method(item)
        self._set_span(node, item)
        return node

    # ============================================================
    # HELPERS
    # ============================================================

    @staticmethod
    def _set_span(node: Node, tree: Tree) -> None:
        meta = tree.meta
        if not meta.empty:
            node.span = (meta.start_pos, meta.end_pos)

    @staticmethod
    def _token(tree: Tree, token_type: str) -> Optional[Token]:
        for child in tree.children:
            if isinstance(child, Token) and child.type == token_type:
                return child
        return None

    @staticmethod
    def _subtrees(tree: Tree) -> List[Tree]:
        return [child for child in tree.children if isinstance(child, Tree)]

    def _statements(self, children: list) -> List[Node]:
        return [self.build_node(child) for child in children if child is not None]

    def _identifier_from_token(self, token: Token) -> Identifier:
        ident = Identifier(str(token))
        ident.span = (token.start_pos, token.end_pos)
        return ident

    def _params(self, tree: Tree) -> List[Node]:
        return [self.build_node(child) for child in self._subtrees(tree)]

    def _function_parts(self, tree: Tree) -> Tuple[bool, Optional[str], List[Node], BlockStatement]:
        is_async = self._token(tree, "ASYNC") is not None
        name = self._token(tree, "NAME")
        params_tree, block_tree = self._subtrees(tree)
        return (
            is_async,
            str(name) if name is not None else None,
            self._params(params_tree),
            self.build_node(block_tree),
        )

    # ============================================================
    # MODULE ITEMS
    # ============================================================

    def _build_import_decl(self, tree: Tree) -> ImportDeclaration:
        source = self._token(tree, "STRING")
        return ImportDeclaration(source=string_literal_value(str(source)) or "")

    def _build_export_default(self, tree: Tree) -> ExportDefaultDeclaration:
        return ExportDefaultDeclaration(self.build_node(self._subtrees(tree)[0]))

    def _build_export_named(self, tree: Tree) -> ExportNamedDeclaration:
        return ExportNamedDeclaration(self.build_node(self._subtrees(tree)[0]))

    def _build_export_list(self, tree: Tree) -> ExportNamedDeclaration:
        return ExportNamedDeclaration(None)

    # ============================================================
    # STATEMENTS
    # ============================================================

    def _build_var_decl(self, tree: Tree) -> VariableDeclaration:
        kind = self._token(tree, "DECL_KIND")
        return VariableDeclaration(
            kind=str(kind),
            declarations=[self.build_node(child) for child in self._subtrees(tree)],
        )

    def _build_declarator(self, tree: Tree) -> VariableDeclarator:
        target, *rest = tree.children
        init = self.build_node(rest[0]) if rest else None
        return VariableDeclarator(id=self.build_node(target), init=init)

    def _build_function_decl(self, tree: Tree) -> FunctionDeclaration:
        is_async, name, params, body = self._function_parts(tree)
        return FunctionDeclaration(name=name or "", params=params, body=body, is_async=is_async)

    def _build_default_param(self, tree: Tree) -> AssignmentPattern:
        left, right = tree.children
        return AssignmentPattern(self.build_node(left), self.build_node(right))

    def _build_rest_param(self, tree: Tree) -> RestElement:
        return RestElement(self.build_node(tree.children[0]))

    def _build_return_stmt(self, tree: Tree) -> ReturnStatement:
        argument = tree.children[0] if tree.children else None
        return ReturnStatement(self.build_node(argument) if argument is not None else None)

    def _build_throw_stmt(self, tree: Tree) -> ThrowStatement:
        return ThrowStatement(self.build_node(tree.children[0]))

    def _build_if_stmt(self, tree: Tree) -> IfStatement:
        test, consequent, *alternate = tree.children
        return IfStatement(
            test=self.build_node(test),
            consequent=self.build_node(consequent),
            alternate=self.build_node(alternate[0]) if alternate else None,
        )

    def _build_for_stmt(self, tree: Tree) -> ForStatement:
        head, body = tree.children
        if head.data == "for_iter":
            binding, iterable = head.children
            head_nodes = [self._for_binding(binding), self.build_node(iterable)]
        else:
            head_nodes = self._statements(head.children)
        return ForStatement(head=head_nodes, body=self.build_node(body))

    def _for_binding(self, tree: Tree) -> Node:
        kind = self._token(tree, "DECL_KIND")
        target = self.build_node(self._subtrees(tree)[0])
        if kind is None:
            return target
        return VariableDeclaration(kind=str(kind), declarations=[VariableDeclarator(id=target)])

    def _build_while_stmt(self, tree: Tree) -> WhileStatement:
        test, body = tree.children
        return WhileStatement(self.build_node(test), self.build_node(body))

    def _build_block(self, tree: Tree) -> BlockStatement:
        return BlockStatement(self._statements(tree.children))

    _build_arrow_block = _build_block

    def _build_expr_stmt(self, tree: Tree) -> ExpressionStatement:
        return ExpressionStatement(self.build_node(tree.children[0]))

    def _build_empty_stmt(self, tree: Tree) -> EmptyStatement:
        return EmptyStatement()

    # ============================================================
    # OPERATORS
    # ============================================================

    def _build_sequence(self, tree: Tree) -> SequenceExpression:
        left, right = (self.build_node(child) for child in tree.children)
        if isinstance(left, SequenceExpression):
            return SequenceExpression(left.expressions + [right])
        return SequenceExpression([left, right])

    def _build_assign(self, tree: Tree) -> AssignmentExpression:
        left, op, right = tree.children
        return AssignmentExpression(str(op), self.build_node(left), self.build_node(right))

    def _build_conditional_expr(self, tree: Tree) -> ConditionalExpression:
        test, consequent, alternate = (self.build_node(child) for child in tree.children)
        return ConditionalExpression(test, consequent, alternate)

    def _build_logical(self, tree: Tree) -> LogicalExpression:
        left, op, right = tree.children
        return LogicalExpression(str(op), self.build_node(left), self.build_node(right))

    def _build_binary(self, tree: Tree) -> BinaryExpression:
        left, op, right = tree.children
        return BinaryExpression(str(op), self.build_node(left), self.build_node(right))

    def _build_unary(self, tree: Tree) -> UnaryExpression:
        op, argument = tree.children
        return UnaryExpression(str(op), self.build_node(argument))

    def _build_update_prefix(self, tree: Tree) -> UpdateExpression:
        op, argument = tree.children
        return UpdateExpression(str(op), self.build_node(argument), prefix=True)

    def _build_update_postfix(self, tree: Tree) -> UpdateExpression:
        argument, op = tree.children
        return UpdateExpression(str(op), self.build_node(argument), prefix=False)

    # ============================================================
    # MEMBER ACCESS AND CALLS
    # ============================================================

    def _build_member(self, tree: Tree, optional: bool = False) -> MemberExpression:
        obj, name = tree.children
        return MemberExpression(
            self.build_node(obj), self._identifier_from_token(name), optional=optional
        )

    def _build_optional_member(self, tree: Tree) -> MemberExpression:
        return self._build_member(tree, optional=True)

    def _build_computed_member(self, tree: Tree, optional: bool = False) -> MemberExpression:
        obj, prop = tree.children
        return MemberExpression(
            self.build_node(obj), self.build_node(prop), computed=True, optional=optional
        )

    def _build_optional_computed_member(self, tree: Tree) -> MemberExpression:
        return self._build_computed_member(tree, optional=True)

    def _build_call(self, tree: Tree, optional: bool = False) -> CallExpression:
        callee, arguments = tree.children
        return CallExpression(
            self.build_node(callee), self._arguments(arguments), optional=optional
        )

    def _build_optional_call(self, tree: Tree) -> CallExpression:
        return self._build_call(tree, optional=True)

    def _arguments(self, tree: Tree) -> List[Node]:
        return [self.build_node(child) for child in tree.children]

    def _build_tagged_template(self, tree: Tree) -> TaggedTemplateExpression:
        tag, template = tree.children
        return TaggedTemplateExpression(self.build_node(tag), self._template(template))

    def _build_new_expr(self, tree: Tree) -> NewExpression:
        callee, *rest = tree.children
        arguments = self._arguments(rest[0]) if rest else []
        return NewExpression(self.build_node(callee), arguments)

    def _build_spread(self, tree: Tree) -> SpreadElement:
        return SpreadElement(self.build_node(tree.children[0]))

    # ============================================================
    # PRIMARY EXPRESSIONS
    # ============================================================

    def _build_identifier(self, tree: Tree) -> Identifier:
        return Identifier(str(tree.children[0]))

    def _build_literal(self, tree: Tree) -> Literal:
        token = tree.children[0]
        raw = str(token)
        if token.type == "STRING":
            return Literal(string_literal_value(raw), raw)
        if token.type == "NUMBER":
            return Literal(_number_value(raw), raw)
        if token.type == "TRUE":
            return Literal(True, raw)
        if token.type == "FALSE":
            return Literal(False, raw)
        # NULL and REGEX
        return Literal(None, raw)

    def _build_template(self, tree: Tree) -> TemplateLiteral:
        return self._template(tree.children[0])

    @staticmethod
    def _template(token: Token) -> TemplateLiteral:
        raw = str(token)
        template = TemplateLiteral(raw=raw, cooked=string_literal_value(raw))
        template.span = (token.start_pos, token.end_pos)
        return template

    def _build_this_expr(self, tree: Tree) -> ThisExpression:
        return ThisExpression()

    def _build_function_expr(self, tree: Tree) -> FunctionExpression:
        is_async, name, params, body = self._function_parts(tree)
        return FunctionExpression(name=name, params=params, body=body, is_async=is_async)

    def _build_arrow_function(self, tree: Tree) -> ArrowFunctionExpression:
        is_async = self._token(tree, "ASYNC") is not None
        head, body = self._subtrees(tree)
        if head.data == "params":
            params = self._params(head)
        else:
            params = [self.build_node(head)]
        return ArrowFunctionExpression(params=params, body=self.build_node(body), is_async=is_async)

    # ============================================================
    # ARRAYS AND OBJECTS
    # ============================================================

    def _build_array(self, tree: Tree) -> ArrayExpression:
        children = list(tree.children)
        # A trailing comma (or an empty literal) leaves one placeholder at the end
        if children and children[-1] is None:
            children.pop()
        return ArrayExpression(
            [self.build_node(child) if child is not None else None for child in children]
        )

    def _build_object(self, tree: Tree) -> ObjectExpression:
        return ObjectExpression([self.build_node(child) for child in tree.children])

    def _build_pair(self, tree: Tree) -> Property:
        key_tree, value = tree.children
        key, computed = self._property_key(key_tree)
        return Property(key=key, value=self.build_node(value), computed=computed)

    def _build_shorthand(self, tree: Tree) -> Property:
        value = self.build_node(tree.children[0])
        return Property(key=Identifier(value.name), value=value, shorthand=True)

    def _build_shorthand_default(self, tree: Tree) -> Property:
        target, default = (self.build_node(child) for child in tree.children)
        return Property(
            key=Identifier(target.name),
            value=AssignmentPattern(target, default),
            shorthand=True,
        )

    def _build_method(self, tree: Tree) -> Property:
        is_async = self._token(tree, "ASYNC") is not None
        key_tree, params_tree, block_tree = self._subtrees(tree)
        key, computed = self._property_key(key_tree)
        function = FunctionExpression(
            name=None,
            params=self._params(params_tree),
            body=self.build_node(block_tree),
            is_async=is_async,
        )
        self._set_span(function, tree)
        return Property(key=key, value=function, computed=computed, method=True)

    def _property_key(self, tree: Tree) -> Tuple[Node, bool]:
        child = tree.children[0]
        if isinstance(child, Tree):
            return self.build_node(child), True

        raw = str(child)
        if child.type == "STRING":
            key: Node = Literal(string_literal_value(raw), raw)
        elif child.type == "NUMBER":
            key = Literal(_number_value(raw), raw)
        else:
            key = Identifier(raw)
        key.span = (child.start_pos, child.end_pos)
        return key, False


def _number_value(raw: str) -> Union[int, float]:
    text = raw.replace("_", "").rstrip("n")
    if text[:2].lower() in ("0x", "0o", "0b"):
        return int(text, 0)
    if _DECIMAL_INT_RE.fullmatch(text):
        return int(text)
    return float(text)
