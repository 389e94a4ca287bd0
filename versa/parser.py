"""Recursive-descent parser for the Versa language.

The parser works on the token list produced by `versa.lexer.tokenize`.
Statements are separated by newlines or `;`. A `:` followed by a newline
opens a multi-line body that is closed by `end`; a `:` followed by
anything else introduces a single inline statement.

Html elements nest by indentation: the children of an element are the
following lines that are indented deeper than the line the element
starts on. Fragments (`<>` ... `</>`) are closed explicitly.

`parse_program(source, filename)` is the public entry point.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from .ast import (
    Node, Program, Block, NumberNode, StringNode, BooleanNode, NoneNode, ListNode, DictNode,
    VarAccess, VarDeclare, DefineConstant, Assign, Delete,
    BinaryOp, UnaryOp, PrefixIncrement, PostfixIncrement, InstanceOf,
    Slice, PushIndex, Index, PropertyAccess, StaticAccess, Call,
    If, For, While, Foreach, Switch, Return, Break, Continue, Pass,
    Param, FuncDef, ClassMemberDef, ClassDefNode, New, Super, EnumDef,
    TagMemberDef, TagDef, HtmlNode, HtmlChildren, in_optional_chain,
)
from .errors import InvalidSyntaxError
from .lexer import KEYWORDS, Token, tokenize
from .position import Position

ASSIGN_OPS = ('=', '+=', '-=', '*=', '/=', '%=', '**=', '??=', '&&=', '||=', '&=', '|=', '^=')
COMPARISON_OPS = ('==', '!=', '<', '>', '<=', '>=', '??')
BITWISE_OPS = ('<<', '>>', '>>>', '&', '|', '^', 'instanceof')
STATEMENT_END = ('NEWLINE', ';', 'EOF', 'end', 'else', 'elif', 'case', 'default', '</>')
MODIFIERS = ('public', 'private', 'protected', 'static', 'override')
HTML_CHILD_START = ('STRING', '{', '<', '<>')

ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', '0': '\0', '\\': '\\',
    "'": "'", '"': '"', '`': '`', '{': '{', '}': '}',
}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        # Column of the first token of every line, used for html nesting.
        self.line_indents = {}
        for tok in tokens:
            if tok.type not in ('NEWLINE', 'EOF'):
                self.line_indents.setdefault(tok.pos_start.ln, tok.pos_start.col)

    # Token helpers

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.pos + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        tok = self.peek()
        if tok.type != 'EOF':
            self.pos += 1
        return tok

    def match(self, *types: str) -> bool:
        return self.peek().type in types

    def consume(self, expected: str, message: Optional[str] = None) -> Token:
        tok = self.peek()
        if tok.type != expected:
            raise self.error(message or f"Expected '{expected}'", tok)
        return self.advance()

    def consume_name(self) -> Token:
        """An identifier where keywords are also acceptable (member names, attributes)."""
        tok = self.peek()
        if tok.type != 'NAME' and tok.type not in KEYWORDS:
            raise self.error('Expected an identifier', tok)
        return self.advance()

    def skip_newlines(self):
        while self.match('NEWLINE'):
            self.advance()

    def error(self, message: str, tok: Optional[Token] = None) -> InvalidSyntaxError:
        tok = tok or self.peek()
        return InvalidSyntaxError(message, tok.pos_start, tok.pos_end)

    def located(self, node: Node, pos_start: Position) -> Node:
        node.pos_start = pos_start
        previous = self.tokens[self.pos - 1] if self.pos > 0 else self.peek()
        node.pos_end = previous.pos_end
        return node

    def indent_of(self, tok: Token) -> int:
        return self.line_indents.get(tok.pos_start.ln, 0)

    # Statements

    def parse_program(self) -> Program:
        start = self.peek().pos_start
        statements = self.parse_statements(())
        if not self.match('EOF'):
            tok = self.peek()
            raise self.error(f"Unexpected '{tok.value}'", tok)
        return self.located(Program(statements), start)

    def parse_statements(self, terminators: Tuple[str, ...]) -> List[Node]:
        statements: List[Node] = []
        while True:
            while self.match('NEWLINE', ';'):
                self.advance()
            if self.match('EOF', *terminators):
                return statements
            statements.append(self.parse_statement())
            if not self.match('NEWLINE', ';', 'EOF', *terminators):
                raise self.error("Expected a newline or ';'")

    def parse_block(self, terminators: Tuple[str, ...]) -> Block:
        start = self.peek().pos_start
        statements = self.parse_statements(terminators)
        if statements:
            start = statements[0].pos_start
        return self.located(Block(statements), start)

    def parse_body(self, terminators: Tuple[str, ...]) -> Tuple[Node, bool]:
        """Parse what follows a ':'. Returns the body and whether it spans lines."""
        if self.match('NEWLINE'):
            return self.parse_block(terminators), True
        return self.parse_statement(), False

    def parse_branch(self, terminators: Tuple[str, ...], html: bool) -> Tuple[Node, bool]:
        if not html:
            return self.parse_body(terminators)
        start = self.peek().pos_start
        if not self.match('NEWLINE'):
            child = self.parse_html_child()
            return self.located(HtmlChildren([child]), start), False
        children = []
        while True:
            self.skip_newlines()
            if self.match('EOF', '</>', *terminators):
                break
            children.append(self.parse_html_child())
        return self.located(HtmlChildren(children), start), True

    def parse_statement(self) -> Node:
        tok = self.peek()
        start = tok.pos_start
        if tok.type == 'var':
            return self.parse_var_declaration()
        if tok.type == 'define':
            return self.parse_define()
        if tok.type == 'return':
            self.advance()
            value = None if self.match(*STATEMENT_END) else self.parse_expression()
            return self.located(Return(value), start)
        if tok.type == 'break':
            self.advance()
            return self.located(Break(), start)
        if tok.type == 'continue':
            self.advance()
            return self.located(Continue(), start)
        if tok.type == 'pass':
            self.advance()
            return self.located(Pass(), start)
        if tok.type == 'delete':
            self.advance()
            target = self.parse_expression()
            if not isinstance(target, (VarAccess, Index)) or in_optional_chain(target):
                raise InvalidSyntaxError('Expected a variable or an index to delete', target.pos_start, target.pos_end)
            return self.located(Delete(target), start)
        if tok.type == 'class':
            return self.parse_class()
        if tok.type == 'enum':
            return self.parse_enum()
        if tok.type == 'tag':
            return self.parse_tag()
        return self.parse_expression()

    def parse_type(self) -> str:
        return self.consume('NAME', 'Expected a type').value

    def parse_var_declaration(self) -> VarDeclare:
        start = self.advance().pos_start
        name = self.consume('NAME', 'Expected an identifier').value
        type_name = 'any'
        if self.match(':'):
            self.advance()
            type_name = self.parse_type()
        if self.match('='):
            self.advance()
            value = self.parse_expression()
        else:
            value = self.located(NoneNode(), self.peek().pos_start)
        return self.located(VarDeclare(name, type_name, value), start)

    def parse_define(self) -> DefineConstant:
        start = self.advance().pos_start
        name = self.consume('NAME', 'Expected an identifier').value
        type_name = 'any'
        if self.match(':'):
            self.advance()
            type_name = self.parse_type()
        self.consume('=', "Expected '=': a constant needs a value")
        value = self.parse_expression()
        return self.located(DefineConstant(name, type_name, value), start)

    # Expressions, lowest precedence first

    def parse_expression(self) -> Node:
        start = self.peek().pos_start
        left = self.parse_logic()
        if self.match(*ASSIGN_OPS):
            op = self.advance().type
            if not isinstance(left, (VarAccess, Index, PropertyAccess, StaticAccess)) or in_optional_chain(left):
                raise InvalidSyntaxError('Invalid assignment target', left.pos_start, left.pos_end)
            if isinstance(left, Index) and isinstance(left.index, PushIndex) and op != '=':
                raise InvalidSyntaxError("Empty brackets only support '='", left.pos_start, left.pos_end)
            value = self.parse_expression()
            return self.located(Assign(left, op, value), start)
        if isinstance(left, Index) and isinstance(left.index, PushIndex):
            raise InvalidSyntaxError('Empty brackets can only be used to push a value', left.pos_start, left.pos_end)
        return left

    def parse_logic(self) -> Node:
        start = self.peek().pos_start
        left = self.parse_comparison()
        while self.match('and', 'or', '&&', '||'):
            op = 'and' if self.advance().type in ('and', '&&') else 'or'
            right = self.parse_comparison()
            left = self.located(BinaryOp(op, left, right), start)
        return left

    def parse_comparison(self) -> Node:
        start = self.peek().pos_start
        if self.match('not'):
            self.advance()
            operand = self.parse_comparison()
            return self.located(UnaryOp('not', operand), start)
        left = self.parse_bitwise()
        while self.match(*COMPARISON_OPS):
            op = self.advance().type
            right = self.parse_bitwise()
            left = self.located(BinaryOp(op, left, right), start)
        return left

    def parse_bitwise(self) -> Node:
        start = self.peek().pos_start
        left = self.parse_arith()
        while self.match(*BITWISE_OPS):
            op = self.advance().type
            right = self.parse_arith()
            if op == 'instanceof':
                left = self.located(InstanceOf(left, right), start)
            else:
                left = self.located(BinaryOp(op, left, right), start)
        return left

    def parse_arith(self) -> Node:
        start = self.peek().pos_start
        left = self.parse_term()
        while self.match('+', '-'):
            op = self.advance().type
            right = self.parse_term()
            left = self.located(BinaryOp(op, left, right), start)
        return left

    def parse_term(self) -> Node:
        start = self.peek().pos_start
        left = self.parse_unary()
        while self.match('*', '/', '%', '**'):
            op = self.advance().type
            right = self.parse_unary()
            left = self.located(BinaryOp(op, left, right), start)
        return left

    def parse_unary(self) -> Node:
        start = self.peek().pos_start
        if self.match('-', '+', '~', 'typeof'):
            op = self.advance().type
            operand = self.parse_unary()
            return self.located(UnaryOp(op, operand), start)
        if self.match('++', '--'):
            diff = 1 if self.advance().type == '++' else -1
            operand = self.parse_unary()
            return self.located(PrefixIncrement(diff, operand), start)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        start = self.peek().pos_start
        node = self.parse_chain()
        while self.match('++', '--'):
            diff = 1 if self.advance().type == '++' else -1
            if isinstance(node, PostfixIncrement):
                node.diff += diff
                self.located(node, start)
                continue
            if not isinstance(node, (VarAccess, Index, PropertyAccess, StaticAccess)) or in_optional_chain(node):
                raise InvalidSyntaxError('Invalid increment target', node.pos_start, node.pos_end)
            node = self.located(PostfixIncrement(diff, node), start)
        return node

    def parse_chain(self) -> Node:
        start = self.peek().pos_start
        node = self.parse_atom()
        while True:
            if self.match('('):
                node = Call(node, self.parse_args())
            elif self.match('['):
                node = self.parse_index(node, optional=False)
            elif self.match('.'):
                self.advance()
                node = PropertyAccess(node, self.consume_name().value)
            elif self.match('::'):
                self.advance()
                node = StaticAccess(node, self.consume_name().value)
            elif self.match('?.'):
                self.advance()
                if self.match('('):
                    node = Call(node, self.parse_args(), optional=True)
                elif self.match('['):
                    node = self.parse_index(node, optional=True)
                else:
                    node = PropertyAccess(node, self.consume_name().value, optional=True)
            elif self.match('?::'):
                self.advance()
                node = StaticAccess(node, self.consume_name().value, optional=True)
            else:
                return node
            self.located(node, start)

    def parse_args(self) -> List[Node]:
        self.consume('(')
        args = []
        self.skip_newlines()
        while not self.match(')'):
            args.append(self.parse_expression())
            self.skip_newlines()
            if not self.match(')'):
                self.consume(',', "Expected ',' or ')'")
                self.skip_newlines()
        self.consume(')')
        return args

    def parse_index(self, target: Node, optional: bool) -> Index:
        self.consume('[')
        start = self.peek().pos_start
        if self.match(']'):
            index = self.located(PushIndex(), start)
        elif self.match(':'):
            self.advance()
            end = None if self.match(']') else self.parse_expression()
            index = self.located(Slice(None, end), start)
        else:
            index = self.parse_expression()
            if self.match(':'):
                self.advance()
                end = None if self.match(']') else self.parse_expression()
                index = self.located(Slice(index, end), start)
        self.consume(']')
        if optional and isinstance(index, PushIndex):
            raise InvalidSyntaxError('Empty brackets cannot be optional', index.pos_start, index.pos_end)
        return Index(target, index, optional)

    def parse_atom(self) -> Node:
        tok = self.peek()
        start = tok.pos_start
        if tok.type == 'NUMBER':
            self.advance()
            text = tok.value.replace('_', '')
            return self.located(NumberNode(float(text) if '.' in text else int(text)), start)
        if tok.type == 'STRING':
            self.advance()
            return self.parse_string(tok)
        if tok.type in ('yes', 'true'):
            self.advance()
            return self.located(BooleanNode(1, tok.type), start)
        if tok.type in ('no', 'false'):
            self.advance()
            return self.located(BooleanNode(0, tok.type), start)
        if tok.type == 'none':
            self.advance()
            return self.located(NoneNode(), start)
        if tok.type == 'NAME':
            self.advance()
            return self.located(VarAccess(tok.value), start)
        if tok.type == '(':
            self.advance()
            self.skip_newlines()
            expr = self.parse_expression()
            self.skip_newlines()
            self.consume(')', "Expected ')'")
            return expr
        if tok.type == '[':
            return self.parse_list()
        if tok.type == '{':
            return self.parse_dict()
        if tok.type == 'new':
            self.advance()
            name_tok = self.consume('NAME', 'Expected a class name')
            class_node = self.located(VarAccess(name_tok.value), name_tok.pos_start)
            args = self.parse_args() if self.match('(') else []
            return self.located(New(class_node, args), start)
        if tok.type == 'super':
            self.advance()
            return self.located(Super(self.parse_args()), start)
        if tok.type == 'func':
            return self.parse_func()
        if tok.type == 'if':
            return self.parse_if()
        if tok.type == 'for':
            return self.parse_for()
        if tok.type == 'while':
            return self.parse_while()
        if tok.type == 'foreach':
            return self.parse_foreach()
        if tok.type == 'switch':
            return self.parse_switch()
        if tok.type in ('<', '<>'):
            return self.parse_html()
        if tok.type == 'EOF':
            raise self.error('Unexpected end of input', tok)
        if tok.type == 'NEWLINE':
            raise self.error('Unexpected end of line', tok)
        raise self.error(f"Unexpected '{tok.value}'", tok)

    def parse_list(self) -> ListNode:
        start = self.consume('[').pos_start
        elements = []
        self.skip_newlines()
        while not self.match(']'):
            elements.append(self.parse_expression())
            self.skip_newlines()
            if not self.match(']'):
                self.consume(',', "Expected ',' or ']'")
                self.skip_newlines()
        self.consume(']')
        return self.located(ListNode(elements), start)

    def parse_dict(self) -> DictNode:
        start = self.consume('{').pos_start
        entries = []
        keys = set()
        self.skip_newlines()
        while not self.match('}'):
            key_tok = self.peek()
            if key_tok.type == 'STRING':
                self.advance()
                key = decode_string(key_tok.value[1:-1])
                self.consume(':', "Expected ':'")
                value = self.parse_expression()
            elif key_tok.type == 'NAME':
                self.advance()
                key = key_tok.value
                if self.match(':'):
                    self.advance()
                    value = self.parse_expression()
                else:
                    value = self.located(VarAccess(key), key_tok.pos_start)
            else:
                raise self.error('Expected a string or an identifier as key', key_tok)
            if key in keys:
                raise self.error(f"Duplicate key '{key}'", key_tok)
            keys.add(key)
            entries.append((key, value))
            self.skip_newlines()
            if not self.match('}'):
                self.consume(',', "Expected ',' or '}'")
                self.skip_newlines()
        self.consume('}')
        return self.located(DictNode(entries), start)

    def parse_string(self, tok: Token) -> StringNode:
        """Split a string literal into text and interpolated expressions."""
        raw = tok.value[1:-1]
        offset = tok.pos_start.idx + 1
        parts = []
        buf = []
        i = 0
        while i < len(raw):
            char = raw[i]
            if char == '\\' and i + 1 < len(raw):
                buf.append(ESCAPES.get(raw[i + 1], '\\' + raw[i + 1]))
                i += 2
                continue
            if char == '{':
                depth = 1
                j = i + 1
                while j < len(raw) and depth:
                    if raw[j] == '{':
                        depth += 1
                    elif raw[j] == '}':
                        depth -= 1
                    j += 1
                if depth:
                    raise self.error("Invalid interpolation: the closing '}' is missing", tok)
                code = raw[i + 1:j - 1]
                if code.strip():
                    if buf:
                        parts.append(''.join(buf))
                        buf = []
                    parts.append(self.parse_interpolation(code, offset + i + 1, tok))
                else:
                    buf.append('{' + code + '}')
                i = j
                continue
            buf.append(char)
            i += 1
        if buf or not parts:
            parts.append(''.join(buf))
        node = StringNode(parts)
        node.pos_start, node.pos_end = tok.pos_start, tok.pos_end
        return node

    def parse_interpolation(self, code: str, offset: int, tok: Token) -> Node:
        source = tok.pos_start.ftxt
        # Blank out everything before the expression so positions stay exact.
        prefix = ''.join(ch if ch == '\n' else ' ' for ch in source[:offset])
        tokens = tokenize(prefix + code, tok.pos_start.fn)
        for inner in tokens:
            inner.pos_start = replace(inner.pos_start, ftxt=source)
            inner.pos_end = replace(inner.pos_end, ftxt=source)
        parser = Parser(tokens)
        parser.skip_newlines()
        expr = parser.parse_expression()
        parser.skip_newlines()
        if not parser.match('EOF'):
            raise parser.error('Invalid interpolation')
        return expr

    # Functions

    def parse_params(self) -> List[Param]:
        self.consume('(')
        params: List[Param] = []
        self.skip_newlines()
        while not self.match(')'):
            name_tok = self.peek()
            rest = False
            if self.match('...'):
                self.advance()
                rest = True
            name = self.consume('NAME', 'Expected a parameter name').value
            optional = rest
            if self.match('?'):
                self.advance()
                optional = True
            type_name = 'any'
            if self.match(':'):
                self.advance()
                type_name = self.parse_type()
            default = None
            if self.match('='):
                if rest:
                    raise self.error("A rest parameter can't have a default value")
                self.advance()
                default = self.parse_expression()
                optional = True
            if params and params[-1].rest:
                raise self.error('The rest parameter must be the last parameter', name_tok)
            if not optional and any(p.optional for p in params):
                raise self.error('A mandatory parameter cannot follow an optional one', name_tok)
            params.append(Param(name, type_name, optional, rest, default))
            self.skip_newlines()
            if not self.match(')'):
                self.consume(',', "Expected ',' or ')'")
                self.skip_newlines()
        self.consume(')')
        return params

    def parse_function_rest(self, start: Position, name: Optional[str]) -> FuncDef:
        params = self.parse_params()
        if self.match('->'):
            self.advance()
            body = self.parse_statement()
            return self.located(FuncDef(name, params, body, True), start)
        self.consume(':', "Expected '->' or ':'")
        body, multiline = self.parse_body(('end',))
        if multiline:
            self.consume('end', "Expected 'end'")
        return self.located(FuncDef(name, params, body, False), start)

    def parse_func(self) -> FuncDef:
        start = self.consume('func').pos_start
        name = self.advance().value if self.match('NAME') else None
        return self.parse_function_rest(start, name)

    # Control flow

    def parse_if(self, html: bool = False) -> If:
        start = self.consume('if').pos_start
        terminators = ('elif', 'else', 'end')
        condition = self.parse_expression()
        self.consume(':', "Expected ':'")
        body, multiline = self.parse_branch(terminators, html)
        cases = [(condition, body)]
        else_body = None
        while True:
            if multiline:
                self.skip_newlines()
            if self.match('elif'):
                self.advance()
                condition = self.parse_expression()
                self.consume(':', "Expected ':'")
                body, branch_multiline = self.parse_branch(terminators, html)
                cases.append((condition, body))
                multiline = multiline or branch_multiline
            elif self.match('else'):
                self.advance()
                self.consume(':', "Expected ':'")
                else_body, branch_multiline = self.parse_branch(('end',), html)
                multiline = multiline or branch_multiline
                if multiline:
                    self.skip_newlines()
                break
            else:
                break
        if multiline:
            self.consume('end', "Expected 'end'")
        return self.located(If(cases, else_body, multiline and not html), start)

    def parse_for(self, html: bool = False) -> For:
        start = self.consume('for').pos_start
        var_name = self.consume('NAME', 'Expected an identifier').value
        start_node = None
        if self.match('='):
            self.advance()
            start_node = self.parse_expression()
        self.consume('to', "Expected 'to'")
        end_node = self.parse_expression()
        step = None
        if self.match('step'):
            self.advance()
            step = self.parse_expression()
        self.consume(':', "Expected ':'")
        body, multiline = self.parse_branch(('end',), html)
        if multiline:
            self.consume('end', "Expected 'end'")
        return self.located(For(var_name, start_node, end_node, step, body, multiline and not html), start)

    def parse_while(self) -> While:
        start = self.consume('while').pos_start
        condition = self.parse_expression()
        self.consume(':', "Expected ':'")
        body, multiline = self.parse_body(('end',))
        if multiline:
            self.consume('end', "Expected 'end'")
        return self.located(While(condition, body, multiline), start)

    def parse_foreach(self, html: bool = False) -> Foreach:
        start = self.consume('foreach').pos_start
        iterable = self.parse_expression()
        self.consume('as', "Expected 'as'")
        key_name = None
        value_name = self.consume('NAME', 'Expected an identifier').value
        if self.match('=>'):
            self.advance()
            key_name = value_name
            value_name = self.consume('NAME', 'Expected an identifier').value
        self.consume(':', "Expected ':'")
        body, multiline = self.parse_branch(('end',), html)
        if multiline:
            self.consume('end', "Expected 'end'")
        return self.located(Foreach(iterable, key_name, value_name, body, multiline and not html), start)

    def parse_switch(self) -> Switch:
        start = self.consume('switch').pos_start
        subject = self.parse_expression()
        self.consume(':', "Expected ':'")
        terminators = ('case', 'default', 'end')
        cases = []
        default = None
        while True:
            self.skip_newlines()
            if self.match('case'):
                self.advance()
                values = [self.parse_expression()]
                while self.match(','):
                    self.advance()
                    values.append(self.parse_expression())
                self.consume(':', "Expected ':'")
                body, _ = self.parse_body(terminators)
                cases.append((values, body))
            elif self.match('default'):
                if default is not None:
                    raise self.error("A switch can only have one 'default'")
                self.advance()
                self.consume(':', "Expected ':'")
                default, _ = self.parse_body(terminators)
            elif self.match('end'):
                self.advance()
                break
            else:
                raise self.error("Expected 'case', 'default' or 'end'")
        return self.located(Switch(subject, cases, default), start)

    # Classes, enums and tags

    def parse_class(self) -> ClassDefNode:
        start = self.consume('class').pos_start
        name = self.consume('NAME', 'Expected a class name').value
        parent_name = None
        if self.match('extends'):
            self.advance()
            parent_name = self.consume('NAME', 'Expected a class name').value
        self.consume(':', "Expected ':'")
        members: List[ClassMemberDef] = []
        if self.match('pass'):
            self.advance()
            return self.located(ClassDefNode(name, parent_name, members), start)
        self.consume('NEWLINE', 'Expected a newline')
        while True:
            while self.match('NEWLINE', ';'):
                self.advance()
            if self.match('end'):
                self.advance()
                break
            if self.match('pass'):
                self.advance()
                continue
            members.append(self.parse_class_member())
            if not self.match('NEWLINE', ';', 'end'):
                raise self.error("Expected a newline or ';'")
        return self.located(ClassDefNode(name, parent_name, members), start)

    def parse_class_member(self) -> ClassMemberDef:
        start = self.peek().pos_start
        visibility = None
        is_static = False
        override = False
        while self.match(*MODIFIERS):
            tok = self.advance()
            if tok.type == 'static':
                if is_static:
                    raise self.error("Duplicate modifier 'static'", tok)
                is_static = True
            elif tok.type == 'override':
                if override:
                    raise self.error("Duplicate modifier 'override'", tok)
                override = True
            else:
                if visibility is not None:
                    raise self.error('The visibility of a member can only be given once', tok)
                visibility = tok.type
        visibility = visibility or 'public'
        if self.match('property'):
            self.advance()
            name = self.consume_name().value
            type_name = 'any'
            if self.match(':'):
                self.advance()
                type_name = self.parse_type()
            value = None
            if self.match('='):
                self.advance()
                value = self.parse_expression()
            return self.located(ClassMemberDef('property', name, visibility, is_static, override, type_name, value), start)
        if self.match('method', 'get', 'set'):
            nature_tok = self.advance()
            nature = {'method': 'method', 'get': 'getter', 'set': 'setter'}[nature_tok.type]
            name_tok = self.consume_name()
            func = self.parse_function_rest(name_tok.pos_start, name_tok.value)
            if nature == 'getter' and func.params:
                raise InvalidSyntaxError("A getter can't have parameters", func.pos_start, func.pos_end)
            return self.located(ClassMemberDef(nature, name_tok.value, visibility, is_static, override, 'function', func), start)
        raise self.error("Expected 'property', 'method', 'get' or 'set'")

    def parse_enum(self) -> EnumDef:
        start = self.consume('enum').pos_start
        name = self.consume('NAME', 'Expected an identifier').value
        self.consume(':', "Expected ':'")
        members: List[Tuple[str, Token]] = []
        if self.match('pass'):
            self.advance()
        elif self.match('NEWLINE'):
            while True:
                self.skip_newlines()
                if self.match('end'):
                    self.advance()
                    break
                tok = self.consume('NAME', 'Expected an identifier')
                members.append((tok.value, tok))
                if self.match(','):
                    self.advance()
                elif not self.match('NEWLINE', 'end'):
                    raise self.error("Expected ',' or a newline")
        else:
            tok = self.consume('NAME', 'Expected an identifier')
            members.append((tok.value, tok))
            while self.match(','):
                self.advance()
                if self.match('NAME'):
                    tok = self.advance()
                    members.append((tok.value, tok))
        names: List[str] = []
        for member, tok in members:
            if member in names:
                raise self.error(f"Duplicate enum member '{member}'", tok)
            names.append(member)
        return self.located(EnumDef(name, names), start)

    def parse_tag(self) -> TagDef:
        start = self.consume('tag').pos_start
        name = self.consume('NAME', 'Expected an identifier').value
        self.consume(':', "Expected ':'")
        members: List[TagMemberDef] = []
        if self.match('pass'):
            self.advance()
            return self.located(TagDef(name, members), start)
        self.consume('NEWLINE', 'Expected a newline')
        while True:
            while self.match('NEWLINE', ';'):
                self.advance()
            if self.match('end'):
                self.advance()
                break
            if self.match('pass'):
                self.advance()
                continue
            members.append(self.parse_tag_member())
            if not self.match('NEWLINE', ';', 'end'):
                raise self.error("Expected a newline or ';'")
        return self.located(TagDef(name, members), start)

    def parse_tag_member(self) -> TagMemberDef:
        start = self.peek().pos_start
        if self.match('prop', 'state'):
            nature = self.advance().type
            optional = False
            if nature == 'prop' and self.match('?'):
                self.advance()
                optional = True
            name = self.consume_name().value
            type_name = 'any'
            if self.match(':'):
                self.advance()
                type_name = self.parse_type()
            value = None
            if self.match('='):
                self.advance()
                value = self.parse_expression()
            return self.located(TagMemberDef(nature, name, optional, type_name, value), start)
        if self.match('method'):
            self.advance()
            name_tok = self.consume_name()
            func = self.parse_function_rest(name_tok.pos_start, name_tok.value)
            return self.located(TagMemberDef('method', name_tok.value, False, 'function', func), start)
        raise self.error("Expected 'prop', 'state' or 'method'")

    # Html

    def parse_html(self) -> HtmlNode:
        tok = self.peek()
        start = tok.pos_start
        indent = self.indent_of(tok)
        if tok.type == '<>':
            self.advance()
            node = HtmlNode(None)
            node.children = self.parse_html_inline_children()
            while True:
                self.skip_newlines()
                if self.match('</>'):
                    self.advance()
                    break
                if self.match('EOF'):
                    raise self.error("Expected '</>'")
                node.children.append(self.parse_html_child())
            return self.located(node, start)
        self.consume('<')
        node = HtmlNode(self.consume_name().value)
        while not self.match('>'):
            if self.match('#'):
                self.advance()
                if node.id is not None:
                    raise self.error('An element can only have one id')
                node.id = self.consume_name().value
            elif self.match('.'):
                self.advance()
                node.classes.append(self.consume_name().value)
            elif self.match('@'):
                self.advance()
                event = self.consume_name().value
                self.consume('=', "Expected '='")
                node.events.append((event, self.parse_attribute_value()))
            elif self.match('NAME') or self.peek().type in KEYWORDS:
                name_tok = self.advance()
                name = name_tok.value
                while self.match('-'):
                    self.advance()
                    name += '-' + self.consume_name().value
                if self.match('='):
                    self.advance()
                    value = self.parse_attribute_value()
                else:
                    value = self.located(BooleanNode(1, 'true'), name_tok.pos_start)
                node.attributes.append((name, value))
            else:
                raise self.error("Expected '>'")
        self.consume('>')
        node.children = self.parse_html_inline_children()
        node.children.extend(self.parse_html_block_children(indent))
        return self.located(node, start)

    def parse_attribute_value(self) -> Node:
        if self.match('{'):
            self.advance()
            value = self.parse_expression()
            self.consume('}', "Expected '}'")
            return value
        if self.match('STRING'):
            return self.parse_string(self.advance())
        if self.match('NUMBER'):
            return self.parse_atom()
        raise self.error("Expected '{' or a string")

    def parse_html_inline_children(self) -> List[Node]:
        children = []
        while self.match(*HTML_CHILD_START):
            children.append(self.parse_html_child())
        return children

    def parse_html_block_children(self, indent: int) -> List[Node]:
        children = []
        while self.match('NEWLINE'):
            saved = self.pos
            self.skip_newlines()
            tok = self.peek()
            if tok.type in ('EOF', '</>', 'else', 'elif', 'end') or self.indent_of(tok) <= indent:
                self.pos = saved
                break
            children.append(self.parse_html_child())
        return children

    def parse_html_child(self) -> Node:
        tok = self.peek()
        if tok.type in ('<', '<>'):
            return self.parse_html()
        if tok.type == 'STRING':
            return self.parse_string(self.advance())
        if tok.type == '{':
            self.advance()
            self.skip_newlines()
            expr = self.parse_expression()
            self.skip_newlines()
            self.consume('}', "Expected '}'")
            return expr
        if tok.type == 'if':
            return self.parse_if(html=True)
        if tok.type == 'for':
            return self.parse_for(html=True)
        if tok.type == 'foreach':
            return self.parse_foreach(html=True)
        raise self.error(f"Unexpected '{tok.value}' in html", tok)


def decode_string(raw: str) -> str:
    out = []
    i = 0
    while i < len(raw):
        if raw[i] == '\\' and i + 1 < len(raw):
            out.append(ESCAPES.get(raw[i + 1], '\\' + raw[i + 1]))
            i += 2
        else:
            out.append(raw[i])
            i += 1
    return ''.join(out)


def parse_program(source: str, filename: str = '<stdin>') -> Program:
    """Parse source code into a Program AST."""
    return Parser(tokenize(source, filename)).parse_program()
