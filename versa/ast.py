"""Abstract Syntax Tree (AST) definitions for the Versa language.

The parser builds these nodes and the interpreter walks them. Each node
carries the span of source it was parsed from in `pos_start` and
`pos_end`; the parser fills them in after construction, so they are not
part of the generated `__init__`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .position import Position


@dataclass
class Node:
    """Base class for all AST nodes."""
    pos_start: Optional[Position] = field(default=None, init=False, repr=False, compare=False)
    pos_end: Optional[Position] = field(default=None, init=False, repr=False, compare=False)


@dataclass
class Program(Node):
    statements: List[Node]


@dataclass
class Block(Node):
    """A multi-line body; evaluates to the list of its statement values."""
    statements: List[Node]


# Literals

@dataclass
class NumberNode(Node):
    value: Union[int, float]


@dataclass
class StringNode(Node):
    """A string literal. Interpolated `{expr}` pieces are parsed into nodes."""
    parts: List[Union[str, Node]]


@dataclass
class BooleanNode(Node):
    state: int
    display_name: str


@dataclass
class NoneNode(Node):
    pass


@dataclass
class ListNode(Node):
    elements: List[Node]


@dataclass
class DictNode(Node):
    entries: List[Tuple[str, Node]]


# Variables

@dataclass
class VarAccess(Node):
    name: str


@dataclass
class VarDeclare(Node):
    name: str
    type_name: str
    value: Node


@dataclass
class DefineConstant(Node):
    name: str
    type_name: str
    value: Node


@dataclass
class Assign(Node):
    """Assignment to an existing target. `op` is `=` or a compound operator."""
    target: Node
    op: str
    value: Node


@dataclass
class Delete(Node):
    target: Node


# Operators

@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class PrefixIncrement(Node):
    diff: int
    operand: Node


@dataclass
class PostfixIncrement(Node):
    diff: int
    target: Node


@dataclass
class InstanceOf(Node):
    value: Node
    class_node: Node


# Access chains

@dataclass
class Slice(Node):
    start: Optional[Node]
    end: Optional[Node]


@dataclass
class PushIndex(Node):
    """The empty brackets of `list[] = value`."""
    pass


@dataclass
class Index(Node):
    target: Node
    index: Node
    optional: bool = False


@dataclass
class PropertyAccess(Node):
    target: Node
    name: str
    optional: bool = False


@dataclass
class StaticAccess(Node):
    target: Node
    name: str
    optional: bool = False


@dataclass
class Call(Node):
    callee: Node
    args: List[Node]
    optional: bool = False


CHAIN_NODES = (Index, PropertyAccess, StaticAccess, Call)


# Control flow

@dataclass
class If(Node):
    cases: List[Tuple[Node, Node]]
    else_body: Optional[Node]
    should_return_null: bool = False


@dataclass
class For(Node):
    var_name: str
    start: Optional[Node]
    end: Node
    step: Optional[Node]
    body: Node
    should_return_null: bool = False


@dataclass
class While(Node):
    condition: Node
    body: Node
    should_return_null: bool = False


@dataclass
class Foreach(Node):
    iterable: Node
    key_name: Optional[str]
    value_name: str
    body: Node
    should_return_null: bool = False


@dataclass
class Switch(Node):
    subject: Node
    cases: List[Tuple[List[Node], Node]]
    default: Optional[Node]


@dataclass
class Return(Node):
    value: Optional[Node]


@dataclass
class Break(Node):
    pass


@dataclass
class Continue(Node):
    pass


@dataclass
class Pass(Node):
    pass


# Functions

@dataclass
class Param:
    name: str
    type_name: str = 'any'
    optional: bool = False
    rest: bool = False
    default: Optional[Node] = None


@dataclass
class FuncDef(Node):
    name: Optional[str]
    params: List[Param]
    body: Node
    auto_return: bool


# Classes, enums and tags

@dataclass
class ClassMemberDef(Node):
    nature: str
    name: str
    visibility: str = 'public'
    is_static: bool = False
    override: bool = False
    type_name: str = 'any'
    value: Optional[Node] = None


@dataclass
class ClassDefNode(Node):
    name: str
    parent_name: Optional[str]
    members: List[ClassMemberDef]


@dataclass
class New(Node):
    class_node: Node
    args: List[Node]


@dataclass
class Super(Node):
    args: List[Node]


@dataclass
class EnumDef(Node):
    name: str
    members: List[str]


@dataclass
class TagMemberDef(Node):
    nature: str
    name: str
    optional: bool = False
    type_name: str = 'any'
    value: Optional[Node] = None


@dataclass
class TagDef(Node):
    name: str
    members: List[TagMemberDef]


# Html

@dataclass
class HtmlNode(Node):
    """An html element, or a fragment when `tagname` is None."""
    tagname: Optional[str]
    id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    attributes: List[Tuple[str, Node]] = field(default_factory=list)
    events: List[Tuple[str, Node]] = field(default_factory=list)
    children: List[Node] = field(default_factory=list)


@dataclass
class HtmlChildren(Node):
    """The body of an `if`/`for`/`foreach` used inside html."""
    children: List[Node]


def in_optional_chain(node: Node) -> bool:
    """True when an access chain contains a `?.` or `?::` link."""
    while isinstance(node, CHAIN_NODES):
        if node.optional:
            return True
        node = node.callee if isinstance(node, Call) else node.target
    return False
