"""Tree-walking interpreter for the Versa language.

Every node evaluates to an `Evaluated(value, signal)` pair. The signal
carries `return`, `break` and `continue` up the tree: a visitor checks it
after each child evaluation and hands it to its caller untouched unless
the visitor is the construct that consumes it (loops consume `break` and
`continue`, calls consume `return`). Runtime faults are exceptions
(`VersaError` subclasses) and unwind to `Interpreter.run`.

Calls follow a single protocol for user functions, natives and methods
(`Interpreter.invoke`): a child context of the function's own defining
context is created, arguments are checked and bound in it, and the body
runs there. Methods are ordinary functions whose context is rebound to
one holding `self` before they are invoked.
"""

from __future__ import annotations

import enum
from typing import List, NamedTuple, Optional

from .ast import (
    Node, Program, Block, NumberNode, StringNode, BooleanNode, NoneNode, ListNode, DictNode,
    VarAccess, VarDeclare, DefineConstant, Assign, Delete,
    BinaryOp, UnaryOp, PrefixIncrement, PostfixIncrement, InstanceOf,
    Slice, PushIndex, Index, PropertyAccess, StaticAccess, Call, CHAIN_NODES,
    If, For, While, Foreach, Switch, Return, Break, Continue, Pass,
    FuncDef, ClassDefNode, New, Super, EnumDef, TagDef, HtmlNode, HtmlChildren,
)
from .environment import Context, check_type
from .errors import VersaError, VersaRuntimeError, VersaTypeError
from .natives import NATIVE_TAGS, populate_natives
from .operations import BINARY_OPERATIONS, UNARY_OPERATIONS, equals, size
from .position import Position
from .values import (
    Value, NumberValue, StringValue, BooleanValue, NoneValue, ListValue, DictValue,
    FunctionValue, NativeFunction, Member, ClassDef, ClassInstance, EnumValue,
    TagMember, TagValue, HtmlValue, type_matches, type_of,
)

RESERVED_METHODS = ('__init', '__repr')


class Signal(enum.Enum):
    RETURN = 'return'
    BREAK = 'break'
    CONTINUE = 'continue'


class Evaluated(NamedTuple):
    """Result of evaluating a node.

    `value` is None (not `NoneValue`) only inside an access chain, when an
    optional link met a none receiver and the rest of the chain is skipped.
    """
    value: Optional[Value]
    signal: Optional[Signal] = None


class Interpreter:
    """Evaluates Versa programs."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        self.global_context = self.create_global_context()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def create_global_context(self) -> Context:
        context = Context('<program>')
        populate_natives(self, context)
        return context

    # Public API
    def run(self, program: Program, context: Optional[Context] = None) -> ListValue:
        """Evaluate a program and return the list of its statement values."""
        if context is None:
            context = self.global_context
        if self.debug_level >= 1:
            self.debug(f'run {len(program.statements)} statement(s) in {context.display_name}')
        try:
            return self.visit(program, context).value
        except VersaError as e:
            if self.debug_level >= 1:
                self.debug(f'{e.name}: {e.details}')
            raise

    def visit(self, node: Node, context: Context) -> Evaluated:
        method = getattr(self, 'visit_' + type(node).__name__, self.no_visit_method)
        try:
            return method(node, context)
        except VersaError as e:
            e.locate(node.pos_start, node.pos_end, context)
            raise

    def no_visit_method(self, node: Node, context: Context) -> Evaluated:
        raise NotImplementedError(f'No visit_{type(node).__name__} method defined')

    def represent(self, value: Value, pos_start: Optional[Position] = None) -> str:
        """Display form of a value, honouring `__repr` on instances."""
        if isinstance(value, ClassInstance):
            member = value.class_def.find_member('__repr')
            if member is not None:
                method = self.bind_method(member.value, value, member.owner)
                return self.represent(self.invoke(method, [], pos_start))
        return value.display()

    # Sequences

    def visit_Program(self, node: Program, context: Context) -> Evaluated:
        values = []
        for statement in node.statements:
            res = self.visit(statement, context)
            if res.signal is not None:
                raise self.misplaced_signal(res.signal, statement, context)
            values.append(res.value)
        return Evaluated(ListValue(values))

    def visit_Block(self, node: Block, context: Context) -> Evaluated:
        values = []
        for statement in node.statements:
            res = self.visit(statement, context)
            if res.signal is not None:
                return res
            values.append(res.value)
        return Evaluated(ListValue(values))

    def misplaced_signal(self, signal: Signal, node: Node, context: Context) -> VersaRuntimeError:
        where = 'a function' if signal is Signal.RETURN else 'a loop'
        return VersaRuntimeError(f"'{signal.value}' outside of {where}", node.pos_start, node.pos_end, context)

    # Literals

    def visit_NumberNode(self, node: NumberNode, context: Context) -> Evaluated:
        return Evaluated(NumberValue(node.value))

    def visit_StringNode(self, node: StringNode, context: Context) -> Evaluated:
        pieces = []
        for part in node.parts:
            if isinstance(part, str):
                pieces.append(part)
                continue
            res = self.visit(part, context)
            if res.signal is not None:
                return res
            pieces.append(self.represent(res.value, part.pos_start))
        return Evaluated(StringValue(''.join(pieces)))

    def visit_BooleanNode(self, node: BooleanNode, context: Context) -> Evaluated:
        return Evaluated(BooleanValue(node.state, node.display_name))

    def visit_NoneNode(self, node: NoneNode, context: Context) -> Evaluated:
        return Evaluated(NoneValue())

    def visit_ListNode(self, node: ListNode, context: Context) -> Evaluated:
        elements = []
        for element in node.elements:
            res = self.visit(element, context)
            if res.signal is not None:
                return res
            elements.append(res.value)
        return Evaluated(ListValue(elements))

    def visit_DictNode(self, node: DictNode, context: Context) -> Evaluated:
        elements = {}
        for key, value_node in node.entries:
            res = self.visit(value_node, context)
            if res.signal is not None:
                return res
            elements[key] = res.value
        return Evaluated(DictValue(elements))

    # Variables

    def visit_VarAccess(self, node: VarAccess, context: Context) -> Evaluated:
        return Evaluated(context.symbol_table.lookup(node.name))

    def visit_VarDeclare(self, node: VarDeclare, context: Context) -> Evaluated:
        res = self.visit(node.value, context)
        if res.signal is not None:
            return res
        context.symbol_table.declare(node.name, res.value, node.type_name)
        if self.debug_level >= 2:
            self.debug(f'declare {node.name}: {node.type_name} = {res.value}')
        return Evaluated(res.value)

    def visit_DefineConstant(self, node: DefineConstant, context: Context) -> Evaluated:
        res = self.visit(node.value, context)
        if res.signal is not None:
            return res
        context.symbol_table.define_constant(node.name, res.value, node.type_name)
        if self.debug_level >= 2:
            self.debug(f'define {node.name}: {node.type_name} = {res.value}')
        return Evaluated(res.value)

    def visit_Assign(self, node: Assign, context: Context) -> Evaluated:
        if node.op == '=':
            res = self.visit(node.value, context)
            if res.signal is not None:
                return res
            return self.store(node.target, res.value, context)
        current = self.visit(node.target, context)
        if current.signal is not None:
            return current
        if node.op in ('??=', '&&=', '||='):
            if node.op == '??=':
                should_assign = isinstance(current.value, NoneValue)
            elif node.op == '&&=':
                should_assign = current.value.is_true()
            else:
                should_assign = not current.value.is_true()
            if not should_assign:
                return current
            res = self.visit(node.value, context)
            if res.signal is not None:
                return res
            return self.store(node.target, res.value, context)
        res = self.visit(node.value, context)
        if res.signal is not None:
            return res
        value = BINARY_OPERATIONS[node.op[:-1]](current.value, res.value)
        return self.store(node.target, value, context)

    def store(self, target: Node, value: Value, context: Context) -> Evaluated:
        """Write a value to an assignable node and return the stored value."""
        if isinstance(target, VarAccess):
            context.symbol_table.assign(target.name, value)
            return Evaluated(value)
        if isinstance(target, Index):
            res = self.visit(target.target, context)
            if res.signal is not None:
                return res
            if isinstance(target.index, PushIndex):
                if not isinstance(res.value, ListValue):
                    raise VersaRuntimeError('Empty brackets can only be used on a list')
                res.value.elements.append(value)
                return Evaluated(value)
            if isinstance(target.index, Slice):
                raise VersaRuntimeError('Cannot assign to a slice')
            index = self.visit(target.index, context)
            if index.signal is not None:
                return index
            self.write_index(res.value, index.value, value)
            return Evaluated(value)
        if isinstance(target, PropertyAccess):
            res = self.visit(target.target, context)
            if res.signal is not None:
                return res
            self.set_property(res.value, target.name, value, context)
            return Evaluated(value)
        if isinstance(target, StaticAccess):
            res = self.visit(target.target, context)
            if res.signal is not None:
                return res
            self.set_static(res.value, target.name, value, context)
            return Evaluated(value)
        raise VersaRuntimeError('Invalid assignment target')

    def write_index(self, container: Value, index: Value, value: Value):
        if isinstance(container, ListValue):
            if not isinstance(index, NumberValue):
                raise VersaRuntimeError('Unable to assign an element to a list without a number as index.')
            elements = container.elements
            i = int(index.value)
            if i < 0:
                i += len(elements)
                if i < 0:
                    raise VersaRuntimeError('Index out of range')
            # Writing past the end pads the gap with none.
            while len(elements) <= i:
                elements.append(NoneValue())
            elements[i] = value
        elif isinstance(container, DictValue):
            if not isinstance(index, StringValue):
                raise VersaRuntimeError('Unable to assign an element to a dictionary without a string as key.')
            container.elements[index.value] = value
        elif isinstance(container, StringValue):
            raise VersaRuntimeError('Strings are immutable')
        else:
            raise VersaRuntimeError(f"Unable to assign an element to a value of type '{type_of(container)}'")

    def visit_Delete(self, node: Delete, context: Context) -> Evaluated:
        target = node.target
        if isinstance(target, VarAccess):
            context.symbol_table.delete(target.name)
            if self.debug_level >= 2:
                self.debug(f'delete {target.name}')
            return Evaluated(NoneValue())
        res = self.visit(target.target, context)
        if res.signal is not None:
            return res
        container = res.value
        if isinstance(target.index, Slice):
            bounds = self.slice_bounds(target.index, context)
            if isinstance(bounds, Evaluated):
                return bounds
            if not isinstance(container, ListValue):
                raise VersaRuntimeError('Only a list can have a slice deleted')
            del container.elements[bounds[0]:bounds[1]]
            return Evaluated(NoneValue())
        index = self.visit(target.index, context)
        if index.signal is not None:
            return index
        key = index.value
        if isinstance(container, ListValue):
            if not isinstance(key, NumberValue):
                raise VersaRuntimeError('Unable to delete an element from a list without a number as index.')
            i = int(key.value)
            if not -len(container.elements) <= i < len(container.elements):
                raise VersaRuntimeError('Index out of range')
            del container.elements[i]
        elif isinstance(container, DictValue):
            if not isinstance(key, StringValue):
                raise VersaRuntimeError('Unable to delete an element from a dictionary without a string as key.')
            if key.value not in container.elements:
                raise VersaRuntimeError(f"The key '{key.value}' does not exist")
            del container.elements[key.value]
        else:
            raise VersaRuntimeError(f"Unable to delete an element from a value of type '{type_of(container)}'")
        return Evaluated(NoneValue())

    # Operators

    def visit_BinaryOp(self, node: BinaryOp, context: Context) -> Evaluated:
        left = self.visit(node.left, context)
        if left.signal is not None:
            return left
        if node.op == 'and' and not left.value.is_true():
            return Evaluated(BooleanValue(0))
        if node.op == 'or' and left.value.is_true():
            return left
        if node.op == '??' and not isinstance(left.value, NoneValue):
            return left
        right = self.visit(node.right, context)
        if right.signal is not None:
            return right
        if node.op == 'and':
            return Evaluated(BooleanValue(right.value.is_true()))
        if node.op in ('or', '??'):
            return right
        return Evaluated(BINARY_OPERATIONS[node.op](left.value, right.value))

    def visit_UnaryOp(self, node: UnaryOp, context: Context) -> Evaluated:
        res = self.visit(node.operand, context)
        if res.signal is not None:
            return res
        if node.op == 'not':
            return Evaluated(BooleanValue(not res.value.is_true()))
        if node.op == 'typeof':
            return Evaluated(StringValue(type_of(res.value)))
        return Evaluated(UNARY_OPERATIONS[node.op](res.value))

    def incremented(self, value: Value, diff: int) -> NumberValue:
        if not isinstance(value, (NumberValue, NoneValue, BooleanValue)):
            raise VersaRuntimeError('Illegal operation')
        return NumberValue(size(value) + diff)

    def visit_PrefixIncrement(self, node: PrefixIncrement, context: Context) -> Evaluated:
        res = self.visit(node.operand, context)
        if res.signal is not None:
            return res
        return Evaluated(self.incremented(res.value, node.diff))

    def visit_PostfixIncrement(self, node: PostfixIncrement, context: Context) -> Evaluated:
        res = self.visit(node.target, context)
        if res.signal is not None:
            return res
        return self.store(node.target, self.incremented(res.value, node.diff), context)

    def visit_InstanceOf(self, node: InstanceOf, context: Context) -> Evaluated:
        value = self.visit(node.value, context)
        if value.signal is not None:
            return value
        cls = self.visit(node.class_node, context)
        if cls.signal is not None:
            return cls
        if not isinstance(cls.value, ClassDef):
            raise VersaRuntimeError("The right side of 'instanceof' must be a class")
        value = value.value
        return Evaluated(BooleanValue(isinstance(value, ClassInstance) and value.class_def.is_subclass_of(cls.value)))

    # Access chains

    def visit_chain(self, node: Node, context: Context) -> Evaluated:
        res = self.link(node, context)
        if res.value is None:
            return Evaluated(NoneValue(), res.signal)
        return res

    visit_Index = visit_PropertyAccess = visit_StaticAccess = visit_Call = visit_chain

    def link(self, node: Node, context: Context) -> Evaluated:
        """Evaluate one link of an access chain, or any other receiver node."""
        if not isinstance(node, CHAIN_NODES):
            return self.visit(node, context)
        method = getattr(self, 'link_' + type(node).__name__)
        try:
            return method(node, context)
        except VersaError as e:
            e.locate(node.pos_start, node.pos_end, context)
            raise

    def receiver(self, node: Node, context: Context, optional: bool, what: str) -> Evaluated:
        res = self.link(node, context)
        if res.signal is not None or res.value is None:
            return res
        if isinstance(res.value, NoneValue):
            if optional:
                return Evaluated(None)
            raise VersaRuntimeError(f'Cannot read {what} of none')
        return res

    def link_Index(self, node: Index, context: Context) -> Evaluated:
        res = self.receiver(node.target, context, node.optional, 'an index')
        if res.signal is not None or res.value is None:
            return res
        target = res.value
        if isinstance(node.index, PushIndex):
            raise VersaRuntimeError('Empty brackets can only be used to push a value')
        if isinstance(node.index, Slice):
            bounds = self.slice_bounds(node.index, context)
            if isinstance(bounds, Evaluated):
                return bounds
            if isinstance(target, ListValue):
                return Evaluated(ListValue(target.elements[bounds[0]:bounds[1]]))
            if isinstance(target, StringValue):
                return Evaluated(StringValue(target.value[bounds[0]:bounds[1]]))
            raise VersaRuntimeError('Only lists and strings can be sliced')
        index = self.visit(node.index, context)
        if index.signal is not None:
            return index
        return Evaluated(self.read_index(target, index.value))

    def slice_bounds(self, node: Slice, context: Context):
        bounds = []
        for bound in (node.start, node.end):
            if bound is None:
                bounds.append(None)
                continue
            res = self.visit(bound, context)
            if res.signal is not None:
                return res
            if not isinstance(res.value, NumberValue):
                raise VersaRuntimeError('The bounds of a slice must be numbers')
            bounds.append(int(res.value.value))
        return bounds

    def read_index(self, target: Value, index: Value) -> Value:
        if isinstance(target, (ListValue, StringValue)):
            if not isinstance(index, NumberValue):
                kind = 'list' if isinstance(target, ListValue) else 'string'
                raise VersaRuntimeError(f'Unable to retrieve an element from a {kind} without a number as index.')
            items = target.elements if isinstance(target, ListValue) else target.value
            i = int(index.value)
            if i < 0:
                i += len(items)
            if not 0 <= i < len(items):
                return NoneValue()
            return items[i] if isinstance(target, ListValue) else StringValue(items[i])
        if isinstance(target, DictValue):
            if not isinstance(index, StringValue):
                raise VersaRuntimeError('Unable to retrieve an element from a dictionary without a string as key.')
            return target.elements.get(index.value, NoneValue())
        raise VersaRuntimeError(f"Unable to retrieve an element from a value of type '{type_of(target)}'")

    def link_PropertyAccess(self, node: PropertyAccess, context: Context) -> Evaluated:
        res = self.receiver(node.target, context, node.optional, f"property '{node.name}'")
        if res.signal is not None or res.value is None:
            return res
        return Evaluated(self.get_property(res.value, node.name, context, node.pos_start))

    def link_StaticAccess(self, node: StaticAccess, context: Context) -> Evaluated:
        res = self.receiver(node.target, context, node.optional, f"static member '{node.name}'")
        if res.signal is not None or res.value is None:
            return res
        return Evaluated(self.get_static(res.value, node.name, context, node.pos_start))

    def link_Call(self, node: Call, context: Context) -> Evaluated:
        callee_node = node.callee
        if isinstance(callee_node, PropertyAccess):
            # Method calls look the member up without running getters.
            res = self.receiver(callee_node.target, context, callee_node.optional, f"property '{callee_node.name}'")
            if res.signal is not None or res.value is None:
                return res
            callee = self.get_property(res.value, callee_node.name, context, node.pos_start, run_getter=False)
        else:
            res = self.link(callee_node, context)
            if res.signal is not None or res.value is None:
                return res
            callee = res.value
        if isinstance(callee, NoneValue) and node.optional:
            return Evaluated(None)
        if not isinstance(callee, (FunctionValue, NativeFunction)):
            raise VersaRuntimeError('Cannot call a variable that is not a function.')
        args = []
        for arg in node.args:
            res = self.visit(arg, context)
            if res.signal is not None:
                return res
            args.append(res.value)
        return Evaluated(self.invoke(callee, args, node.pos_start, node.pos_end))

    # Invocation

    def invoke(self, func, args: List[Value], pos_start: Optional[Position] = None,
               pos_end: Optional[Position] = None) -> Value:
        """Call a user function, a method or a native with already evaluated arguments."""
        name = func.name or '<anonymous>'
        exec_ctx = Context(name, func.context, pos_start, function=func)
        if self.debug_level >= 2:
            self.debug(f"call {name}({', '.join(str(arg) for arg in args)})")
        self.bind_arguments(func, args, exec_ctx)
        if isinstance(func, NativeFunction):
            return func.callback(exec_ctx, pos_start, pos_end or pos_start)
        res = self.visit(func.body, exec_ctx)
        if res.signal is Signal.RETURN:
            return res.value
        if res.signal is not None:
            raise self.misplaced_signal(res.signal, func.body, exec_ctx)
        if func.auto_return:
            return res.value
        return NoneValue()

    def bind_arguments(self, func, args: List[Value], exec_ctx: Context):
        name = func.name or '<anonymous>'
        params = func.params
        rest = params[-1] if params and params[-1].rest else None
        positional = params[:-1] if rest is not None else params
        if rest is None and len(args) > len(params):
            raise VersaRuntimeError(
                f"Too many args passed into '{name}': {len(args)}, but expected at most {len(params)}")
        mandatory = sum(1 for param in positional if not param.optional)
        if len(args) < mandatory:
            raise VersaRuntimeError(
                f"Too few args passed into '{name}': {len(args)}, but expected at least {mandatory}")
        table = exec_ctx.symbol_table
        for i, param in enumerate(positional):
            if i < len(args):
                value = args[i]
                if not (param.optional and isinstance(value, NoneValue)):
                    check_type(value, param.type_name)
            else:
                value = NoneValue()
                if param.default is not None:
                    res = self.visit(param.default, exec_ctx)
                    if res.signal is None:
                        value = res.value
                if isinstance(value, NoneValue):
                    if param.type_name == 'dynamic':
                        raise VersaTypeError("Type 'none' is not assignable to type 'dynamic'")
                else:
                    check_type(value, param.type_name)
            type_name = param.type_name if type_matches(value, param.type_name) else 'any'
            table.declare(param.name, value, type_name)
        if rest is not None:
            if rest.type_name not in ('any', 'list'):
                raise VersaTypeError("A rest parameter must be of type 'list'")
            table.declare(rest.name, ListValue(list(args[len(positional):])), 'list')
        table.declare('arguments', ListValue(list(args)))

    def visit_FuncDef(self, node: FuncDef, context: Context) -> Evaluated:
        func = FunctionValue(node.name, node.params, node.body, node.auto_return, context)
        if node.name is not None:
            context.symbol_table.declare(node.name, func)
            if self.debug_level >= 2:
                self.debug(f'define function {node.name}')
        return Evaluated(func)

    # Control flow

    def visit_If(self, node: If, context: Context) -> Evaluated:
        for condition, body in node.cases:
            res = self.visit(condition, context)
            if res.signal is not None:
                return res
            if self.debug_level >= 3:
                self.debug(f'if condition {res.value} -> {res.value.is_true()}')
            if res.value.is_true():
                return self.branch(node, body, context)
        if node.else_body is not None:
            return self.branch(node, node.else_body, context)
        return Evaluated(NoneValue())

    def branch(self, node: If, body: Node, context: Context) -> Evaluated:
        res = self.visit(body, context)
        if res.signal is not None:
            return res
        return Evaluated(NoneValue() if node.should_return_null else res.value)

    def expect_number(self, node: Optional[Node], context: Context, default: Optional[Value] = None) -> Evaluated:
        if node is None:
            return Evaluated(default)
        res = self.visit(node, context)
        if res.signal is None and not isinstance(res.value, NumberValue):
            raise VersaRuntimeError('Expected a number', node.pos_start, node.pos_end, context)
        return res

    def loop_body(self, node: Node, body: Node, context: Context, name: str) -> Evaluated:
        return self.visit(body, Context(name, context, node.pos_start))

    def visit_For(self, node: For, context: Context) -> Evaluated:
        start = self.expect_number(node.start, context, NumberValue(0))
        if start.signal is not None:
            return start
        end = self.expect_number(node.end, context)
        if end.signal is not None:
            return end
        start, end = start.value.value, end.value.value
        step = self.expect_number(node.step, context, NumberValue(1 if start <= end else -1))
        if step.signal is not None:
            return step
        step = step.value.value
        if step == 0:
            raise VersaRuntimeError('The step of a for loop cannot be 0')
        elements = []
        i = start
        while (i < end) if step > 0 else (i > end):
            context.symbol_table.declare(node.var_name, NumberValue(i))
            if self.debug_level >= 3:
                self.debug(f'for {node.var_name} = {i}')
            res = self.loop_body(node, node.body, context, '<for>')
            i += step
            if res.signal is Signal.RETURN:
                return res
            if res.signal is Signal.BREAK:
                break
            if res.signal is Signal.CONTINUE:
                continue
            elements.append(res.value)
        return Evaluated(NoneValue() if node.should_return_null else ListValue(elements))

    def visit_While(self, node: While, context: Context) -> Evaluated:
        elements = []
        while True:
            condition = self.visit(node.condition, context)
            if condition.signal is not None:
                return condition
            if self.debug_level >= 3:
                self.debug(f'while condition {condition.value} -> {condition.value.is_true()}')
            if not condition.value.is_true():
                break
            res = self.loop_body(node, node.body, context, '<while>')
            if res.signal is Signal.RETURN:
                return res
            if res.signal is Signal.BREAK:
                break
            if res.signal is Signal.CONTINUE:
                continue
            elements.append(res.value)
        return Evaluated(NoneValue() if node.should_return_null else ListValue(elements))

    def visit_Foreach(self, node: Foreach, context: Context) -> Evaluated:
        res = self.visit(node.iterable, context)
        if res.signal is not None:
            return res
        iterable = res.value
        if isinstance(iterable, ListValue):
            pairs = [(NumberValue(i), element) for i, element in enumerate(list(iterable.elements))]
        elif isinstance(iterable, DictValue):
            pairs = [(StringValue(key), value) for key, value in list(iterable.elements.items())]
        else:
            raise VersaRuntimeError(f"Cannot iterate over a value of type '{type_of(iterable)}'",
                                    node.iterable.pos_start, node.iterable.pos_end, context)
        elements = []
        table = context.symbol_table
        for key, value in pairs:
            if node.key_name is not None:
                table.declare(node.key_name, key)
            table.declare(node.value_name, value)
            res = self.loop_body(node, node.body, context, '<foreach>')
            if res.signal is Signal.RETURN:
                return res
            if res.signal is Signal.BREAK:
                break
            if res.signal is Signal.CONTINUE:
                continue
            elements.append(res.value)
        return Evaluated(NoneValue() if node.should_return_null else ListValue(elements))

    def visit_Switch(self, node: Switch, context: Context) -> Evaluated:
        subject = self.visit(node.subject, context)
        if subject.signal is not None:
            return subject
        for candidates, body in node.cases:
            for candidate in candidates:
                res = self.visit(candidate, context)
                if res.signal is not None:
                    return res
                if equals(subject.value, res.value):
                    return self.loop_body(node, body, context, '<switch>')
        if node.default is not None:
            return self.loop_body(node, node.default, context, '<switch>')
        return Evaluated(NoneValue())

    def visit_Return(self, node: Return, context: Context) -> Evaluated:
        if node.value is None:
            return Evaluated(NoneValue(), Signal.RETURN)
        res = self.visit(node.value, context)
        if res.signal is not None:
            return res
        return Evaluated(res.value, Signal.RETURN)

    def visit_Break(self, node: Break, context: Context) -> Evaluated:
        return Evaluated(NoneValue(), Signal.BREAK)

    def visit_Continue(self, node: Continue, context: Context) -> Evaluated:
        return Evaluated(NoneValue(), Signal.CONTINUE)

    def visit_Pass(self, node: Pass, context: Context) -> Evaluated:
        return Evaluated(NoneValue())

    # Classes

    def visit_ClassDefNode(self, node: ClassDefNode, context: Context) -> Evaluated:
        parent = None
        if node.parent_name is not None:
            parent = context.symbol_table.lookup(node.parent_name)
            if not isinstance(parent, ClassDef):
                raise VersaRuntimeError(f"'{node.parent_name}' is not a class")
        class_ctx = Context(f'<Class {node.name}>', context, node.pos_start)
        cls = ClassDef(node.name, parent, {}, class_ctx)
        class_ctx.class_def = cls
        for member_def in node.members:
            try:
                cls.members[member_def.name] = self.define_member(cls, member_def, class_ctx)
            except VersaError as e:
                e.locate(member_def.pos_start, member_def.pos_end, class_ctx)
                raise
        context.symbol_table.declare(node.name, cls)
        if self.debug_level >= 2:
            self.debug(f"define class {node.name}{' extends ' + node.parent_name if node.parent_name else ''}")
        return Evaluated(NoneValue())

    def define_member(self, cls: ClassDef, member_def, class_ctx: Context) -> Member:
        name = member_def.name
        if name in cls.members:
            raise VersaRuntimeError(f"The member '{name}' already exists.")
        if name == '__name':
            raise VersaRuntimeError("The identifier '__name' is already reserved.")
        if member_def.nature in ('getter', 'setter'):
            if member_def.visibility != 'public':
                raise VersaRuntimeError(f"Invalid status for {member_def.nature} '{name}'. It can only be public.")
            if member_def.nature == 'setter' and member_def.is_static:
                raise VersaRuntimeError('A setter cannot be static')
        if name in RESERVED_METHODS:
            if (member_def.nature != 'method' or member_def.visibility != 'public'
                    or member_def.is_static or member_def.override):
                raise VersaRuntimeError(f"'{name}' must be a public method that is neither static nor an override.")
        else:
            inherited = cls.parent.find_member(name) if cls.parent is not None else None
            if inherited is not None and inherited.visibility == 'private':
                inherited = None
            if inherited is not None and not member_def.override:
                raise VersaRuntimeError(
                    f"The member '{name}' already exists in a parent class. Use 'override' to redefine it.")
            if inherited is None and member_def.override:
                raise VersaRuntimeError(f"The member '{name}' does not exist in a parent class and cannot be overridden.")
        member = Member(name, member_def.nature, member_def.visibility, member_def.is_static,
                        member_def.type_name, owner=cls)
        if member_def.nature == 'property':
            if member_def.is_static:
                value = NoneValue()
                if member_def.value is not None:
                    value = self.visit(member_def.value, class_ctx).value
                    check_type(value, member_def.type_name)
                member.value = value
            else:
                member.initializer = member_def.value
        else:
            func = member_def.value
            member.value = FunctionValue(name, func.params, func.body, func.auto_return, class_ctx,
                                         nature=member_def.nature, owner=cls)
        return member

    def bind_method(self, method, instance: ClassInstance, owner: ClassDef):
        """Return the method closing over a context where `self` is the instance."""
        entry_pos = method.body.pos_start if isinstance(method, FunctionValue) else None
        bound_ctx = Context(f'<Class {owner.name}>', method.context, entry_pos, class_def=owner)
        bound_ctx.symbol_table.declare('self', instance)
        return method.bind(bound_ctx)

    def check_visibility(self, member: Member, context: Context):
        if member.visibility == 'public':
            return
        current = context.enclosing_class()
        owner = member.owner
        if member.visibility == 'private':
            if current is not owner:
                raise VersaRuntimeError(
                    f"The property '{member.name}' is marked as private. You cannot access it outside the class itself.")
        elif current is None or not (current.is_subclass_of(owner) or owner.is_subclass_of(current)):
            raise VersaRuntimeError(
                f"The property '{member.name}' is marked as protected. "
                f"You cannot access it outside the class itself or its children.")

    def instantiate(self, cls: ClassDef, args: List[Value], pos_start: Optional[Position]) -> ClassInstance:
        instance = ClassInstance(cls)
        # Ancestors first, so that a derived class sees and can shadow inherited fields.
        for klass in reversed(cls.lineage()):
            init_ctx = Context(f'<Class {klass.name}>', klass.context, pos_start, class_def=klass)
            init_ctx.symbol_table.declare('self', instance)
            for member in klass.members.values():
                if member.nature != 'property' or member.is_static:
                    continue
                value = NoneValue()
                if member.initializer is not None:
                    value = self.visit(member.initializer, init_ctx).value
                    try:
                        check_type(value, member.type_name)
                    except VersaError as e:
                        e.locate(member.initializer.pos_start, member.initializer.pos_end, init_ctx)
                        raise
                instance_field = Member(member.name, 'property', member.visibility, False,
                                        member.type_name, value, owner=klass)
                instance.fields[member.name] = instance_field
                if member.visibility == 'private':
                    instance.private_fields[(klass, member.name)] = instance_field
        init = cls.find_member('__init')
        if init is not None:
            self.invoke(self.bind_method(init.value, instance, init.owner), args, pos_start)
        elif args:
            raise VersaRuntimeError(
                f"Too many args passed into '{cls.name}': {len(args)}, but expected at most 0")
        return instance

    def visit_New(self, node: New, context: Context) -> Evaluated:
        res = self.visit(node.class_node, context)
        if res.signal is not None:
            return res
        cls = res.value
        if not isinstance(cls, ClassDef):
            raise VersaRuntimeError(f"'{type_of(cls)}' is not a class")
        args = []
        for arg in node.args:
            res = self.visit(arg, context)
            if res.signal is not None:
                return res
            args.append(res.value)
        if self.debug_level >= 2:
            self.debug(f'new {cls.name}')
        return Evaluated(self.instantiate(cls, args, node.pos_start))

    def visit_Super(self, node: Super, context: Context) -> Evaluated:
        method = context.enclosing_function()
        if not isinstance(method, FunctionValue) or method.owner is None:
            raise VersaRuntimeError("'super' can only be used inside a method")
        parent = method.owner.parent
        if parent is None:
            raise VersaRuntimeError(f"The class '{method.owner.name}' has no parent class")
        member = parent.find_member(method.name)
        if member is None or member.nature == 'property':
            raise VersaRuntimeError(f"The method '{method.name}' does not exist in the parent class")
        args = []
        for arg in node.args:
            res = self.visit(arg, context)
            if res.signal is not None:
                return res
            args.append(res.value)
        if member.is_static:
            return Evaluated(self.invoke(member.value, args, node.pos_start, node.pos_end))
        instance = context.symbol_table.lookup('self')
        return Evaluated(self.invoke(self.bind_method(member.value, instance, member.owner), args, node.pos_start, node.pos_end))

    def instance_member(self, instance: ClassInstance, name: str, context: Context) -> Optional[Member]:
        """Resolve `instance.name` as seen from the code running in `context`.

        Inside a class, its own private members win over same-named members
        declared by a subclass.
        """
        current = context.enclosing_class()
        if current is not None and instance.class_def.is_subclass_of(current):
            own = current.members.get(name)
            if own is not None and own.visibility == 'private' and not own.is_static:
                if own.nature == 'property':
                    return instance.private_fields.get((current, name))
                return own
        member = instance.class_def.find_member(name)
        if member is not None and member.nature == 'property' and not member.is_static:
            # None while the property's initializer has not run yet.
            return instance.fields.get(name)
        return member

    def get_property(self, target: Value, name: str, context: Context,
                     pos_start: Optional[Position] = None, run_getter: bool = True) -> Value:
        if isinstance(target, ClassInstance):
            member = self.instance_member(target, name, context)
            if member is None:
                return NoneValue()
            self.check_visibility(member, context)
            if member.is_static:
                raise VersaRuntimeError(f"'{name}' is static, use '{target.class_def.name}::{name}' instead")
            if member.nature == 'property':
                return member.value
            method = self.bind_method(member.value, target, member.owner)
            if member.nature == 'getter' and run_getter:
                return self.invoke(method, [], pos_start)
            return method
        if isinstance(target, ClassDef):
            raise VersaRuntimeError(f"Use '::' to access the static members of the class '{target.name}'")
        if isinstance(target, EnumValue):
            if name not in target.members:
                raise VersaRuntimeError(f"The enum '{target.name}' has no member '{name}'")
            return target.members[name]
        if isinstance(target, TagValue):
            tag_member = target.members.get(name)
            return tag_member.value if tag_member is not None else NoneValue()
        raise VersaRuntimeError(f"Cannot read property '{name}' of a value of type '{type_of(target)}'")

    def set_property(self, target: Value, name: str, value: Value, context: Context):
        if isinstance(target, ClassInstance):
            member = self.instance_member(target, name, context)
            if member is None:
                raise VersaRuntimeError(f"The property '{name}' does not exist on '{target.class_def.name}'")
            self.check_visibility(member, context)
            if member.is_static:
                raise VersaRuntimeError(f"'{name}' is static, use '{target.class_def.name}::{name}' instead")
            if member.nature == 'property':
                check_type(value, member.type_name)
                member.value = value
                return
            if member.nature != 'setter':
                raise VersaRuntimeError(f"Cannot assign to the method '{name}'")
            self.invoke(self.bind_method(member.value, target, member.owner), [value])
            return
        if isinstance(target, TagValue):
            tag_member = target.members.get(name)
            if tag_member is None or tag_member.nature == 'method':
                raise VersaRuntimeError(f"The tag '{target.name}' has no prop or state named '{name}'")
            check_type(value, tag_member.type_name)
            tag_member.value = value
            return
        if isinstance(target, NoneValue):
            raise VersaRuntimeError(f"Cannot set property '{name}' of none")
        raise VersaRuntimeError(f"Cannot set property '{name}' of a value of type '{type_of(target)}'")

    def static_member(self, target: Value, name: str, context: Context) -> Member:
        cls = target.class_def if isinstance(target, ClassInstance) else target
        if not isinstance(cls, ClassDef):
            raise VersaRuntimeError(f"'::' can only be used on classes, not on '{type_of(target)}'")
        member = cls.find_member(name)
        if member is None or not member.is_static:
            raise VersaRuntimeError(f"The class '{cls.name}' has no static member '{name}'")
        self.check_visibility(member, context)
        return member

    def get_static(self, target: Value, name: str, context: Context, pos_start: Optional[Position] = None) -> Value:
        if isinstance(target, EnumValue):
            return self.get_property(target, name, context)
        if name == '__name' and isinstance(target, (ClassDef, ClassInstance)):
            cls = target.class_def if isinstance(target, ClassInstance) else target
            return StringValue(cls.name)
        member = self.static_member(target, name, context)
        if member.nature == 'getter':
            return self.invoke(member.value, [], pos_start)
        return member.value

    def set_static(self, target: Value, name: str, value: Value, context: Context):
        member = self.static_member(target, name, context)
        if member.nature != 'property':
            raise VersaRuntimeError(f"Cannot assign to the method '{name}'")
        check_type(value, member.type_name)
        member.value = value

    # Enums and tags

    def visit_EnumDef(self, node: EnumDef, context: Context) -> Evaluated:
        members = {name: NumberValue(i) for i, name in enumerate(node.members)}
        context.symbol_table.define_constant(node.name, EnumValue(node.name, members))
        return Evaluated(NoneValue())

    def visit_TagDef(self, node: TagDef, context: Context) -> Evaluated:
        tag_ctx = Context(f'<Tag {node.name}>', context, node.pos_start)
        tag = TagValue(node.name, {}, tag_ctx)
        tag_ctx.symbol_table.declare('self', tag)
        # Methods first: state initializers may call them.
        ordered = sorted(node.members, key=lambda m: m.nature != 'method')
        for member_def in ordered:
            if member_def.name in tag.members:
                raise VersaRuntimeError(f"The member '{member_def.name}' already exists.",
                                        member_def.pos_start, member_def.pos_end, tag_ctx)
            if member_def.nature == 'method':
                func = member_def.value
                value = FunctionValue(member_def.name, func.params, func.body, func.auto_return, tag_ctx,
                                      nature='method')
            else:
                value = NoneValue()
                if member_def.value is not None:
                    res = self.visit(member_def.value, tag_ctx)
                    value = res.value
                    try:
                        check_type(value, member_def.type_name)
                    except VersaError as e:
                        e.locate(member_def.pos_start, member_def.pos_end, tag_ctx)
                        raise
            tag.members[member_def.name] = TagMember(member_def.name, member_def.nature, member_def.optional,
                                                     member_def.type_name, value)
        context.symbol_table.declare(node.name, tag)
        return Evaluated(NoneValue())

    # Html

    def visit_HtmlNode(self, node: HtmlNode, context: Context) -> Evaluated:
        tag = None
        if node.tagname is not None:
            found = context.symbol_table.get(node.tagname)
            if isinstance(found, TagValue):
                tag = found
            elif node.tagname not in NATIVE_TAGS:
                raise VersaRuntimeError(f"The tag '{node.tagname}' doesn't exist")
        attributes = []
        for name, value_node in node.attributes:
            res = self.visit(value_node, context)
            if res.signal is not None:
                return res
            if tag is not None:
                self.check_prop(tag, name, res.value, value_node, context)
            attributes.append((name, res.value))
        if tag is not None:
            given = {name for name, _ in attributes}
            for member in tag.members.values():
                if (member.nature == 'prop' and not member.optional and member.name not in given
                        and isinstance(member.value, NoneValue)):
                    raise VersaRuntimeError(f"The prop '{member.name}' of the tag '{tag.name}' is mandatory")
        events = []
        for name, value_node in node.events:
            res = self.visit(value_node, context)
            if res.signal is not None:
                return res
            if not isinstance(res.value, (FunctionValue, NativeFunction)):
                raise VersaRuntimeError(f"The event '{name}' expects a function",
                                        value_node.pos_start, value_node.pos_end, context)
            events.append((name, res.value))
        children: List[Value] = []
        for child in node.children:
            res = self.visit(child, context)
            if res.signal is not None:
                return res
            self.add_child(children, res.value)
        return Evaluated(HtmlValue(node.tagname, list(node.classes), node.id, attributes, events, children))

    def check_prop(self, tag: TagValue, name: str, value: Value, value_node: Node, context: Context):
        member = tag.members.get(name)
        if member is None or member.nature != 'prop':
            raise VersaRuntimeError(f"The prop '{name}' doesn't exist on the tag '{tag.name}'",
                                    value_node.pos_start, value_node.pos_end, context)
        if member.optional and isinstance(value, NoneValue):
            return
        try:
            check_type(value, member.type_name)
        except VersaError as e:
            e.locate(value_node.pos_start, value_node.pos_end, context)
            raise

    def add_child(self, children: List[Value], value: Value):
        if isinstance(value, ListValue):
            for element in value.elements:
                self.add_child(children, element)
        elif not isinstance(value, NoneValue):
            children.append(value)

    def visit_HtmlChildren(self, node: HtmlChildren, context: Context) -> Evaluated:
        children: List[Value] = []
        for child in node.children:
            res = self.visit(child, context)
            if res.signal is not None:
                return res
            self.add_child(children, res.value)
        return Evaluated(ListValue(children))
