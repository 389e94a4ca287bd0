"""Builtin functions, native classes and the html tag names the runtime knows about.

Natives share the calling convention of user functions: their parameters
are bound by name in a fresh call context, and the callback receives that
context together with the span of the call.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, List

from .ast import Param
from .errors import VersaRuntimeError
from .values import (
    ClassDef, ClassInstance, DictValue, EnumValue, ListValue, Member, NativeFunction, NoneValue, NumberValue,
    StringValue, Value, type_of,
)

if TYPE_CHECKING:
    from .environment import Context
    from .interpreter import Interpreter
    from .position import Position

NATIVE_TAGS = frozenset([
    'a', 'abbr', 'address', 'area', 'article', 'aside', 'audio', 'b', 'base', 'bdi', 'bdo',
    'blockquote', 'body', 'br', 'button', 'canvas', 'caption', 'cite', 'code', 'col', 'colgroup',
    'data', 'datalist', 'dd', 'del', 'details', 'dfn', 'dialog', 'div', 'dl', 'dt', 'em', 'embed',
    'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'head', 'header', 'hgroup', 'hr', 'html', 'i', 'iframe', 'img', 'input', 'ins', 'kbd', 'label',
    'legend', 'li', 'link', 'main', 'map', 'mark', 'menu', 'meta', 'meter', 'nav', 'noscript',
    'object', 'ol', 'optgroup', 'option', 'output', 'p', 'param', 'picture', 'pre', 'progress',
    'q', 'rp', 'rt', 'ruby', 's', 'samp', 'script', 'section', 'select', 'slot', 'small', 'source',
    'span', 'strong', 'style', 'sub', 'summary', 'sup', 'table', 'tbody', 'td', 'template',
    'textarea', 'tfoot', 'th', 'thead', 'time', 'title', 'tr', 'track', 'u', 'ul', 'var', 'video',
    'wbr',
])


def native_functions(interpreter: 'Interpreter') -> List[NativeFunction]:
    """Build the builtin functions; `log` needs the interpreter for `__repr`."""

    def native_log(context: 'Context', pos_start: 'Position', pos_end: 'Position') -> Value:
        values = context.symbol_table.lookup('values')
        print(' '.join(interpreter.represent(value, pos_start) for value in values.elements))
        return NoneValue()

    def native_len(context: 'Context', pos_start: 'Position', pos_end: 'Position') -> Value:
        value = context.symbol_table.lookup('value')
        if isinstance(value, StringValue):
            return NumberValue(len(value.value))
        if isinstance(value, (ListValue, DictValue)):
            return NumberValue(len(value.elements))
        raise VersaRuntimeError(f"len() expects a string, a list or a dict, not '{type_of(value)}'",
                                pos_start, pos_end, context)

    def native_exit(context: 'Context', pos_start: 'Position', pos_end: 'Position') -> Value:
        code = context.symbol_table.lookup('code')
        interpreter.close()
        sys.exit(int(code.value) if isinstance(code, NumberValue) else 0)

    return [
        NativeFunction('log', [Param('values', rest=True)], native_log),
        NativeFunction('len', [Param('value', 'dynamic')], native_len),
        NativeFunction('exit', [Param('code', 'number', optional=True)], native_exit),
    ]


def is_object(value: Value) -> bool:
    return isinstance(value, (ClassDef, ClassInstance, EnumValue))


def native_classes(interpreter: 'Interpreter', context: 'Context') -> List[ClassDef]:
    """Build the native classes. Each one is exposed through a single instance."""

    def console_assert(context: 'Context', pos_start: 'Position', pos_end: 'Position') -> Value:
        table = context.symbol_table
        expression, message, params = table.lookup('expression'), table.lookup('message'), table.lookup('params')
        if is_object(message):
            raise VersaRuntimeError("Invalid Type for argument 'message'", pos_start, pos_end, context)
        if not expression.is_true():
            parts = [interpreter.represent(value, pos_start) for value in [message] + params.elements
                     if not isinstance(value, NoneValue)]
            print('Assertion failed' + (': ' + ' '.join(parts) if parts else ''), file=sys.stderr)
        return NoneValue()

    def versa_mount(context: 'Context', pos_start: 'Position', pos_end: 'Position') -> Value:
        print('WARNING: Versa.mount() has no effect outside a browser.', file=sys.stderr)
        return NoneValue()

    log = next(native for native in native_functions(interpreter) if native.name == 'log')
    methods = {
        'console': [
            NativeFunction('log', log.params, log.callback),
            NativeFunction('assert', [Param('expression'), Param('message', optional=True),
                                      Param('params', rest=True)], console_assert),
        ],
        'Versa': [
            NativeFunction('mount', [Param('element', 'html')], versa_mount),
        ],
    }
    classes = []
    for name, natives in methods.items():
        cls = ClassDef(name, None, {}, context)
        for native in natives:
            cls.members[native.name] = Member(native.name, 'method', type_name='function',
                                              value=native.bind(context), owner=cls)
        classes.append(cls)
    return classes


def populate_natives(interpreter: 'Interpreter', context: 'Context'):
    """Register the builtins as constants of a root context."""
    for native in native_functions(interpreter):
        context.symbol_table.define_constant(native.name, native.bind(context))
    for cls in native_classes(interpreter, context):
        context.symbol_table.define_constant(cls.name, ClassInstance(cls))
