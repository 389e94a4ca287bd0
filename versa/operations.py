"""Operator semantics.

Every binary operator of the language is a pure function from two values
to a new value. None of them look at the syntax tree or at a context, so
they can be reused by anything that needs Versa arithmetic. An operation
that is not defined for the given kinds raises `VersaRuntimeError`; the
interpreter attaches the source span afterwards.

Most numeric rules go through the size coercion table: none counts as 0,
a boolean as its state, a list or a dict as its length and a number as
itself. Strings only take part through their length in comparisons.
"""

from __future__ import annotations

import math
from typing import Union

from .errors import VersaRuntimeError
from .values import (
    Value, NumberValue, StringValue, BooleanValue, NoneValue, ListValue, DictValue,
)

Number = Union[int, float]


def illegal_operation() -> VersaRuntimeError:
    return VersaRuntimeError('Illegal operation')


def size(value: Value, strings: bool = False) -> Number:
    """Numeric proxy of a value, used by arithmetic and comparisons."""
    if isinstance(value, NumberValue):
        return value.value
    if isinstance(value, NoneValue):
        return 0
    if isinstance(value, BooleanValue):
        return value.state
    if isinstance(value, (ListValue, DictValue)):
        return len(value.elements)
    if strings and isinstance(value, StringValue):
        return len(value.value)
    raise illegal_operation()


def _int32(number: Number) -> int:
    number = int(number) & 0xFFFFFFFF
    return number - 0x100000000 if number >= 0x80000000 else number


def add(left: Value, right: Value) -> Value:
    if isinstance(left, NoneValue) and isinstance(right, StringValue):
        return right.copy()
    if isinstance(left, StringValue) and isinstance(right, NoneValue):
        return left.copy()
    if isinstance(left, ListValue) and isinstance(right, ListValue):
        return ListValue(left.elements + right.elements)
    if isinstance(left, ListValue):
        return ListValue(left.elements + [right])
    if isinstance(right, ListValue):
        return ListValue([left] + right.elements)
    if isinstance(left, DictValue) and isinstance(right, DictValue):
        return DictValue({**left.elements, **right.elements})
    if isinstance(left, StringValue) and isinstance(right, BooleanValue):
        return StringValue(left.value + str(right.state))
    if isinstance(left, BooleanValue) and isinstance(right, StringValue):
        return StringValue(str(left.state) + right.value)
    if isinstance(left, StringValue) and isinstance(right, (StringValue, NumberValue)):
        return StringValue(left.value + right.display())
    if isinstance(left, NumberValue) and isinstance(right, StringValue):
        return StringValue(left.display() + right.value)
    return NumberValue(size(left) + size(right))


def subtract(left: Value, right: Value) -> Value:
    return NumberValue(size(left) - size(right))


def multiply(left: Value, right: Value) -> Value:
    if isinstance(left, StringValue) and isinstance(right, NumberValue):
        return StringValue(left.value * int(right.value))
    if isinstance(left, NumberValue) and isinstance(right, StringValue):
        return StringValue(right.value * int(left.value))
    if isinstance(left, ListValue) and isinstance(right, NumberValue):
        return ListValue(left.elements * int(right.value))
    if isinstance(left, NumberValue) and isinstance(right, ListValue):
        return ListValue(right.elements * int(left.value))
    return NumberValue(size(left) * size(right))


def divide(left: Value, right: Value) -> Value:
    divisor = size(right)
    if divisor == 0:
        raise VersaRuntimeError('Division by zero')
    return NumberValue(size(left) / divisor)


def modulo(left: Value, right: Value) -> Value:
    divisor = size(right)
    if divisor == 0:
        raise VersaRuntimeError('Modulo by zero')
    dividend = size(left)
    # The result takes the sign of the dividend.
    result = math.fmod(dividend, divisor)
    if isinstance(dividend, int) and isinstance(divisor, int):
        result = int(result)
    return NumberValue(result)


def power(left: Value, right: Value) -> Value:
    try:
        result = size(left) ** size(right)
    except (OverflowError, ZeroDivisionError):
        return NumberValue(math.inf)
    if isinstance(result, complex):
        return NumberValue(math.nan)
    return NumberValue(result)


def shift_left(left: Value, right: Value) -> Value:
    return NumberValue(_int32(_int32(size(left)) << (int(size(right)) & 31)))


def shift_right(left: Value, right: Value) -> Value:
    return NumberValue(_int32(size(left)) >> (int(size(right)) & 31))


def unsigned_shift_right(left: Value, right: Value) -> Value:
    return NumberValue((int(size(left)) & 0xFFFFFFFF) >> (int(size(right)) & 31))


def bit_and(left: Value, right: Value) -> Value:
    return NumberValue(_int32(size(left)) & _int32(size(right)))


def bit_or(left: Value, right: Value) -> Value:
    return NumberValue(_int32(size(left)) | _int32(size(right)))


def bit_xor(left: Value, right: Value) -> Value:
    return NumberValue(_int32(size(left)) ^ _int32(size(right)))


def bit_not(operand: Value) -> Value:
    return NumberValue(~_int32(size(operand)))


def negate(operand: Value) -> Value:
    return NumberValue(-size(operand))


def positive(operand: Value) -> Value:
    return NumberValue(size(operand))


def _sizes(left: Value, right: Value):
    return size(left, strings=True), size(right, strings=True)


def less_than(left: Value, right: Value) -> BooleanValue:
    a, b = _sizes(left, right)
    return BooleanValue(a < b)


def greater_than(left: Value, right: Value) -> BooleanValue:
    a, b = _sizes(left, right)
    return BooleanValue(a > b)


def less_equal(left: Value, right: Value) -> BooleanValue:
    a, b = _sizes(left, right)
    return BooleanValue(a <= b)


def greater_equal(left: Value, right: Value) -> BooleanValue:
    a, b = _sizes(left, right)
    return BooleanValue(a >= b)


def _loose_number(value: Value) -> float:
    if isinstance(value, NumberValue):
        return value.value
    if isinstance(value, BooleanValue):
        return value.state
    if isinstance(value, StringValue):
        text = value.value.strip()
        if not text:
            return 0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def equals(left: Value, right: Value) -> bool:
    """Loose equality between any two values."""
    if isinstance(left, NoneValue) or isinstance(right, NoneValue):
        other = right if isinstance(left, NoneValue) else left
        if isinstance(other, NoneValue):
            return True
        return isinstance(other, NumberValue) and other.value == 0
    if isinstance(left, ListValue) and isinstance(right, ListValue):
        if len(left.elements) != len(right.elements):
            return False
        return all(equals(a, b) for a, b in zip(left.elements, right.elements))
    if isinstance(left, DictValue) and isinstance(right, DictValue):
        if len(left.elements) != len(right.elements):
            return False
        for (key_a, value_a), (key_b, value_b) in zip(left.elements.items(), right.elements.items()):
            if key_a != key_b or not equals(value_a, value_b):
                return False
        return True
    if isinstance(left, StringValue) and isinstance(right, StringValue):
        return left.value == right.value
    primitives = (NumberValue, StringValue, BooleanValue)
    if isinstance(left, primitives) and isinstance(right, primitives):
        return _loose_number(left) == _loose_number(right)
    return left is right


def equality(left: Value, right: Value) -> BooleanValue:
    return BooleanValue(equals(left, right))


def inequality(left: Value, right: Value) -> BooleanValue:
    return BooleanValue(not equals(left, right))


BINARY_OPERATIONS = {
    '+': add,
    '-': subtract,
    '*': multiply,
    '/': divide,
    '%': modulo,
    '**': power,
    '<<': shift_left,
    '>>': shift_right,
    '>>>': unsigned_shift_right,
    '&': bit_and,
    '|': bit_or,
    '^': bit_xor,
    '<': less_than,
    '>': greater_than,
    '<=': less_equal,
    '>=': greater_equal,
    '==': equality,
    '!=': inequality,
}

UNARY_OPERATIONS = {
    '-': negate,
    '+': positive,
    '~': bit_not,
}
