"""Runtime values of the Versa language.

The set of value kinds is closed: numbers, strings, booleans, none,
lists, dictionaries, user and native functions, class definitions and
their instances, enums, tags and html nodes. Every kind answers
`is_true()`, `to_python()` and `copy()` and has two textual forms:
`display()` is what `log` prints and what string interpolation inserts,
while `str(value)` is the literal form (strings are quoted).

Equality and the arithmetic rules between kinds are not defined here,
they live in `versa.operations`.
"""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .ast import Node, Param
    from .environment import Context
    from .position import Position


def format_number(value: Any) -> str:
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        if value != value:
            return 'NaN'
        if value in (float('inf'), float('-inf')):
            return 'Infinity' if value > 0 else '-Infinity'
    return str(value)


class Value:
    """Base class of every runtime value."""

    def is_true(self) -> bool:
        return True

    def to_python(self) -> Any:
        return self

    def copy(self) -> 'Value':
        return self

    def display(self) -> str:
        return str(self)


@dataclass(eq=False)
class NumberValue(Value):
    value: Any = 0

    def is_true(self) -> bool:
        return self.value != 0

    def to_python(self) -> Any:
        return self.value

    def copy(self) -> 'NumberValue':
        return NumberValue(self.value)

    def __str__(self) -> str:
        return format_number(self.value)


@dataclass(eq=False)
class StringValue(Value):
    value: str = ''

    def is_true(self) -> bool:
        return len(self.value) > 0

    def to_python(self) -> str:
        return self.value

    def copy(self) -> 'StringValue':
        return StringValue(self.value)

    def display(self) -> str:
        return self.value

    def __str__(self) -> str:
        return f'"{self.value}"'


@dataclass(eq=False)
class BooleanValue(Value):
    """A boolean stored as 0 or 1.

    `display_name` remembers the spelling used in the source (`yes`/`no`
    or `true`/`false`) so that printing gives back what was written.
    """
    state: int = 0
    display_name: Optional[str] = None

    def __post_init__(self):
        self.state = 1 if self.state else 0
        if self.display_name is None:
            self.display_name = 'true' if self.state else 'false'

    def is_true(self) -> bool:
        return self.state == 1

    def to_python(self) -> bool:
        return self.state == 1

    def copy(self) -> 'BooleanValue':
        return BooleanValue(self.state, self.display_name)

    def __str__(self) -> str:
        return self.display_name


@dataclass(eq=False)
class NoneValue(Value):

    def is_true(self) -> bool:
        return False

    def to_python(self) -> None:
        return None

    def copy(self) -> 'NoneValue':
        return NoneValue()

    def __str__(self) -> str:
        return 'none'


@dataclass(eq=False)
class ListValue(Value):
    """A mutable list. Two bindings to the same list share it."""
    elements: List[Value] = field(default_factory=list)

    def is_true(self) -> bool:
        return len(self.elements) > 0

    def to_python(self) -> list:
        return [el.to_python() for el in self.elements]

    def copy(self, deep: bool = False) -> 'ListValue':
        if deep:
            return ListValue([el.copy(deep=True) if isinstance(el, (ListValue, DictValue)) else el.copy()
                              for el in self.elements])
        return ListValue(list(self.elements))

    def __str__(self) -> str:
        return '[' + ', '.join(str(el) for el in self.elements) + ']'


@dataclass(eq=False)
class DictValue(Value):
    """An insertion ordered mapping from strings to values."""
    elements: Dict[str, Value] = field(default_factory=dict)

    def is_true(self) -> bool:
        return len(self.elements) > 0

    def to_python(self) -> dict:
        return {key: value.to_python() for key, value in self.elements.items()}

    def copy(self, deep: bool = False) -> 'DictValue':
        if deep:
            return DictValue({key: value.copy(deep=True) if isinstance(value, (ListValue, DictValue)) else value.copy()
                              for key, value in self.elements.items()})
        return DictValue(dict(self.elements))

    def __str__(self) -> str:
        return '{' + ', '.join(f'"{key}": {value}' for key, value in self.elements.items()) + '}'


@dataclass(eq=False)
class FunctionValue(Value):
    """A user function together with the context it was defined in.

    Methods, getters and setters are functions too: `nature` tells them
    apart and `owner` points at the class that declared them.
    """
    name: Optional[str]
    params: List['Param']
    body: 'Node'
    auto_return: bool
    context: 'Context'
    nature: str = 'function'
    owner: Optional['ClassDef'] = None

    def bind(self, context: 'Context') -> 'FunctionValue':
        """Return the same function closing over another context."""
        bound = _copy.copy(self)
        bound.context = context
        return bound

    def __str__(self) -> str:
        return f'<function {self.name or "<anonymous>"}>'


NativeCallback = Callable[['Context', 'Position', 'Position'], Value]


@dataclass(eq=False)
class NativeFunction(Value):
    """A builtin function implemented by a Python callback.

    The callback receives the call context, where the arguments are
    already bound by name, and the span of the call.
    """
    name: str
    params: List['Param']
    callback: NativeCallback
    context: Optional['Context'] = None

    def bind(self, context: 'Context') -> 'NativeFunction':
        bound = _copy.copy(self)
        bound.context = context
        return bound

    def __str__(self) -> str:
        return f'<native function {self.name}>'


@dataclass(eq=False)
class Member:
    """One entry of a class member map."""
    name: str
    nature: str
    visibility: str = 'public'
    is_static: bool = False
    type_name: str = 'any'
    value: Optional[Value] = None
    initializer: Optional['Node'] = None
    owner: Optional['ClassDef'] = None


@dataclass(eq=False)
class ClassDef(Value):
    """A class. Static members live here and nowhere else."""
    name: str
    parent: Optional['ClassDef']
    members: Dict[str, Member]
    context: 'Context'

    def find_member(self, name: str) -> Optional[Member]:
        cls: Optional[ClassDef] = self
        while cls is not None:
            member = cls.members.get(name)
            if member is not None:
                return member
            cls = cls.parent
        return None

    def lineage(self) -> List['ClassDef']:
        """The class and its ancestors, most derived first."""
        chain = []
        cls: Optional[ClassDef] = self
        while cls is not None:
            chain.append(cls)
            cls = cls.parent
        return chain

    def is_subclass_of(self, other: 'ClassDef') -> bool:
        return any(cls is other for cls in self.lineage())

    def __str__(self) -> str:
        return f'<class {self.name}>'


@dataclass(eq=False)
class ClassInstance(Value):
    """An object. `fields` holds its own properties and is never shared.

    Private properties are also recorded under `(owner, name)` in
    `private_fields`, so a class keeps reaching its own private field
    after a subclass declares a member with the same name.
    """
    class_def: ClassDef
    fields: Dict[str, Member] = field(default_factory=dict)
    private_fields: Dict[Tuple[ClassDef, str], Member] = field(default_factory=dict)

    def __str__(self) -> str:
        return f'<instance {self.class_def.name}>'


@dataclass(eq=False)
class EnumValue(Value):
    name: str
    members: Dict[str, NumberValue]

    def __str__(self) -> str:
        return f'<enum {self.name}>'


@dataclass(eq=False)
class TagMember:
    name: str
    nature: str
    optional: bool = False
    type_name: str = 'any'
    value: Value = field(default_factory=NoneValue)


@dataclass(eq=False)
class TagValue(Value):
    """A user defined html component: props, states and methods."""
    name: str
    members: Dict[str, TagMember]
    context: Optional['Context'] = None

    def __str__(self) -> str:
        return f'<tag {self.name}>'


@dataclass(eq=False)
class HtmlValue(Value):
    """A node of an html tree. A fragment has no tagname."""
    tagname: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    id: Optional[str] = None
    attributes: List[Tuple[str, Value]] = field(default_factory=list)
    events: List[Tuple[str, Value]] = field(default_factory=list)
    children: List[Value] = field(default_factory=list)

    def to_python(self) -> dict:
        return {
            'tagname': self.tagname,
            'id': self.id,
            'classes': list(self.classes),
            'attributes': {name: value.to_python() for name, value in self.attributes},
            'children': [child.to_python() for child in self.children],
        }

    def __str__(self) -> str:
        selector = self.tagname or ''
        if self.id:
            selector += '#' + self.id
        for cls in self.classes:
            selector += '.' + cls
        return f'<{selector}>'


def type_of(value: Value) -> str:
    """Name of the type of a value, as given by `typeof`."""
    if isinstance(value, NumberValue):
        return 'number'
    if isinstance(value, StringValue):
        return 'string'
    if isinstance(value, BooleanValue):
        return 'boolean'
    if isinstance(value, NoneValue):
        return 'any'
    if isinstance(value, ListValue):
        return 'list'
    if isinstance(value, DictValue):
        return 'dict'
    if isinstance(value, (FunctionValue, NativeFunction)):
        return 'function'
    if isinstance(value, ClassDef):
        return value.name
    if isinstance(value, ClassInstance):
        return value.class_def.name
    if isinstance(value, EnumValue):
        return 'enum'
    if isinstance(value, TagValue):
        return 'tag'
    if isinstance(value, HtmlValue):
        return 'html'
    return 'any'


def type_matches(value: Value, type_name: str) -> bool:
    """Check a value against a declared type name."""
    if type_name == 'any':
        return True
    if type_name == 'dynamic':
        return not isinstance(value, NoneValue)
    if type_name == 'object':
        return isinstance(value, (ClassInstance, EnumValue))
    if isinstance(value, ClassInstance):
        return any(cls.name == type_name for cls in value.class_def.lineage())
    return type_of(value) == type_name
