from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

from .errors import VersaRuntimeError, VersaTypeError
from .values import Value, type_matches, type_of

if TYPE_CHECKING:
    from .position import Position
    from .values import ClassDef, FunctionValue, NativeFunction


def check_type(value: Value, type_name: str) -> None:
    if not type_matches(value, type_name):
        raise VersaTypeError(f"Type '{type_of(value)}' is not assignable to type '{type_name}'")


@dataclass
class Binding:
    value: Value
    type_name: str = 'any'
    is_constant: bool = False


class SymbolTable:
    """Maps names to bindings for one scope; lookups fall back to the parent."""
    def __init__(self, parent: Optional['SymbolTable'] = None):
        self.parent = parent
        self.symbols: Dict[str, Binding] = {}

    def owner(self, name: str) -> Optional['SymbolTable']:
        table: Optional[SymbolTable] = self
        while table is not None:
            if name in table.symbols:
                return table
            table = table.parent
        return None

    def root(self) -> 'SymbolTable':
        table = self
        while table.parent is not None:
            table = table.parent
        return table

    def binding(self, name: str) -> Optional[Binding]:
        table = self.owner(name)
        return table.symbols[name] if table is not None else None

    def get(self, name: str) -> Optional[Value]:
        binding = self.binding(name)
        return binding.value if binding is not None else None

    def lookup(self, name: str) -> Value:
        binding = self.binding(name)
        if binding is None:
            raise VersaRuntimeError(f"'{name}' is not defined")
        return binding.value

    def declare(self, name: str, value: Value, type_name: str = 'any') -> Value:
        # Shadowing a name, or declaring it again in the same scope, is allowed.
        existing = self.symbols.get(name)
        if existing is not None and existing.is_constant:
            raise VersaRuntimeError(f"Constant '{name}' already exists")
        check_type(value, type_name)
        self.symbols[name] = Binding(value, type_name)
        return value

    def assign(self, name: str, value: Value) -> Value:
        """Replace the value of an existing binding, wherever it lives in the chain."""
        table = self.owner(name)
        if table is None:
            raise VersaRuntimeError(f"'{name}' is not defined")
        binding = table.symbols[name]
        if binding.is_constant:
            raise VersaRuntimeError('You cannot change the value of a constant.')
        check_type(value, binding.type_name)
        binding.value = value
        return value

    def delete(self, name: str) -> None:
        table = self.owner(name)
        if table is None:
            raise VersaRuntimeError(f"'{name}' is not defined")
        if table.symbols[name].is_constant:
            raise VersaRuntimeError('You cannot delete a constant.')
        del table.symbols[name]

    def define_constant(self, name: str, value: Value, type_name: str = 'any') -> Value:
        """Store a constant in the outermost table so that the whole chain sees it."""
        root = self.root()
        if name in root.symbols:
            raise VersaRuntimeError(f"Constant '{name}' already exists")
        check_type(value, type_name)
        root.symbols[name] = Binding(value, type_name, is_constant=True)
        return value


class Context:
    """A scope of execution: a display name for tracebacks and a symbol table.

    `parent_entry_pos` is where the parent was when this context was
    entered. A context created for a method records the class it runs
    in, and a call context records the function being executed; both are
    found again by walking up the chain.
    """
    def __init__(self, display_name: str, parent: Optional['Context'] = None,
                 parent_entry_pos: Optional['Position'] = None,
                 class_def: Optional['ClassDef'] = None,
                 function: Optional['FunctionValue | NativeFunction'] = None):
        self.display_name = display_name
        self.parent = parent
        self.parent_entry_pos = parent_entry_pos
        self.class_def = class_def
        self.function = function
        self.symbol_table = SymbolTable(parent.symbol_table if parent is not None else None)

    def enclosing_class(self) -> Optional['ClassDef']:
        context: Optional[Context] = self
        while context is not None:
            if context.class_def is not None:
                return context.class_def
            context = context.parent
        return None

    def enclosing_function(self) -> Optional['FunctionValue | NativeFunction']:
        context: Optional[Context] = self
        while context is not None:
            if context.function is not None:
                return context.function
            context = context.parent
        return None

    def __repr__(self) -> str:
        return f'<Context {self.display_name}>'
