## cauchemar — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Literal as _Literal, Mapping
from collections import namedtuple
from dataclasses import dataclass, field

class stack_list(list): pass


# Stack type is a namedtuple to save memory, yet provide tail/head accessors.
class Stack(namedtuple('Stack', ['tail', 'head'])):
    __slots__ = ()
    _nil_singleton = None

    def __new__(cls, tail, head):
        if tail is None and head is None:
            # Only one singleton creation is allowed, and it's the one just below.
            if cls._nil_singleton is None:
                self = super(Stack, cls).__new__(cls, tail, head)
                cls._nil_singleton = self
                return self
            # By convention, all other code should use `nil` explicitly.
            raise ValueError("Use the canonical `nil` instance for empty stacks")
        return super(Stack, cls).__new__(cls, tail, head)

    def __repr__(self):
        if self is nil:
            return "< nil >"

        items = []
        current = self
        while current is not nil:
            items.append(repr(current.head))
            current = current.tail
        return "< " + " ".join(reversed(items)) + " >"

    def __bool__(self):
        raise TypeError("Stack truth value is ambiguous; compare with `is nil` or `is not nil`.")

    def pushed(self, *items):
        """Push items in order of tail (left) to head (right) onto new Stack and return."""
        stack = self
        for it in items:
            stack = Stack(stack, it)
        return stack


# All checks for empty stack must be done by comparing to this.
nil = Stack(None, None)


# The three kinds of value; `bool` is checked before `int` since it subclasses it.
Value = int | bool | str

INT_MIN, INT_MAX = -2**31, 2**31 - 1

def kind_of(value: Value) -> str:
    if isinstance(value, bool): return 'boolean'
    if isinstance(value, int): return 'integer'
    if isinstance(value, str): return 'string'
    raise TypeError(f"Not a value of the language: {value!r}")

def wrap_int32(n: int) -> int:
    return (n - INT_MIN) % 2**32 + INT_MIN


ENTRY = "PROGRAM"
KEYWORDS = frozenset({"IF", "ELSE", "THEN", "DO", "WHILE", "TRUE", "FALSE"})
OperatorKind = _Literal['+', '-', '*', '/']


# Program model: commands are frozen nodes, blocks hold their branches as tuples.
@dataclass(frozen=True)
class Literal:
    value: Value
    meta: dict = field(default_factory=dict, compare=False, repr=False)

@dataclass(frozen=True)
class Operator:
    kind: OperatorKind
    meta: dict = field(default_factory=dict, compare=False, repr=False)

@dataclass(frozen=True)
class Call:
    name: str
    meta: dict = field(default_factory=dict, compare=False, repr=False)

@dataclass(frozen=True)
class IfBlock:
    then: tuple
    otherwise: tuple = ()
    meta: dict = field(default_factory=dict, compare=False, repr=False)

@dataclass(frozen=True)
class WhileBlock:
    body: tuple
    meta: dict = field(default_factory=dict, compare=False, repr=False)


Command = Literal | Operator | Call | IfBlock | WhileBlock


@dataclass(frozen=True)
class Routine:
    name: str
    commands: tuple               # tuple[Command, ...]
    meta: dict = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Program:
    routines: Mapping[str, Routine]
    filename: str | None = None

    @property
    def entry(self) -> Routine:
        return self.routines[ENTRY]

    def __contains__(self, name: str) -> bool:
        return name in self.routines

    def get(self, name: str) -> Routine | None:
        return self.routines.get(name)


class Operation:
    """Internal marker scheduled on the pending queue: loop tests and routine returns."""
    COMBINATOR = 2
    RETURN = 3

    def __init__(self, type, ptr, name, meta=None):
        self.type = type
        self.ptr = ptr
        self.name = name
        self.meta = {} if meta is None else meta

    def __repr__(self):
        return f"{self.name}"
