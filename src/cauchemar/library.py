## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
from typing import Any, Callable
from dataclasses import dataclass, field

from .types import Stack, nil, kind_of
from .errors import CauchemarStackError, CauchemarTypeError
from .loader import get_stack_effects, validate_routine_name


@dataclass
class Library:
    functions: dict[str, Callable[..., Any]]
    arithmetic: dict[str, Callable[..., Any]] = field(default_factory=dict)

    # Registration helpers
    def add_function(self, name: str, fn: Callable[..., Any]) -> None:
        validate_routine_name(name)
        fn, meta = _make_wrapper(fn, name)
        fn.__cm_meta__ = meta
        self.functions[name] = fn

    def add_arithmetic(self, symbol: str, fn: Callable[..., Any]) -> None:
        fn, meta = _make_wrapper(fn, symbol)
        fn.__cm_meta__ = meta
        self.arithmetic[symbol] = fn

    def ensure_consistent(self) -> None:
        for fn in (*self.functions.values(), *self.arithmetic.values()):
            assert hasattr(fn, '__cm_meta__')

    def get_function(self, name: str) -> Callable[..., Any] | None:
        return self.functions.get(name)


def _type_name(tp) -> str:
    return {int: 'integer', bool: 'boolean', str: 'string'}.get(tp, getattr(tp, '__name__', str(tp)))

def _matches(value, expected) -> bool:
    if expected is Any: return True
    # Booleans are not integers here, even though Python says so.
    if expected is int: return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


def _make_wrapper(fn: Callable[..., Any], name: str) -> Callable[..., Any]:
    meta = get_stack_effects(fn=fn, name=name)
    arity, inputs = meta['arity'], meta['inputs']

    match meta['valency']:
        case -1:
            def push(_, res): return res
        case 0:
            def push(base, _): return base
        case 1:
            def push(base, res): return Stack(base, res)
        case _:
            def push(base, res):
                for v in res: base = Stack(base, v)
                return base

    def pop_args(stk: Stack):
        args, base = (), stk
        for i in range(arity):
            if base is nil:
                raise CauchemarStackError(f"`{name}` needs {arity} value(s) on the stack, but {i} available.")
            base, h = base
            # Inputs are listed top-first, which is also the popping order.
            if not _matches(h, inputs[i]):
                raise CauchemarTypeError(f"`{name}` expects {_type_name(inputs[i])} at position {i+1} from top, got {kind_of(h)}.")
            args = (h,) + args
        return base, args

    if arity == -2:
        def w_s(stk: Stack, write=None):
            return push(stk, fn(stk, write=write or sys.stdout.write) if meta['writes'] else fn(stk))
        return w_s, meta

    if meta['writes']:
        def w_w(stk: Stack, write=None):
            base, args = pop_args(stk)
            return push(base, fn(*args, write=write or sys.stdout.write))
        return w_w, meta

    def w_x(stk: Stack, write=None):
        base, args = pop_args(stk)
        return push(base, fn(*args))
    return w_x, meta
