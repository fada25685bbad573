## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Callable

from .types import Value, kind_of, wrap_int32
from .errors import CauchemarAssertionError, CauchemarTypeError, CauchemarZeroDivisionError
from .formatting import format_value


## ARITHMETIC (left operand was pushed first, right operand is the top)
def arith_add(a: int, b: int) -> int: return wrap_int32(a + b)
def arith_sub(a: int, b: int) -> int: return wrap_int32(a - b)
def arith_mul(a: int, b: int) -> int: return wrap_int32(a * b)
def arith_div(a: int, b: int) -> int:
    if b == 0: raise CauchemarZeroDivisionError(f"Cannot divide {a} by zero.")
    # Truncate toward zero, unlike Python's floor division.
    q = abs(a) // abs(b)
    return wrap_int32(q if (a < 0) == (b < 0) else -q)
## COMPARISON
def op_equals(a: Value, b: Value) -> bool:
    if kind_of(a) != kind_of(b):
        raise CauchemarTypeError(f"`EQUALS` cannot compare {kind_of(a)} with {kind_of(b)}.")
    return a == b
def op_greater_than(a: int, b: int) -> bool: return a > b
def op_greater_equal(a: int, b: int) -> bool: return a >= b
def op_less_than(a: int, b: int) -> bool: return a < b
def op_less_equal(a: int, b: int) -> bool: return a <= b
## BOOLEAN LOGIC
def op_not(x: bool) -> bool: return not x
def op_and(a: bool, b: bool) -> bool: return a and b
def op_or(a: bool, b: bool) -> bool: return a or b
# STACK OPERATIONS
def op_dup(x: Value) -> tuple[Value, Value]: return (x, x)
def op_drop(_: Value) -> None: return None
def op_swap(a: Value, b: Value) -> tuple[Value, Value]: return (b, a)
def op_over(a: Value, b: Value) -> tuple[Value, Value, Value]: return (a, b, a)
def op_rot(a: Value, b: Value, c: Value) -> tuple[Value, Value, Value]: return (b, c, a)
# INPUT/OUTPUT
def op_print(x: Value, *, write: Callable[[str], object]) -> None:
    write(format_value(x) + '\n')
def op_assert(x: bool) -> None:
    if not x: raise CauchemarAssertionError("Assertion failed.")
