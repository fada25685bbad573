## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from . import operators
from .loader import get_cm_name
from .library import Library


def load_builtins_library():
    arithmetic = {
        '+': operators.arith_add,
        '-': operators.arith_sub,
        '*': operators.arith_mul,
        '/': operators.arith_div,
    }

    lib = Library(functions={})
    for symbol, fn in arithmetic.items():
        lib.add_arithmetic(symbol, fn)

    # Functions (wrapped via Library helper)
    for k in dir(operators):
        if not k.startswith('op_'): continue
        lib.add_function(get_cm_name(k), getattr(operators, k))

    lib.ensure_consistent()
    return lib
