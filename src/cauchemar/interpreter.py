## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
import collections

from .types import Operation, Stack, nil, Literal, Operator, Call, IfBlock, WhileBlock, Routine, Program, ENTRY
from .errors import CauchemarNameError
from .library import Library
from .builtins import load_builtins_library
from .combinators import comb_if, comb_do
from .formatting import show_program_and_stack, format_token


# There is no per-call frame for data: a routine call only schedules its body, then a return marker,
# at the front of the pending queue.  The queue is the call stack, the data stack is shared by all.
def enter_routine(routine: Routine, queue, calls: list) -> None:
    queue.appendleft(Operation(Operation.RETURN, routine, routine.name, routine.meta))
    queue.extendleft(reversed(routine.commands))
    calls.append(routine.name)


def interpret_step(queue, stack: Stack, program: Program, lib: Library, calls: list, write=None) -> Stack:
    op = queue.popleft()

    match op:
        case Literal(value=value):
            return Stack(stack, value)
        case Operator(kind=kind):
            return lib.arithmetic[kind](stack)
        case Call(name=name):
            # Built-ins take precedence over user routines of the same name.
            if (fn := lib.get_function(name)) is not None:
                return fn(stack, write=write)
            if (routine := program.get(name)) is not None:
                enter_routine(routine, queue, calls)
                return stack
            raise CauchemarNameError(f"Unknown identifier `{name}`, not a built-in nor a routine.")
        case IfBlock():
            return comb_if(op, queue, stack)
        case WhileBlock():
            return comb_do(op, queue, stack)
        case Operation(type=Operation.COMBINATOR):
            return op.ptr(op, queue, stack)
        case Operation(type=Operation.RETURN):
            calls.pop()
            return stack

    raise NotImplementedError(f"Unknown command `{op!r}` in queue.")


def interpret(program: Program, stack=None, lib: Library = None, write=None, verbosity=0, stats=None, entry=ENTRY):
    stack = nil if stack is None else stack
    lib = load_builtins_library() if lib is None else lib
    write = sys.stdout.write if write is None else write
    queue, calls = collections.deque(), []
    enter_routine(program.routines[entry], queue, calls)

    def is_notable(op):
        return isinstance(op, (IfBlock, WhileBlock)) or (isinstance(op, Call) and op.name in program)

    step = 0
    while queue:
        if verbosity == 2 or (verbosity == 1 and (is_notable(queue[0]) or step == 0)):
            print(f"\033[90m{step:>3} :\033[0m  ", end='')
            show_program_and_stack(queue, stack)

        step += 1
        op = queue[0]
        try:
            stack = interpret_step(queue, stack, program, lib, calls, write)
        except Exception as exc:
            if getattr(exc, 'cm_op', None) is None:
                exc.cm_op = op
                exc.cm_token = format_token(op)
                exc.cm_meta = getattr(op, 'meta', None)
            exc.cm_stack = stack
            exc.cm_calls = tuple(calls)
            raise

    if verbosity > 0:
        print(f"\033[90m{step:>3} :\033[0m  ", end='')
        show_program_and_stack(queue, stack)
    if stats is not None:
        stats['steps'] = stats.get('steps', 0) + step

    return stack
