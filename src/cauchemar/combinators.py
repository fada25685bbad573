## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Operation, Stack, nil, IfBlock, WhileBlock, kind_of
from .errors import CauchemarStackError, CauchemarTypeError


def _pop_condition(name: str, stack: Stack) -> tuple[Stack, bool]:
    if stack is nil:
        raise CauchemarStackError(f"`{name}` needs a boolean on the stack, but stack is empty.")
    tail, head = stack
    if not isinstance(head, bool):
        raise CauchemarTypeError(f"`{name}` requires a boolean as top item on the stack, got {kind_of(head)}.")
    return tail, head


def comb_if(this: IfBlock, queue, stack: Stack) -> Stack:
    """Takes the boolean on top of the stack, and puts one of the two branches into the queue for execution."""
    tail, flag = _pop_condition('IF', stack)
    queue.extendleft(reversed(this.then if flag else this.otherwise))
    return tail


def comb_do(this: WhileBlock, queue, stack: Stack) -> Stack:
    """Schedules the loop body followed by its trailing test, so the body always runs at least once."""
    meta = this.meta | {'line': this.meta.get('end_line'), 'column': this.meta.get('end_column'), 'block': this}
    test = Operation(Operation.COMBINATOR, comb_while, 'WHILE', meta)
    queue.appendleft(test)
    queue.extendleft(reversed(this.body))
    return stack


def comb_while(this: Operation, queue, stack: Stack) -> Stack:
    """Takes the boolean left by the loop body, and schedules another iteration if it's true."""
    tail, flag = _pop_condition('WHILE', stack)
    if flag:
        return comb_do(this.meta['block'], queue, tail)
    return tail
