## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from .types import stack_list, Stack, nil, Literal, Operator, Call, IfBlock, WhileBlock, Routine, Program, Operation


def stack_to_list(stk: Stack) -> stack_list:
    """Top-first list of the values on the stack."""
    result = []
    while stk is not nil:
        stk, head = stk
        result.append(head)
    return stack_list(result)

def list_to_stack(values: list, base=None) -> Stack:
    """Inverse of `stack_to_list`, the first value in the list ends up on top."""
    stack = nil if base is None else base
    for value in reversed(values):
        stack = Stack(stack, value)
    return stack


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_value(value) -> str:
    """Rendering used by PRINT: strings are written verbatim without quotes."""
    if isinstance(value, bool): return 'TRUE' if value else 'FALSE'
    return str(value)

def format_item(it) -> str:
    """Rendering that reads back as source, so strings keep their quotes."""
    if isinstance(it, str): return '"' + it + '"'
    return format_value(it)


def format_command(cmd) -> str:
    # Blocks are unrolled onto a work list instead of recursing, nesting can be arbitrarily deep.
    parts, pending = [], [cmd]
    while pending:
        item = pending.pop()
        match item:
            case str():
                parts.append(item)
            case Literal(value=value):
                parts.append(format_item(value))
            case Operator(kind=kind):
                parts.append(kind)
            case Call(name=name):
                parts.append(name)
            case IfBlock(then=then, otherwise=otherwise):
                tokens = ['IF', *then] + (['ELSE', *otherwise] if otherwise else []) + ['THEN']
                pending.extend(reversed(tokens))
            case WhileBlock(body=body):
                pending.extend(reversed(['DO', *body, 'WHILE']))
            case Operation():
                parts.append(f'«{item.name}»')
            case _:
                parts.append(repr(item))
    return ' '.join(parts)

def format_token(cmd) -> str:
    """Short identity of a command for error messages, without nested branches."""
    match cmd:
        case IfBlock(): return 'IF'
        case WhileBlock(): return 'DO'
        case Operation(): return cmd.name
    return format_command(cmd)

def format_routine(routine: Routine) -> str:
    return ' '.join([f'{routine.name}:', *map(format_command, routine.commands)])

def format_program(program: Program) -> str:
    return '\n'.join(format_routine(r) for r in program.routines.values())


def show_stack(stack, width=72, end='\n', file=None):
    if stack is nil:
        stack_str = '∅'
    else:
        stack_str = ' '.join(format_item(s) for s in reversed(stack_to_list(stack)))

    if width is not None and len(stack_str) > width:
        stack_str = '… ' + stack_str[-width+2:]
    print(f"{stack_str:>{width}}" if width else stack_str, end=end, file=file)

def show_program_and_stack(program, stack, width=72, file=None):
    prog_str = ' '.join(format_command(p) for p in program) if program else '∅'
    if len(prog_str) > width:
        prog_str = prog_str[:+width-2] + ' …'
    show_stack(stack, end='', file=file)
    print(f" \033[36m <=> \033[0m {prog_str:<{width}}", file=file)
