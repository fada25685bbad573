## cauchemar — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable, NamedTuple
from collections import deque

from .types import Stack, Program, ENTRY
from .errors import CauchemarRuntimeError
from .parser import parse
from .library import Library
from .builtins import load_builtins_library
from .formatting import list_to_stack as _list_to_stack, stack_to_list as _stack_to_list
from .interpreter import interpret, interpret_step, enter_routine


class RunResult(NamedTuple):
    output: list[str]
    stack: Stack


class Runtime:
    """Minimal runtime facade focused on embedding and extension."""

    def __init__(self, library: Library | None = None):
        self.library = library or load_builtins_library()

    # Loading ─────────────────────────────────────────────────────────────────────────────────
    def load(self, source: str, filename: str | None = None) -> Program:
        return parse(source, filename=filename)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def run(self, source: str | Program, stack: Stack | None = None, filename: str | None = None,
            verbosity: int = 0, stats: dict | None = None, write: Callable[[str], Any] | None = None) -> RunResult:
        """Load and run the entry routine; each PRINT rendering is collected, and also passed on to `write`."""
        program = source if isinstance(source, Program) else self.load(source, filename=filename)
        output = []

        def _write(text: str):
            output.append(text.removesuffix('\n'))
            if write is not None: write(text)

        try:
            stack = interpret(program, stack=stack, lib=self.library, write=_write, verbosity=verbosity, stats=stats)
        except CauchemarRuntimeError as exc:
            # Output up to the point of failure stays available to the caller.
            exc.cm_output = output
            raise
        return RunResult(output=output, stack=stack)

    def begin(self, program: Program, entry: str = ENTRY) -> tuple[deque, list]:
        """Prepare the pending queue and call chain to step through a routine manually."""
        queue, calls = deque(), []
        enter_routine(program.routines[entry], queue, calls)
        return queue, calls

    def step(self, queue: deque, stack: Stack, program: Program, calls: list | None = None,
             write: Callable[[str], Any] | None = None) -> Stack:
        return interpret_step(queue, stack, program, self.library, [] if calls is None else calls, write)

    def apply(self, name: str, stack: Stack, write: Callable[[str], Any] | None = None) -> Stack:
        """Apply a single built-in routine or arithmetic operator to a stack."""
        fn = self.library.get_function(name) or self.library.arithmetic[name]
        return fn(stack, write=write)

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_operation(self, name: str, func: Callable) -> None:
        self.library.add_function(name, func)

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def get_signature(self, name: str) -> dict:
        return self.library.functions[name].__cm_meta__

    def list_operations(self) -> dict[str, dict]:
        return {n: fn.__cm_meta__ for n, fn in self.library.functions.items()}

    def to_stack(self, values: list) -> Stack:
        return _list_to_stack(values)

    def from_stack(self, stack: Stack) -> list:
        return _stack_to_list(stack)
