## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# cauchemar — A deliberately archaic stack language, with routines and a single global stack.
#

import sys
import time
import traceback
from dataclasses import dataclass

import click

from .types import nil
from .errors import (CauchemarError, CauchemarParseError, CauchemarDefinitionError,
                     CauchemarAssertionError, CauchemarRuntimeError)
from .parser import format_parse_error_context
from .formatting import write_without_ansi, format_value, format_program, show_stack

from . import api


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    dump: bool
    stats: bool
    plain: bool
    show_stack: bool


class CauchemarRunner:
    def __init__(self, config: RuntimeConfig):
        self.config = config

        if config.plain:
            writer = write_without_ansi(sys.stdout.write)
            sys.stdout.write, sys.stderr.write = writer, writer

        self.runtime = api._RUNTIME
        self.total_stats = {'steps': 0, 'start': time.time()} if config.stats else None
        self.failure = False

    def _fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '') -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        self.failure = True

    def _runtime_context(self, exc, source: str) -> str:
        meta = getattr(exc, 'cm_meta', None) or {}
        context = format_parse_error_context(meta.get('filename') or '<INPUT>', meta.get('line'), meta.get('column'),
                                             getattr(exc, 'cm_token', None), source=source)
        if calls := getattr(exc, 'cm_calls', None):
            context += f"\033[90m  Called from {' -> '.join(calls)}\033[0m\n"
        return context

    def _show_failed_stack(self, exc) -> None:
        print(f'\033[1;33m  Stack content is\033[0;33m\n    ', end='', file=sys.stderr)
        show_stack(getattr(exc, 'cm_stack', nil), width=None, file=sys.stderr)
        print('\033[0m', file=sys.stderr)

    def _handle_exception(self, exc, filename: str, source: str) -> None:
        if isinstance(exc, CauchemarParseError):
            context = format_parse_error_context(filename, exc.line, exc.column, exc.token, source=source)
            context += f"\n\033[90m{str(exc).replace(chr(10), ' ').replace(chr(9), ' ')}\033[0m\n"
            self._fatal_error("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` caused a problem!", type(exc).__name__, context)
        elif isinstance(exc, CauchemarDefinitionError):
            context = format_parse_error_context(filename, exc.line, exc.column, exc.token, source=source)
            self._fatal_error("DEFINITION ERROR.", f"{exc} ({exc.kind})", type(exc).__name__, context)
        elif isinstance(exc, CauchemarAssertionError):
            print(f'\033[30;43m ASSERTION FAILED. \033[0m Routine \033[1;97m`{exc.cm_token}`\033[0m raised an error.', file=sys.stderr)
            print(self._runtime_context(exc, source), file=sys.stderr)
            self._show_failed_stack(exc)
            self.failure = True
        elif isinstance(exc, CauchemarRuntimeError):
            detail = f"Command \033[1;97m`{exc.cm_token}`\033[0m failed with {exc.kind}: {exc}"
            self._fatal_error("RUNTIME ERROR.", detail, type(exc).__name__, self._runtime_context(exc, source))
            self._show_failed_stack(exc)
        else:
            token = getattr(exc, 'cm_token', None)
            print(f'\033[30;43m RUNTIME ERROR. \033[0m Command \033[1;97m`{token}`\033[0m caused an error in interpret! (Exception: \033[33m{type(exc).__name__}\033[0m)', file=sys.stderr)
            traceback.print_exc()
            self.failure = True

    def execute(self, source: str, filename: str) -> None:
        try:
            program = self.runtime.load(source, filename=filename)
            if self.config.dump:
                print(f"\033[97m\033[48;5;30m PARSER OUTPUT. \033[0m")
                print(format_program(program))
            result = self.runtime.run(program, verbosity=self.config.verbose, stats=self.total_stats, write=sys.stdout.write)
        except (CauchemarError, Exception) as exc:
            self._handle_exception(exc, filename, source)
            return

        if self.config.show_stack:
            for value in self.runtime.from_stack(result.stack):
                print(format_value(value))

    def finalize(self) -> int:
        if self.total_stats:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m")
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m")
        return 1 if self.failure else 0


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('script', type=click.File('r', encoding='utf-8'), default='-', required=False)
@click.option('--command', '-c', 'command', default=None, help='Run the given source text instead of a file.')
@click.option('--verbose', '-v', default=0, count=True, envvar='CAUCHEMAR_VERBOSE', help='Trace interpreter execution; repeat for every step.')
@click.option('--dump', is_flag=True, help='Print the parsed routines before running.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, envvar='CAUCHEMAR_PLAIN', help='Strip ANSI color codes from the output.')
@click.option('--show-stack/--no-show-stack', default=True, help='Print the remaining stack, top first, after the run.')
@click.pass_context
def cli(ctx: click.Context, script, command: str | None, verbose: int, dump: bool, stats: bool, plain: bool, show_stack: bool) -> None:
    config = RuntimeConfig(verbose=min(verbose, 2), dump=dump, stats=stats, plain=plain, show_stack=show_stack)
    runner = CauchemarRunner(config)

    if command is not None:
        runner.execute(command, '<COMMAND>')
    else:
        runner.execute(script.read(), script.name or '<STDIN>')
    ctx.exit(runner.finalize())


def main(argv: list[str] | None = None) -> None:
    cli.main(args=argv, prog_name='cauchemar')


if __name__ == "__main__":
    main()
