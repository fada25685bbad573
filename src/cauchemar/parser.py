## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import functools

import lark
from .types import Literal, Operator, Call, IfBlock, WhileBlock, Routine, Program, ENTRY, KEYWORDS, INT_MIN, INT_MAX
from .errors import (CauchemarParseError, CauchemarIncompleteParse, CauchemarRangeError,
                     CauchemarDuplicateRoutine, CauchemarMissingEntry)


# The basic lexer is required: keywords are embedded into IDENTIFIER and only win on a whole-token
# match, whereas the contextual lexer would happily lex a keyword as a routine name.
GRAMMAR = r"""start: routine+
routine: ROUTINE_NAME ":" command*
?command: while_block | if_block | number | string | boolean | operator | call
while_block: DO command* WHILE
if_block: IF branch (ELSE branch)? THEN
branch: command*
number: NUMBER
string: STRING
boolean: TRUE | FALSE
operator: PLUS | MINUS | STAR | SLASH
call: IDENTIFIER

// COMMENTS
COMMENT: /\/\*.*?\*\//s

// TOKENS
ROUTINE_NAME.2: /[A-Z][A-Z\-]*(?=(?:\s|\/\*.*?\*\/)*:)/s
IDENTIFIER: /[A-Z][A-Z\-]*/
IF: "IF"
ELSE: "ELSE"
THEN: "THEN"
DO: "DO"
WHILE: "WHILE"
TRUE: "TRUE"
FALSE: "FALSE"
NUMBER: /-?(?:0|[1-9][0-9]*)(?![0-9])/
STRING: /"[^"]*"/
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: /\/(?!\*)/

// WHITESPACE
%import common.WS
%ignore WS
%ignore COMMENT
"""


TERMINAL_DESCRIPTIONS = {
    'ROUTINE_NAME': 'routine name followed by ":"', 'IDENTIFIER': 'identifier',
    'NUMBER': 'number', 'STRING': 'string', 'COLON': '":"',
    'PLUS': '"+"', 'MINUS': '"-"', 'STAR': '"*"', 'SLASH': '"/"', '$END': 'end of input',
}


@functools.cache
def _get_parser() -> lark.Lark:
    return lark.Lark(GRAMMAR, start='start', parser="lalr", lexer="basic", propagate_positions=True)


def describe_expected(expected) -> list[str]:
    return sorted(TERMINAL_DESCRIPTIONS.get(name, name) for name in expected)


def _meta(token: lark.Token, filename) -> dict:
    return {'filename': filename, 'line': token.line, 'column': token.column}


def _raise_syntax_error(exc: lark.exceptions.UnexpectedInput, source: str, filename):
    line, column = getattr(exc, 'line', None), getattr(exc, 'column', None)

    if isinstance(exc, lark.exceptions.UnexpectedCharacters):
        head = source[exc.pos_in_stream:exc.pos_in_stream+2]
        if head.startswith('"'):
            raise CauchemarIncompleteParse("Unterminated string literal, missing closing `\"`.",
                                           filename=filename, line=line, column=column, token='"') from None
        if head == '/*':
            raise CauchemarIncompleteParse("Unterminated block comment, missing closing `*/`.",
                                           filename=filename, line=line, column=column, token='/*') from None
        expected = describe_expected(exc.allowed or [])
        raise CauchemarParseError(f"Unexpected character `{exc.char}`; expected one of: {', '.join(expected)}.",
                                  filename=filename, line=line, column=column, token=exc.char, expected=expected) from None

    token = getattr(exc, 'token', None)
    expected = describe_expected(getattr(exc, 'expected', None) or [])
    if token is None or token.type == '$END':
        raise CauchemarIncompleteParse(f"Unexpected end of input; expected one of: {', '.join(expected)}.",
                                       filename=filename, line=line, column=column, token='', expected=expected) from None
    raise CauchemarParseError(f"Unexpected `{token.value}`; expected one of: {', '.join(expected)}.",
                              filename=filename, line=line, column=column, token=token.value, expected=expected) from None


def parse_tree(source: str, filename=None) -> lark.Tree:
    try:
        return _get_parser().parse(source)
    except lark.exceptions.UnexpectedInput as exc:
        _raise_syntax_error(exc, source, filename)


def _subtrees(node):
    return [c for c in node.children if isinstance(c, lark.Tree)]

def _build_commands(nodes, filename) -> tuple:
    """Convert command subtrees bottom-up with an explicit work list, so block nesting depth is unbounded."""
    roots = [n for n in nodes if isinstance(n, lark.Tree)]
    order, pending = [], list(roots)
    while pending:
        node = pending.pop()
        order.append(node)
        pending.extend(_subtrees(node))

    # Reversed pre-order always visits children before their parent.
    built = {}
    for node in reversed(order):
        built[id(node)] = _build_command(node, filename, built)
    return tuple(built[id(n)] for n in roots)

def _build_command(node: lark.Tree, filename, built: dict):
    tok = next((c for c in node.children if isinstance(c, lark.Token)), None)
    match node.data:
        case 'branch':
            return tuple(built[id(c)] for c in _subtrees(node))
        case 'number':
            value = int(tok.value)
            if not INT_MIN <= value <= INT_MAX:
                raise CauchemarRangeError(f"Integer literal `{tok.value}` does not fit in 32 bits.",
                                          filename=filename, line=tok.line, column=tok.column, token=tok.value)
            return Literal(value, _meta(tok, filename))
        case 'string':
            return Literal(tok.value[1:-1], _meta(tok, filename))
        case 'boolean':
            return Literal(tok.type == 'TRUE', _meta(tok, filename))
        case 'operator':
            return Operator(tok.value, _meta(tok, filename))
        case 'call':
            return Call(tok.value, _meta(tok, filename))
        case 'while_block':
            end = node.children[-1]
            meta = _meta(tok, filename) | {'end_line': end.line, 'end_column': end.column}
            return WhileBlock(tuple(built[id(c)] for c in _subtrees(node)), meta)
        case 'if_block':
            then, *rest = [built[id(c)] for c in _subtrees(node)]
            return IfBlock(then, rest[0] if rest else (), _meta(tok, filename))
    raise NotImplementedError(f"Unexpected node `{node.data}` from parser.")


def build_program(tree: lark.Tree, filename=None) -> Program:
    routines = {}
    for node in tree.children:
        name_token, *commands = node.children
        name, meta = name_token.value, _meta(name_token, filename)
        if name in KEYWORDS:
            raise CauchemarParseError(f"Reserved keyword `{name}` cannot be used as a routine name.",
                                      filename=filename, line=meta['line'], column=meta['column'], token=name)
        if name in routines:
            first = routines[name].meta
            raise CauchemarDuplicateRoutine(f"Routine `{name}` is already defined on line {first['line']}.",
                                            filename=filename, line=meta['line'], column=meta['column'], token=name)
        routines[name] = Routine(name, _build_commands(commands, filename), meta)

    if ENTRY not in routines:
        raise CauchemarMissingEntry(f"Missing entry routine `{ENTRY}`.", filename=filename, token=ENTRY)
    return Program(routines, filename=filename)


def parse(source: str, filename=None) -> Program:
    """Turn source text into a checked `Program`, or raise a load-time error."""
    return build_program(parse_tree(source, filename=filename), filename=filename)


def format_parse_error_context(filename, line, column, token_value, source=None):
    if line is None or line < 1: return ""
    if source is None:
        with open(filename, 'r', encoding='utf-8') as f:
            source = f.read()
    lines = source.splitlines(keepends=True)
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column and 0 < column <= len(line_content):
                width = max(1, len(token_value or ''))
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+width-1]}\033[0m" +
                    line_content[column+width-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
