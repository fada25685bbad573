## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class CauchemarError(Exception):
    kind = "error"

    def __init__(self, message: str = "", *, cm_op=None, cm_token=None, cm_meta=None):
        """Base class for all errors raised while loading or running a program."""
        super().__init__(message)
        self.cm_op: object = cm_op
        self.cm_token: str = cm_token
        self.cm_meta: dict = cm_meta


## LOAD-TIME
class CauchemarLoadError(CauchemarError):
    pass

class CauchemarParseError(CauchemarLoadError):
    kind = "syntax"

    def __init__(self, message, *, filename=None, line=None, column=None, token=None, expected=None):
        super().__init__(message, cm_token=token, cm_meta={'filename': filename, 'line': line, 'column': column})
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token
        self.expected = expected or []

class CauchemarIncompleteParse(CauchemarParseError, lark.exceptions.ParseError):
    """Input ended in the middle of a routine, string, comment or block."""

class CauchemarRangeError(CauchemarParseError, OverflowError):
    kind = "integer range"

class CauchemarDefinitionError(CauchemarLoadError):
    kind = "definition"

    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, cm_token=token, cm_meta={'filename': filename, 'line': line, 'column': column})
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class CauchemarDuplicateRoutine(CauchemarDefinitionError):
    kind = "duplicate routine"

class CauchemarMissingEntry(CauchemarDefinitionError):
    kind = "missing entry routine"


## RUNTIME
class CauchemarRuntimeError(CauchemarError, RuntimeError):
    kind = "runtime"

    def __init__(self, message: str = "", *, cm_op=None, cm_token=None, cm_meta=None, cm_stack=None):
        super().__init__(message, cm_op=cm_op, cm_token=cm_token, cm_meta=cm_meta)
        self.cm_stack = cm_stack
        self.cm_calls: tuple = ()
        self.cm_output: list = []

class CauchemarStackError(CauchemarRuntimeError):
    """Stack underflow: an operation needed more values than were present."""
    kind = "stack underflow"

class CauchemarTypeError(CauchemarRuntimeError, TypeError):
    """An operand had the wrong kind of value."""
    kind = "type mismatch"

class CauchemarZeroDivisionError(CauchemarRuntimeError, ZeroDivisionError):
    kind = "division by zero"

class CauchemarNameError(CauchemarRuntimeError, NameError):
    kind = "unknown identifier"

class CauchemarAssertionError(CauchemarRuntimeError, AssertionError):
    kind = "assertion failure"


## EXTENSION
class CauchemarTypeMissing(CauchemarError, TypeError):
    """Registration-time problems with the Python signature of a built-in."""
    kind = "signature"
