## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
import inspect
from types import UnionType
from typing import Any, Callable, get_origin, get_args

from .types import Stack, Value, KEYWORDS
from .errors import CauchemarTypeMissing, CauchemarDefinitionError


IDENTIFIER_RE = re.compile(r'[A-Z][A-Z-]*')


def get_python_name(cm_name: str) -> str:
    """Map a built-in routine name to its Python function name."""
    return 'op_' + cm_name.lower().replace('-', '_')


def get_cm_name(py_name: str) -> str:
    """Inverse of `get_python_name` for well-formed operator names."""
    if not py_name.startswith("op_"):
        raise CauchemarTypeMissing(f"Operator function `{py_name}` requires prefix `op_` by convention.", cm_token=py_name)
    return py_name[3:].upper().replace('_', '-')


def validate_routine_name(name: str, meta: dict | None = None) -> str:
    if IDENTIFIER_RE.fullmatch(name) is None or name in KEYWORDS:
        meta = meta or {}
        raise CauchemarDefinitionError(f"`{name}` is not a valid routine name.", token=name,
                                       filename=meta.get('filename'), line=meta.get('line'), column=meta.get('column'))
    return name


def _normalize_expected_type(tp):
    if tp in (Any, Value): return Any
    if isinstance(tp, (type, UnionType)): return tp
    if (origin := get_origin(tp)) is not None and isinstance(origin, type): return origin
    raise CauchemarTypeMissing(f"Unknown type to normalize: {tp} {type(tp)}")


def _is_stack_annotation(annotation: Any) -> bool:
    if annotation is Stack:
        return True
    if isinstance(annotation, str):
        return annotation == 'Stack' or annotation.endswith('.Stack')
    return False


def get_stack_effects(*, fn: Callable, name: str = None) -> dict:
    """Parse the type annotations from Python to determine the stack effects of a built-in.

    Arity (input) conventions:
        -2: pass entire stack as-is to function
        >=0: pop that many items from the stack

    Valency (output) conventions:
        -1: replace stack with retval
        0: no changes to stack
        1: single output expected
        >=1: tuple of multiple outputs expected

    A keyword-only `write` parameter receives the interpreter's output writer.
    """
    sig = inspect.signature(fn)
    params = list(sig.parameters.values())
    op_name = name or getattr(fn, '__name__', '<unnamed>')

    positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)]
    keywords = [p.name for p in params if p.kind == inspect.Parameter.KEYWORD_ONLY]
    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        raise CauchemarTypeMissing(f"Operation `{op_name}` cannot take variadic arguments; pass the `Stack` instead.")
    if set(keywords) - {'write'}:
        raise CauchemarTypeMissing(f"Operation `{op_name}` only supports `write` as keyword argument.")

    ret_ann = sig.return_annotation
    if ret_ann is inspect.Signature.empty:
        raise CauchemarTypeMissing(f"Operation `{op_name}` must declare a return annotation.")
    missing_inputs = [p.name for p in positional if p.annotation is inspect.Parameter.empty]
    if missing_inputs:
        missing = ', '.join(missing_inputs)
        raise CauchemarTypeMissing(f"Operation `{op_name}` must annotate parameters: {missing}.")

    returns_none = (ret_ann is type(None) or ret_ann is None)
    returns_tuple = (ret_ann is tuple or get_origin(ret_ann) is tuple)

    if returns_none:
        outputs: list = []
    else:
        raw_ret = get_args(ret_ann) if returns_tuple else (ret_ann,)
        outputs = [_normalize_expected_type(t) for t in raw_ret]

    # Special case when stack is passed in directly and returned directly.
    pass_stack = (len(positional) == 1 and _is_stack_annotation(positional[0].annotation))
    replace_stack = pass_stack and _is_stack_annotation(ret_ann)

    return {
        'arity': -2 if pass_stack else len(positional),
        'valency': -1 if replace_stack else (0 if returns_none else (len(outputs) if returns_tuple else 1)),
        'inputs': [] if pass_stack else list(reversed([_normalize_expected_type(p.annotation) for p in positional])),
        'outputs': [] if replace_stack else list(reversed(outputs)),
        'writes': 'write' in keywords,
    }
