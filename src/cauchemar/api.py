## cauchemar — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Stack, Program, nil
from .errors import *
from .runtime import Runtime, RunResult

_RUNTIME = Runtime()

def __getattr__(name):
    return getattr(_RUNTIME, name)
