import logging

from .session import LoxSession, Outcome, interpret
from .errors import Diagnostic, LoxError, LoxSyntaxError, LoxRuntimeError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "LoxSession", "Outcome", "interpret", "Diagnostic",
    "LoxError", "LoxSyntaxError", "LoxRuntimeError",
]
