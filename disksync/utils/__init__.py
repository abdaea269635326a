"""Utilities (console output, retry)"""
from .logging import log, vlog, warn, outcome, set_verbose
from .retry import retried

__all__ = [
    "log", "vlog", "warn", "outcome", "set_verbose",
    "retried",
]
