"""
Console output for disksync

Progress goes to stdout with a timestamp; warnings and per-subdirectory
skip/fail lines go to stderr, so `disksync sync 2> problems.log`
collects everything that needs attention.
"""
import sys
from datetime import datetime

_verbose = False

# outcome tags, padded to the same width
OK = "[ OK ]"
SKIP = "[SKIP]"
FAIL = "[FAIL]"


def set_verbose(verbose: bool):
    global _verbose
    _verbose = verbose


def _stamp(msg: str) -> str:
    return f"[{datetime.now().strftime('%H:%M:%S')}] {msg}"


def log(msg: str):
    print(_stamp(msg), flush=True)


def vlog(msg: str):
    """Like log(), but only with -v."""
    if _verbose:
        log(msg)


def warn(msg: str):
    print(_stamp(f"⚠  {msg}"), file=sys.stderr, flush=True)


def outcome(tag: str, name: str, detail: str = ""):
    """One line per finished subdirectory; OK to stdout, SKIP/FAIL to stderr."""
    line = _stamp(f"{tag} {name}" + (f": {detail}" if detail else ""))
    print(line, file=sys.stdout if tag == OK else sys.stderr, flush=True)
