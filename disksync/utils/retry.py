"""
Back-off for the SSH calls behind `disksync check`
"""
import functools
import time
import paramiko
from .logging import log, warn
from .. import config as _cfg

# network hiccups worth another attempt
TRANSIENT = (paramiko.SSHException, OSError)
# wrong key or host key mismatch: retrying cannot help
PERMANENT = (paramiko.AuthenticationException, paramiko.BadHostKeyException)


def retried(fn):
    """
    Retry *fn* on TRANSIENT errors, RETRY_MAX attempts in all, doubling the
    delay from RETRY_BASE_DELAY up to RETRY_MAX_DELAY. When *fn* is a method
    of an object with disconnect(), the stale connection is dropped before
    the next attempt so it reconnects.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        delay = _cfg.RETRY_BASE_DELAY
        for attempt in range(1, _cfg.RETRY_MAX + 1):
            try:
                return fn(*args, **kwargs)
            except PERMANENT:
                raise
            except TRANSIENT as exc:
                if attempt == _cfg.RETRY_MAX:
                    raise
                warn(f"{fn.__name__}: {exc} (attempt {attempt} of {_cfg.RETRY_MAX})")
                owner = args[0] if args else None
                if hasattr(owner, "disconnect"):
                    owner.disconnect()
                log(f"  next attempt in {delay:.0f}s")
                time.sleep(delay)
                delay = min(delay * 2, _cfg.RETRY_MAX_DELAY)

    return wrapper
