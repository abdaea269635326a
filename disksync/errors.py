"""
Exceptions that abort a disksync run
"""


class ConfigurationError(Exception):
    """The run cannot start: bad profile, missing private key, no subdirectories …"""
    pass


class ExecutorError(ConfigurationError):
    """The transfer executable (rsync) is not available on this host."""
    pass
