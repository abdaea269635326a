"""
disksync - mirror named subdirectories to a USB volume or an SSH host with rsync
"""
from .core import (Direction, Executor, HostProfile, OsFamily, Outcome,
                   SyncJob, SyncOptions, SyncReport, Synchronizer, detect)
from .errors import ConfigurationError, ExecutorError

__version__ = "0.3.0"

__all__ = [
    "Direction", "Executor", "HostProfile", "OsFamily", "Outcome",
    "SyncJob", "SyncOptions", "SyncReport", "Synchronizer", "detect",
    "ConfigurationError", "ExecutorError",
]
