"""Core functionality"""
from .host_probe import HostProfile, OsFamily, detect
from .executor import Executor
from .options import SyncOptions, build_data_options, build_blob_options
from .synchronizer import Direction, Outcome, SyncJob, SyncReport, Synchronizer

__all__ = [
    "HostProfile", "OsFamily", "detect",
    "Executor",
    "SyncOptions", "build_data_options", "build_blob_options",
    "Direction", "Outcome", "SyncJob", "SyncReport", "Synchronizer",
]
