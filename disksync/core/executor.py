"""
Executor - builds one rsync command line and runs it as a child process
"""
import subprocess
from typing import Optional
from .host_probe import HostProfile
from ..errors import ExecutorError
from ..utils.logging import log, warn


class Executor:
    """
    Runs the transfer executable. Output goes straight to the terminal;
    only the pass/fail status of the child process is observed.
    """

    def __init__(self, host: HostProfile, dry_run: bool = False):
        self.host = host
        self.dry_run = dry_run
        self.last_returncode: Optional[int] = None

    def build_command(self, binary_path: str, option_string: str,
                      source: str, destination: str) -> str:
        parts = [
            binary_path,
            option_string,
            self.host.escape_path(source),
            self.host.escape_path(destination),
        ]
        return " ".join(p for p in parts if p)

    @staticmethod
    def ensure_available(binary_path: str):
        """Call once before a batch; an empty path means rsync was not found."""
        if not binary_path:
            raise ExecutorError("rsync executable not found; install rsync or add it to PATH")

    def run(self, binary_path: str, option_string: str,
            source: str, destination: str) -> bool:
        """Run one transfer; True when the child process exited with status 0."""
        self.ensure_available(binary_path)
        cmd = self.build_command(binary_path, option_string, source, destination)
        log(cmd)
        if self.dry_run:
            self.last_returncode = 0
            return True
        try:
            result = subprocess.run(cmd, shell=True)
        except OSError as exc:
            warn(f"could not start rsync: {exc}")
            self.last_returncode = None
            return False
        self.last_returncode = result.returncode
        return result.returncode == 0
