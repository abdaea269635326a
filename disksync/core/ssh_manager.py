"""
Remote directory checks for `disksync check` - asks the remote which subdirectories exist
"""
import shlex
from typing import Optional
import paramiko
from .options import SecureTransport
from .. import config as _cfg
from ..utils.logging import log
from ..utils.retry import retried


class SSHManager:
    """
    Wraps paramiko SSHClient with the same host, login and key rsync uses.
    Only used to look at the remote side; transfers never go through here.
    """

    def __init__(self, transport: SecureTransport, port: int = 22):
        self.transport = transport
        self.port = port
        self._ssh: Optional[paramiko.SSHClient] = None

    # ── connection ─────────────────────────────────────────────────────────

    @retried
    def connect(self):
        if self._ssh:
            return
        t = self.transport
        log(f"[SSH] connecting to {t.user_id}@{t.host}:{self.port} …")
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        client.connect(hostname=t.host, port=self.port, username=t.user_id,
                       key_filename=str(t.key_path),
                       timeout=_cfg.SSH_CONNECT_TIMEOUT,
                       banner_timeout=_cfg.SSH_CONNECT_TIMEOUT,
                       auth_timeout=_cfg.SSH_CONNECT_TIMEOUT)
        self._ssh = client
        log("[SSH] connected ✓")

    def disconnect(self):
        if self._ssh:
            self._ssh.close()
            self._ssh = None
            log("[SSH] disconnected.")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.disconnect()

    # ── remote queries ───────────────────────────────────────────────────────

    @retried
    def exec(self, cmd: str, timeout: int = 30) -> tuple[int, str]:
        """Run a command; return (exit status, stdout)."""
        self.connect()
        _, stdout, _ = self._ssh.exec_command(cmd, timeout=timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        return stdout.channel.recv_exit_status(), out

    def dir_exists(self, remote_path: str) -> bool:
        """True if *remote_path* (relative to the login's home) is a directory."""
        rc, _ = self.exec(f"test -d {shlex.quote(remote_path)}")
        return rc == 0
