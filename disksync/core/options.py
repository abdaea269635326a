"""
Rsync option sets for data and BLOB subdirectories, plus the SSH clause
"""
import shlex
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional
from .host_probe import HostProfile, OsFamily
from ..errors import ConfigurationError
from ..utils.logging import vlog

SSH = "ssh"
DRY_RUN = "dryrun"

DATA_RSYNC_OPTIONS = (
    ("standard", "-rtv"),
    ("timetolerance", "--modify-window=2"),
    ("deletions", "--delete"),
)

BLOB_RSYNC_OPTIONS = (
    ("standard", "-rtv"),
    ("timetolerance", "--modify-window=2"),
    ("timecheck", "--size-only"),
)


class SyncOptions(Mapping[str, str]):
    """
    Immutable, ordered mapping of option category to rsync flag string.
    Use with_flag() to derive a modified copy.
    """

    def __init__(self, name: str, entries=()):
        self.name = name
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, category: str) -> str:
        return self._entries[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, SyncOptions):
            return NotImplemented
        return self.name == other.name and list(self.items()) == list(other.items())

    def __hash__(self):
        return hash((self.name, tuple(self.items())))

    def __repr__(self):
        return f"SyncOptions({self.name!r}, {self.flags!r})"

    def with_flag(self, category: str, flag: str) -> "SyncOptions":
        """Return a copy with *category* set; an existing category keeps its position."""
        entries = dict(self._entries)
        entries[category] = flag
        return SyncOptions(self.name, entries)

    @property
    def flags(self) -> str:
        """All flags joined with single spaces, in insertion order."""
        return " ".join(v for v in self._entries.values() if v)

    @property
    def has_secure_transport(self) -> bool:
        return SSH in self._entries


def build_data_options() -> SyncOptions:
    """Preset for small, frequently changing files: deletes extraneous files."""
    return SyncOptions("data", DATA_RSYNC_OPTIONS)


def build_blob_options() -> SyncOptions:
    """Preset for large binaries: no deletions, files compared by size only."""
    return SyncOptions("blob", BLOB_RSYNC_OPTIONS)


# ── secure transport ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SecureTransport:
    ssh_path: str
    key_path: Path
    user_id: str
    host: Optional[str] = None
    os: OsFamily = OsFamily.UNKNOWN

    @property
    def command(self) -> str:
        """The ssh invocation rsync runs, each word shell-quoted."""
        return shlex.join([self.ssh_path, "-i", str(self.key_path), "-l", self.user_id])

    @property
    def clause(self) -> str:
        """
        The rsync remote-shell option, e.g. -e '/usr/bin/ssh -i ~/.ssh/id_rsa -l boss'.
        rsync splits the -e value itself, honouring the quotes inside it.
        cmd.exe only understands double quotes around the whole value.
        """
        if self.os is OsFamily.WINDOWS:
            return '-e "' + self.command.replace('"', '\\"') + '"'
        return "-e " + shlex.quote(self.command)


def resolve_private_key(host: HostProfile, key: Optional[str] = None) -> Path:
    """
    Find the private key to hand to ssh, in this order:
      1. *key* as given, if that file exists
      2. *key* as a file name inside the default key directory
      3. the host's default private key
    Raises ConfigurationError when none of these exist.
    """
    tried: list[Path] = []
    if key:
        given = Path(key).expanduser()
        tried.append(given)
        if given.is_file():
            return given
        if not given.is_absolute():
            in_key_dir = host.default_private_key_dir / key
            tried.append(in_key_dir)
            if in_key_dir.is_file():
                return in_key_dir
    tried.append(host.default_private_key_path)
    if host.default_private_key_path.is_file():
        return host.default_private_key_path
    raise ConfigurationError(
        "no usable private key found for SSH (tried: "
        + ", ".join(str(p) for p in tried) + ")"
    )


def secure_transport(host: HostProfile, settings: Mapping[str, str]) -> SecureTransport:
    """
    Build the SSH settings from a mapping with the optional keys
    host, key, uid and ssh.
    """
    ssh_path = settings.get("ssh") or host.ssh_path
    if not ssh_path:
        raise ConfigurationError("ssh executable not found; install OpenSSH or set 'ssh' in the profile")
    key_path = resolve_private_key(host, settings.get("key"))
    user_id = settings.get("uid") or host.user_id
    vlog(f"[ssh] key={key_path} uid={user_id} ssh={ssh_path}")
    return SecureTransport(ssh_path=ssh_path, key_path=key_path,
                           user_id=user_id, host=settings.get("host"), os=host.os)


def apply_secure_transport(options: SyncOptions, transport: SecureTransport) -> SyncOptions:
    """Return *options* with the remote-shell clause added (or replaced)."""
    return options.with_flag(SSH, transport.clause)


def with_dry_run(options: SyncOptions) -> SyncOptions:
    return options.with_flag(DRY_RUN, "--dry-run")

