"""
Synchronizer - walks the configured subdirectories and runs rsync for each pair

Minimal use, pushing the subdirectories of ~/_local_working_copy onto a USB
volume mounted under /Volumes/MYDISK:

    host = detect()
    job = SyncJob(host, data_subdirs=["Lyrics", "Stories"])
    job.remote_base_path = "/Volumes/MYDISK"
    Synchronizer(host, job).synchronize_all()

Over SSH, with the key ~/.ssh/me_rsa and login 'boss' on nas.home.test:

    sync = Synchronizer(host, job)
    sync.add_ssh_option({"key": "me_rsa", "host": "nas.home.test", "uid": "boss"})
    sync.synchronize_all()
"""
import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional
from .executor import Executor
from .host_probe import HostProfile
from .options import (SyncOptions, SecureTransport, apply_secure_transport,
                      build_blob_options, build_data_options, secure_transport)
from .volume_resolver import guess_remote_base
from .. import config as _cfg
from ..errors import ConfigurationError
from ..utils.logging import FAIL, OK, SKIP, log, outcome, vlog


class Direction(enum.Enum):
    PUSH = "push"   # local → remote
    PULL = "pull"   # remote → local

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"direction must be 'push' or 'pull', not {value!r}") from None


class Outcome(enum.Enum):
    SYNCED = "synced"
    FAILED = "failed"
    MISSING_LOCAL = "missing locally"
    MISSING_REMOTE = "missing on remote"
    NO_REMOTE = "no remote target"


SKIPPED = frozenset({Outcome.MISSING_LOCAL, Outcome.MISSING_REMOTE, Outcome.NO_REMOTE})


@dataclass
class SubdirResult:
    name: str
    outcome: Outcome
    local_path: str = ""
    remote_path: str = ""
    command: str = ""


@dataclass
class SyncReport:
    results: list = field(default_factory=list)

    def add(self, result: SubdirResult) -> SubdirResult:
        self.results.append(result)
        return result

    def count(self, *outcomes: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome in outcomes)

    @property
    def failed(self) -> list:
        return [r for r in self.results if r.outcome is Outcome.FAILED]

    @property
    def skipped(self) -> list:
        return [r for r in self.results if r.outcome in SKIPPED]

    @property
    def commands(self) -> list:
        return [r.command for r in self.results if r.command]

    def exit_code(self, ignore_skips: bool = False) -> int:
        """0 when everything went through, 2 on any failure (or skip, unless ignored)."""
        if self.failed:
            return 2
        if self.skipped and not ignore_skips:
            return 2
        return 0


class SyncJob:
    """
    What to synchronize: base paths, subdirectory lists and direction.

    local_base_path may be given relative to the user's home directory;
    remote_base_path None means "not resolved yet", "" means the remote
    user's home when going over SSH.
    """

    def __init__(self, host: HostProfile,
                 local_base_path=None,
                 remote_base_path: Optional[str] = None,
                 data_subdirs: Optional[Iterable[str]] = None,
                 blob_subdirs: Optional[Iterable[str]] = None,
                 direction=Direction.PUSH,
                 remote_host: Optional[str] = None):
        self._home = host.home
        self._local_base_path = host.home / _cfg.DEFAULT_DATA_DIR
        if local_base_path is not None:
            self.local_base_path = local_base_path
        self.remote_base_path = None if remote_base_path is None else str(remote_base_path)
        self.remote_host = remote_host
        self.data_subdirs = list(data_subdirs or [])
        self.blob_subdirs = list(_cfg.DEFAULT_BLOB_SUBDIRS if blob_subdirs is None else blob_subdirs)
        self.direction = Direction.parse(direction)

    @property
    def local_base_path(self) -> Path:
        return self._local_base_path

    @local_base_path.setter
    def local_base_path(self, path):
        p = Path(path).expanduser()
        self._local_base_path = p if p.is_absolute() else self._home / p

    def __repr__(self):
        return (f"SyncJob(local={self.local_base_path}, remote={self.remote_base_path!r}, "
                f"host={self.remote_host!r}, data={self.data_subdirs}, "
                f"blob={self.blob_subdirs}, direction={self.direction.value})")


class Synchronizer:
    """
    Synchronizes the job's data subdirectories (with deletions) and BLOB
    subdirectories (size-only, no deletions) between local and remote.

    synchronize_subdir_list() may be called directly for ad-hoc lists; set
    effective_options to the preset it should use first.
    """

    def __init__(self, host: HostProfile, job: SyncJob,
                 executor: Optional[Executor] = None,
                 volumes_dir: Optional[Path] = None):
        self.host = host
        self.job = job
        self.executor = executor or Executor(host)
        self.volumes_dir = host.volumes_dir if volumes_dir is None else volumes_dir
        self.data_options: SyncOptions = build_data_options()
        self.blob_options: SyncOptions = build_blob_options()
        self.effective_options: SyncOptions = self.data_options
        self.transport: Optional[SecureTransport] = None

    # ── configuration ────────────────────────────────────────────────────────

    @property
    def ssh(self) -> bool:
        return self.effective_options.has_secure_transport

    def add_ssh_option(self, settings: Mapping[str, str]) -> SecureTransport:
        """
        Route transfers through ssh. Settings keys: host, key, uid, ssh.
        Raises ConfigurationError when no private key can be found
        or when neither the settings nor the job name a remote host.
        """
        transport = secure_transport(self.host, settings)
        if not (transport.host or self.job.remote_host):
            raise ConfigurationError("ssh transfers need a remote host (settings 'host' or job.remote_host)")
        self.data_options = apply_secure_transport(self.data_options, transport)
        self.blob_options = apply_secure_transport(self.blob_options, transport)
        self.effective_options = apply_secure_transport(self.effective_options, transport)
        self.transport = transport
        if transport.host:
            self.job.remote_host = transport.host
        log(f"[ssh] transfers go through {transport.user_id}@{self.job.remote_host}")
        return transport

    def map_options(self, fn):
        """Apply *fn* to every option preset (e.g. options.with_dry_run)."""
        self.data_options = fn(self.data_options)
        self.blob_options = fn(self.blob_options)
        self.effective_options = fn(self.effective_options)

    # ── synchronization ──────────────────────────────────────────────────────

    def synchronize_all(self, direction=None) -> SyncReport:
        """
        Synchronize the data subdirectories, then the BLOB subdirectories.
        Raises ConfigurationError before any transfer when nothing is
        configured or rsync is missing.
        """
        direction = Direction.parse(direction or self.job.direction)
        if not self.job.data_subdirs:
            raise ConfigurationError("no data subdirectories configured")
        Executor.ensure_available(self.host.rsync_path)

        report = SyncReport()
        self.effective_options = self.data_options
        self.synchronize_subdir_list(self.job.data_subdirs, direction, report)
        if self.job.blob_subdirs:
            self.effective_options = self.blob_options
            self.synchronize_subdir_list(self.job.blob_subdirs, direction, report)
        self.effective_options = self.data_options
        return report

    def resolve_remote_base(self, candidates: Iterable[str]) -> Optional[str]:
        if self.job.remote_base_path is None:
            if self.ssh:
                self.job.remote_base_path = ""
            else:
                guessed = guess_remote_base(self.volumes_dir, candidates)
                if guessed is not None:
                    log(f"[volume] using {guessed} as remote base")
                    self.job.remote_base_path = str(guessed)
        return self.job.remote_base_path

    def remote_path_for(self, name: str) -> str:
        base = self.job.remote_base_path
        if self.ssh:
            return f"{self.job.remote_host}:" + (name if not base else f"{base.rstrip('/')}/{name}")
        return os.path.join(base, name)

    def synchronize_subdir_list(self, subdirs: Iterable[str], direction=None,
                                report: Optional[SyncReport] = None) -> SyncReport:
        """
        Synchronize each subdirectory below the base paths, in order.
        Subdirectories missing locally (or on a mounted remote) are skipped.
        """
        direction = Direction.parse(direction or self.job.direction)
        report = report if report is not None else SyncReport()
        subdirs = list(subdirs)

        print(f"\nTrying to {direction.value} the following subdirectories:")
        for d in subdirs:
            print(f"  - {d}")

        for d in subdirs:
            print(f"\n{d}:")
            local_path = os.path.join(str(self.job.local_base_path), d)
            if not os.path.isdir(local_path):
                outcome(SKIP, d, f"{local_path} not on local disk")
                report.add(SubdirResult(d, Outcome.MISSING_LOCAL, local_path=local_path))
                continue
            vlog(f"{local_path} exists on local disk.")

            if self.resolve_remote_base(subdirs) is None:
                outcome(SKIP, d, f"no matching volume under {self.volumes_dir}")
                report.add(SubdirResult(d, Outcome.NO_REMOTE, local_path=local_path))
                continue

            remote_path = self.remote_path_for(d)
            if not self.ssh and not os.path.isdir(remote_path):
                outcome(SKIP, d, f"{remote_path} not on remote disk")
                report.add(SubdirResult(d, Outcome.MISSING_REMOTE,
                                        local_path=local_path, remote_path=remote_path))
                continue

            report.add(self.synchronize(local_path, remote_path, direction))
        return report

    def synchronize(self, local_path: str, remote_path: str, direction=None) -> SubdirResult:
        """
        Run rsync for one pair of full paths: local → remote on push,
        remote → local on pull. The source gets a trailing separator so
        rsync copies the directory's contents.
        """
        direction = Direction.parse(direction or self.job.direction)
        if direction is Direction.PUSH:
            source, target = local_path, remote_path
        else:
            source, target = remote_path, local_path
        source = os.path.join(source, "")

        rsync = self.host.rsync_path
        flags = self.effective_options.flags
        command = self.executor.build_command(rsync, flags, source, target)
        name = os.path.basename(local_path.rstrip(os.sep))

        log(f"Calling rsync ({direction.value}ing, {self.effective_options.name} options)")
        ok = self.executor.run(rsync, flags, source, target)
        if ok:
            outcome(OK, name)
            result = Outcome.SYNCED
        else:
            outcome(FAIL, name, f"rsync exited {self.executor.last_returncode}: {command}")
            result = Outcome.FAILED
        return SubdirResult(name, result, local_path=local_path,
                            remote_path=remote_path, command=command)
