#!/usr/bin/env python3
"""
disksync  —  mirror named subdirectories to a USB volume or an SSH host
======================================================================

Subcommands:
  init      Create a .disksync config file in the current directory.
  sync      Push (or pull) the configured subdirectories with rsync.
  check     Show which configured subdirectories exist on each side.

Exit status of 'sync': 0 when every subdirectory was synchronized, 1 on a
configuration error (no private key, rsync missing …), 2 when a transfer
failed or a subdirectory had to be skipped.

Run 'disksync <subcommand> --help' for more details.
"""
import sys
import argparse
from pathlib import Path


# ── shared helpers ───────────────────────────────────────────────────────────

def _fail(msg: str, code: int = 1):
    print(f"error: {msg}", file=sys.stderr)
    sys.exit(code)


def _load_profile(args) -> dict:
    """Global defaults, then the nearest .disksync profile, then CLI flags."""
    from disksync import config as _cfg

    profile = dict(_cfg.load_global_config().get("defaults") or {})

    disksync_path = _cfg.find_disksync()
    if disksync_path is not None:
        if args.verbose:
            print(f"[config] Using {disksync_path}")
        data = _cfg.load_disksync_file(disksync_path)
        profile.update(_cfg.get_profile(data, args.profile or "default"))
    elif args.verbose:
        print("[config] No .disksync file found; using command-line settings only")

    if args.local:
        profile["local_base"] = args.local
    if args.remote is not None:
        profile["remote_base"] = args.remote
    if args.data:
        profile["data_subdirs"] = args.data
    if args.blob:
        profile["blob_subdirs"] = args.blob
    if args.no_blob:
        profile["blob_subdirs"] = []
    if args.host or args.key or args.uid:
        ssh = dict(profile.get("ssh") or {})
        for key in ("host", "key", "uid"):
            value = getattr(args, key)
            if value:
                ssh[key] = value
        profile["ssh"] = ssh
    return profile


def _make_synchronizer(args, dry_run: bool = False, print_only: bool = False):
    from disksync.config import build_job
    from disksync.core.host_probe import detect
    from disksync.core.executor import Executor
    from disksync.core.options import with_dry_run
    from disksync.core.synchronizer import Synchronizer

    host = detect()
    profile = _load_profile(args)
    job, ssh_settings = build_job(profile, host)
    volumes_dir = Path(args.volumes_dir) if args.volumes_dir else None

    sync = Synchronizer(host, job, executor=Executor(host, dry_run=print_only),
                        volumes_dir=volumes_dir)
    if ssh_settings:
        sync.add_ssh_option(ssh_settings)
    if dry_run:
        sync.map_options(with_dry_run)
    return host, sync


def _local_subdirs(base: Path, exclude) -> list:
    """Every visible directory directly under *base*, minus *exclude*."""
    if not base.is_dir():
        return []
    return sorted(p.name for p in base.iterdir()
                  if p.is_dir() and not p.name.startswith(".") and p.name not in exclude)


def _confirm_full_sync(job) -> bool:
    """Ask whether to fall back to every directory of the local base."""
    if not sys.stdin.isatty():
        return False
    candidates = _local_subdirs(job.local_base_path, set(job.blob_subdirs))
    if not candidates:
        return False
    print(f"No data subdirectories configured. {len(candidates)} directories under "
          f"{job.local_base_path}:")
    for name in candidates[:20]:
        print(f"  {name}")
    if len(candidates) > 20:
        print(f"  ... ({len(candidates) - 20} more)")
    try:
        choice = input("Synchronize all of them? [y/N]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        choice = "n"
    if choice in ("y", "yes"):
        job.data_subdirs = candidates
        return True
    return False


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a .disksync profile file in the current directory."""
    from disksync import config as _cfg

    target = Path.cwd() / _cfg.CONFIG_FILENAME

    if target.exists() and not args.force:
        print(f"error: {_cfg.CONFIG_FILENAME} already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    def _yq(value: str) -> str:
        """Wrap a string in YAML single quotes, escaping embedded single quotes."""
        return "'" + str(value).replace("'", "''") + "'"

    def _yl(values) -> str:
        return "[" + ", ".join(_yq(v) for v in values) + "]"

    local_base = (args.local or _cfg.DEFAULT_DATA_DIR).replace("\\", "/")
    blob = args.blob if args.blob is not None else _cfg.DEFAULT_BLOB_SUBDIRS

    lines = [
        "# .disksync — disksync configuration",
        "#",
        "# local_base is relative to your home directory unless absolute.",
        "# Without remote_base (and without ssh) the remote is guessed from",
        "# the mounted volumes that hold most of the listed subdirectories.",
        "profiles:",
        f"  - name: {args.profile or 'default'}",
        f"    local_base: {_yq(local_base)}",
    ]
    if args.remote is not None:
        lines.append(f"    remote_base: {_yq(args.remote)}")
    lines += [
        f"    data_subdirs: {_yl(args.data or [])}",
        f"    blob_subdirs: {_yl(blob)}",
        f"    direction: {args.direction or _cfg.DEFAULT_DIRECTION}",
    ]
    if args.host:
        lines.append("    ssh:")
        lines.append(f"      host: {_yq(args.host)}")
        if args.key:
            lines.append(f"      key: {_yq(args.key)}")
        if args.uid:
            lines.append(f"      uid: {_yq(args.uid)}")

    content = "\n".join(lines) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    if args.verbose:
        print(content)


# ── sync ─────────────────────────────────────────────────────────────────────

def cmd_sync(args):
    """Run synchronize_all with the nearest .disksync profile."""
    from disksync.errors import ConfigurationError
    from disksync.utils.logging import set_verbose

    set_verbose(args.verbose)
    try:
        _, sync = _make_synchronizer(args, dry_run=args.dry_run, print_only=args.print_only)
        job = sync.job
        direction = args.direction or job.direction

        if not job.data_subdirs and not _confirm_full_sync(job):
            _fail("no data subdirectories configured (use --data or data_subdirs in .disksync)")

        print(f"\n{'=' * 64}")
        print(f"  Sync  {job.local_base_path}")
        remote = job.remote_base_path if job.remote_base_path is not None else "(guess from volumes)"
        if sync.ssh:
            remote = f"{job.remote_host}:{job.remote_base_path or '~'}"
        print(f"   ↔   {remote}")
        print(f"{'=' * 64}")
        if args.dry_run:
            print("  *** DRY-RUN — rsync will not change any files ***")
        if args.print_only:
            print("  *** PRINT-ONLY — rsync will not be called ***")

        report = sync.synchronize_all(direction)
    except ConfigurationError as exc:
        _fail(str(exc))

    print()
    print(f"{'─' * 64}")
    print(" SUMMARY")
    print(f"  Synced         : {len(report.results) - len(report.failed) - len(report.skipped)}")
    print(f"  Failed         : {len(report.failed)}")
    print(f"  Skipped        : {len(report.skipped)}")
    for r in report.failed + report.skipped:
        print(f"    {r.name}: {r.outcome.value}")
    print(f"{'─' * 64}")

    sys.exit(report.exit_code(ignore_skips=args.ignore_skips))


# ── check ────────────────────────────────────────────────────────────────────

def cmd_check(args):
    """Report where each configured subdirectory exists, without transferring."""
    import os
    import paramiko
    from disksync import config as _cfg
    from disksync.core.ssh_manager import SSHManager
    from disksync.errors import ConfigurationError
    from disksync.utils.logging import set_verbose

    set_verbose(args.verbose)
    try:
        _, sync = _make_synchronizer(args)
    except ConfigurationError as exc:
        _fail(str(exc))
    job = sync.job
    subdirs = job.data_subdirs + job.blob_subdirs
    if not subdirs:
        _fail("no subdirectories configured")

    if sync.ssh:
        try:
            mgr = SSHManager(sync.transport, port=args.port or _cfg.SSH_PORT)
            with mgr:
                base = job.remote_base_path or ""
                remote = {d: mgr.dir_exists(f"{base.rstrip('/')}/{d}" if base else d)
                          for d in subdirs}
        except (paramiko.SSHException, OSError) as exc:
            _fail(f"could not inspect {job.remote_host} over SSH: {exc}")
    else:
        base = sync.resolve_remote_base(subdirs)
        remote = {d: base is not None and os.path.isdir(os.path.join(base, d)) for d in subdirs}

    where = f"{job.remote_host}:" if sync.ssh else ""
    print(f"\nLocal  : {job.local_base_path}")
    print(f"Remote : {where}{job.remote_base_path if job.remote_base_path is not None else '(unresolved)'}")
    print()
    complete = True
    for d in subdirs:
        local_ok = (job.local_base_path / d).is_dir()
        complete = complete and local_ok and remote[d]
        kind = "blob" if d in job.blob_subdirs and d not in job.data_subdirs else "data"
        print(f"  {'✓' if local_ok else '✗'} local  {'✓' if remote[d] else '✗'} remote  {d} ({kind})")
    sys.exit(0 if complete else 2)


# ── main ──────────────────────────────────────────────────────────────────────

def _add_job_args(p):
    p.add_argument("--profile", metavar="NAME", default="default",
                   help="Profile to use (default: default)")
    p.add_argument("--local", metavar="PATH",
                   help="Local base directory (relative to home unless absolute)")
    p.add_argument("--remote", metavar="PATH",
                   help="Remote base directory (mounted volume, or path on the SSH host)")
    p.add_argument("--data", nargs="+", metavar="DIR",
                   help="Data subdirectories (synchronized with deletions)")
    p.add_argument("--blob", nargs="+", metavar="DIR",
                   help="BLOB subdirectories (size-only, no deletions)")
    p.add_argument("--no-blob", action="store_true",
                   help="Do not synchronize any BLOB subdirectories")
    p.add_argument("--host", metavar="HOST", help="Synchronize over SSH with this host")
    p.add_argument("--key", metavar="PATH", help="SSH private key (path or name in ~/.ssh)")
    p.add_argument("--uid", metavar="NAME", help="SSH login (default: local user)")
    p.add_argument("--volumes-dir", metavar="PATH",
                   help="Directory where removable volumes are mounted (default: per OS)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Show extra output")


def main():
    """CLI entry point for disksync"""
    parser = argparse.ArgumentParser(
        prog="disksync",
        description="Mirror named subdirectories to a USB volume or an SSH host with rsync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a .disksync config file in the current directory",
        description="Create a .disksync YAML config file.",
    )
    init_p.add_argument("--local", metavar="PATH",
                        help="Local base directory (default: _local_working_copy)")
    init_p.add_argument("--remote", metavar="PATH",
                        help="Remote base directory")
    init_p.add_argument("--data", nargs="+", metavar="DIR",
                        help="Data subdirectories")
    init_p.add_argument("--blob", nargs="*", metavar="DIR",
                        help="BLOB subdirectories (default: BLOBs)")
    init_p.add_argument("--direction", choices=("push", "pull"),
                        help="Default direction (default: push)")
    init_p.add_argument("--host", metavar="HOST", help="SSH host")
    init_p.add_argument("--key", metavar="PATH", help="SSH private key")
    init_p.add_argument("--uid", metavar="NAME", help="SSH login")
    init_p.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile name to create (default: default)")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite existing .disksync")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    init_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")

    # ── sync ──────────────────────────────────────────────────────────────────
    sync_p = subparsers.add_parser(
        "sync",
        help="Synchronize the configured subdirectories",
        description="Push (local → remote) or pull (remote → local) with rsync.",
    )
    sync_p.add_argument("direction", nargs="?", choices=("push", "pull"),
                        help="Direction (default: from the profile, else push)")
    _add_job_args(sync_p)
    sync_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Pass --dry-run to rsync")
    sync_p.add_argument("--print-only", action="store_true",
                        help="Only print the rsync command lines")
    sync_p.add_argument("--ignore-skips", action="store_true",
                        help="Exit 0 even when subdirectories were skipped")

    # ── check ─────────────────────────────────────────────────────────────────
    check_p = subparsers.add_parser(
        "check",
        help="Show which subdirectories exist locally and remotely",
        description="Check local and remote subdirectories without transferring.",
    )
    _add_job_args(check_p)
    check_p.add_argument("--port", type=int, metavar="N",
                         help="SSH port for the remote check (default: 22)")

    args = parser.parse_args()

    if args.command == "init":
        cmd_init(args)
    elif args.command == "sync":
        if args.dry_run and args.print_only:
            sync_p.error("--dry-run and --print-only are mutually exclusive")
        cmd_sync(args)
    elif args.command == "check":
        cmd_check(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
