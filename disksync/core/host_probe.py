"""
Host probe - OS family, user, executables and volume mount root of this machine
"""
import enum
import getpass
import os
import shlex
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional


class OsFamily(enum.Enum):
    MAC = "mac"
    LINUX = "linux"
    CYGWIN = "cygwin"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


def _quote_windows(path: str) -> str:
    return '"' + path.replace('"', '\\"') + '"'


def _linux_volume_roots(user: str) -> list[Path]:
    # udisks mounts under /run/media/<user> or /media/<user>; older setups use /media or /mnt
    return [Path("/run/media") / user, Path("/media") / user, Path("/media"), Path("/mnt")]


# ── per-OS lookup tables ─────────────────────────────────────────────────────

_VOLUME_ROOTS: dict[OsFamily, Callable[[str], list[Path]]] = {
    OsFamily.MAC: lambda user: [Path("/Volumes")],
    OsFamily.LINUX: _linux_volume_roots,
    OsFamily.CYGWIN: lambda user: [Path("/cygdrive")],
}

_PATH_ESCAPE: dict[OsFamily, Callable[[str], str]] = {
    OsFamily.MAC: shlex.quote,
    OsFamily.LINUX: shlex.quote,
    OsFamily.CYGWIN: shlex.quote,
    OsFamily.WINDOWS: _quote_windows,
    OsFamily.UNKNOWN: shlex.quote,
}


@dataclass(frozen=True)
class HostProfile:
    """
    Everything disksync needs to know about the machine it runs on.
    Built once per run by detect() and handed to every component.
    Missing executables are represented by an empty string.
    """
    os: OsFamily
    user_id: str
    home: Path
    rsync_path: str
    ssh_path: str
    default_private_key_dir: Path
    default_private_key_path: Path
    volumes_dir: Optional[Path]

    def escape_path(self, path: str) -> str:
        """Quote a path for the shell that will run the rsync command line."""
        return _PATH_ESCAPE[self.os](path)


def os_family(platform: str) -> OsFamily:
    if platform.startswith("darwin"):
        return OsFamily.MAC
    if platform.startswith("linux"):
        return OsFamily.LINUX
    if platform.startswith("cygwin"):
        return OsFamily.CYGWIN
    if platform.startswith(("win32", "msys", "mingw")):
        return OsFamily.WINDOWS
    return OsFamily.UNKNOWN


def _volumes_dir(family: OsFamily, user: str) -> Optional[Path]:
    roots = _VOLUME_ROOTS.get(family)
    if roots is None:
        return None
    return next((r for r in roots(user) if r.is_dir()), None)


def detect(platform: Optional[str] = None,
           environ: Optional[Mapping[str, str]] = None,
           which: Callable[[str], Optional[str]] = shutil.which) -> HostProfile:
    """
    Query the environment and return a HostProfile. Never raises: an
    unrecognised OS gets OsFamily.UNKNOWN and no volume root.
    """
    env = os.environ if environ is None else environ
    family = os_family(platform or sys.platform)

    if family is OsFamily.WINDOWS:
        user = env.get("USERNAME", "")
        home_str = env.get("USERPROFILE") or env.get("HOMEPATH", "")
    else:
        user = env.get("USER", "")
        home_str = env.get("HOME", "")
    if not user:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = ""
    home = Path(home_str) if home_str else Path.home()

    key_dir = home / ".ssh"
    return HostProfile(
        os=family,
        user_id=user,
        home=home,
        rsync_path=which("rsync") or "",
        ssh_path=which("ssh") or "",
        default_private_key_dir=key_dir,
        default_private_key_path=key_dir / "id_rsa",
        volumes_dir=_volumes_dir(family, user),
    )
