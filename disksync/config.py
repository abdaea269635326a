"""
Configuration constants and .disksync profile loading
"""
import os
from pathlib import Path
from typing import Optional
import yaml
from .errors import ConfigurationError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config or CLI flags
# ══════════════════════════════════════════════════════════════════════════════

CONFIG_FILENAME = ".disksync"

# Local base directory, relative to the user's home
DEFAULT_DATA_DIR = "_local_working_copy"
DEFAULT_BLOB_SUBDIRS = ["BLOBs"]

DEFAULT_DIRECTION = "push"

# Retry settings for the SSH calls of the check command
RETRY_MAX = 3
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
RETRY_MAX_DELAY = 30.0

SSH_PORT = 22
SSH_CONNECT_TIMEOUT = 20


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/disksync/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for disksync."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "disksync"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "disksync"
    return Path.home() / ".config" / "disksync"


def load_global_config() -> dict:
    """Load global config; a missing file means no defaults."""
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    return load_disksync_file(cfg_path)


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG  ── nearest .disksync file
# ══════════════════════════════════════════════════════════════════════════════

def find_disksync(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .disksync YAML file.
    Returns the Path if found, or None if no .disksync exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_disksync_file(path: Path) -> dict:
    """Parse a .disksync YAML file and return its contents as a dict."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .disksync or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults") or {}
    profiles = data.get("profiles") or []
    if not isinstance(defaults, dict):
        raise ConfigurationError("'defaults' must be a mapping")
    if not isinstance(profiles, list) or not all(isinstance(p, dict) for p in profiles):
        raise ConfigurationError("'profiles' must be a list of mappings, each with a 'name'")
    if not profiles:
        return dict(defaults)
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = dict(defaults)
    merged.update(profile)
    return merged


# ══════════════════════════════════════════════════════════════════════════════
#  BUILD JOB  ── profile dict → SyncJob + SSH settings
# ══════════════════════════════════════════════════════════════════════════════

def _str_list(profile: dict, key: str) -> Optional[list]:
    if key not in profile or profile[key] is None:
        return None
    value = profile[key]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"'{key}' must be a list of directory names")
    return [str(v) for v in value]


def build_job(profile: dict, host):
    """
    Turn a profile dict into (SyncJob, ssh_settings).
    Supports keys: local_base, remote_base, data_subdirs, blob_subdirs,
                   direction, ssh (mapping with host, key, uid, ssh).
    ssh_settings is None when the profile does not use SSH.
    """
    from .core.synchronizer import SyncJob

    ssh = profile.get("ssh")
    if ssh is not None and not isinstance(ssh, dict):
        raise ConfigurationError("'ssh' must be a mapping with host, key and uid")
    ssh_settings = {k: str(v) for k, v in (ssh or {}).items() if v is not None} or None
    if ssh_settings is not None and not ssh_settings.get("host"):
        raise ConfigurationError("'ssh' needs a 'host'")

    remote_base = profile.get("remote_base")
    job = SyncJob(
        host,
        local_base_path=profile.get("local_base"),
        remote_base_path=None if remote_base is None else str(remote_base),
        data_subdirs=_str_list(profile, "data_subdirs"),
        blob_subdirs=_str_list(profile, "blob_subdirs"),
        direction=profile.get("direction") or DEFAULT_DIRECTION,
    )
    return job, ssh_settings
