"""
Volume resolver - guess which mounted volume is the remote side of a sync

Two policies: with candidate subdirectories, the volume holding the most of
them wins (ties go to the lexicographically first name); best-match returns
None when no volume holds any candidate, rather than picking one at random.
Without candidates, the most recently mounted volume wins.
"""
import os
from pathlib import Path
from typing import Iterable, Optional
from ..utils.logging import vlog


def list_volumes(mount_root: Optional[Path]) -> list[Path]:
    """
    Direct child directories of *mount_root*, sorted by name.
    Returns [] when the root is missing or unreadable.
    """
    if mount_root is None:
        return []
    try:
        entries = sorted(os.scandir(mount_root), key=lambda e: e.name)
    except OSError:
        return []
    volumes = []
    for entry in entries:
        if entry.name in (".", ".."):
            continue
        try:
            if entry.is_dir():
                volumes.append(Path(entry.path))
        except OSError:
            continue
    return volumes


def most_recent_volume(mount_root: Optional[Path]) -> Optional[Path]:
    """The volume with the latest status-change time (most recently mounted)."""
    stamped = []
    for vol in list_volumes(mount_root):
        try:
            stamped.append((vol.stat().st_ctime, vol.name, vol))
        except OSError:
            continue
    if not stamped:
        return None
    stamped.sort(key=lambda t: (t[0], t[1]))
    vlog(f"[volume] most recent mount: {stamped[-1][2]}")
    return stamped[-1][2]


def score_volume(volume: Path, candidates: Iterable[str]) -> int:
    """Number of *candidates* that exist as directories directly under *volume*."""
    return sum(1 for name in candidates if (volume / name).is_dir())


def best_match_volume(mount_root: Optional[Path],
                      candidates: Iterable[str]) -> Optional[Path]:
    """
    The volume holding most of the candidate subdirectories.
    Ties go to the lexicographically first volume name. Returns None when
    no volume holds any of the candidates.
    """
    names = list(dict.fromkeys(candidates))
    best: Optional[Path] = None
    best_score = 0
    for vol in list_volumes(mount_root):
        score = score_volume(vol, names)
        vlog(f"[volume] {vol}: {score}/{len(names)} subdirectories present")
        if score > best_score:
            best, best_score = vol, score
    return best


def guess_remote_base(mount_root: Optional[Path],
                      candidate_subdirs: Optional[Iterable[str]] = None) -> Optional[Path]:
    """
    Pick the remote base among the volumes under *mount_root*.
    Uses best-match when candidate subdirectories are known, most-recent
    mount otherwise. None means the remote could not be resolved.
    """
    candidates = list(candidate_subdirs or [])
    if candidates:
        return best_match_volume(mount_root, candidates)
    return most_recent_volume(mount_root)
