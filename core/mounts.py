"""
NFS mount discovery and selection for nfs-bench.
Handles reading the mount table, choosing a mount, and creating the scratch
working directory that holds all test artifacts.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from core.errors import (
    DirectoryCreateError, NoMountsFound, NotAMountPoint, SelectionOutOfRange,
)
from utils import print_bullet, print_info, print_warning

MOUNT_TABLE_PATH = "/proc/mounts"
NFS_FSTYPE_PREFIX = "nfs"
WORKING_DIR_PREFIX = ".nfs_bench_"
UNKNOWN = "unknown"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")
_INDEX_CHOICE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class MountEntry:
    """One row of the mount table."""
    mount_path: str
    source_spec: str
    filesystem_type: str

    def describe(self) -> str:
        return f"{self.mount_path}  <-  {self.source_spec}  ({self.filesystem_type})"


@dataclass(frozen=True)
class MountSelection:
    """The mount chosen for this run and its scratch directory."""
    mount_path: str
    source_spec: str
    filesystem_type: str
    working_dir: str

    def __post_init__(self):
        mount = os.path.abspath(self.mount_path)
        work = os.path.abspath(self.working_dir)
        if work == mount or os.path.commonpath([mount, work]) != mount:
            raise ValueError(f"working dir {self.working_dir} is not below mount {self.mount_path}")

    @property
    def nas_host(self) -> Optional[str]:
        """Host part of a 'host:/export' source, or None."""
        if ":" not in self.source_spec:
            return None
        host = self.source_spec.split(":", 1)[0]
        # Bracketed IPv6 sources look like [fd00::1]:/export
        return host.strip("[]") or None


def _unescape(field: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mount_table(text: str) -> List[MountEntry]:
    """Parse /proc/mounts formatted text (source, path, fstype, ...)."""
    entries = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        entries.append(MountEntry(
            mount_path=_unescape(parts[1]),
            source_spec=_unescape(parts[0]),
            filesystem_type=parts[2],
        ))
    return entries


def read_mount_table(path: str = MOUNT_TABLE_PATH) -> List[MountEntry]:
    """Read the live mount table."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_mount_table(f.read())


def discover_mounts(entries: Optional[Sequence[MountEntry]] = None) -> List[MountEntry]:
    """Return the NFS mounts (nfs, nfs4) from the mount table."""
    if entries is None:
        entries = read_mount_table()
    return [e for e in entries if e.filesystem_type.startswith(NFS_FSTYPE_PREFIX)]


def _lookup(entries: Sequence[MountEntry], path: str) -> Optional[MountEntry]:
    target = os.path.normpath(path)
    # Last entry wins when a path is mounted over more than once
    found = None
    for entry in entries:
        if os.path.normpath(entry.mount_path) == target:
            found = entry
    return found


def working_dir_for(mount_path: str, timestamp: str) -> str:
    return os.path.join(mount_path, f"{WORKING_DIR_PREFIX}{timestamp}")


def select_mount(
    candidates: Sequence[MountEntry],
    choice: str,
    timestamp: str,
    entries: Optional[Sequence[MountEntry]] = None,
    is_mount: Callable[[str], bool] = os.path.ismount,
    makedirs: Callable = os.makedirs,
) -> MountSelection:
    """
    Resolve the operator's choice into a MountSelection and create its scratch dir.

    Args:
        candidates: Discovered NFS mounts, in the order they were listed.
        choice: 1-based index into candidates, or a literal mount path.
        timestamp: Run timestamp used to name the scratch directory.
        entries: Full mount table for literal-path lookups (read live if None).
        is_mount: Predicate for "currently a mount point".
        makedirs: Directory creator (os.makedirs signature).

    Raises:
        NoMountsFound, SelectionOutOfRange, NotAMountPoint, DirectoryCreateError
    """
    choice = (choice or "").strip()

    if _INDEX_CHOICE.match(choice) or not choice:
        if not candidates:
            raise NoMountsFound(
                "No NFS mounts detected. Please mount your NAS first (e.g., via /etc/fstab or mount command)."
            )
        if not choice:
            raise SelectionOutOfRange("No mount selected")
        index = int(choice)
        if not 1 <= index <= len(candidates):
            raise SelectionOutOfRange(f"Selection {index} is out of range [1-{len(candidates)}]")
        chosen = candidates[index - 1]
        mount_path, source, fstype = chosen.mount_path, chosen.source_spec, chosen.filesystem_type
    else:
        if entries is None:
            try:
                entries = read_mount_table()
            except OSError:
                entries = []
        mount_path = os.path.abspath(os.path.expanduser(choice))
        entry = _lookup(entries, mount_path)
        if entry is None and not is_mount(mount_path):
            raise NotAMountPoint(f"Provided path is not a mountpoint: {mount_path}")
        source = entry.source_spec if entry else UNKNOWN
        fstype = entry.filesystem_type if entry else UNKNOWN

    selection = MountSelection(
        mount_path=mount_path,
        source_spec=source,
        filesystem_type=fstype,
        working_dir=working_dir_for(mount_path, timestamp),
    )
    ensure_working_dir(selection, makedirs=makedirs)
    return selection


def ensure_working_dir(selection: MountSelection, makedirs: Callable = os.makedirs) -> str:
    """Create the scratch directory if needed (also after a cleanup)."""
    try:
        makedirs(selection.working_dir, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(
            f"Cannot create test directory {selection.working_dir}: {e.strerror or e}"
        ) from e
    return selection.working_dir


def list_mounts(candidates: Sequence[MountEntry]):
    """Print the numbered mount list shown before the selection prompt."""
    print_info("Detected NFS mounts:")
    for i, entry in enumerate(candidates, 1):
        print_bullet(f"[{i}] {entry.describe()}")


def prompt_for_mount(candidates: Sequence[MountEntry], prompt, timestamp: str, **kwargs) -> MountSelection:
    """Interactive variant of select_mount: list candidates and ask once."""
    if candidates:
        list_mounts(candidates)
        question = f"Select mount [1-{len(candidates)}] or enter a path manually: "
    else:
        print_warning("No NFS mounts detected in the mount table.")
        question = "Enter a mount path manually (empty to abort): "
    choice = prompt(question)
    return select_mount(candidates, choice, timestamp, **kwargs)
