"""
Exception hierarchy for nfs-bench.

Startup errors (mount selection, scratch directory, config, dependencies)
abort the program before any benchmark runs. SpawnError aborts only the
driver that hit it.
"""


class BenchError(Exception):
    """Base class for all nfs-bench errors."""


class SpawnError(BenchError):
    """An external executable could not be located or started."""

    def __init__(self, command, reason):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"cannot run '{self.command[0] if self.command else ''}': {reason}")


class MountSelectionError(BenchError):
    """Base class for mount discovery/selection failures."""


class NoMountsFound(MountSelectionError):
    """No NFS mounts are present and no literal path was supplied."""


class SelectionOutOfRange(MountSelectionError):
    """A numeric mount choice does not index a discovered mount."""


class NotAMountPoint(MountSelectionError):
    """A literal path choice is not currently a mount point."""


class DirectoryCreateError(BenchError):
    """The scratch working directory could not be created."""


class ConfigError(BenchError):
    """A config file is missing, unparsable, or invalid."""


class DependencyError(BenchError):
    """Required tools are missing and could not be installed."""
