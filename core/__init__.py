"""
nfs-bench core: process runner, mount selection, metric extraction, session report.
"""

VERSION = "1.3"

from core.errors import (
    BenchError, SpawnError, MountSelectionError, NoMountsFound, SelectionOutOfRange,
    NotAMountPoint, DirectoryCreateError, ConfigError, DependencyError,
)
from core.extractors import (
    RateValue, CountRateValue, Unavailable, UNAVAILABLE,
    extract_dd_rate, extract_fio_bandwidth, extract_fio_iops, extract_iperf_bandwidth,
)
from core.runner import ProcessRunner, RunRecord, SessionLog
from core.mounts import MountEntry, MountSelection, discover_mounts, read_mount_table, select_mount
from core.report import MetricSlot, SessionReport
