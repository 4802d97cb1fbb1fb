"""
Session report for nfs-bench.
Holds one result per metric slot, renders the console summary table, and
writes the flat key-value summary file at exit.
"""

import os
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from core.extractors import UNAVAILABLE, MetricResult
from utils import format_table, print_success, print_warning


class MetricSlot(str, Enum):
    """Named result buckets, in summary order."""
    DD_WRITE = "dd-write"
    DD_READ = "dd-read"
    FIO_SEQ_READ = "fio-seq-read"
    FIO_SEQ_WRITE = "fio-seq-write"
    FIO_RAND_READ_IOPS = "fio-rand-read-iops"
    FIO_RAND_WRITE_IOPS = "fio-rand-write-iops"
    IPERF_BANDWIDTH = "iperf-bandwidth"


SLOT_LABELS = {
    MetricSlot.DD_WRITE: "dd Write",
    MetricSlot.DD_READ: "dd Read",
    MetricSlot.FIO_SEQ_READ: "fio Seq Throughput Read",
    MetricSlot.FIO_SEQ_WRITE: "fio Seq Throughput Write",
    MetricSlot.FIO_RAND_READ_IOPS: "fio Random IOPS (4k) Read",
    MetricSlot.FIO_RAND_WRITE_IOPS: "fio Random IOPS (4k) Write",
    MetricSlot.IPERF_BANDWIDTH: "iperf3 Network",
}


class SessionReport:
    """
    Metric results accumulated over one nfs-bench session.

    Each slot starts UNAVAILABLE; recording a slot again replaces the old value.
    `parameters` carries run settings (dd size, fio runtime, ...) shown next to results.
    """

    def __init__(self, version: str = "", started_at: Optional[datetime] = None):
        self.version = version
        self.started_at = started_at or datetime.now()
        self.results: Dict[MetricSlot, MetricResult] = {slot: UNAVAILABLE for slot in MetricSlot}
        self.parameters: Dict[str, str] = {}
        self.context: Dict[str, str] = {}

    def record_metric(self, slot: MetricSlot, result: MetricResult):
        self.results[MetricSlot(slot)] = result

    def get(self, slot: MetricSlot) -> MetricResult:
        return self.results[MetricSlot(slot)]

    def set_parameter(self, key: str, value):
        self.parameters[key] = str(value)

    def set_context(self, key: str, value):
        """Session facts for the summary header (mount point, log file, ...)."""
        self.context[key] = str(value)

    @property
    def any_recorded(self) -> bool:
        return any(result is not UNAVAILABLE for result in self.results.values())

    def _row_label(self, slot: MetricSlot) -> str:
        label = SLOT_LABELS[slot]
        if slot in (MetricSlot.DD_WRITE, MetricSlot.DD_READ) and "dd_size" in self.parameters:
            label = f"{label} ({self.parameters['dd_size']})"
        return label

    def render(self) -> str:
        """Console summary table."""
        title = f" BENCHMARK SUMMARY (v{self.version}) " if self.version else " BENCHMARK SUMMARY "
        rows = [(self._row_label(slot), str(result)) for slot, result in self.results.items()]
        table = format_table(rows, headers=("Test", "Result"))
        width = max(len(line) for line in table.splitlines())
        banner = title.center(max(width, len(title) + 8), "=")
        lines = [banner, table, "=" * len(banner)]
        if "Log file" in self.context:
            lines.append(f"Detailed log: {self.context['Log file']}")
        return "\n".join(lines)

    def summary_text(self) -> str:
        """Flat 'key: value' summary written at exit."""
        lines = [f"NFS NAS Benchmark Summary (v{self.version})" if self.version else "NFS NAS Benchmark Summary"]
        lines.append(f"Timestamp: {self.started_at.strftime('%Y%m%d_%H%M%S')}")
        for key, value in self.context.items():
            lines.append(f"{key}: {value}")
        if self.parameters:
            lines.append("")
            lines.append("Parameters:")
            for key, value in self.parameters.items():
                lines.append(f"  {key}: {value}")
        lines.append("")
        lines.append("Results:")
        for slot, result in self.results.items():
            lines.append(f"  {slot.value}: {result}")
        return "\n".join(lines) + "\n"

    def persist(self, path: str) -> bool:
        """
        Write the summary file. Failures are reported as a warning, never raised.

        Returns:
            bool: True if the file was written.
        """
        try:
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.summary_text())
        except OSError as e:
            print_warning(f"Could not write summary file {path}: {e}")
            return False
        print_success(f"Summary saved to: {os.path.abspath(path)}")
        return True
