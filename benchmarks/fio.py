"""
fio benchmarks: sequential throughput (1 MiB, 70/30 read/write) and
random IOPS (4 KiB, 70/30 read/write, queue depth 16).
"""

from benchmarks.base import BenchmarkBase
from core.config import DEFAULT_FIO_RUNTIME
from core.extractors import extract_fio_bandwidth, extract_fio_iops
from core.report import MetricSlot
from utils import print_section, print_success

FIO_FILE_SIZE = "2G"
FIO_READ_MIX = 70


def fio_command(name, directory, block_size, rw, runtime, iodepth=None):
    """Common fio invocation: buffered psync I/O, single job, time based."""
    command = [
        "fio", f"--name={name}", f"--directory={directory}",
        f"--size={FIO_FILE_SIZE}", f"--bs={block_size}", f"--rw={rw}", f"--rwmixread={FIO_READ_MIX}",
    ]
    if iodepth is not None:
        command.append(f"--iodepth={iodepth}")
    command += [
        "--numjobs=1", "--time_based=1", f"--runtime={runtime}", "--group_reporting",
        "--direct=0", "--invalidate=1", "--ioengine=psync",
    ]
    return command


class FioThroughputBenchmark(BenchmarkBase):
    """Mixed sequential read/write bandwidth."""

    name = "fio-throughput"
    description = "fio sequential throughput (1MiB)"
    required_tools = ("fio",)

    def __init__(self, working_dir, runtime=DEFAULT_FIO_RUNTIME):
        self.working_dir = working_dir
        self.runtime = int(runtime)

    def build_commands(self):
        return [fio_command("seq_rw", self.working_dir, "1M", "readwrite", self.runtime)]

    def run(self, runner, report):
        print_section(f"fio Sequential Throughput (1MiB blocks, {self.runtime}s)")
        report.set_parameter("fio_runtime", f"{self.runtime}s")
        record = runner.run_capturing(self.build_commands()[0])
        read_bw, write_bw = extract_fio_bandwidth(record.combined_output)
        print_success(f"fio throughput read: {read_bw}, write: {write_bw}")
        return self._record(report, {
            MetricSlot.FIO_SEQ_READ: read_bw,
            MetricSlot.FIO_SEQ_WRITE: write_bw,
        })


class FioIopsBenchmark(BenchmarkBase):
    """Mixed random read/write operation rate."""

    name = "fio-iops"
    description = "fio random IOPS (4k)"
    required_tools = ("fio",)

    def __init__(self, working_dir, runtime=DEFAULT_FIO_RUNTIME, iodepth=16):
        self.working_dir = working_dir
        self.runtime = int(runtime)
        self.iodepth = iodepth

    def build_commands(self):
        return [fio_command("rand_rw", self.working_dir, "4k", "randrw", self.runtime, iodepth=self.iodepth)]

    def run(self, runner, report):
        print_section(f"fio Random IOPS (4k blocks, {self.runtime}s)")
        report.set_parameter("fio_runtime", f"{self.runtime}s")
        record = runner.run_capturing(self.build_commands()[0])
        read_iops, write_iops = extract_fio_iops(record.combined_output)
        print_success(f"fio random read: {read_iops}, write: {write_iops}")
        return self._record(report, {
            MetricSlot.FIO_RAND_READ_IOPS: read_iops,
            MetricSlot.FIO_RAND_WRITE_IOPS: write_iops,
        })
