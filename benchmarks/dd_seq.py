"""
dd sequential write/read benchmark.
Writes a test file into the scratch directory with forced sync, drops the
client page cache when privileges allow, then reads the file back.
"""

import os

from benchmarks.base import BenchmarkBase
from core.config import DEFAULT_DD_SIZE, parse_size
from core.deps import sudo_prefix
from core.errors import SpawnError
from core.extractors import extract_dd_rate
from core.report import MetricSlot
from utils import print_info, print_section, print_success, print_warning

DD_BLOCK_BYTES = 1024 * 1024
DD_TEST_FILE = "dd_test.bin"
DROP_CACHES_PATH = "/proc/sys/vm/drop_caches"


def drop_client_caches(runner, prefix=None):
    """
    Drop the client page cache so the read test hits the NAS.

    Soft precondition: without root or password-less sudo a warning is printed
    and the read test runs anyway.

    Returns:
        bool: True if the cache was dropped.
    """
    if prefix is None:
        prefix = sudo_prefix()

    print_info("Dropping client page cache")
    if not prefix:
        try:
            os.sync()
            with open(DROP_CACHES_PATH, "w") as f:
                f.write("3\n")
            return True
        except OSError as e:
            print_warning(f"Could not drop caches ({e}); read test may be affected by client cache.")
            return False

    if prefix != ["sudo", "-n"]:
        print_warning("Skipping drop_caches (no password-less sudo); read test may be affected by client cache.")
        return False

    try:
        record = runner.run(prefix + ["sh", "-c", f"sync && echo 3 > {DROP_CACHES_PATH}"])
    except SpawnError as e:
        print_warning(f"Could not drop caches ({e}); read test may be affected by client cache.")
        return False
    if not record.succeeded:
        print_warning("drop_caches failed; read test may be affected by client cache.")
        return False
    return True


class DDSequentialBenchmark(BenchmarkBase):
    """Sequential write then read of one file with 1 MiB blocks."""

    name = "dd"
    description = "dd sequential write/read"
    required_tools = ("dd",)

    def __init__(self, working_dir, size=DEFAULT_DD_SIZE, drop_caches=True, cache_dropper=drop_client_caches):
        self.working_dir = working_dir
        self.size = size
        self.drop_caches = drop_caches
        self.cache_dropper = cache_dropper
        self.mib_count = max(parse_size(size) // DD_BLOCK_BYTES, 1)
        self.test_file = os.path.join(working_dir, DD_TEST_FILE)

    def build_commands(self):
        write = ["dd", "if=/dev/zero", f"of={self.test_file}", "bs=1M",
                 f"count={self.mib_count}", "conv=fdatasync", "status=progress"]
        read = ["dd", f"if={self.test_file}", "of=/dev/null", "bs=1M", "status=progress"]
        return [write, read]

    def run(self, runner, report):
        write_cmd, read_cmd = self.build_commands()
        print_section(f"dd Sequential Write/Read Test (size={self.size})")
        report.set_parameter("dd_size", self.size)

        print_info(f"Write test: {self.mib_count} x 1MiB blocks to {self.test_file}")
        write = runner.run_capturing(write_cmd)
        write_rate = extract_dd_rate(write.combined_output)

        if self.drop_caches:
            self.cache_dropper(runner)
        else:
            print_warning("Cache dropping disabled; read test may be affected by client cache.")

        print_info(f"Read test: {self.test_file}")
        read = runner.run_capturing(read_cmd)
        read_rate = extract_dd_rate(read.combined_output)

        print_success(f"dd write: {write_rate}, read: {read_rate}")
        return self._record(report, {
            MetricSlot.DD_WRITE: write_rate,
            MetricSlot.DD_READ: read_rate,
        })
