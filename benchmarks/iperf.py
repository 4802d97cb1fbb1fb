"""
iperf3 network benchmark: server mode here (operator-stopped) or client mode
against a host already running `iperf3 -s`.
"""

from benchmarks.base import BenchmarkBase
from core.extractors import extract_iperf_bandwidth
from core.report import MetricSlot
from utils import print_info, print_success


class IperfServer(BenchmarkBase):
    """Run `iperf3 -s` until the operator stops it; records nothing."""

    name = "iperf3-server"
    description = "iperf3 server on this machine"
    required_tools = ("iperf3",)

    def build_commands(self):
        # Without --forceflush iperf3 block-buffers its stdout when writing to a pipe
        return [["iperf3", "-s", "--forceflush"]]

    def run(self, runner, report):
        print_info("Starting iperf3 server (Ctrl+C to stop)...")
        print_info("From another host run: iperf3 -c <this_machine_ip>")
        try:
            runner.run(self.build_commands()[0])
        except KeyboardInterrupt:
            print_info("iperf3 server stopped.")
        return {}


class IperfClient(BenchmarkBase):
    """Run `iperf3 -c <target>` and record the receiver bandwidth."""

    name = "iperf3-client"
    description = "iperf3 client to a remote server"
    required_tools = ("iperf3",)

    def __init__(self, target):
        self.target = target.strip()
        if not self.target:
            raise ValueError("iperf3 target host is required")

    def build_commands(self):
        return [["iperf3", "-c", self.target, "--forceflush"]]

    def run(self, runner, report):
        record = runner.run_capturing(self.build_commands()[0])
        bandwidth = extract_iperf_bandwidth(record.combined_output)
        print_success(f"iperf3 bandwidth to {self.target}: {bandwidth}")
        return self._record(report, {MetricSlot.IPERF_BANDWIDTH: bandwidth})
