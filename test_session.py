#!/usr/bin/env python3
"""
Tests for the interactive session: menu dispatch, driver failure containment,
cleanup and the unattended full suite. External tools are replaced by a fake
runner returning canned output.
"""

import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from benchmarks.base import BenchmarkBase
from core.config import BenchConfig
from core.console import ScriptedPrompt
from core.errors import SpawnError
from core.extractors import UNAVAILABLE, CountRateValue, RateValue
from core.mounts import MountSelection
from core.report import MetricSlot, SessionReport
from core.runner import RunRecord
from core.session import BenchmarkSession

DD_WRITE = "2147483648 bytes (2.1 GB, 2.0 GiB) copied, 16.4 s, 131 MB/s\n"
DD_READ = "2147483648 bytes (2.1 GB, 2.0 GiB) copied, 9.1 s, 236 MB/s\n"
FIO_SEQ = (
    "  read: IOPS=96, BW=96.5MiB/s (101MB/s)(5790MiB/60001msec)\n"
    "  write: IOPS=41, BW=41.4MiB/s (43.4MB/s)(2484MiB/60001msec); 0 zone resets\n"
)
FIO_RAND = (
    "  read: IOPS=12.3k, BW=48.1MiB/s (50.4MB/s)(2886MiB/60001msec)\n"
    "  write: IOPS=5271, BW=20.6MiB/s (21.6MB/s)(1236MiB/60001msec); 0 zone resets\n"
)
IPERF = "[  5]   0.00-10.04  sec  1.09 GBytes   938 Mbits/sec                  receiver\n"


class FakeLog:
    path = "/tmp/nfs_benchmark_test.log"

    def write(self, text):
        pass


class FakeRunner:
    """Stands in for ProcessRunner; answers by matching the command line."""

    def __init__(self, responses=None, failing=()):
        self.log = FakeLog()
        self.commands = []
        self.responses = responses or {}
        self.failing = set(failing)

    def _output_for(self, command):
        line = " ".join(command)
        for needle, output in self.responses.items():
            if needle in line:
                return output
        return ""

    def _execute(self, command, capture):
        command = [str(part) for part in command]
        self.commands.append(command)
        if command[0] in self.failing:
            raise SpawnError(command, "No such file or directory")
        output = self._output_for(command) if capture else ""
        return RunRecord(tuple(command), datetime.now(), output, 0)

    def run(self, command):
        return self._execute(command, capture=False)

    def run_capturing(self, command):
        return self._execute(command, capture=True)


RESPONSES = {
    "if=/dev/zero": DD_WRITE,
    "of=/dev/null": DD_READ,
    "--name=seq_rw": FIO_SEQ,
    "--name=rand_rw": FIO_RAND,
    "iperf3 -c": IPERF,
}


@pytest.fixture(autouse=True)
def tools_available(monkeypatch):
    monkeypatch.setattr(BenchmarkBase, "validate", lambda self: True)


@pytest.fixture
def selection(tmp_path):
    mount = tmp_path / "mnt"
    mount.mkdir()
    working_dir = mount / ".nfs_bench_20261019_101500"
    working_dir.mkdir()
    return MountSelection(str(mount), "unknown", "unknown", str(working_dir))


def make_session(selection, answers, runner=None, **config):
    session = BenchmarkSession(
        selection,
        runner or FakeRunner(RESPONSES),
        SessionReport(version="1.3"),
        BenchConfig(**config),
        ScriptedPrompt(answers),
    )
    session.cache_dropper = lambda runner: True
    return session


def test_dd_with_default_size(selection):
    print("Testing dd from the menu with the default size...")
    session = make_session(selection, ["2", "", "0"])
    session.menu_loop()
    assert session.report.get(MetricSlot.DD_WRITE) == RateValue(131.0, "MB/s")
    assert session.report.get(MetricSlot.DD_READ) == RateValue(236.0, "MB/s")
    assert session.report.parameters["dd_size"] == "2G"
    write_cmd = session.runner.commands[0]
    assert "count=2048" in write_cmd
    assert f"of={selection.working_dir}/dd_test.bin" in write_cmd
    print("  ✓ dd metrics recorded")


def test_dd_invalid_size_reprompts(selection):
    session = make_session(selection, ["2", "huge", "100K", "1G", "0"])
    session.menu_loop()
    assert session.prompt.questions.count("Enter file size (e.g., 1G, 2G) [2G]: ") == 3
    assert "count=1024" in session.runner.commands[0]


def test_invalid_option_reprompts(selection):
    session = make_session(selection, ["9", "abc", "0"])
    session.menu_loop()
    assert session.prompt.questions.count("Select: ") == 3
    assert session.runner.commands == []


def test_end_of_input_exits_loop(selection):
    session = make_session(selection, [])
    session.menu_loop()
    assert session.prompt.questions == ["Select: "]


def test_end_of_input_inside_a_prompt(selection):
    session = make_session(selection, ["3"])
    session.menu_loop()
    assert session.runner.commands == []


def test_fio_runs_with_requested_runtime(selection):
    session = make_session(selection, ["3", "30", "4", "", "0"])
    session.menu_loop()
    seq_cmd, rand_cmd = session.runner.commands
    assert "--runtime=30" in seq_cmd
    assert "--rw=readwrite" in seq_cmd and "--bs=1M" in seq_cmd
    assert "--runtime=60" in rand_cmd
    assert "--iodepth=16" in rand_cmd and "--bs=4k" in rand_cmd
    report = session.report
    assert report.get(MetricSlot.FIO_SEQ_READ) == RateValue(96.5, "MiB/s")
    assert report.get(MetricSlot.FIO_SEQ_WRITE) == RateValue(41.4, "MiB/s")
    assert report.get(MetricSlot.FIO_RAND_READ_IOPS) == CountRateValue(12300.0)
    assert report.get(MetricSlot.FIO_RAND_WRITE_IOPS) == CountRateValue(5271.0)


def test_spawn_error_does_not_stop_menu(selection):
    runner = FakeRunner(RESPONSES, failing={"fio"})
    session = make_session(selection, ["3", "", "2", "", "0"], runner=runner)
    session.menu_loop()
    assert session.report.get(MetricSlot.FIO_SEQ_READ) is UNAVAILABLE
    assert session.report.get(MetricSlot.DD_WRITE) == RateValue(131.0, "MB/s")


def test_iperf_client_uses_configured_host(selection):
    session = make_session(selection, ["5", "2", "", "0"], iperf_host="nas01")
    session.menu_loop()
    assert session.runner.commands == [["iperf3", "-c", "nas01", "--forceflush"]]
    assert session.report.get(MetricSlot.IPERF_BANDWIDTH) == RateValue(938.0, "Mbits/sec")


def test_iperf_client_without_target(selection):
    session = make_session(selection, ["5", "2", "", "0"])
    session.menu_loop()
    assert session.runner.commands == []


def test_iperf_back(selection):
    session = make_session(selection, ["5", "0", "0"])
    session.menu_loop()
    assert session.runner.commands == []


def test_cleanup_removes_only_working_dir(selection):
    print("Testing cleanup...")
    with open(os.path.join(selection.working_dir, "dd_test.bin"), "wb") as f:
        f.write(b"\0" * 4096)
    sibling = os.path.join(selection.mount_path, "keep.txt")
    with open(sibling, "w") as f:
        f.write("operator data")

    session = make_session(selection, ["6", "y", "0"])
    session.menu_loop()
    assert not os.path.exists(selection.working_dir)
    assert os.path.exists(sibling)
    print("  ✓ scratch dir removed, sibling kept")


def test_cleanup_declined(selection):
    session = make_session(selection, ["n"])
    assert session.cleanup() is False
    assert os.path.isdir(selection.working_dir)


def test_cleanup_without_directory(selection):
    os.rmdir(selection.working_dir)
    session = make_session(selection, [])
    assert session.cleanup() is False
    assert session.prompt.questions == []


def test_dd_after_cleanup_recreates_directory(selection):
    session = make_session(selection, ["6", "y", "2", "", "0"])
    session.menu_loop()
    assert os.path.isdir(selection.working_dir)
    assert session.report.get(MetricSlot.DD_WRITE) == RateValue(131.0, "MB/s")


def test_full_suite_fills_storage_slots(selection):
    session = make_session(selection, [])
    session.full_suite()
    report = session.report
    for slot in (MetricSlot.DD_WRITE, MetricSlot.DD_READ, MetricSlot.FIO_SEQ_READ,
                 MetricSlot.FIO_SEQ_WRITE, MetricSlot.FIO_RAND_READ_IOPS, MetricSlot.FIO_RAND_WRITE_IOPS):
        assert report.get(slot) is not UNAVAILABLE
    assert report.get(MetricSlot.IPERF_BANDWIDTH) is UNAVAILABLE
    ran = [cmd[0] for cmd in session.runner.commands]
    assert ran.index("uname") < ran.index("dd") < ran.index("fio")


def test_full_suite_runs_iperf_when_host_set(selection):
    session = make_session(selection, [], iperf_host="nas01")
    session.full_suite()
    assert session.report.get(MetricSlot.IPERF_BANDWIDTH) == RateValue(938.0, "Mbits/sec")


def test_full_suite_survives_missing_diagnostic_tools(selection):
    runner = FakeRunner(RESPONSES, failing={"uname", "nfsstat", "df"})
    session = make_session(selection, [], runner=runner)
    session.full_suite()
    assert session.report.get(MetricSlot.DD_WRITE) == RateValue(131.0, "MB/s")


def test_full_suite_blank_iperf_host_is_skipped(selection):
    session = make_session(selection, [], iperf_host="   ")
    session.full_suite()
    assert session.report.get(MetricSlot.IPERF_BANDWIDTH) is UNAVAILABLE
    assert session.report.get(MetricSlot.DD_WRITE) == RateValue(131.0, "MB/s")
    assert not any(cmd[0] == "iperf3" for cmd in session.runner.commands)


def test_iperf_server_flushes_output(selection):
    session = make_session(selection, ["5", "1", "0"])
    session.menu_loop()
    assert session.runner.commands == [["iperf3", "-s", "--forceflush"]]


def test_missing_tool_skips_driver(selection, monkeypatch):
    monkeypatch.setattr(BenchmarkBase, "validate", lambda self: False)
    session = make_session(selection, [])
    assert session.run_dd() is None
    assert session.runner.commands == []


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
