#!/usr/bin/env python3
"""
Tests for the dd driver's client cache drop: it must only ever warn, and the
read test must run whatever the outcome.
"""

import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from benchmarks.dd_seq import DDSequentialBenchmark, drop_client_caches
from core.extractors import RateValue
from core.report import MetricSlot, SessionReport
from core.runner import RunRecord

DD_WRITE = "1073741824 bytes (1.1 GB, 1.0 GiB) copied, 8.2 s, 131 MB/s\n"
DD_READ = "1073741824 bytes (1.1 GB, 1.0 GiB) copied, 4.5 s, 238 MB/s\n"


class ScriptedRunner:
    """Returns a fixed exit status for every command and dd output by direction."""

    def __init__(self, exit_status=0):
        self.exit_status = exit_status
        self.commands = []

    def _record(self, command, output):
        self.commands.append(list(command))
        return RunRecord(tuple(command), datetime.now(), output, self.exit_status)

    def run(self, command):
        return self._record(command, "")

    def run_capturing(self, command):
        output = DD_WRITE if "if=/dev/zero" in command else DD_READ
        return self._record(command, output)


def test_plain_sudo_skips_without_running_anything():
    print("Testing cache drop without password-less sudo...")
    runner = ScriptedRunner()
    assert drop_client_caches(runner, prefix=["sudo"]) is False
    assert runner.commands == []
    print("  ✓ warned and skipped")


def test_noninteractive_sudo_failure_is_soft():
    runner = ScriptedRunner(exit_status=1)
    assert drop_client_caches(runner, prefix=["sudo", "-n"]) is False
    assert runner.commands == [
        ["sudo", "-n", "sh", "-c", "sync && echo 3 > /proc/sys/vm/drop_caches"],
    ]


def test_noninteractive_sudo_success():
    runner = ScriptedRunner()
    assert drop_client_caches(runner, prefix=["sudo", "-n"]) is True


def test_read_runs_after_failed_cache_drop(tmp_path):
    runner = ScriptedRunner()
    report = SessionReport()
    driver = DDSequentialBenchmark(str(tmp_path), "1G", cache_dropper=lambda r: False)
    driver.run(runner, report)
    assert report.get(MetricSlot.DD_READ) == RateValue(238.0, "MB/s")


def test_drop_caches_disabled_skips_dropper(tmp_path):
    calls = []
    runner = ScriptedRunner()
    report = SessionReport()
    driver = DDSequentialBenchmark(str(tmp_path), "1G", drop_caches=False,
                                   cache_dropper=lambda r: calls.append(r) or True)
    results = driver.run(runner, report)

    assert calls == []
    assert [cmd[0] for cmd in runner.commands] == ["dd", "dd"]
    assert results[MetricSlot.DD_WRITE] == RateValue(131.0, "MB/s")
    assert report.get(MetricSlot.DD_READ) == RateValue(238.0, "MB/s")
    assert report.parameters["dd_size"] == "1G"


def test_small_size_rounds_up_to_one_block(tmp_path):
    driver = DDSequentialBenchmark(str(tmp_path), "1M")
    write_cmd, read_cmd = driver.build_commands()
    assert "count=1" in write_cmd
    assert read_cmd[:2] == ["dd", f"if={tmp_path}/dd_test.bin"]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
