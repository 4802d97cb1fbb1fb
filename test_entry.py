#!/usr/bin/env python3
"""
Tests for the nfs-bench.py entry script: exit codes and the summary file
written exactly once whichever way the session ends.
"""

import glob
import importlib.util
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.errors import NoMountsFound
from core.mounts import MountEntry, MountSelection

SCRIPT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "nfs-bench.py")


def load_cli():
    spec = importlib.util.spec_from_file_location("nfs_bench_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def cli():
    return load_cli()


@pytest.fixture
def mount(tmp_path):
    path = tmp_path / "mnt"
    path.mkdir()
    return str(path)


@pytest.fixture
def log_dir(tmp_path):
    return str(tmp_path / "logs")


def use_mount(monkeypatch, cli, mount):
    entry = MountEntry(mount, "unknown", "nfs4")

    def fake_select(candidates, choice, timestamp, **kwargs):
        working_dir = os.path.join(mount, f".nfs_bench_{timestamp}")
        os.makedirs(working_dir, exist_ok=True)
        return MountSelection(mount, entry.source_spec, entry.filesystem_type, working_dir)

    monkeypatch.setattr(cli, "discover_mounts", lambda: [entry])
    monkeypatch.setattr(cli, "select_mount", fake_select)


def summaries(log_dir):
    return glob.glob(os.path.join(log_dir, "nfs_benchmark_summary_*.txt"))


def read_summary(log_dir):
    paths = summaries(log_dir)
    assert len(paths) == 1
    with open(paths[0], encoding="utf-8") as f:
        return f.read()


def test_menu_exit_on_closed_input(cli, monkeypatch, mount, log_dir):
    print("Testing normal exit...")
    use_mount(monkeypatch, cli, mount)

    def closed_stdin(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed_stdin)
    code = cli.main(["--log-dir", log_dir, "--skip-deps", "--mount", "1"])
    assert code == 0
    text = read_summary(log_dir)
    assert f"Mountpoint: {mount}" in text
    assert "  dd-write: N/A" in text
    assert "  iperf-bandwidth: N/A" in text
    assert len(glob.glob(os.path.join(log_dir, "nfs_benchmark_*.log"))) == 1
    print("  ✓ exit 0, one summary")


def test_unattended_runs_full_suite(cli, monkeypatch, mount, log_dir):
    use_mount(monkeypatch, cli, mount)
    calls = []

    class RecordingSession:
        def __init__(self, selection, runner, report, config, prompt):
            self.config = config

        def full_suite(self):
            calls.append(self.config.dd_size)

        def menu_loop(self):
            raise AssertionError("menu shown in unattended mode")

    monkeypatch.setattr(cli, "BenchmarkSession", RecordingSession)
    code = cli.main(["--log-dir", log_dir, "--skip-deps", "--unattended", "--mount", "1",
                     "--dd-size", "4G"])
    assert code == 0
    assert calls == ["4G"]
    assert len(summaries(log_dir)) == 1


def test_mount_error_exits_one(cli, monkeypatch, log_dir):
    def no_mounts(candidates, choice, timestamp, **kwargs):
        raise NoMountsFound("No NFS mounts detected.")

    monkeypatch.setattr(cli, "discover_mounts", lambda: [])
    monkeypatch.setattr(cli, "select_mount", no_mounts)
    code = cli.main(["--log-dir", log_dir, "--skip-deps", "--mount", "1"])
    assert code == 1
    text = read_summary(log_dir)
    assert "Mountpoint" not in text
    assert "  dd-read: N/A" in text


def test_interrupt_exits_130(cli, monkeypatch, log_dir):
    print("Testing Ctrl+C during startup...")

    def interrupted():
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "discover_mounts", interrupted)
    code = cli.main(["--log-dir", log_dir, "--skip-deps"])
    assert code == 130
    assert len(summaries(log_dir)) == 1
    print("  ✓ exit 130, summary written")


def test_invalid_arguments_exit_before_logging(cli, log_dir):
    assert cli.main(["--log-dir", log_dir, "--fio-runtime", "0"]) == 1
    assert cli.main(["--log-dir", log_dir, "--iperf-host", "  "]) == 1
    assert cli.main(["--log-dir", log_dir, "--unattended"]) == 1
    assert not os.path.exists(log_dir)


def test_bad_config_file_exits_one(cli, tmp_path, log_dir):
    config = tmp_path / "bench.yaml"
    config.write_text("iperf_host: ''\n")
    assert cli.main(["--config", str(config), "--log-dir", log_dir]) == 1
    assert not os.path.exists(log_dir)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
