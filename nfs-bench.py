#!/usr/bin/env python3
"""
nfs-bench v1.3 - NFS NAS Benchmark Toolkit

Modular architecture with core functionality split into:
- utils: Console formatting and colors
- core: Process runner, mount selection, metric extraction, session report
- benchmarks: dd, fio and iperf3 drivers

This script serves as the user interface and coordination layer.
Supports interactive (default) and unattended (--unattended) modes.
"""

import argparse
import os
import sys
from datetime import datetime

from utils import (
    print_header, print_info, print_success, print_warning, print_error,
    print_plain, set_log_sink,
)
from core import VERSION
from core.config import build_config, parse_size
from core.console import ConsolePrompt
from core.deps import ensure_dependencies
from core.errors import ConfigError, DependencyError, MountSelectionError, DirectoryCreateError
from core.mounts import discover_mounts, prompt_for_mount, select_mount
from core.report import SessionReport
from core.runner import ProcessRunner, SessionLog
from core.session import BenchmarkSession


# ── Argument parsing ─────────────────────────────────────────────────────

def build_parser():
    """Build the argument parser with all CLI options."""
    parser = argparse.ArgumentParser(
        description=f'nfs-bench v{VERSION} - NFS NAS Benchmark Toolkit',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  Interactive menu:
    python3 nfs-bench.py

  Unattended full suite against a known mount:
    python3 nfs-bench.py --unattended --mount /mnt/nas --dd-size 4G --fio-runtime 120

  With a config file and an iperf3 server on the NAS:
    python3 nfs-bench.py --config bench.yaml --iperf-host nas01
"""
    )

    parser.add_argument('--version', action='version', version=f'nfs-bench {VERSION}')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to JSON or YAML config file with default settings')
    parser.add_argument('--mount', type=str, default=None,
                        help='Mount to test: 1-based index from the detected NFS mounts, or a path')
    parser.add_argument('--log-dir', type=str, default=None,
                        help='Directory for the session log and summary (default: ~/nfs_bench_logs)')
    parser.add_argument('--dd-size', type=str, default=None,
                        help='dd test file size, e.g. 1G, 2G, 512M (default: 2G)')
    parser.add_argument('--fio-runtime', type=int, default=None,
                        help='fio test duration in seconds (default: 60)')
    parser.add_argument('--iperf-host', type=str, default=None,
                        help='iperf3 server for client tests (used by the full suite when set)')
    parser.add_argument('--unattended', '--auto', action='store_true', default=None,
                        help='Run the full suite without the menu, then exit (requires --mount)')
    parser.add_argument('--skip-deps', action='store_true', default=None,
                        help='Do not check or install required packages')
    parser.add_argument('--no-drop-caches', dest='drop_caches', action='store_false', default=None,
                        help='Do not drop the client page cache before the dd read test')
    return parser


def validate_args(config):
    """Validate the effective settings.

    Returns list of error messages (empty = valid).
    """
    errors = []
    try:
        if parse_size(config.dd_size) < 1024 * 1024:
            errors.append(f"--dd-size must be at least 1M (got '{config.dd_size}')")
    except ValueError:
        errors.append(f"--dd-size must be a size like 1G or 512M (got '{config.dd_size}')")

    if config.fio_runtime < 1:
        errors.append(f"--fio-runtime must be at least 1 second (got {config.fio_runtime})")

    if config.unattended and not config.mount:
        errors.append("--mount is required in unattended mode")

    if config.iperf_host is not None and not config.iperf_host.strip():
        errors.append("--iperf-host must not be blank")

    return errors


def show_welcome_banner(log_path):
    """Display welcome banner."""
    print_header(f"nfs-bench v{VERSION}")
    print_info("nfs-bench runs dd, fio and iperf3 against an NFS mount and summarizes the results.")
    print_info("Test files are written to a scratch directory under the selected mount.")
    print_warning("Benchmarks saturate the NAS link; run them when no other workloads are active.")
    print_info(f"Log file: {log_path}")


# ── Main ─────────────────────────────────────────────────────────────────

def main(argv=None):
    args = build_parser().parse_args(argv)

    overrides = {
        "log_dir": args.log_dir,
        "dd_size": args.dd_size,
        "fio_runtime": args.fio_runtime,
        "mount": args.mount,
        "iperf_host": args.iperf_host,
        "unattended": args.unattended,
        "skip_deps": args.skip_deps,
        "drop_caches": args.drop_caches,
    }
    try:
        config = build_config(args.config, overrides)
    except ConfigError as e:
        print_error(str(e))
        return 1

    errors = validate_args(config)
    if errors:
        print_error("Argument validation failed:")
        for err in errors:
            print_error(f"  • {err}")
        return 1

    started_at = datetime.now()
    timestamp = started_at.strftime("%Y%m%d_%H%M%S")
    log_dir = config.log_dir_path
    log_path = os.path.join(log_dir, f"nfs_benchmark_{timestamp}.log")
    summary_path = os.path.join(log_dir, f"nfs_benchmark_summary_{timestamp}.txt")

    try:
        log = SessionLog(log_path).open()
    except OSError as e:
        print_error(f"Cannot open log file {log_path}: {e}")
        return 1

    set_log_sink(log.write)
    runner = ProcessRunner(log)
    report = SessionReport(version=VERSION, started_at=started_at)
    report.set_context("Log file", log_path)
    prompt = ConsolePrompt()
    exit_code = 0

    # The summary is written exactly once, whatever happens after this point
    try:
        show_welcome_banner(log_path)

        if config.skip_deps:
            print_warning("Skipping dependency check (--skip-deps).")
        else:
            ensure_dependencies(runner)

        candidates = discover_mounts()
        if config.mount:
            selection = select_mount(candidates, config.mount, timestamp)
        else:
            selection = prompt_for_mount(candidates, prompt, timestamp)

        print_success(f"Using NFS mountpoint: {selection.mount_path} "
                      f"(source: {selection.source_spec}, type: {selection.filesystem_type})")
        report.set_context("Mountpoint", selection.mount_path)
        report.set_context("Source", selection.source_spec)
        report.set_context("Test dir", selection.working_dir)

        session = BenchmarkSession(selection, runner, report, config, prompt)
        if config.unattended:
            print_info("Mode: UNATTENDED (running full suite)")
            session.full_suite()
        else:
            session.menu_loop()

    except (DependencyError, MountSelectionError, DirectoryCreateError) as e:
        print_error(str(e))
        exit_code = 1
    except (EOFError, OSError) as e:
        print_error(f"Aborted: {e}")
        exit_code = 1
    except KeyboardInterrupt:
        print_plain()
        print_warning("Interrupted by operator.")
        exit_code = 130
    finally:
        report.persist(summary_path)
        print_info(f"Full detailed log: {log_path}")
        set_log_sink(None)
        log.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
