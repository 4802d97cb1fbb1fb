"""
Interactive benchmark session for nfs-bench.

Runs the numbered menu (or the unattended full suite) against one selected
mount. Drivers run one at a time; a failing driver is reported and the menu
continues.
"""

import os
import shutil

from benchmarks import (
    DDSequentialBenchmark, FioIopsBenchmark, FioThroughputBenchmark, IperfClient, IperfServer,
)
from core import VERSION
from core.config import parse_size
from core.console import ask_with_default, confirm
from core.deps import sudo_prefix
from core.diagnostics import show_diagnostics
from core.errors import BenchError, SpawnError
from core.mounts import ensure_working_dir
from utils import (
    format_size, print_error, print_info, print_plain, print_section, print_success,
    print_warning, color_text,
)

MENU_TEXT = """
[1] Diagnostics (NFS mount & network)
[2] dd sequential write/read (size={dd_size})
[3] fio sequential throughput (1MiB, {runtime}s)
[4] fio random IOPS (4k, {runtime}s)
[5] iperf3 network test
[6] Cleanup test files
[7] Run FULL suite (1→4)
[0] Exit"""

IPERF_HELP = """You have two options:
  1) Run iperf3 SERVER on this machine, then from another host (e.g., NAS or another PC):
       iperf3 -c <this_machine_ip>
  2) Run iperf3 CLIENT from this machine to a host running server:
       iperf3 -s              # (run on the other host)
       iperf3 -c <server_ip>  # (run here)"""


def _validate_size(value):
    try:
        if parse_size(value) < 1024 * 1024:
            return "Size must be at least 1M"
    except ValueError:
        return f"Invalid size: {value} (e.g., 1G, 2G, 512M)"
    return None


def _validate_runtime(value):
    return None if value >= 1 else "Duration must be at least 1 second"


def directory_size(path):
    """Total bytes of regular files below path."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                pass
    return total


class BenchmarkSession:
    """
    One operator session against a selected mount.

    Args:
        selection: MountSelection fixed at startup.
        runner: ProcessRunner for all external commands.
        report: SessionReport passed to every driver.
        config: BenchConfig with defaults for prompts.
        prompt: Prompt callable (ConsolePrompt or ScriptedPrompt).
    """

    def __init__(self, selection, runner, report, config, prompt):
        self.selection = selection
        self.runner = runner
        self.report = report
        self.config = config
        self.prompt = prompt
        self.cache_dropper = None

    # ── Driver plumbing ─────────────────────────────────────────────

    def run_driver(self, driver):
        """
        Run one driver, containing its failures.

        Returns:
            dict: Recorded results, or None if the driver failed.
        """
        if not driver.validate():
            print_error(f"{driver.description}: required tool(s) missing: {', '.join(driver.required_tools)}")
            return None
        try:
            return driver.run(self.runner, self.report)
        except SpawnError as e:
            print_error(f"{driver.description} aborted: {e}")
        except BenchError as e:
            print_error(f"{driver.description} failed: {e}")
        except OSError as e:
            print_error(f"{driver.description} failed: {e}")
        return None

    def _scratch_dir(self):
        return ensure_working_dir(self.selection)

    def run_dd(self, size=None):
        size = size or self.config.dd_size
        try:
            working_dir = self._scratch_dir()
        except BenchError as e:
            print_error(str(e))
            return None
        kwargs = {"drop_caches": self.config.drop_caches}
        if self.cache_dropper is not None:
            kwargs["cache_dropper"] = self.cache_dropper
        return self.run_driver(DDSequentialBenchmark(working_dir, size, **kwargs))

    def run_fio_throughput(self, runtime=None):
        try:
            working_dir = self._scratch_dir()
        except BenchError as e:
            print_error(str(e))
            return None
        return self.run_driver(FioThroughputBenchmark(working_dir, runtime or self.config.fio_runtime))

    def run_fio_iops(self, runtime=None):
        try:
            working_dir = self._scratch_dir()
        except BenchError as e:
            print_error(str(e))
            return None
        return self.run_driver(FioIopsBenchmark(working_dir, runtime or self.config.fio_runtime))

    def run_iperf_client(self, target):
        target = (target or "").strip()
        if not target:
            print_warning("No iperf3 server given; skipping network test.")
            return None
        return self.run_driver(IperfClient(target))

    def run_diagnostics(self):
        show_diagnostics(self.runner, self.selection)

    def full_suite(self):
        """Diagnostics, dd, fio throughput, fio IOPS, then the summary table."""
        self.run_diagnostics()
        self.run_dd()
        self.run_fio_throughput()
        self.run_fio_iops()
        if self.config.iperf_host:
            self.run_iperf_client(self.config.iperf_host)
        print_plain()
        print_plain(self.report.render())

    # ── Interactive pieces ──────────────────────────────────────────

    def iperf_menu(self):
        print_section("iperf3 Network Test")
        print_plain(IPERF_HELP)
        choice = self.prompt("Choose [1=Server here, 2=Client here, 0=Back]: ")
        if choice == "1":
            self.run_driver(IperfServer())
        elif choice == "2":
            default = self.config.iperf_host
            question = "Enter iperf3 server IP/hostname"
            target = self.prompt(f"{question} [{default}]: " if default else f"{question}: ") or default
            if not target:
                print_warning("No server given; returning to menu.")
                return
            self.run_iperf_client(target)

    def cleanup(self):
        """Delete the scratch directory after operator confirmation."""
        print_section("Cleanup Test Files")
        working_dir = self.selection.working_dir
        if not os.path.isdir(working_dir):
            print_warning(f"No test directory found: {working_dir}")
            return False

        print_info(f"{working_dir}: {format_size(directory_size(working_dir))}")
        if not confirm(self.prompt, f"Delete test directory {working_dir} ?"):
            print_warning("Skipping cleanup.")
            return False

        try:
            shutil.rmtree(working_dir)
        except PermissionError:
            print_warning("Permission denied; retrying with sudo.")
            try:
                record = self.runner.run(sudo_prefix() + ["rm", "-rf", working_dir])
            except SpawnError as e:
                print_error(f"Cleanup failed: {e}")
                return False
            if not record.succeeded:
                print_error(f"Cleanup failed: rm exited {record.exit_status}")
                return False
        except OSError as e:
            print_error(f"Cleanup failed: {e}")
            return False
        print_success(f"Removed {working_dir}")
        return True

    def show_menu(self):
        print_plain()
        print_plain(color_text(f"NFS NAS Benchmark Toolkit v{VERSION}", "BOLD"))
        print_plain(f"Mountpoint: {self.selection.mount_path}")
        print_plain(f"Test dir:   {self.selection.working_dir}")
        print_plain(f"Log file:   {self.runner.log.path}")
        print_plain(MENU_TEXT.format(dd_size=self.config.dd_size, runtime=self.config.fio_runtime))

    def handle_choice(self, choice):
        """
        Dispatch one menu choice.

        Returns:
            bool: False when the operator chose to exit.
        """
        if choice == "1":
            self.run_diagnostics()
        elif choice == "2":
            size = ask_with_default(self.prompt, "Enter file size (e.g., 1G, 2G)", self.config.dd_size,
                                    validate=_validate_size)
            self.run_dd(size)
        elif choice == "3":
            runtime = ask_with_default(self.prompt, "Duration in seconds", self.config.fio_runtime,
                                       convert=int, validate=_validate_runtime)
            self.run_fio_throughput(runtime)
        elif choice == "4":
            runtime = ask_with_default(self.prompt, "Duration in seconds", self.config.fio_runtime,
                                       convert=int, validate=_validate_runtime)
            self.run_fio_iops(runtime)
        elif choice == "5":
            self.iperf_menu()
        elif choice == "6":
            self.cleanup()
        elif choice == "7":
            self.full_suite()
        elif choice == "0":
            print_plain("Bye.")
            return False
        else:
            print_warning("Invalid option.")
        return True

    def menu_loop(self):
        """Show the menu until the operator exits (or stdin closes)."""
        while True:
            self.show_menu()
            try:
                choice = self.prompt("Select: ")
            except EOFError:
                print_plain()
                print_info("Input closed; exiting.")
                return
            try:
                if not self.handle_choice(choice):
                    return
            except EOFError:
                print_plain()
                print_info("Input closed; exiting.")
                return
