"""
Process runner for nfs-bench.

Runs external tools with stderr merged into stdout, streaming every line to
the console and the append-only session log while the process runs.
Optionally captures the same text for the metric extractors.
"""

import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from core.errors import SpawnError
from utils import color_text


@dataclass(frozen=True)
class RunRecord:
    """Outcome of one external command invocation."""
    command: tuple
    started_at: datetime
    combined_output: str
    exit_status: int

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


class SessionLog:
    """Append-only detailed log shared by the runner and console helpers."""

    def __init__(self, path: str):
        self.path = path
        self._handle = None

    def open(self):
        if self._handle is None:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._handle = open(self.path, "a", encoding="utf-8")
        return self

    def write(self, text: str):
        if self._handle is None:
            self.open()
        self._handle.write(text)
        self._handle.flush()

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class ProcessRunner:
    """
    Execute external commands, teeing combined output to the session log.

    Args:
        log: SessionLog receiving the trace line and all output.
        echo: Also write output to the console (stdout) as it arrives.
        terminate_timeout: Seconds to wait after SIGTERM before SIGKILL on interrupt.
    """

    def __init__(self, log: SessionLog, echo: bool = True, terminate_timeout: float = 5.0):
        self.log = log
        self.echo = echo
        self.terminate_timeout = terminate_timeout

    def run(self, command: Sequence[str]) -> RunRecord:
        """Run a command in streaming mode; output is logged and echoed but not retained."""
        return self._execute(command, capture=False)

    def run_capturing(self, command: Sequence[str]) -> RunRecord:
        """Run a command and also return its full combined output for parsing."""
        return self._execute(command, capture=True)

    def _child_env(self) -> dict:
        # Force English locale so tool output stays parseable
        env = os.environ.copy()
        env["LC_ALL"] = "C"
        env["LANGUAGE"] = "C"
        return env

    def _write(self, text: str):
        self.log.write(text)
        if self.echo:
            sys.stdout.write(text)
            sys.stdout.flush()

    def _execute(self, command: Sequence[str], capture: bool) -> RunRecord:
        command = [str(part) for part in command]
        if not command:
            raise SpawnError(command, "empty command")

        trace = f"\n$ {format_command(command)}\n"
        self.log.write(trace)
        if self.echo:
            print(color_text(trace.rstrip("\n"), "BOLD"))

        started_at = datetime.now()
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                bufsize=1,
                errors="replace",
                env=self._child_env(),
            )
        except (FileNotFoundError, PermissionError) as e:
            self.log.write(f"! spawn failed: {e}\n")
            raise SpawnError(command, e.strerror or str(e)) from e
        except OSError as e:
            self.log.write(f"! spawn failed: {e}\n")
            raise SpawnError(command, str(e)) from e

        chunks: List[str] = []
        try:
            # Universal newlines turn dd's '\r' progress updates into separate lines
            for line in iter(process.stdout.readline, ""):
                self._write(line)
                if capture:
                    chunks.append(line)
            exit_status = process.wait()
        except KeyboardInterrupt:
            self._stop(process)
            self.log.write("\n! interrupted by operator\n")
            raise
        finally:
            process.stdout.close()

        if exit_status != 0:
            self.log.write(f"! exit status {exit_status}\n")

        return RunRecord(
            command=tuple(command),
            started_at=started_at,
            combined_output="".join(chunks),
            exit_status=exit_status,
        )

    def _stop(self, process: Optional[subprocess.Popen]):
        """Terminate a child gracefully, killing it if it does not exit in time."""
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
