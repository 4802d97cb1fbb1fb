"""
Base class for nfs-bench benchmark drivers.
All drivers must inherit from this class.
"""

from abc import ABC, abstractmethod

from core.deps import missing_tools


class BenchmarkBase(ABC):
    """Abstract base class for all nfs-bench drivers."""

    name: str = ""
    description: str = ""
    required_tools: tuple = ()

    def validate(self) -> bool:
        """
        Check if the wrapped tools are on PATH.

        Returns:
            bool: True if benchmark can run, False otherwise.
        """
        return not missing_tools(self.required_tools)

    @abstractmethod
    def build_commands(self) -> list:
        """
        Build the external tool invocations this driver runs, in order.

        Returns:
            list: Argument lists, one per invocation.
        """
        pass

    @abstractmethod
    def run(self, runner, report) -> dict:
        """
        Execute the benchmark and record its metrics.

        Args:
            runner: ProcessRunner used for every external command.
            report: SessionReport receiving the extracted metrics.

        Returns:
            dict: MetricSlot -> MetricResult for the slots this run wrote.
        """
        pass

    def _record(self, report, results: dict) -> dict:
        for slot, result in results.items():
            report.record_metric(slot, result)
        return results
