"""
Metric extractors for the wrapped tools' human-readable output.

One pure function per output format. Every extractor takes the last matching
line in the output (progress reporting repeats the final-looking line) and
returns UNAVAILABLE rather than guessing when the line cannot be parsed.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union


def _format_magnitude(magnitude: float) -> str:
    # Plain digits for large counts (1230000, not 1.23e+06)
    return f"{magnitude:.10g}"


@dataclass(frozen=True)
class RateValue:
    """Transfer rate, e.g. 131 MB/s or 941 Mbits/sec."""
    magnitude: float
    unit: str

    def __str__(self):
        return f"{_format_magnitude(self.magnitude)} {self.unit}"


@dataclass(frozen=True)
class CountRateValue:
    """Operation rate, e.g. 12300 IOPS."""
    magnitude: float
    unit: str = "IOPS"

    def __str__(self):
        return f"{_format_magnitude(self.magnitude)} {self.unit}"


class Unavailable:
    """No value could be parsed for a metric."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __str__(self):
        return "N/A"

    def __repr__(self):
        return "UNAVAILABLE"

    def __bool__(self):
        return False


UNAVAILABLE = Unavailable()

MetricResult = Union[RateValue, CountRateValue, Unavailable]

DD_COPY_MARKER = "copied,"
IPERF_RECEIVER_TAG = "receiver"
IPERF_SENDER_TAG = "sender"

_BW_TOKEN = re.compile(r"^BW=(\d+(?:\.\d+)?)([A-Za-z]+/s)$")
_IOPS_TOKEN = re.compile(r"^IOPS=(\d+(?:\.\d+)?)([kKmM]?)$")
_IOPS_SUFFIX = {"": 1, "k": 1_000, "K": 1_000, "m": 1_000_000, "M": 1_000_000}


def _parse_number(token: str) -> Optional[float]:
    # dd under some locales prints a decimal comma
    try:
        return float(token.replace(",", "."))
    except ValueError:
        return None


def _last_line_containing(output: str, marker: str) -> Optional[str]:
    found = None
    for line in output.splitlines():
        if marker in line:
            found = line
    return found


def extract_dd_rate(output: str) -> MetricResult:
    """
    Parse dd's completion report, e.g.
    '1073741824 bytes (1.1 GB, 1.0 GiB) copied, 8.2 s, 131 MB/s'.
    """
    line = _last_line_containing(output, DD_COPY_MARKER)
    if line is None:
        return UNAVAILABLE
    tokens = line.split()
    if len(tokens) < 2:
        return UNAVAILABLE
    magnitude = _parse_number(tokens[-2])
    if magnitude is None or "/" not in tokens[-1]:
        return UNAVAILABLE
    return RateValue(magnitude, tokens[-1])


def _fio_tagged_tokens(output: str, tag: str, token_key: str):
    """Yield the value token following `token_key` on each line starting with `tag`."""
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped.startswith(tag):
            continue
        for token in stripped.split():
            token = token.rstrip(",")
            if token.startswith(token_key):
                yield token


def _last_fio_bandwidth(output: str, tag: str) -> MetricResult:
    tokens = list(_fio_tagged_tokens(output, tag, "BW="))
    if not tokens:
        return UNAVAILABLE
    match = _BW_TOKEN.match(tokens[-1])
    if not match:
        return UNAVAILABLE
    return RateValue(float(match.group(1)), match.group(2))


def _last_fio_iops(output: str, tag: str) -> MetricResult:
    tokens = list(_fio_tagged_tokens(output, tag, "IOPS="))
    if not tokens:
        return UNAVAILABLE
    match = _IOPS_TOKEN.match(tokens[-1])
    if not match:
        return UNAVAILABLE
    return CountRateValue(float(match.group(1)) * _IOPS_SUFFIX[match.group(2)], "IOPS")


def extract_fio_bandwidth(output: str) -> Tuple[MetricResult, MetricResult]:
    """
    Parse fio's per-direction summary lines, e.g.
    '  read: IOPS=96, BW=96.5MiB/s (101MB/s)(5790MiB/60001msec)'.

    Returns:
        tuple: (read, write); each side is independent.
    """
    return _last_fio_bandwidth(output, "read:"), _last_fio_bandwidth(output, "write:")


def extract_fio_iops(output: str) -> Tuple[MetricResult, MetricResult]:
    """Like extract_fio_bandwidth but for the IOPS= token; 'k'/'M' suffixes are expanded."""
    return _last_fio_iops(output, "read:"), _last_fio_iops(output, "write:")


def _iperf_rate(line: str) -> MetricResult:
    tokens = line.split()
    # Summary lines end '<rate> <unit> receiver' or '<rate> <unit> <retr> sender'
    for i in range(len(tokens) - 2, 0, -1):
        unit = tokens[i]
        if "/" not in unit:
            continue
        magnitude = _parse_number(tokens[i - 1])
        if magnitude is not None:
            return RateValue(magnitude, unit)
        return UNAVAILABLE
    return UNAVAILABLE


def extract_iperf_bandwidth(output: str) -> MetricResult:
    """
    Parse iperf3's end-of-test summary, preferring the receiver line, e.g.
    '[  5]   0.00-10.00  sec  1.09 GBytes   938 Mbits/sec                  receiver'.
    """
    line = _last_line_containing(output, IPERF_RECEIVER_TAG)
    if line is None:
        line = _last_line_containing(output, IPERF_SENDER_TAG)
    if line is None:
        return UNAVAILABLE
    return _iperf_rate(line)
