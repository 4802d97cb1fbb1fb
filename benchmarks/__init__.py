"""
nfs-bench Benchmarks Module

Available benchmarks:
- DDSequentialBenchmark: dd sequential write (fdatasync) then read, 1 MiB blocks
- FioThroughputBenchmark: fio 1 MiB mixed sequential read/write bandwidth
- FioIopsBenchmark: fio 4 KiB mixed random read/write IOPS
- IperfServer / IperfClient: iperf3 network throughput
"""

from benchmarks.base import BenchmarkBase
from benchmarks.dd_seq import DDSequentialBenchmark, drop_client_caches
from benchmarks.fio import FioThroughputBenchmark, FioIopsBenchmark
from benchmarks.iperf import IperfServer, IperfClient

__all__ = [
    'BenchmarkBase', 'DDSequentialBenchmark', 'drop_client_caches',
    'FioThroughputBenchmark', 'FioIopsBenchmark', 'IperfServer', 'IperfClient',
]
