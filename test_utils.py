#!/usr/bin/env python3
"""
Tests for console helpers: table/size formatting and the log mirror.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from utils import (
    format_size, format_table, print_error, print_info, set_log_sink, strip_colors,
)


def test_format_table_alignment():
    print("Testing format_table...")
    table = format_table([("dd Write", "131 MB/s"), ("iperf3 Network", "N/A")],
                         headers=("Test", "Result"))
    lines = table.splitlines()
    assert lines[0] == "Test           | Result"
    assert lines[1] == "---------------+---------"
    assert lines[2] == "dd Write       | 131 MB/s"
    assert lines[3] == "iperf3 Network | N/A"
    print("  ✓ columns aligned")


def test_format_size():
    assert format_size(0) == "0 B"
    assert format_size(512) == "512 B"
    assert format_size(4096) == "4.00 KiB"
    assert format_size(2 * 1024 ** 3) == "2.00 GiB"


def test_strip_colors():
    assert strip_colors("\033[91m! ERROR: x\033[0m") == "! ERROR: x"


def test_log_sink_mirrors_messages():
    captured = []
    set_log_sink(captured.append)
    try:
        print_info("Dropping client page cache")
        print_error("boom")
    finally:
        set_log_sink(None)
    assert captured == ["* Dropping client page cache\n", "! ERROR: boom\n"]

    print_info("not mirrored")
    assert len(captured) == 2


if __name__ == "__main__":
    test_format_table_alignment()
    test_format_size()
    test_strip_colors()
    test_log_sink_mirrors_messages()
    print("ALL TESTS PASSED ✅")
