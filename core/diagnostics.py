"""
System & NFS diagnostics for nfs-bench.
Every step is best-effort: a missing tool is reported and the next step runs.
"""

import socket

from core.errors import SpawnError
from core.mounts import discover_mounts
from utils import print_info, print_plain, print_section, print_subheader, print_warning


def resolve_ipv4(host):
    """Resolve a hostname to its first IPv4 address, or None."""
    try:
        infos = socket.getaddrinfo(host, None, socket.AF_INET)
    except (socket.gaierror, UnicodeError):
        return None
    for info in infos:
        return info[4][0]
    return None


def parse_route_interface(route_output):
    """Pull the 'dev <iface>' value out of `ip route get` output."""
    for line in route_output.splitlines():
        tokens = line.split()
        for i, token in enumerate(tokens[:-1]):
            if token == "dev":
                return tokens[i + 1]
    return None


def _try_run(runner, command, capture=False):
    try:
        if capture:
            return runner.run_capturing(command)
        return runner.run(command)
    except SpawnError as e:
        print_warning(str(e))
        return None


def show_diagnostics(runner, selection):
    """Print kernel, mount, filesystem and link information for the selected mount."""
    print_section("System & NFS Diagnostics")
    _try_run(runner, ["uname", "-a"])

    print_subheader("NFS mounts")
    try:
        for entry in discover_mounts():
            print_plain(entry.describe())
    except OSError as e:
        print_warning(f"Cannot read mount table: {e}")

    print_subheader("nfsstat -m")
    _try_run(runner, ["nfsstat", "-m"])

    print_subheader(f"df -hT {selection.mount_path}")
    _try_run(runner, ["df", "-hT", selection.mount_path])

    host = selection.nas_host
    if not host:
        print_info("NAS source host unknown; skipping link diagnostics.")
        return

    print_subheader("Network route to NAS source")
    nas_ip = resolve_ipv4(host)
    if not nas_ip:
        print_warning(f"Could not resolve NAS host: {host}")
        return
    print_info(f"NAS resolved IP: {nas_ip}")

    route = _try_run(runner, ["ip", "route", "get", nas_ip], capture=True)
    iface = parse_route_interface(route.combined_output) if route else None
    if not iface:
        print_warning("Could not determine the outbound interface to the NAS.")
        return
    print_info(f"Outbound interface to NAS: {iface}")

    print_subheader(f"ethtool {iface}")
    _try_run(runner, ["ethtool", iface])
    print_subheader(f"ip -s link show {iface}")
    _try_run(runner, ["ip", "-s", "link", "show", iface])
