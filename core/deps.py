"""
Dependency gate for nfs-bench.
Checks that the wrapped tools are installed and installs missing Debian/Ubuntu
packages through apt-get before the mount is selected.
"""

import os
import shutil
import subprocess

from core.errors import DependencyError, SpawnError
from utils import print_info, print_success, print_warning

REQUIRED_PACKAGES = ("fio", "iperf3", "ethtool", "nfs-common", "coreutils", "util-linux", "procps")
REQUIRED_TOOLS = ("dd", "fio", "iperf3", "ethtool", "ip", "df", "uname")


def command_exists(command):
    """Check if a command exists in PATH."""
    return shutil.which(command) is not None


def sudo_prefix():
    """
    Command prefix for privileged actions.

    Returns:
        list: [] when running as root, ['sudo', '-n'] with password-less sudo,
              ['sudo'] otherwise (the operator will be prompted).
    """
    if os.geteuid() == 0:
        return []
    if command_exists("sudo"):
        probe = subprocess.run(["sudo", "-n", "true"], stdout=subprocess.DEVNULL,
                               stderr=subprocess.DEVNULL)
        if probe.returncode == 0:
            return ["sudo", "-n"]
    return ["sudo"]


def missing_packages(packages=REQUIRED_PACKAGES):
    """Return the packages dpkg does not report as installed."""
    missing = []
    for package in packages:
        result = subprocess.run(["dpkg", "-s", package], stdout=subprocess.DEVNULL,
                                stderr=subprocess.DEVNULL)
        if result.returncode != 0:
            missing.append(package)
    return missing


def missing_tools(tools=REQUIRED_TOOLS):
    return [tool for tool in tools if not command_exists(tool)]


def install_packages(runner, packages, prefix=None):
    """
    Install packages with apt-get, streaming output into the session log.

    Returns:
        bool: True if both apt-get steps exited 0.
    """
    if prefix is None:
        prefix = sudo_prefix()
    print_info(f"Installing missing packages: {' '.join(packages)}")
    update = runner.run(prefix + ["apt-get", "update", "-y"])
    if not update.succeeded:
        print_warning("apt-get update failed; trying the install anyway.")
    install = runner.run(prefix + ["apt-get", "install", "-y"] + list(packages))
    return install.succeeded


def ensure_dependencies(runner, packages=REQUIRED_PACKAGES, tools=REQUIRED_TOOLS):
    """
    Make sure every wrapped tool is available, installing packages if possible.

    Raises:
        DependencyError: tools are still missing afterwards.
    """
    print_info(f"Checking required packages: {' '.join(packages)}")

    if command_exists("dpkg") and command_exists("apt-get"):
        missing = missing_packages(packages)
        if missing:
            try:
                installed = install_packages(runner, missing)
            except SpawnError as e:
                raise DependencyError(f"Package installation could not start: {e}") from e
            if not installed:
                raise DependencyError(f"Failed to install: {' '.join(missing)}")
        else:
            print_success("All required packages present.")
    else:
        print_warning("dpkg/apt-get not available; checking tools on PATH instead.")

    absent = missing_tools(tools)
    if absent:
        raise DependencyError(f"Required tools not found in PATH: {', '.join(absent)}")
    return True
