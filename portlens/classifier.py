"""
Process classification for PortLens.

Pure predicates deciding whether a process is an OS daemon (hidden by
default) or part of a development workflow (kept by the dev-only view).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, FrozenSet, Optional, Tuple

from portlens.containers import CONTAINER_PREFIX
from portlens.paths import expand_home

if TYPE_CHECKING:
    from portlens.directory import ProcessEntry


VENDOR_PREFIX = "com.apple."

SYSTEM_PROCESSES: FrozenSet[str] = frozenset({
    "mDNSResponder",
    "launchd",
    "kernel_task",
    "systemd",
    "syslogd",
    "airportd",
    "WindowServer",
    "loginwindow",
    "CoreServicesUIAgent",
    "SystemUIServer",
    "Dock",
    "Finder",
    "Safari Networking",
    "nsurlsessiond",
    "trustd",
    "rapportd",
    "sharingd",
    "bluetoothd",
    "coreaudiod",
    "powerd",
    "distnoted",
    "cfprefsd",
    "UserEventAgent",
    "CommCenter",
    "locationd",
    "identityservicesd",
    "cloudd",
    "bird",
    "apsd",
    "akd",
    "coreduetd",
    "assistantd",
    "siriactionsd",
    "com.apple.",
    "VTDecoderXPCService",
    "diagnosticd",
    "logd",
    "notifyd",
    "securityd",
    "opendirectoryd",
    "timed",
    "configd",
    "hidd",
    "coreservicesd",
    "diskarbitrationd",
    "kextd",
    "fseventsd",
    "thermald",
    "warmd",
    "endpointsecurityd",
    "syspolicyd",
    "sandboxd",
})

# The Dock shares a prefix with Docker Desktop's processes
SHELL_PREFIX = "Dock"

DEV_PROCESS_PATTERNS: Tuple[str, ...] = (
    "node", "python", "java", "ruby", "go", "rust", "cargo",
    "npm", "yarn", "pnpm", "bun", "deno",
    "rails", "django", "flask", "spring",
    "webpack", "vite", "parcel", "rollup",
    "php", "dotnet", "dart", "flutter",
    "elixir", "mix", "iex", "phoenix",
    "gradle", "mvn", "sbt", "lein",
    "julia", "r", "matlab", "octave",
)

DEV_DIRECTORY_PATTERNS: Tuple[str, ...] = (
    "/Development", "/Projects", "/Code", "/Sites",
    "/dev", "/workspace", "/repos", "/git",
    "/src", "/source", "/sources", "/work",
    "/Desktop", "/Documents",
)

# IDEs and desktop tools that embed runtimes but are not dev servers
DEV_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "webstorm", "intellij", "pycharm", "rubymine", "goland", "phpstorm",
    "datagrip", "clion", "rider", "appcode", "android studio",
    "visual studio", "vscode", "code", "sublime", "atom", "brackets",
    "eclipse", "netbeans", "xcode", "cursor",
    "docker desktop", "github desktop", "sourcetree",
    "postman", "insomnia", "tableplus", "sequel", "dbeaver",
    "tower", "fork", "kaleidoscope", "beyond compare",
    "iterm", "terminal", "warp", "hyper", "alacritty",
)

IDE_BRANDS: Tuple[str, ...] = ("jetbrains", "idea")


def is_system_process(name: str) -> bool:
    """
    Check if a process name belongs to an OS daemon.

    Args:
        name: Process name or label

    Returns:
        True for known daemons, vendor-namespaced names and their prefixes
    """
    if name in SYSTEM_PROCESSES:
        return True

    if name.startswith(VENDOR_PREFIX):
        return True

    for system_name in SYSTEM_PROCESSES:
        if system_name == SHELL_PREFIX and (name.startswith("Docker") or "docker" in name):
            continue
        if name.startswith(system_name):
            return True

    return False


def _is_excluded(lower_name: str) -> bool:
    return any(pattern in lower_name for pattern in DEV_EXCLUDE_PATTERNS)


def _has_dev_pattern(lower_name: str) -> bool:
    for pattern in DEV_PROCESS_PATTERNS:
        if pattern not in lower_name:
            continue
        if pattern == "java" and any(brand in lower_name for brand in IDE_BRANDS):
            continue
        return True
    return False


def _in_dev_directory(working_directory: Optional[str], home: Optional[str]) -> bool:
    if not working_directory:
        return False
    expanded = expand_home(working_directory, home)
    return any(pattern in expanded for pattern in DEV_DIRECTORY_PATTERNS)


def is_dev_process(entry: "ProcessEntry", home: Optional[str] = None) -> bool:
    """
    Check if a process looks like part of a development workflow.

    IDEs and desktop tools are excluded first and stay excluded whatever
    else matches.

    Args:
        entry: Process entry to classify
        home: Home directory used to expand "~" (defaults to the user's)

    Returns:
        True for runtimes, dev tools, processes in project directories
        and containers
    """
    lower_name = entry.label.lower()

    if _is_excluded(lower_name):
        return False

    if _has_dev_pattern(lower_name):
        return True

    if _in_dev_directory(entry.working_directory, home):
        return True

    if entry.label.startswith(CONTAINER_PREFIX.rstrip()):
        return True

    return False


__all__ = [
    "DEV_DIRECTORY_PATTERNS",
    "DEV_EXCLUDE_PATTERNS",
    "DEV_PROCESS_PATTERNS",
    "SYSTEM_PROCESSES",
    "is_dev_process",
    "is_system_process",
]
