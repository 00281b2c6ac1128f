"""
Name enhancement module for PortLens.

Turns bare runtime names such as "node" or "java" into labels that say
which project is running, e.g. "node: my-app" or "java: billing.jar".

Each ecosystem is an ordered list of strategies. A strategy is a pure
function (command_line, working_directory) -> Optional[str]; the first one
that returns a value wins. Project manifests come before command-line
patterns because they name the project directly.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from portlens.paths import expand_home

Strategy = Callable[[Optional[str], Optional[str]], Optional[str]]

SCRIPT_SUFFIXES = (".js", ".mjs", ".cjs", ".ts")

NAME_ASSIGNMENT = re.compile(r"""name\s*=\s*["']([^"']+)["']""")
ARTIFACT_ID = re.compile(r"<artifactId>([^<]+)</artifactId>")

BIN_SCRIPT = re.compile(r"node_modules/\.bin/(\S+)")
PACKAGE_MANAGER_SCRIPTS = (
    (re.compile(r"(?:^|[\s/])npm\s+run\s+([^\s-]\S*)"), "npm run {}"),
    (re.compile(r"(?:^|[\s/])yarn\s+(?:run\s+)?([^\s-]\S*)"), "yarn {}"),
    (re.compile(r"(?:^|[\s/])pnpm\s+(?:run\s+)?([^\s-]\S*)"), "pnpm {}"),
    (re.compile(r"(?:^|[\s/])bun\s+run\s+([^\s-]\S*)"), "bun {}"),
)
PACKAGE_MANAGER = re.compile(r"(?:^|[\s/])(npm|yarn|pnpm|bun)(?=\s|$)")
NODEMON_SCRIPT = re.compile(r"nodemon(?:\s+\S+)*?\s+(\S+\.[mc]?js)(?=\s|$)")
TS_NODE_SCRIPT = re.compile(r"ts-node(?:\s+\S+)*?\s+(\S+\.ts)(?=\s|$)")
ENTRY_POINT = re.compile(r"((?:server|app|index|main)\.(?:[mc]?js|ts))(?![\w.])")

# Checked in order; the first needle found in the command line wins
FRAMEWORKS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("next",), "Next.js"),
    (("react-scripts",), "React"),
    (("vue-cli-service",), "Vue"),
    (("ng serve", "angular"), "Angular"),
    (("vite",), "Vite"),
    (("webpack",), "Webpack"),
)

PYTHON_MODULE = re.compile(r"(?:^|\s)-m\s+([\w.]+)")
JAR_FILE = re.compile(r"-jar\s+(\S+\.jar)(?=\s|$)")
MAIN_CLASS = re.compile(r"(?:^|\s)([\w.]+\.[A-Z]\w*)(?=\s|$)")


def basename(path: str) -> str:
    """Get the last path component of a token."""
    return path.rstrip("/").split("/")[-1]


def read_manifest(directory: Optional[str], filename: str) -> Optional[str]:
    """
    Read a project file as text, best effort.

    Args:
        directory: Project directory (already "~"-expanded)
        filename: File name inside the directory

    Returns:
        File contents, or None if missing or unreadable
    """
    if not directory:
        return None
    try:
        return (Path(directory) / filename).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


# JS strategies

def package_json_name(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    content = read_manifest(directory, "package.json")
    if content is None:
        return None
    try:
        data = json.loads(content)
    except ValueError:
        return None
    name = data.get("name") if isinstance(data, dict) else None
    if isinstance(name, str) and name:
        return name
    return None


def bin_script(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    """Binary installed by a package manager, e.g. node_modules/.bin/vite."""
    match = BIN_SCRIPT.search(command_line or "")
    return match.group(1) if match else None


def package_manager_script(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    for pattern, label in PACKAGE_MANAGER_SCRIPTS:
        match = pattern.search(command_line or "")
        if match:
            return label.format(match.group(1))
    return None


def package_manager(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    match = PACKAGE_MANAGER.search(command_line or "")
    return match.group(1) if match else None


def framework(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    for needles, label in FRAMEWORKS:
        if any(needle in (command_line or "") for needle in needles):
            return label
    return None


def nodemon_script(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    if "nodemon" not in (command_line or ""):
        return None
    match = NODEMON_SCRIPT.search(command_line or "")
    if match:
        return f"nodemon → {basename(match.group(1))}"
    return "nodemon"


def ts_node_script(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    if "ts-node" not in (command_line or ""):
        return None
    match = TS_NODE_SCRIPT.search(command_line or "")
    if match:
        return basename(match.group(1))
    return "ts-node"


def script_path(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    """First argument that is a JavaScript or TypeScript file."""
    for token in (command_line or "").split():
        # --require=./setup.js style options
        value = token.rpartition("=")[2]
        if value.endswith(SCRIPT_SUFFIXES):
            return basename(value)
    return None


def entry_point(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    """Conventional entry file embedded anywhere in an argument."""
    for token in (command_line or "").split():
        match = ENTRY_POINT.search(token)
        if match:
            return match.group(1)
    return None


# Python strategies

def pyproject_name(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    content = read_manifest(directory, "pyproject.toml")
    match = NAME_ASSIGNMENT.search(content) if content else None
    return match.group(1) if match else None


def setup_py_name(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    content = read_manifest(directory, "setup.py")
    match = NAME_ASSIGNMENT.search(content) if content else None
    return match.group(1) if match else None


def python_script(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    for token in (command_line or "").split():
        if token.endswith(".py"):
            return basename(token)
    return None


def python_module(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    match = PYTHON_MODULE.search(command_line or "")
    return match.group(1) if match else None


# JVM strategies

def maven_artifact(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    content = read_manifest(directory, "pom.xml")
    match = ARTIFACT_ID.search(content) if content else None
    return match.group(1).strip() if match else None


def gradle_project(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    """Gradle builds rarely declare a name inline; the directory is the project."""
    if not directory:
        return None
    root = Path(directory)
    try:
        found = (root / "build.gradle").is_file() or (root / "build.gradle.kts").is_file()
    except OSError:
        return None
    return (root.name or None) if found else None


def jar_file(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    match = JAR_FILE.search(command_line or "")
    return basename(match.group(1)) if match else None


def main_class(command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
    match = MAIN_CLASS.search(command_line or "")
    return match.group(1) if match else None


@dataclass(frozen=True)
class Ecosystem:
    """Naming rules for one language runtime."""
    prefix: str
    matches: Callable[[str], bool]
    manifest_strategies: Tuple[Strategy, ...] = ()
    command_strategies: Tuple[Strategy, ...] = ()

    def detail(self, command_line: Optional[str], directory: Optional[str]) -> Optional[str]:
        """
        Run the strategies in priority order.

        Args:
            command_line: Full invocation, if known
            directory: Expanded working directory, if known

        Returns:
            The first strategy result, or None if none applies
        """
        if directory:
            for strategy in self.manifest_strategies:
                result = strategy(command_line, directory)
                if result:
                    return result

        if command_line:
            for strategy in self.command_strategies:
                result = strategy(command_line, directory)
                if result:
                    return result

        return None


NODE = Ecosystem(
    prefix="node",
    matches=lambda name: name == "node",
    manifest_strategies=(package_json_name,),
    command_strategies=(
        bin_script,
        package_manager_script,
        package_manager,
        framework,
        nodemon_script,
        ts_node_script,
        script_path,
        entry_point,
    ),
)

PYTHON = Ecosystem(
    prefix="python",
    matches=lambda name: name == "Python" or name.startswith("python"),
    manifest_strategies=(pyproject_name, setup_py_name),
    command_strategies=(python_script, python_module),
)

JAVA = Ecosystem(
    prefix="java",
    matches=lambda name: name == "java",
    manifest_strategies=(maven_artifact, gradle_project),
    command_strategies=(jar_file, main_class),
)

DEFAULT_ECOSYSTEMS: Tuple[Ecosystem, ...] = (NODE, PYTHON, JAVA)


class NameEnhancer:
    """
    Derives friendly process labels.

    Labels have the form "<ecosystem>: <detail>". Processes outside the
    known ecosystems, and processes for which no rule applies, keep their
    raw name.
    """

    def __init__(
        self,
        ecosystems: Sequence[Ecosystem] = DEFAULT_ECOSYSTEMS,
        home: Optional[str] = None
    ) -> None:
        """
        Initialize the enhancer.

        Args:
            ecosystems: Ecosystems to try, in order
            home: Home directory used to expand "~" (defaults to the user's)
        """
        self._ecosystems = tuple(ecosystems)
        self._home = home

    def ecosystem_for(self, raw_name: str) -> Optional[Ecosystem]:
        """Get the ecosystem whose runtime name matches, if any."""
        for ecosystem in self._ecosystems:
            if ecosystem.matches(raw_name):
                return ecosystem
        return None

    def enhance(
        self,
        raw_name: str,
        command_line: Optional[str] = None,
        working_directory: Optional[str] = None
    ) -> str:
        """
        Build the display label for a process.

        Args:
            raw_name: Canonical command name
            command_line: Full invocation, if known
            working_directory: Working directory, possibly "~"-relative

        Returns:
            Enhanced label, or raw_name if nothing better is found
        """
        # Container runtime processes are named by port correlation instead
        if "docker" in raw_name:
            return raw_name

        ecosystem = self.ecosystem_for(raw_name)
        if ecosystem is None:
            return raw_name

        directory = expand_home(working_directory, self._home) if working_directory else None
        detail = ecosystem.detail(command_line, directory)
        if not detail:
            return raw_name

        return f"{ecosystem.prefix}: {detail}"


__all__ = [
    "DEFAULT_ECOSYSTEMS",
    "Ecosystem",
    "JAVA",
    "NODE",
    "NameEnhancer",
    "PYTHON",
    "Strategy",
]
