"""
Process directory module for PortLens.

Combines socket listing, PID resolution, container correlation and name
enhancement into one immutable, sorted snapshot of listening processes.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from portlens.cache import BoundedCache
from portlens.classifier import is_dev_process, is_system_process
from portlens.config import ScanSettings
from portlens.containers import (
    FALLBACK_CONTAINER,
    ContainerCorrelator,
    ContainerInfo,
    container_key,
    is_runtime_label,
)
from portlens.enhancer import NameEnhancer
from portlens.resolver import ProcessResolver
from portlens.shell import CommandRunner
from portlens.sockets import RawSocketRow, SocketLister

logger = logging.getLogger(__name__)

IconProvider = Callable[[str, int], Optional[object]]
EntryKey = Union[int, str]

# Every container entry shares one icon
CONTAINER_ICON_KEY = "Docker"


@dataclass(frozen=True)
class ProcessEntry:
    """A process (or container) and the TCP ports it listens on."""
    pid: int
    label: str
    ports: Tuple[int, ...]
    command_line: Optional[str] = None
    working_directory: Optional[str] = None
    icon: Optional[object] = field(default=None, compare=False)
    is_container: bool = False

    @property
    def key(self) -> EntryKey:
        """Grouping key: the synthetic label for containers, else the PID."""
        return self.label if self.is_container else self.pid

    @property
    def base_name(self) -> str:
        """Label without the enhancement detail, e.g. "node" for "node: my-app"."""
        return self.label.split(":")[0]

    def __str__(self) -> str:
        return f"{self.label}({self.pid})"


@dataclass
class _Accumulator:
    pid: int
    name: str
    working_directory: Optional[str]
    is_container: bool = False
    ports: Set[int] = field(default_factory=set)


def filter_system(entries: Iterable[ProcessEntry]) -> Tuple[ProcessEntry, ...]:
    """Drop OS daemons from a snapshot."""
    return tuple(entry for entry in entries if not is_system_process(entry.label))


def filter_dev_only(
    entries: Iterable[ProcessEntry],
    home: Optional[str] = None
) -> Tuple[ProcessEntry, ...]:
    """
    Keep only development processes.

    Works on an existing snapshot so toggling the view never re-runs the
    OS commands.

    Args:
        entries: Snapshot to filter
        home: Home directory used to expand "~" (defaults to the user's)

    Returns:
        Entries classified as dev processes, order preserved
    """
    return tuple(entry for entry in entries if is_dev_process(entry, home))


def ports_by_number(entries: Iterable[ProcessEntry]) -> Dict[int, Tuple[ProcessEntry, ...]]:
    """
    Index a snapshot by port.

    Processes sharing a port stay separate entries but are listed together
    under that port.

    Args:
        entries: Snapshot to index

    Returns:
        Mapping of port to the entries listening on it, ascending by port
    """
    index: Dict[int, List[ProcessEntry]] = {}
    for entry in entries:
        for port in entry.ports:
            index.setdefault(port, []).append(entry)
    return {port: tuple(index[port]) for port in sorted(index)}


class ProcessDirectory:
    """
    Builds snapshots of listening processes.

    At most one scan runs at a time. A scan requested while another is in
    flight waits for it and shares its result.
    """

    def __init__(
        self,
        socket_lister: SocketLister,
        resolver: ProcessResolver,
        correlator: Optional[ContainerCorrelator] = None,
        enhancer: Optional[NameEnhancer] = None,
        icon_provider: Optional[IconProvider] = None,
        icon_cache: Optional[BoundedCache[str, object]] = None,
        home: Optional[str] = None
    ) -> None:
        """
        Initialize the directory.

        Args:
            socket_lister: Source of listening sockets
            resolver: Batched PID lookups
            correlator: Container runtime correlation (None to disable)
            enhancer: Label enhancement (defaults to the standard rules)
            icon_provider: Optional callable (name, pid) -> icon handle
            icon_cache: Cache for icon handles keyed by base name
            home: Home directory used to expand "~" (defaults to the user's)
        """
        self._sockets = socket_lister
        self._resolver = resolver
        self._correlator = correlator
        self._enhancer = enhancer or NameEnhancer(home=home)
        self._icon_provider = icon_provider
        self._icon_cache = icon_cache if icon_cache is not None else BoundedCache()
        self._home = home

        self._condition = threading.Condition()
        self._in_flight = False
        self._completed = 0
        self._snapshot: Tuple[ProcessEntry, ...] = ()
        self._failure: Optional[Exception] = None

    @classmethod
    def from_settings(
        cls,
        settings: ScanSettings,
        icon_provider: Optional[IconProvider] = None,
        home: Optional[str] = None
    ) -> "ProcessDirectory":
        """Build a directory wired to the real OS tools."""
        runner = CommandRunner(
            timeout=settings.command_timeout,
            search_path=settings.search_path,
        )
        correlator = None
        if settings.include_containers:
            correlator = ContainerCorrelator(runner, settings.container_binary)

        return cls(
            socket_lister=SocketLister(runner, settings.lsof_binary),
            resolver=ProcessResolver(
                runner,
                ps_binary=settings.ps_binary,
                lsof_binary=settings.lsof_binary,
                home=home,
            ),
            correlator=correlator,
            enhancer=NameEnhancer(home=home),
            icon_provider=icon_provider,
            icon_cache=BoundedCache(settings.icon_cache_size),
            home=home,
        )

    @property
    def last_snapshot(self) -> Tuple[ProcessEntry, ...]:
        """Get the unfiltered result of the most recent completed scan."""
        with self._condition:
            return self._snapshot

    @property
    def icon_cache(self) -> BoundedCache[str, object]:
        return self._icon_cache

    def scan(self, include_system_processes: bool = False) -> Tuple[ProcessEntry, ...]:
        """
        Scan listening processes.

        Args:
            include_system_processes: Keep OS daemons in the result

        Returns:
            Entries sorted by label

        Raises:
            ToolUnavailableError: If the socket listing tool is missing
        """
        entries = self._scan_once()
        if not include_system_processes:
            entries = filter_system(entries)
        return self._attach_icons(entries)

    def filter_dev_only(self, entries: Iterable[ProcessEntry]) -> Tuple[ProcessEntry, ...]:
        """Apply the dev-only view to a snapshot, without re-scanning."""
        return filter_dev_only(entries, self._home)

    def _scan_once(self) -> Tuple[ProcessEntry, ...]:
        with self._condition:
            if self._in_flight:
                target = self._completed + 1
                while self._completed < target:
                    self._condition.wait()
                if self._failure is not None:
                    raise self._failure
                return self._snapshot
            self._in_flight = True

        snapshot: Optional[Tuple[ProcessEntry, ...]] = None
        failure: Optional[Exception] = None
        try:
            snapshot = self._run_pipeline()
            return snapshot
        except Exception as e:
            failure = e
            raise
        finally:
            with self._condition:
                if snapshot is not None:
                    self._snapshot = snapshot
                self._failure = failure
                self._completed += 1
                self._in_flight = False
                self._condition.notify_all()

    def _run_pipeline(self) -> Tuple[ProcessEntry, ...]:
        start = time.perf_counter()

        rows = self._sockets.list_listening_sockets()
        pids = {row.pid for row in rows}
        names = self._resolver.resolve_names(pids)
        directories = self._resolver.resolve_working_directories(pids)
        containers = self._list_containers(rows)

        accumulated = self._accumulate(rows, names, directories, containers)

        candidates = [
            acc.pid for acc in accumulated.values()
            if not acc.is_container and "docker" not in acc.name
        ]
        command_lines = self._resolver.resolve_command_lines(candidates)

        entries = [self._freeze(acc, command_lines) for acc in accumulated.values()]
        entries.sort(key=lambda entry: (entry.label, entry.pid))

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "[%.0fms] Scanned %d sockets into %d entries",
            elapsed_ms, len(rows), len(entries)
        )
        return tuple(entries)

    def _list_containers(self, rows: Sequence[RawSocketRow]) -> List[ContainerInfo]:
        if self._correlator is None:
            return []
        if not any(is_runtime_label(row.process_label) for row in rows):
            return []
        return self._correlator.list_containers()

    def _container_name(self, port: int, containers: Sequence[ContainerInfo]) -> str:
        if self._correlator is None:
            return container_key(FALLBACK_CONTAINER)
        return container_key(self._correlator.resolve(port, containers))

    def _accumulate(
        self,
        rows: Sequence[RawSocketRow],
        names: Dict[int, str],
        directories: Dict[int, str],
        containers: Sequence[ContainerInfo]
    ) -> Dict[EntryKey, _Accumulator]:
        accumulated: Dict[EntryKey, _Accumulator] = {}

        for row in rows:
            if is_runtime_label(row.process_label):
                name = self._container_name(row.port, containers)
                key: EntryKey = name
                is_container = True
            else:
                name = names.get(row.pid, row.process_label)
                key = row.pid
                is_container = False

            acc = accumulated.get(key)
            if acc is None:
                acc = _Accumulator(
                    pid=row.pid,
                    name=name,
                    working_directory=directories.get(row.pid),
                    is_container=is_container,
                )
                accumulated[key] = acc
            acc.ports.add(row.port)

        return accumulated

    def _freeze(self, acc: _Accumulator, command_lines: Dict[int, str]) -> ProcessEntry:
        ports = tuple(sorted(acc.ports))
        if acc.is_container:
            return ProcessEntry(
                pid=acc.pid,
                label=acc.name,
                ports=ports,
                working_directory=acc.working_directory,
                is_container=True,
            )

        command_line = command_lines.get(acc.pid)
        label = self._enhancer.enhance(acc.name, command_line, acc.working_directory)
        return ProcessEntry(
            pid=acc.pid,
            label=label,
            ports=ports,
            command_line=command_line,
            working_directory=acc.working_directory,
        )

    def _attach_icons(self, entries: Tuple[ProcessEntry, ...]) -> Tuple[ProcessEntry, ...]:
        if self._icon_provider is None:
            return entries

        with_icons: List[ProcessEntry] = []
        for entry in entries:
            name = CONTAINER_ICON_KEY if entry.is_container else entry.base_name
            icon = self._icon_cache.get(name)
            if icon is None:
                icon = self._icon_provider(name, entry.pid)
                if icon is not None:
                    self._icon_cache.put(name, icon)
            with_icons.append(replace(entry, icon=icon) if icon is not None else entry)
        return tuple(with_icons)


__all__ = [
    "ProcessDirectory",
    "ProcessEntry",
    "filter_dev_only",
    "filter_system",
    "ports_by_number",
]
