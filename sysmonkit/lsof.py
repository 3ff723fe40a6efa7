"""Search for open files whose names match a pattern, across processes."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

import psutil

OpenFiles = Callable[[int], Iterable[str]]


@dataclass(frozen=True)
class LsofMatch:
    """An open file of a process whose name matched the search."""

    process: str
    pid: int
    filename: str


class Lsof:
    """A compiled search pattern over file names."""

    def __init__(self, pattern: str, caseless: bool = False) -> None:
        self.re = re.compile(pattern, re.IGNORECASE if caseless else 0)

    def matches(self, filename: str) -> bool:
        """Tell whether the pattern occurs anywhere in *filename*."""
        return self.re.search(filename) is not None

    def search(self, filenames: Iterable[str]) -> list[str]:
        """Return the distinct matching names, sorted."""
        return sorted({name for name in filenames if self.matches(name)})


def window_title(count: int, pattern: str) -> str:
    """Title of the search window for *count* results."""
    if not pattern:
        return f"{count} Open File" if count == 1 else f"{count} Open Files"
    return f"{count} Matching Open File" if count == 1 else f"{count} Matching Open Files"


def _psutil_open_files(pid: int) -> list[str]:
    try:
        return [f.path for f in psutil.Process(pid).open_files()]
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []


def search_processes(
    processes: Mapping[int, str],
    pattern: str,
    caseless: bool = False,
    open_files: OpenFiles | None = None,
) -> list[LsofMatch]:
    """Find the open files matching *pattern* in every process.

    ``processes`` maps process ids to names; ``open_files`` returns the file
    names a process holds open. An invalid pattern yields no results.
    """
    files_of = open_files or _psutil_open_files
    try:
        lsof = Lsof(pattern, caseless)
    except re.error:
        return []

    return [
        LsofMatch(process=processes[pid], pid=pid, filename=name)
        for pid in sorted(processes)
        for name in lsof.search(files_of(pid))
    ]