"""Open files, pipes and sockets of a process, as rows for a file list."""

from __future__ import annotations

import socket
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import IntEnum

import psutil


class FileType(IntEnum):
    """Kind of an open file descriptor."""

    FILE = 1
    PIPE = 2
    INET6SOCKET = 4
    INETSOCKET = 8
    LOCALSOCKET = 16


_TYPE_NAMES = {
    FileType.FILE: "file",
    FileType.PIPE: "pipe",
    FileType.INET6SOCKET: "IPv6 network connection",
    FileType.INETSOCKET: "IPv4 network connection",
    FileType.LOCALSOCKET: "local socket",
}


@dataclass(frozen=True)
class OpenFileEntry:
    """One descriptor held open by a process.

    ``name`` is the path of a file or local socket; ``host`` and ``port`` are
    the remote end of a network connection.
    """

    fd: int
    type: int
    name: str = ""
    host: str = ""
    port: int = 0


@dataclass
class OpenFilesRow:
    """A displayed row: descriptor, type name, object description, raw entry."""

    fd: int
    type: str
    object: str
    entry: OpenFileEntry


def type_name(file_type: int) -> str:
    """Return the readable name of a descriptor type."""
    try:
        return _TYPE_NAMES[FileType(file_type)]
    except ValueError:
        return "unknown type"


def friendlier_hostname(addr: str, port: int) -> str:
    """Describe a TCP endpoint, resolving the host and service names if possible."""
    if not addr:
        return ""
    try:
        infos = socket.getaddrinfo(addr, str(port), socket.AF_UNSPEC, socket.SOCK_STREAM)
        sockaddr = infos[0][4]
        hostname, service = socket.getnameinfo(sockaddr, 0)
    except (OSError, IndexError, UnicodeError):
        return f"{addr}, TCP port {port}"
    return f"{hostname}, TCP port {port} ({service})"


def describe_object(entry: OpenFileEntry) -> str:
    """Return what the descriptor refers to, as shown in the object column."""
    if entry.type == FileType.FILE:
        return entry.name
    if entry.type in (FileType.INETSOCKET, FileType.INET6SOCKET):
        return friendlier_hostname(entry.host, entry.port)
    if entry.type == FileType.LOCALSOCKET:
        return entry.name
    return ""


def _process_entries(pid: int) -> list[OpenFileEntry] | None:
    """Collect the open descriptors of a live process, or None if unavailable."""
    try:
        proc = psutil.Process(pid)
        files = proc.open_files()
        connections_of = getattr(proc, "net_connections", None) or proc.connections
        connections = connections_of(kind="all")
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None

    entries = [OpenFileEntry(fd=f.fd, type=FileType.FILE, name=f.path) for f in files]
    family_types = {
        socket.AF_INET: FileType.INETSOCKET,
        socket.AF_INET6: FileType.INET6SOCKET,
    }
    af_unix = getattr(socket, "AF_UNIX", None)
    for conn in connections:
        if af_unix is not None and conn.family == af_unix:
            path = conn.laddr if isinstance(conn.laddr, str) else ""
            entries.append(OpenFileEntry(fd=conn.fd, type=FileType.LOCALSOCKET, name=path))
            continue
        file_type = family_types.get(conn.family)
        if file_type is None:
            continue
        host, port = (conn.raddr.ip, conn.raddr.port) if conn.raddr else ("", 0)
        entries.append(OpenFileEntry(fd=conn.fd, type=file_type, host=host, port=port))
    return entries


Source = Callable[[], "Iterable[OpenFileEntry] | None"]


class OpenFilesModel:
    """Rows describing the open files of one process, refreshed on demand.

    ``source`` is either a process id or a callable returning the current
    entries, or None once the process has gone away.
    """

    def __init__(self, source: int | Source) -> None:
        if isinstance(source, int):
            pid = source
            self._source: Source = lambda: _process_entries(pid)
        else:
            self._source = source
        self.rows: list[OpenFilesRow] = []

    def update(self) -> list[OpenFilesRow]:
        """Replace the rows with the process's current descriptors.

        Entries are told apart by descriptor number and type; a later entry
        with the same pair replaces an earlier one. If the process is gone the
        rows are left untouched.
        """
        entries = self._source()
        if entries is None:
            return self.rows

        latest: dict[tuple[int, int], OpenFileEntry] = {}
        for entry in entries:
            latest[(entry.fd, int(entry.type))] = entry

        self.rows = [
            OpenFilesRow(
                fd=entry.fd,
                type=type_name(entry.type),
                object=describe_object(entry),
                entry=entry,
            )
            for entry in latest.values()
        ]
        return self.rows