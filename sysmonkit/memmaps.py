"""Memory mappings of a process, as rows for a memory-map list."""

from __future__ import annotations

import os
import re
import warnings
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import IntFlag

import psutil


class MapPerm(IntFlag):
    """Access permissions of a mapping."""

    READ = 1
    WRITE = 2
    EXECUTE = 4
    SHARED = 8
    PRIVATE = 16


@dataclass(frozen=True)
class MapEntry:
    """One mapped region of a process's address space; sizes are in bytes."""

    start: int
    end: int
    offset: int = 0
    perm: MapPerm = MapPerm(0)
    device: int = 0
    inode: int = 0
    filename: str | None = None
    private_clean: int = 0
    private_dirty: int = 0
    shared_clean: int = 0
    shared_dirty: int = 0


@dataclass
class MemMapRow:
    """A displayed row of the memory-map list."""

    filename: str
    vmstart: str
    vmend: str
    vmsize: int
    flags: str
    vmoffset: str
    privateclean: int
    privatedirty: int
    sharedclean: int
    shareddirty: int
    device: str
    inode: int


def format_flags(perm: int) -> str:
    """Render permissions as four characters such as ``r-xp``."""
    perm = MapPerm(perm)
    flags = ["-"] * 4
    if perm & MapPerm.READ:
        flags[0] = "r"
    if perm & MapPerm.WRITE:
        flags[1] = "w"
    if perm & MapPerm.EXECUTE:
        flags[2] = "x"
    if perm & MapPerm.SHARED:
        flags[3] = "s"
    if perm & MapPerm.PRIVATE:
        flags[3] = "p"
    return "".join(flags)


_IEC_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def format_size(size: int) -> str:
    """Format a byte count with IEC units, e.g. ``1.5 KiB``."""
    if size < 1024:
        return f"{size} byte" if size == 1 else f"{size} bytes"
    value = float(size)
    unit = _IEC_UNITS[0]
    for unit in _IEC_UNITS:
        value /= 1024.0
        if value < 1024.0:
            break
    return f"{value:.1f} {unit}"


_HEADER = re.compile(
    r"^([0-9a-fA-F]+)-([0-9a-fA-F]+)\s+(\S{4})\s+([0-9a-fA-F]+)\s+"
    r"([0-9a-fA-F]+):([0-9a-fA-F]+)\s+(\d+)\s*(.*)$"
)
_SIZE_FIELDS = {
    "Private_Clean": "private_clean",
    "Private_Dirty": "private_dirty",
    "Shared_Clean": "shared_clean",
    "Shared_Dirty": "shared_dirty",
}
_PERM_CHARS = {"r": MapPerm.READ, "w": MapPerm.WRITE, "x": MapPerm.EXECUTE,
               "s": MapPerm.SHARED, "p": MapPerm.PRIVATE}


def _parse_perm(text: str) -> MapPerm:
    perm = MapPerm(0)
    for char in text:
        perm |= _PERM_CHARS.get(char, MapPerm(0))
    return perm


def parse_smaps(text: str) -> list[MapEntry]:
    """Parse the text of a ``/proc/<pid>/smaps`` file into map entries."""
    entries: list[MapEntry] = []
    current: dict | None = None

    def flush() -> None:
        if current is not None:
            entries.append(MapEntry(**current))

    for line in text.splitlines():
        header = _HEADER.match(line)
        if header:
            flush()
            start, end, perm, offset, major, minor, inode, path = header.groups()
            current = {
                "start": int(start, 16),
                "end": int(end, 16),
                "perm": _parse_perm(perm),
                "offset": int(offset, 16),
                "device": (int(major, 16) << 8) + int(minor, 16),
                "inode": int(inode),
                "filename": path.strip() or None,
            }
            continue
        if current is None or ":" not in line:
            continue
        key, _, rest = line.partition(":")
        field = _SIZE_FIELDS.get(key.strip())
        if field is None:
            continue
        parts = rest.split()
        if parts and parts[0].isdigit():
            current[field] = int(parts[0]) * 1024
    flush()
    return entries


class OffsetFormatter:
    """Formats addresses as zero-padded hex, 8 or 16 digits wide."""

    def __init__(self) -> None:
        self.width = 8

    def set(self, last_end: int) -> None:
        """Choose the width from the end address of the highest mapping."""
        self.width = 8 if last_end <= 0xFFFFFFFF else 16

    def __call__(self, value: int) -> str:
        return f"{value:0{self.width}x}"


class InodeDevices:
    """Names of block devices, looked up by device number."""

    def __init__(self) -> None:
        self.devices: dict[int, str] = {}

    def update(self, devices: Mapping[int, str] | Iterable[str] | None = None) -> None:
        """Rebuild the table.

        ``devices`` is either a mapping of device numbers to names or device
        paths to stat; by default the devices of all mounted file systems.
        """
        self.devices.clear()
        if isinstance(devices, Mapping):
            for number, name in devices.items():
                self.devices[number & 0xFFFF] = name
            return
        if devices is None:
            devices = [part.device for part in psutil.disk_partitions(all=True)]
        for path in devices:
            try:
                rdev = os.stat(path).st_rdev
            except (OSError, ValueError):
                continue
            self.devices[rdev & 0xFFFF] = path

    def get(self, dev: int) -> str:
        """Return the device's name, or ``major:minor`` in hex if unknown."""
        if dev == 0:
            return ""
        dev16 = dev & 0xFFFF
        if dev16 != dev:
            warnings.warn(f"weird device {dev:x}", RuntimeWarning, stacklevel=2)
        name = self.devices.get(dev16)
        if name is not None:
            return name
        major, minor = (dev16 >> 8) & 0xFF, dev16 & 0xFF
        name = f"{major:02x}:{minor:02x}"
        self.devices[dev16] = name
        return name


Source = Callable[[], "list[MapEntry] | None"]


def _read_process_maps(pid: int) -> list[MapEntry] | None:
    try:
        with open(f"/proc/{pid}/smaps", encoding="utf-8", errors="replace") as handle:
            return parse_smaps(handle.read())
    except OSError:
        return None


class MemMapsModel:
    """Rows describing the memory maps of one process, refreshed on demand.

    ``source`` is a process id or a callable returning the current entries,
    or None once the process has gone away.
    """

    def __init__(self, source: int | Source) -> None:
        if isinstance(source, int):
            pid = source
            self._source: Source = lambda: _read_process_maps(pid)
        else:
            self._source = source
        self.format = OffsetFormatter()
        self.devices = InodeDevices()
        self.rows: list[MemMapRow] = []

    def _fill(self, row: MemMapRow | None, entry: MapEntry) -> MemMapRow:
        values = dict(
            filename=entry.filename or "",
            vmstart=self.format(entry.start),
            vmend=self.format(entry.end),
            vmsize=entry.end - entry.start,
            flags=format_flags(entry.perm),
            vmoffset=self.format(entry.offset),
            privateclean=entry.private_clean,
            privatedirty=entry.private_dirty,
            sharedclean=entry.shared_clean,
            shareddirty=entry.shared_dirty,
            device=self.devices.get(entry.device),
            inode=entry.inode,
        )
        if row is None:
            return MemMapRow(**values)
        for name, value in values.items():
            setattr(row, name, value)
        return row

    def update(self) -> list[MemMapRow]:
        """Refresh the rows from the process's current mappings.

        Rows whose start address still exists are updated in place, the
        others are dropped, and new mappings get new rows. If the process is
        gone or has no mappings the rows are left untouched.
        """
        entries = self._source()
        if not entries:
            return self.rows

        self.format.set(entries[-1].end)
        starts = {entry.start for entry in entries}

        existing: dict[int, MemMapRow] = {}
        for row in self.rows:
            try:
                start = int(row.vmstart, 16)
            except ValueError:
                warnings.warn(f"Could not parse {row.vmstart}", RuntimeWarning, stacklevel=2)
                start = 0
            if start in starts:
                existing[start] = row

        self.devices.update()
        self.rows = [self._fill(existing.get(entry.start), entry) for entry in entries]
        return self.rows