"""Sampling and scaling of the CPU, memory, network and disk load graphs."""

from __future__ import annotations

import math
import socket
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol

import psutil

from sysmonkit.graphscale import fnv1_hash64, nice_bits_max, nice_bytes_max

_MASK64 = (1 << 64) - 1
_CLOCK_TICKS = 100

RateFormatter = Callable[[int, bool], str]


class GraphType(IntEnum):
    """The resource a load graph shows."""

    CPU = 0
    MEM = 1
    NET = 2
    DISK = 3


@dataclass
class GraphConfig:
    """User preferences that affect the load graphs."""

    logarithmic_scale: bool = False
    draw_stacked: bool = False
    draw_smooth: bool = True
    graph_update_interval: int = 1000
    graph_data_points: int = 60
    num_cpus: int = 1
    network_in_bits: bool = False
    network_total_in_bits: bool = False
    resources_memory_in_iec: bool = True


@dataclass
class RateStats:
    """Counters and scale of a graph that shows two transfer rates."""

    last_in: int = 0
    last_out: int = 0
    last_hash: int = 0
    time: float | None = None
    max: int = 0
    values: list[int] = field(default_factory=list)


class Sampler(Protocol):
    def cpu_times(self, per_cpu: bool) -> list[tuple[float, float]]: ...

    def memory(self) -> tuple[int, int, int]: ...

    def swap(self) -> tuple[int, int]: ...

    def network(self) -> Iterable[tuple[str, int, int]]: ...

    def disk(self) -> tuple[int, int]: ...


class PsutilSampler:
    """Reads the current system counters through psutil."""

    def cpu_times(self, per_cpu: bool) -> list[tuple[float, float]]:
        """Return (total, used) CPU time in clock ticks, per CPU or overall."""
        times = psutil.cpu_times(percpu=per_cpu)
        if not per_cpu:
            times = [times]
        result = []
        for t in times:
            total = sum(t) * _CLOCK_TICKS
            used = (t.user + getattr(t, "nice", 0.0) + t.system) * _CLOCK_TICKS
            result.append((total, used))
        return result

    def memory(self) -> tuple[int, int, int]:
        """Return used, cached and total memory in bytes."""
        vm = psutil.virtual_memory()
        return vm.used, getattr(vm, "cached", 0), vm.total

    def swap(self) -> tuple[int, int]:
        """Return used and total swap in bytes."""
        sm = psutil.swap_memory()
        return sm.used, sm.total

    def network(self) -> list[tuple[str, int, int]]:
        """Return (name, bytes in, bytes out) of interfaces that carry traffic.

        Loopback interfaces and those with neither an IPv4 address nor a
        non-link-local IPv6 address are left out.
        """
        stats = psutil.net_if_stats()
        addrs = psutil.net_if_addrs()
        result = []
        for name, counters in psutil.net_io_counters(pernic=True).items():
            st = stats.get(name)
            flags = getattr(st, "flags", "") if st is not None else ""
            if "loopback" in flags.split(",") or name == "lo":
                continue
            families = addrs.get(name, [])
            has6 = any(
                a.family == socket.AF_INET6 and not a.address.lower().startswith("fe80")
                for a in families
            )
            has4 = any(a.family == socket.AF_INET for a in families)
            if not (has6 or has4):
                continue
            result.append((name, counters.bytes_recv, counters.bytes_sent))
        return result

    def disk(self) -> tuple[int, int]:
        """Return total bytes read and written by all disks."""
        counters = psutil.disk_io_counters()
        if counters is None:
            return 0, 0
        return counters.read_bytes, counters.write_bytes


def _human(value: float, base: int, units: tuple[str, ...]) -> str:
    if value < base:
        return f"{int(value)} {units[0]}"
    scaled = float(value)
    unit = units[1]
    for unit in units[1:]:
        scaled /= base
        if scaled < base:
            break
    return f"{scaled:.1f} {unit}"


_BYTE_UNITS = ("bytes", "kB", "MB", "GB", "TB", "PB")
_IEC_UNITS = ("bytes", "KiB", "MiB", "GiB", "TiB", "PiB")
_BIT_UNITS = ("bits", "kbit", "Mbit", "Gbit", "Tbit", "Pbit")


def _format_volume(value: int, in_bits: bool) -> str:
    if in_bits:
        return _human(value * 8, 1000, _BIT_UNITS)
    return _human(value, 1000, _BYTE_UNITS)


def _format_rate(value: int, in_bits: bool) -> str:
    return f"{_format_volume(value, in_bits)}/s"


def _format_byte_size(value: int, iec: bool) -> str:
    return _human(value, 1024, _IEC_UNITS) if iec else _human(value, 1000, _BYTE_UNITS)


class LoadGraph:
    """History of one resource's load, as fractions of the graph height.

    ``data[0]`` is the newest sample; each row holds one value per line of
    the graph, -1.0 where nothing has been sampled. ``labels`` holds the
    texts shown next to the graph.
    """

    def __init__(
        self,
        graph_type: int,
        config: GraphConfig | None = None,
        sampler: Sampler | None = None,
        rate_formatter: RateFormatter | None = None,
    ) -> None:
        self.type = GraphType(graph_type)
        self.config = config or GraphConfig()
        self.sampler: Sampler = sampler or PsutilSampler()
        self.rate_formatter: RateFormatter = rate_formatter or _format_rate
        self.clock: Callable[[], float] = time.monotonic

        self.indent = 18.0
        self.speed = self.config.graph_update_interval
        self.num_points = self.config.graph_data_points + 2
        self.latest = 0
        self.num_bars = 0
        self.needs_redraw = True

        self.labels: dict[str, str] = {}
        self.mem_fraction = 0.0
        self.swap_fraction = 0.0
        self.swap_available = False

        self._cpu_last: list[tuple[float, float]] = []
        self.net = RateStats()
        self.disk = RateStats()

        if self.type == GraphType.CPU:
            self.n = self.config.num_cpus
            self._cpu_last = [(0.0, 0.0)] * self.n
        else:
            self.n = 2
        if self.type == GraphType.NET:
            self.net.max = 1
            self.net.values = [0] * self.num_points
        elif self.type == GraphType.DISK:
            self.disk.max = 1
            self.disk.values = [0] * self.num_points

        self.data: list[list[float]] = [[-1.0] * self.n for _ in range(self.num_points)]

    def is_logarithmic_scale(self) -> bool:
        """Tell whether values are drawn on a logarithmic scale (memory only)."""
        return self.type == GraphType.MEM and self.config.logarithmic_scale

    def get_caption(self, index: int) -> str:
        """Return the y-axis label of grid line *index*, counted from the top."""
        if self.num_bars == 0:
            raise ValueError("the graph has no grid lines yet")
        if self.type == GraphType.NET:
            max_value = self.net.max
        elif self.type == GraphType.DISK:
            max_value = self.disk.max
        else:
            max_value = 100

        caption_percentage = float(max_value) - index * float(max_value) / self.num_bars

        if self.is_logarithmic_scale():
            value = 0.0 if caption_percentage == 0 else math.pow(100, caption_percentage / max_value)
            return f"{value:.0f} %"
        if self.type == GraphType.NET:
            return self.rate_formatter(int(caption_percentage), self.config.network_in_bits)
        if self.type == GraphType.DISK:
            return self.rate_formatter(int(caption_percentage), False)
        return f"{caption_percentage:.0f} %"

    def translate_to_log_partial_if_needed(self, position_partial: float) -> float:
        """Map a fraction of the height onto the logarithmic scale when it is used."""
        if self.is_logarithmic_scale():
            return 0.0 if position_partial == 0 else math.log10(position_partial * 100) / 2
        return position_partial

    def dynamic_scale(self, stats: RateStats, din: int, dout: int, in_bits: bool) -> None:
        """Store the newest two rates and adjust the graph maximum to them."""
        self.data[0][0] = din / stats.max
        self.data[0][1] = dout / stats.max

        dmax = max(din, dout)
        slot = self.num_points - 1 if self.latest == 0 else self.latest - 1
        stats.values[slot] = dmax

        if dmax >= stats.max:
            new_max = dmax
        else:
            window = stats.values[: self.num_points - 1]
            new_max = max(window) if window else dmax

        if in_bits:
            if self.num_bars == 0:
                return
            new_max = nice_bits_max(new_max, self.num_bars)
        else:
            new_max = nice_bytes_max(new_max)

        # The hysteresis is judged against the network maximum for both
        # graphs, so the disk graph rescales on every sample.
        if 0.8 * self.net.max < new_max <= self.net.max:
            return

        scale = stats.max / new_max
        for row in self.data:
            if row[0] >= 0.0:
                row[0] *= scale
                row[1] *= scale

        stats.max = new_max
        self.needs_redraw = True

    def _update_cpu(self) -> None:
        samples = self.sampler.cpu_times(self.n != 1)[: self.n]
        stacked = self.config.draw_stacked
        row = self.data[0]
        for i, (now, last) in enumerate(zip(samples, self._cpu_last)):
            total = now[0] - last[0]
            used = now[1] - last[1]
            load = used / max(total, 1.0)
            row[i] = load
            if stacked:
                row[i] /= self.n
                if i > 0:
                    row[i] += row[i - 1]
            self.labels[f"cpu{i}"] = f"{load * 100.0:.1f}%"
        self._cpu_last = list(samples)

    def _memory_label(self, used: int, cached: int, total: int, percent: float) -> str:
        if total == 0:
            return "not available"
        iec = self.config.resources_memory_in_iec
        text = (
            f"{_format_byte_size(used, iec)} ({100.0 * percent:.1f}%) "
            f"of {_format_byte_size(total, iec)}"
        )
        if cached != 0:
            text = f"{text}\nCache {_format_byte_size(cached, iec)}"
        return text

    def _update_memory(self) -> None:
        used, cached, total = self.sampler.memory()
        swap_used, swap_total = self.sampler.swap()

        swappercent = swap_used / swap_total if swap_total else 0.0
        mempercent = used / total if total else 0.0

        self.labels["memory"] = self._memory_label(used, cached, total, mempercent)
        self.labels["swap"] = self._memory_label(swap_used, 0, swap_total, swappercent)
        self.mem_fraction = mempercent
        self.swap_fraction = swappercent
        self.swap_available = swap_total > 0

        self.data[0][0] = self.translate_to_log_partial_if_needed(mempercent)
        self.data[0][1] = (
            self.translate_to_log_partial_if_needed(swappercent) if swap_total > 0 else -1.0
        )

    def _handle_rates(
        self,
        stats: RateStats,
        total_in: int,
        total_out: int,
        name_hash: int | None,
        in_bits: bool,
        totals_in_bits: bool,
        keys: tuple[str, str, str, str],
    ) -> None:
        now = self.clock()
        if (
            total_in >= stats.last_in
            and total_out >= stats.last_out
            and (name_hash is None or name_hash == stats.last_hash)
            and stats.time is not None
            and now > stats.time
        ):
            dtime = now - stats.time
            din = int((total_in - stats.last_in) / dtime)
            dout = int((total_out - stats.last_out) / dtime)
        else:
            # first sample, or counters reset / interfaces changed
            din = dout = 0

        stats.last_in = total_in
        stats.last_out = total_out
        stats.time = now
        if name_hash is not None:
            stats.last_hash = name_hash

        self.dynamic_scale(stats, din, dout, in_bits)

        key_in, key_in_total, key_out, key_out_total = keys
        self.labels[key_in] = self.rate_formatter(din, in_bits)
        self.labels[key_in_total] = _format_volume(total_in, totals_in_bits)
        self.labels[key_out] = self.rate_formatter(dout, in_bits)
        self.labels[key_out_total] = _format_volume(total_out, totals_in_bits)

    def _update_net(self) -> None:
        total_in = total_out = 0
        name_hash = 1
        for name, bytes_in, bytes_out in self.sampler.network():
            total_in += bytes_in
            total_out += bytes_out
            name_hash = (name_hash + fnv1_hash64(name)) & _MASK64
        self._handle_rates(
            self.net,
            total_in,
            total_out,
            name_hash,
            self.config.network_in_bits,
            self.config.network_total_in_bits,
            ("net_in", "net_in_total", "net_out", "net_out_total"),
        )

    def _update_disk(self) -> None:
        read, write = self.sampler.disk()
        self._handle_rates(
            self.disk,
            read,
            write,
            None,
            False,
            False,
            ("disk_read", "disk_read_total", "disk_write", "disk_write_total"),
        )

    def update_data(self) -> None:
        """Shift the history by one and take a new sample into ``data[0]``."""
        self.data.insert(0, self.data.pop())
        self.latest = (self.latest + 1) % self.num_points

        if self.type == GraphType.CPU:
            self._update_cpu()
        elif self.type == GraphType.MEM:
            self._update_memory()
        elif self.type == GraphType.NET:
            self._update_net()
        else:
            self._update_disk()

    def reset(self) -> None:
        """Forget the whole history."""
        for row in self.data:
            row[:] = [-1.0] * self.n

    def change_speed(self, new_speed: int) -> None:
        """Set the sampling interval in milliseconds."""
        self.speed = new_speed

    def change_num_points(self, new_num_points: int) -> None:
        """Keep *new_num_points* samples, dropping the oldest or padding with -1."""
        if new_num_points == self.num_points:
            return

        self.latest = 0
        if new_num_points < self.num_points:
            del self.data[new_num_points:]
        else:
            self.data.extend([-1.0] * self.n for _ in range(new_num_points - self.num_points))

        for stats in (self.net, self.disk):
            if stats.values:
                if new_num_points < len(stats.values):
                    del stats.values[new_num_points:]
                else:
                    stats.values.extend([0] * (new_num_points - len(stats.values)))

        self.num_points = new_num_points
        self.needs_redraw = True