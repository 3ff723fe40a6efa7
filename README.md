# sysmonkit

Data models and formatting for a system monitor. The package collects the
numbers a monitor shows and turns them into rows, labels and scales. It reads
system counters through `psutil`, and memory maps from `/proc/<pid>/smaps`.

## Modules

### `sysmonkit.loadgraph`

`LoadGraph(graph_type, config, sampler, rate_formatter)` keeps the rolling
history for one graph. `graph_type` is a `GraphType`: `CPU`, `MEM`, `NET` or
`DISK`.

- `data[0]` holds the newest sample, one value per line of the graph. Each
  value is a fraction of the graph height, or `-1.0` where nothing has been
  sampled yet.
- `update_data()` shifts the history by one and takes a new sample.
- `labels` holds the texts that belong next to the graph: CPU percentages,
  memory and swap usage, and rates and totals for network and disk.
- `get_caption(index)` returns the y-axis label of a grid line. Set
  `num_bars` first; with no grid lines it raises `ValueError`.
- `is_logarithmic_scale()` and `translate_to_log_partial_if_needed()` handle
  the optional logarithmic memory scale.
- `dynamic_scale()` rescales the network and disk graphs on the fly.
- `reset()` forgets the history. `change_speed()` sets the sampling interval.
  `change_num_points()` sets the length of the history.

`GraphConfig` holds the preferences: logarithmic scale, stacked CPU drawing,
update interval, number of data points, number of CPUs, bits or bytes for
network rates, and IEC units for memory. `RateStats` holds the counters and
maximum of the network or disk graph. `PsutilSampler` supplies CPU times,
memory, swap, network and disk counters. You can pass any object with the
same methods to feed other data.

### `sysmonkit.graphscale`

- `format_duration(seconds)` makes time-axis labels such as `1 hr  5 mins`.
  Empty parts are kept, so the fields are always joined by two spaces.
- `nicenum(x, round_)` returns 1, 2 or 5 times a power of ten.
- `nice_bits_max(new_max, ticks)` and `nice_bytes_max(new_max)` round graph
  maxima to readable values.
- `fnv1_hash64(name)` is the 64-bit FNV-1 hash. It identifies the current set
  of network interfaces.

### `sysmonkit.memmaps`

- `parse_smaps(text)` turns the text of an smaps file into `MapEntry`
  objects.
- `MemMapsModel(source)` keeps a list of `MemMapRow` entries up to date.
  `source` is a process id or a callable that returns entries. Call
  `update()` to refresh the list.
- `format_flags` renders permissions, for example `r-xp`.
- `format_size` formats byte counts in IEC units.
- `OffsetFormatter` writes addresses as 8 or 16 hex digits.
- `InodeDevices` maps device numbers to device names. An unknown device is
  shown as `major:minor`.

### `sysmonkit.openfiles`

`OpenFilesModel(source)` keeps the list of open files, pipes and sockets of
one process as `OpenFilesRow` entries. `source` is a process id or a callable
that returns `OpenFileEntry` objects.

`type_name`, `describe_object` and `friendlier_hostname` give readable
descriptions. For a network endpoint, `friendlier_hostname` looks up the host
and service names through the resolver.

### `sysmonkit.lsof`

`search_processes(processes, pattern, caseless, open_files)` searches the
open files of every process with a regular expression. It returns
`LsofMatch` entries ordered by process id. An invalid pattern gives no
results.

`Lsof` is the compiled pattern. `window_title(count, pattern)` gives the
matching "N Open Files" or "N Matching Open Files" title.

### `sysmonkit.treeview`

`TreeViewState(settings, store_column_order)` saves and restores a list
view's state through any mutable mapping:

- sorting
- and, per `TreeViewColumn`, width, visibility and order.

Changes to a bound column are written back at once.

### `sysmonkit.dates`

`format_date_for_display(timestamp, now)` gives short relative dates such as
`Today 03∶04 PM` or `Yesterday 09∶15 AM`. Dates within the last week show the
weekday; older ones show the month and day, plus the year when it differs.

`strftime_fix_am_pm` switches to a 24-hour clock in locales without AM/PM.

## What it does not do

The package has no user interface and no command to run:

- It draws no graphs.
- It opens no windows or dialogs.
- It does not run a timer to refresh its models. Call `update_data()` or
  `update()` yourself.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from sysmonkit.loadgraph import GraphConfig, GraphType, LoadGraph, PsutilSampler

graph = LoadGraph(GraphType.CPU, GraphConfig(), PsutilSampler(), None)
graph.update_data()
print(graph.labels["cpu0"])
```