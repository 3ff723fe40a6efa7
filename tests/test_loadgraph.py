import pytest

from sysmonkit.graphscale import nice_bytes_max
from sysmonkit.loadgraph import GraphConfig, GraphType, LoadGraph, RateStats


class FakeSampler:
    def __init__(self):
        self.cpu = []
        self.mem = (0, 0, 0)
        self.swp = (0, 0)
        self.net = []
        self.dsk = []

    def cpu_times(self, per_cpu):
        return self.cpu.pop(0)

    def memory(self):
        return self.mem

    def swap(self):
        return self.swp

    def network(self):
        return self.net.pop(0)

    def disk(self):
        return self.dsk.pop(0)


def make_clock(values):
    it = iter(values)
    return lambda: next(it)


def test_invalid_graph_type():
    with pytest.raises(ValueError):
        LoadGraph(9, GraphConfig(), FakeSampler())


def test_initial_data_is_empty_and_sized():
    cfg = GraphConfig(graph_data_points=10)
    g = LoadGraph(GraphType.MEM, cfg, FakeSampler())
    assert g.num_points == 12
    assert all(row == [-1.0, -1.0] for row in g.data)


def test_cpu_load_is_difference_of_samples():
    s = FakeSampler()
    s.cpu = [[(100.0, 50.0)], [(200.0, 125.0)]]
    g = LoadGraph(GraphType.CPU, GraphConfig(num_cpus=1), s)
    g.update_data()
    assert g.data[0][0] == pytest.approx(50.0 / 100.0)
    g.update_data()
    assert g.data[0][0] == pytest.approx(75.0 / 100.0)
    assert g.labels["cpu0"] == "75.0%"
    assert g.data[1][0] == pytest.approx(50.0 / 100.0)


def test_cpu_stacked_accumulates():
    s = FakeSampler()
    s.cpu = [[(100.0, 20.0), (100.0, 60.0)]]
    g = LoadGraph(GraphType.CPU, GraphConfig(num_cpus=2, draw_stacked=True), s)
    g.update_data()
    assert g.data[0][1] == pytest.approx((0.2 + 0.6) / 2)
    assert g.data[0][0] <= g.data[0][1]


def test_rotation_counter_wraps():
    s = FakeSampler()
    s.mem = (10, 0, 100)
    g = LoadGraph(GraphType.MEM, GraphConfig(graph_data_points=1), s)
    for _ in range(g.num_points):
        g.update_data()
    assert g.latest == 0


def test_memory_without_swap():
    s = FakeSampler()
    s.mem = (25, 0, 100)
    g = LoadGraph(GraphType.MEM, GraphConfig(), s)
    g.update_data()
    assert g.data[0][0] == pytest.approx(25 / 100)
    assert g.data[0][1] == -1.0
    assert g.labels["swap"] == "not available"
    assert g.swap_available is False


def test_memory_label_mentions_cache():
    s = FakeSampler()
    s.mem = (50, 2048, 100)
    s.swp = (1, 4)
    g = LoadGraph(GraphType.MEM, GraphConfig(), s)
    g.update_data()
    assert "\nCache " in g.labels["memory"]
    assert g.swap_fraction == pytest.approx(1 / 4)


def test_logarithmic_translation():
    g = LoadGraph(GraphType.MEM, GraphConfig(logarithmic_scale=True), FakeSampler())
    assert g.is_logarithmic_scale()
    assert g.translate_to_log_partial_if_needed(0) == 0
    assert g.translate_to_log_partial_if_needed(1.0) == pytest.approx(1.0)
    cpu = LoadGraph(GraphType.CPU, GraphConfig(logarithmic_scale=True), FakeSampler())
    assert not cpu.is_logarithmic_scale()
    assert cpu.translate_to_log_partial_if_needed(0.3) == 0.3


def test_percent_captions():
    g = LoadGraph(GraphType.CPU, GraphConfig(), FakeSampler())
    g.num_bars = 4
    assert g.get_caption(0) == "100 %"
    assert g.get_caption(4) == "0 %"


def test_log_captions_ends():
    g = LoadGraph(GraphType.MEM, GraphConfig(logarithmic_scale=True), FakeSampler())
    g.num_bars = 5
    assert g.get_caption(0) == "100 %"
    assert g.get_caption(5) == "0 %"


def test_caption_needs_bars():
    g = LoadGraph(GraphType.CPU, GraphConfig(), FakeSampler())
    with pytest.raises(ValueError):
        g.get_caption(0)


def test_net_caption_uses_formatter():
    g = LoadGraph(GraphType.NET, GraphConfig(), FakeSampler(), lambda v, bits: f"{v}|{bits}")
    g.num_bars = 2
    assert g.get_caption(0) == f"{g.net.max}|False"


def test_net_rates_and_rescale():
    s = FakeSampler()
    s.net = [[("eth0", 1000, 500)], [("eth0", 3048, 500)]]
    g = LoadGraph(GraphType.NET, GraphConfig(), s, lambda v, bits: f"{v}|{bits}")
    g.clock = make_clock([10.0, 11.0])
    g.update_data()
    assert g.labels["net_in"] == "0|False"
    g.update_data()
    assert g.labels["net_in"] == "2048|False"
    assert g.net.max == nice_bytes_max(2048)
    assert g.data[0][0] == pytest.approx(2048 / g.net.max)
    assert g.needs_redraw


def test_net_interface_change_gives_zero_rate():
    s = FakeSampler()
    s.net = [[("eth0", 1000, 500)], [("wlan0", 5000, 900)]]
    g = LoadGraph(GraphType.NET, GraphConfig(), s, lambda v, bits: str(v))
    g.clock = make_clock([1.0, 2.0])
    g.update_data()
    g.update_data()
    assert g.labels["net_in"] == "0"
    assert g.labels["net_out"] == "0"


def test_disk_counter_reset_gives_zero_rate():
    s = FakeSampler()
    s.dsk = [(5000, 5000), (100, 6000)]
    g = LoadGraph(GraphType.DISK, GraphConfig(), s, lambda v, bits: str(v))
    g.clock = make_clock([1.0, 2.0])
    g.update_data()
    g.update_data()
    assert g.labels["disk_read"] == "0"
    assert g.disk.last_in == 100


def test_dynamic_scale_in_bits_without_bars_keeps_max():
    g = LoadGraph(GraphType.NET, GraphConfig(), FakeSampler())
    g.dynamic_scale(g.net, 4000, 100, True)
    assert g.net.max == 1
    assert g.data[0][0] == 4000.0
    assert g.net.values[g.num_points - 1] == 4000


def test_dynamic_scale_custom_stats():
    g = LoadGraph(GraphType.DISK, GraphConfig(), FakeSampler())
    stats = RateStats(max=1, values=[0] * g.num_points)
    g.dynamic_scale(stats, 10, 20000, False)
    assert stats.max == nice_bytes_max(20000)
    assert 0 <= g.data[0][1] <= 1


def test_reset_clears_history():
    s = FakeSampler()
    s.mem = (10, 0, 100)
    g = LoadGraph(GraphType.MEM, GraphConfig(), s)
    g.update_data()
    g.reset()
    assert all(row == [-1.0, -1.0] for row in g.data)


def test_change_num_points_shrink_and_grow():
    s = FakeSampler()
    s.mem = (30, 0, 100)
    g = LoadGraph(GraphType.MEM, GraphConfig(graph_data_points=10), s)
    g.update_data()
    newest = list(g.data[0])
    g.change_num_points(5)
    assert len(g.data) == 5
    assert g.data[0] == newest
    assert g.latest == 0
    g.change_num_points(20)
    assert len(g.data) == 20
    assert g.data[19] == [-1.0, -1.0]
    assert g.num_points == 20


def test_change_num_points_resizes_values():
    g = LoadGraph(GraphType.NET, GraphConfig(graph_data_points=10), FakeSampler())
    g.change_num_points(40)
    assert len(g.net.values) == 40
    assert len(g.data) == 40


def test_change_speed():
    g = LoadGraph(GraphType.CPU, GraphConfig(graph_update_interval=500), FakeSampler())
    assert g.speed == 500
    g.change_speed(2000)
    assert g.speed == 2000