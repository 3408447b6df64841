"""
Tests for usage aggregation and the text graph renderer.

Includes:
- Resampling (right alignment, nearest-index decimation)
- Block graph fill levels
- Line graph glyphs and connectivity on monotonic, oscillating and flat input
"""

import pytest

from dktop.model import ContainerInfo, SystemStats
from dktop.stats import ChartRenderer, aggregate_usage


def _container(cid, state, cpu=0.0, mem=0):
    return ContainerInfo(id=cid, name=cid, image="img", status="", state=state,
                         cpu_percent=cpu, mem_usage=mem)


def _column_rows(grid, x):
    """Row indices (0 = bottom) that are drawn in column ``x``."""
    height = len(grid)
    return sorted(height - 1 - y for y in range(height) if grid[y][x] != " ")


class TestAggregateUsage:
    def test_sums_running_containers_only(self):
        containers = [
            _container("a", "running", cpu=10.0, mem=100),
            _container("b", "exited", cpu=50.0, mem=500),
            _container("c", "running", cpu=5.0, mem=20),
        ]
        result = aggregate_usage(SystemStats(memory_limit=1000), containers)
        assert result.cpu_usage == pytest.approx(15.0)
        assert result.memory_usage == 120

    def test_keeps_reported_memory_limit(self):
        system = SystemStats(containers=3, memory_limit=4096)
        result = aggregate_usage(system, [_container("a", "running", mem=1024)])
        assert result.memory_limit == 4096
        assert result.containers == 3
        assert result.memory_percent == pytest.approx(25.0)

    def test_no_containers(self):
        result = aggregate_usage(SystemStats(cpu_usage=99.0, memory_usage=5), [])
        assert result.cpu_usage == 0.0
        assert result.memory_usage == 0


class TestResample:
    def test_short_series_is_right_aligned_with_blanks(self):
        assert ChartRenderer.resample([10.0, 20.0], 5) == [None, None, None, 10.0, 20.0]

    def test_exact_width_is_unchanged(self):
        samples = [1.0, 2.0, 3.0]
        assert ChartRenderer.resample(samples, 3) == samples

    def test_long_series_uses_nearest_index(self):
        samples = [float(i) for i in range(10)]
        assert ChartRenderer.resample(samples, 5) == [0.0, 2.0, 4.0, 6.0, 8.0]

    def test_decimation_is_deterministic(self):
        samples = [float(i * 7 % 13) for i in range(120)]
        first = ChartRenderer.line_graph(samples, 37, 4)
        second = ChartRenderer.line_graph(samples, 37, 4)
        assert first == second

    def test_empty_series(self):
        assert ChartRenderer.resample([], 3) == [None, None, None]


class TestBlockGraph:
    def test_full_column(self):
        assert ChartRenderer.block_graph([100.0], 1, 2) == ["█", "█"]

    def test_partial_block(self):
        # 50% of one row is four eighths
        assert ChartRenderer.block_graph([50.0], 1, 1) == ["▄"]

    def test_full_rows_then_partial(self):
        # 75% of two rows = 12 eighths: one full row plus four eighths
        assert ChartRenderer.block_graph([75.0], 1, 2) == ["▄", "█"]

    def test_zero_and_unset_columns_are_blank(self):
        grid = ChartRenderer.block_graph([0.0], 3, 2)
        assert grid == ["   ", "   "]

    def test_dimensions(self):
        grid = ChartRenderer.block_graph([10.0, 90.0, 40.0], 8, 4)
        assert len(grid) == 4
        assert all(len(row) == 8 for row in grid)
        # Leading columns have no samples
        assert all(row[:5] == "     " for row in grid)


class TestLineGraph:
    def test_flat_series(self):
        assert ChartRenderer.line_graph([5.0, 5.0, 5.0], 3, 3) == ["   ", "   ", "───"]

    def test_increasing_series_glyphs(self):
        grid = ChartRenderer.line_graph([0.0, 1.0, 2.0, 3.0], 4, 4)
        assert grid == [
            "  │╭",
            " ││ ",
            "││  ",
            "╰   ",
        ]

    def test_steep_increase_has_no_gaps(self):
        samples = [0.0, 10.0, 20.0, 30.0]
        grid = ChartRenderer.line_graph(samples, 4, 8)
        rows = ChartRenderer.scale_rows(samples, 8)

        drawn = set()
        for x in range(4):
            col = _column_rows(grid, x)
            # each column is one contiguous run
            assert col == list(range(min(col), max(col) + 1))
            drawn.update(col)
            if x < 3:
                assert set(col) & set(_column_rows(grid, x + 1))
        assert drawn == set(range(rows[0], rows[-1] + 1))

    def test_oscillating_series(self):
        grid = ChartRenderer.line_graph([0.0, 10.0, 0.0, 10.0, 0.0], 5, 4)
        assert grid == [
            "│╮│╮ ",
            "││││ ",
            "││││ ",
            "╰│╰│╯",
        ]

    def test_no_drawing_outside_neighbour_span(self):
        samples = [3.0, 9.0, 1.0, 7.0, 7.0, 2.0, 8.0]
        height = 6
        grid = ChartRenderer.line_graph(samples, len(samples), height)
        rows = ChartRenderer.scale_rows(samples, height)
        for x, curr in enumerate(rows):
            neighbours = [curr]
            if x > 0:
                neighbours.append(rows[x - 1])
            if x < len(rows) - 1:
                neighbours.append(rows[x + 1])
            for row in _column_rows(grid, x):
                assert min(neighbours) <= row <= max(neighbours)

    def test_leading_columns_blank(self):
        grid = ChartRenderer.line_graph([1.0, 2.0], 6, 3)
        assert all(row[:4] == "    " for row in grid)
        assert all(len(row) == 6 for row in grid)

    def test_empty_series(self):
        assert ChartRenderer.line_graph([], 4, 2) == ["    ", "    "]

    def test_small_range_is_clamped(self):
        # Range below 1 is treated as 1, so 0.5 stays off the top row.
        assert ChartRenderer.scale_rows([0.0, 0.5], 3) == [0, 1]

    @pytest.mark.parametrize("samples,expected", [
        ([0.0, 10.0, 0.0], ["│╮ ", "││ ", "││ ", "╰│╯"]),
        ([0.0, 0.0, 10.0, 10.0], [" │╭─", " │  ", " │  ", "─╰  "]),
    ])
    def test_neighbouring_columns_share_a_row(self, samples, expected):
        width = len(samples)
        grid = ChartRenderer.line_graph(samples, width, 4)
        assert grid == expected
        for x in range(width - 1):
            assert set(_column_rows(grid, x)) & set(_column_rows(grid, x + 1))
