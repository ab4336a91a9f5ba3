"""Tests for node metric extraction."""

from __future__ import annotations

import pytest

from cbhealth.collector.extractor import (
    NodeMetrics,
    disk_percent,
    extract_node_metrics,
    map_services,
    memory_percent,
    short_hostname,
    swap_percent,
    uptime_days,
)
from tests.conftest import make_node_detail

pytestmark = pytest.mark.unit


class TestShortHostname:
    def test_strips_port_and_domain(self):
        assert short_hostname("cb01.prod.example.com:8091") == "cb01"

    def test_bare_host(self):
        assert short_hostname("cb01") == "cb01"

    def test_ip_with_port(self):
        # Dotted addresses are cut at the first dot as well
        assert short_hostname("10.0.0.5:8091") == "10"


class TestMapServices:
    def test_known_and_unknown_codes(self):
        assert map_services(["kv", "n1ql", "unknown"]) == ["Data", "Query", "unknown"]

    def test_full_table(self):
        codes = ["kv", "index", "n1ql", "fts", "cbas", "eventing"]
        assert map_services(codes) == ["Data", "Index", "Query", "Search", "Analytics", "Eventing"]

    def test_source_order_kept(self):
        assert map_services(["n1ql", "kv"]) == ["Query", "Data"]

    def test_mapping_twice_is_stable(self):
        once = map_services(["kv", "fts"])
        assert map_services(once) == once

    def test_not_a_list(self):
        assert map_services(None) == []
        assert map_services("kv") == []

    def test_joined_display(self):
        metrics = extract_node_metrics(make_node_detail(services=["kv", "n1ql", "unknown"]))
        assert metrics.services_display == "Data+Query+unknown"


class TestMemoryPercent:
    def test_floor_not_round(self):
        # 749/1000 used -> 74.9% -> 74
        detail = make_node_detail(mem_total=1000, mem_free=251)
        assert memory_percent(detail) == 74

    def test_exact_boundary(self):
        detail = make_node_detail(mem_total=1000, mem_free=250)
        assert memory_percent(detail) == 75

    def test_zero_total(self):
        detail = make_node_detail(mem_total=0, mem_free=0)
        assert memory_percent(detail) == 0

    def test_prefers_system_stats(self):
        detail = make_node_detail(mem_total=1000, mem_free=100)
        detail["memoryTotal"] = 1000
        detail["memoryFree"] = 900
        assert memory_percent(detail) == 90

    def test_falls_back_to_top_level(self):
        detail = make_node_detail()
        detail["systemStats"] = {"swap_total": 10, "swap_used": 0}
        detail["memoryTotal"] = 2000
        detail["memoryFree"] = 500
        assert memory_percent(detail) == 75

    def test_string_numbers(self):
        detail = make_node_detail(mem_total="1000", mem_free="333")
        assert memory_percent(detail) == 66

    def test_large_byte_counts(self):
        total = 134_956_859_392
        free = total // 4
        detail = make_node_detail(mem_total=total, mem_free=free)
        assert memory_percent(detail) == ((total - free) * 100) // total

    def test_malformed_degrades_to_zero(self):
        detail = make_node_detail(mem_total="n/a", mem_free=10)
        detail["memoryTotal"] = None
        assert memory_percent(detail) == 0

    def test_missing_everything(self):
        assert memory_percent({}) == 0

    @pytest.mark.parametrize("total,free", [(7, 0), (7, 3), (97, 1), (3, 2), (1_000_003, 17)])
    def test_in_range_and_floored(self, total, free):
        pct = memory_percent(make_node_detail(mem_total=total, mem_free=free))
        assert 0 <= pct <= 100
        assert pct == (total - free) * 100 // total


class TestSwapPercent:
    def test_basic(self):
        assert swap_percent(make_node_detail(swap_total=1000, swap_used=50)) == 5

    def test_zero_used(self):
        assert swap_percent(make_node_detail(swap_total=1000, swap_used=0)) == 0

    def test_zero_total(self):
        assert swap_percent(make_node_detail(swap_total=0, swap_used=0)) == 0

    def test_floor(self):
        assert swap_percent(make_node_detail(swap_total=3, swap_used=2)) == 66

    def test_ignores_top_level_fields(self):
        detail = {"swapTotal": 100, "swapUsed": 50, "systemStats": {}}
        assert swap_percent(detail) == 0


class TestDiskPercent:
    def test_present(self):
        assert disk_percent(make_node_detail(disk=80)) == 80

    def test_absent_is_none(self):
        assert disk_percent(make_node_detail(disk=None)) is None

    def test_zero_is_not_none(self):
        assert disk_percent(make_node_detail(disk=0)) == 0

    def test_other_mount_point_ignored(self):
        detail = make_node_detail(disk=55, mount_point="/data")
        assert disk_percent(detail) is None
        assert disk_percent(detail, mount_point="/data") == 55

    def test_value_taken_verbatim(self):
        assert disk_percent(make_node_detail(disk=74.5)) == 74.5

    def test_whole_float_becomes_int(self):
        value = disk_percent(make_node_detail(disk=80.0))
        assert value == 80
        assert isinstance(value, int)

    def test_no_storage_block(self):
        assert disk_percent({"status": "healthy"}) is None


class TestUptimeDays:
    def test_string_seconds(self):
        assert uptime_days({"uptime": "3456000"}) == 40

    def test_partial_day_floors(self):
        assert uptime_days({"uptime": 86399}) == 0
        assert uptime_days({"uptime": 86400}) == 1

    def test_malformed(self):
        assert uptime_days({"uptime": "soon"}) == 0
        assert uptime_days({}) == 0


class TestExtractNodeMetrics:
    def test_full_document(self):
        detail = make_node_detail(
            status="healthy",
            services=["kv", "index"],
            disk=80,
            mem_total=1000,
            mem_free=500,
            swap_total=1000,
            swap_used=0,
            uptime_days=40,
        )
        metrics = extract_node_metrics(detail)
        assert metrics == NodeMetrics(
            status="healthy",
            services=["Data", "Index"],
            disk_percent=80,
            memory_percent=50,
            swap_percent=0,
            uptime_days=40,
        )
        assert metrics.uptime_display == "40 days(s)"

    def test_status_copied_verbatim(self):
        metrics = extract_node_metrics(make_node_detail(status="warmup"))
        assert metrics.status == "warmup"

    def test_empty_document_never_raises(self):
        metrics = extract_node_metrics({})
        assert metrics.status == ""
        assert metrics.services == []
        assert metrics.disk_percent is None
        assert metrics.memory_percent == 0
        assert metrics.swap_percent == 0
        assert metrics.uptime_days == 0
