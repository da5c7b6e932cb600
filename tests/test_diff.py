"""Tests for typed counters, series keys and the diff engine."""

import random
import threading

import pytest

from sysdelta.collector.base import Sample
from sysdelta.collector.diff import DiffEngine, DiffState
from sysdelta.collector.numeric import (
    Counter,
    NumericKind,
    int8,
    machine_int,
    plain,
    uint32,
    uint64,
)
from sysdelta.collector.series import series_key


def _sample(name="cpu", tags=None, **fields):
    return Sample(name=name, tags=tags or {}, fields=fields, timestamp=0.0)


# ---------------------------------------------------------------------------
# Numeric kinds
# ---------------------------------------------------------------------------

class TestCounter:
    """Typed subtract-and-scale."""

    @pytest.mark.parametrize("kind", list(NumericKind))
    def test_delta_for_every_kind(self, kind):
        a, b = 10, 52
        assert Counter(kind, b).delta(Counter(kind, a)) == Counter(kind, 42)

    def test_values_are_wrapped_into_range(self):
        assert int8(200).value == -56
        assert uint32(-1).value == 2**32 - 1

    def test_unsigned_counter_wrap(self):
        """A 32-bit counter that wrapped still yields the distance travelled."""
        before = uint32(2**32 - 10)
        after = uint32(5)
        assert after.delta(before).value == 15

    def test_signed_subtraction_overflow_wraps(self):
        assert int8(-128).delta(int8(1)).value == 127

    def test_negative_delta_on_signed_kind(self):
        assert machine_int(23).delta(machine_int(42)).value == 23 - 42

    def test_scaling_truncates_toward_zero(self):
        assert machine_int(110).delta(machine_int(100), 0.35).value == 3
        assert machine_int(100).delta(machine_int(110), 0.35).value == -3

    @pytest.mark.parametrize("kind", list(NumericKind))
    def test_half_factor_for_every_kind(self, kind):
        delta = Counter(kind, 150).delta(Counter(kind, 100), 0.5)
        assert delta == Counter(kind, 25)

    def test_scaled_unsigned_counter_wrap(self):
        before = uint32(2**32 - 10)
        after = uint32(5)
        assert after.delta(before, 0.5) == uint32(7)

    def test_scaling_preserves_kind(self):
        delta = uint64(150).delta(uint64(100), 0.5)
        assert delta.kind is NumericKind.UINT64
        assert delta.value == 25

    def test_machine_kinds_are_distinct_from_fixed_width(self):
        assert NumericKind.INT is not NumericKind.INT64
        assert NumericKind.UINT is not NumericKind.UINT64
        assert NumericKind.INT.bits == 64

    def test_plain(self):
        assert plain(uint64(7)) == 7
        assert plain(1.5) == 1.5


# ---------------------------------------------------------------------------
# Series keys
# ---------------------------------------------------------------------------

class TestSeriesKey:

    def test_tag_order_does_not_matter(self):
        a = {"mountpoint": "/", "disk": "/dev/sda1"}
        b = {"disk": "/dev/sda1", "mountpoint": "/"}
        assert series_key("mounts", a) == series_key("mounts", b)

    def test_format(self):
        assert series_key("cpu", {"cpuid": "all"}) == "cpu#cpuid:all|"
        assert series_key("cpu", {"b": "2", "a": "1"}) == "cpu#a:1|b:2|"

    def test_empty_tags(self):
        assert series_key("mem", {}) == "mem#"

    def test_different_tags_differ(self):
        assert series_key("network", {"iface": "eth0"}) != series_key("network", {"iface": "eth1"})
        assert series_key("cpu", {}) != series_key("cpus", {})


# ---------------------------------------------------------------------------
# Diff engine
# ---------------------------------------------------------------------------

class TestDiffEngine:

    def test_first_observation_is_incomplete(self):
        engine = DiffEngine()
        assert engine.diff(_sample(user=uint64(100))) is None
        assert len(engine.state) == 1

    def test_second_observation_yields_delta(self):
        engine = DiffEngine()
        engine.diff(_sample(tags={"cpuid": "all"}, user=uint64(100)))
        out = engine.diff(_sample(tags={"cpuid": "all"}, user=uint64(150)))
        assert out is not None
        assert out.fields["user"] == uint64(50)
        assert out.name == "cpu"
        assert out.tags == {"cpuid": "all"}

    def test_consistency_factor_half(self):
        engine = DiffEngine(consistency_factor=0.5)
        engine.diff(_sample(user=uint64(100)))
        out = engine.diff(_sample(user=uint64(150)))
        assert out.fields["user"] == uint64(25)

    def test_input_sample_is_not_modified(self):
        engine = DiffEngine()
        engine.diff(_sample(user=uint64(100)))
        raw = _sample(user=uint64(150))
        engine.diff(raw)
        assert raw.fields["user"] == uint64(150)

    def test_new_field_on_known_series_is_incomplete(self):
        engine = DiffEngine()
        engine.diff(_sample(user=uint64(1)))
        assert engine.diff(_sample(user=uint64(2), sys=uint64(5))) is None
        out = engine.diff(_sample(user=uint64(4), sys=uint64(9)))
        assert plain(out.fields["user"]) == 2
        assert plain(out.fields["sys"]) == 4

    def test_state_updated_on_incomplete_path(self):
        engine = DiffEngine()
        engine.diff(_sample(user=uint64(1)))
        engine.diff(_sample(user=uint64(10), sys=uint64(5)))
        out = engine.diff(_sample(user=uint64(13), sys=uint64(6)))
        assert plain(out.fields["user"]) == 3

    def test_gauges_pass_through(self):
        engine = DiffEngine()
        engine.diff(_sample(name="load", one=0.5))
        out = engine.diff(_sample(name="load", one=0.75))
        assert out.fields["one"] == 0.75

    def test_series_are_independent(self):
        """Two series with distinct tags seed and diff separately."""
        engine = DiffEngine()
        assert engine.diff(_sample(name="net", tags={"iface": "eth0"}, rx=machine_int(42))) is None
        assert engine.diff(_sample(name="net", tags={"iface": "eth1"}, rx=machine_int(23))) is None
        a = engine.diff(_sample(name="net", tags={"iface": "eth0"}, rx=machine_int(23)))
        b = engine.diff(_sample(name="net", tags={"iface": "eth1"}, rx=machine_int(43)))
        assert plain(a.fields["rx"]) == 23 - 42
        assert plain(b.fields["rx"]) == 43 - 23

    def test_tag_order_hits_same_series(self):
        engine = DiffEngine()
        engine.diff(_sample(name="mounts", tags={"disk": "a", "mountpoint": "/"}, free=uint64(10)))
        out = engine.diff(_sample(name="mounts", tags={"mountpoint": "/", "disk": "a"}, free=uint64(4)))
        assert out is not None

    def test_random_sequences(self):
        rng = random.Random(1234)
        engine = DiffEngine()
        cols = [f"col{i}" for i in range(rng.randint(10, 30))]
        previous = {c: rng.randint(0, 2**40) for c in cols}
        engine.diff(_sample(name="test_rnd", **{c: machine_int(v) for c, v in previous.items()}))

        for _ in range(rng.randint(10, 50)):
            current = {c: rng.randint(0, 2**40) for c in cols}
            out = engine.diff(_sample(name="test_rnd", **{c: machine_int(v) for c, v in current.items()}))
            for c in cols:
                assert plain(out.fields[c]) == current[c] - previous[c]
            previous = current

    def test_shared_state_between_engines(self):
        state = DiffState()
        DiffEngine(state).diff(_sample(user=uint64(1)))
        assert DiffEngine(state).diff(_sample(user=uint64(3))) is not None

    def test_concurrent_disjoint_keys_match_sequential(self):
        """Threads diffing different series lose no updates."""
        rounds = 50
        series = [f"s{i}" for i in range(8)]
        values = {s: [i * 7 + s_idx for i in range(rounds)] for s_idx, s in enumerate(series)}

        def expected():
            engine = DiffEngine()
            out = {}
            for s in series:
                out[s] = [engine.diff(_sample(name=s, v=machine_int(v))) for v in values[s]]
            return out

        engine = DiffEngine()
        results = {s: [] for s in series}
        barrier = threading.Barrier(len(series))

        def worker(s):
            barrier.wait()
            for v in values[s]:
                results[s].append(engine.diff(_sample(name=s, v=machine_int(v))))

        threads = [threading.Thread(target=worker, args=(s,)) for s in series]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        sequential = expected()
        for s in series:
            got = [None if r is None else plain(r.fields["v"]) for r in results[s]]
            want = [None if r is None else plain(r.fields["v"]) for r in sequential[s]]
            assert got == want


def test_sample_requires_name_and_fields():
    with pytest.raises(ValueError):
        Sample(name="", fields={"a": 1}, timestamp=0.0)
    with pytest.raises(ValueError):
        Sample(name="cpu", fields={}, timestamp=0.0)
