"""Property-based tests for managed loop correctness properties."""

from hypothesis import given, strategies as st

from kano_tools_core.loop import LoopController

small_ints = st.lists(st.integers(min_value=-20, max_value=20), max_size=40)


class TestManagedLoopProperties:
    """Property-based tests for lookahead, conditions, and skipping."""

    @given(small_ints)
    def test_property_count_and_last_lookahead(self, items: list) -> None:
        """Every element is yielded once and is_last is true only on the final one."""
        loop = LoopController()
        managed = loop.watch(items)
        yielded = []
        last_flags = []
        while managed.has_next():
            yielded.append(next(managed))
            last_flags.append(managed.is_last())

        assert yielded == items
        assert managed.get_count() == len(items)
        assert last_flags == [i == len(items) - 1 for i in range(len(items))]
        assert loop.get_depth() == 0

    @given(small_ints)
    def test_property_first_only_for_first_element(self, items: list) -> None:
        managed = LoopController().watch(items)
        assert managed.is_first() is True
        flags = []
        for _ in managed:
            flags.append(managed.is_first())
        assert flags == [i == 0 for i in range(len(items))]

    @given(small_ints, st.integers(min_value=0, max_value=40))
    def test_property_stop_is_final(self, items: list, stop_at: int) -> None:
        loop = LoopController()
        managed = loop.watch(items)
        yielded = []
        while managed.has_next():
            if len(yielded) == stop_at:
                loop.stop()
                continue
            yielded.append(next(managed))
        assert yielded == items[:stop_at]
        assert managed.has_next() is False
        assert loop.get_depth() == 0

    @given(small_ints, st.integers(min_value=-20, max_value=20))
    def test_property_exclude_removes_all_matches(self, items: list, value: int) -> None:
        managed = LoopController().watch(items).exclude(value)
        yielded = list(managed)
        assert yielded == [i for i in items if i != value]
        assert managed.get_count() == len(yielded)

    @given(small_ints, st.integers(min_value=-20, max_value=20))
    def test_property_exclude_string_form_matches_ints(self, items: list, value: int) -> None:
        managed = LoopController().watch(items).exclude(str(value))
        assert list(managed) == [i for i in items if i != value]

    @given(small_ints, st.integers(min_value=-20, max_value=20))
    def test_property_stop_value_truncates(self, items: list, value: int) -> None:
        managed = LoopController().watch(items).stop(value)
        expected = items[: items.index(value)] if value in items else items
        assert list(managed) == expected

    @given(small_ints, st.integers(min_value=0, max_value=50))
    def test_property_skip_advances_min_of_remaining(self, items: list, number: int) -> None:
        loop = LoopController()
        managed = loop.watch(items)
        loop.skip(number)
        skipped = min(number, len(items))
        assert managed.get_count() == skipped
        assert list(managed) == items[skipped:]

    @given(st.integers(min_value=1, max_value=6), st.data())
    def test_property_stop_to_preserves_order_and_outer_loops(self, depth: int, data) -> None:
        loop = LoopController()
        names = [f"n{i}" for i in range(depth)]
        managed = [loop.watch([1, 2, 3], name) for name in names]
        target = data.draw(st.integers(min_value=0, max_value=depth - 1))

        loop.stop_to(names[target])

        assert loop._iterators == managed
        for index, m in enumerate(managed):
            assert m.stopped is (index >= target)
