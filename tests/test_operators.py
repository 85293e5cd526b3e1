"""Tests for operators — map, filter, take, map_to, default_if_empty, merge_map."""

from delayflow import (
    Stream,
    Subject,
    default_if_empty,
    empty,
    filter,
    map,
    map_to,
    merge_map,
    never,
    of,
    take,
    throw,
)


def _collect(stream):
    received, errors, done = [], [], []
    sub = stream.subscribe(received.append, errors.append, lambda: done.append(True))
    return received, errors, done, sub


class TestMap:
    """map() operator."""

    def test_transforms_values(self):
        received, _, done, _ = _collect(of(3, 5).pipe(map(lambda v: v * 2)))
        assert received == [6, 10]
        assert done == [True]

    def test_error_in_fn_terminates(self):
        boom = ValueError("boom")

        def fn(v):
            if v == 2:
                raise boom
            return v

        received, errors, done, _ = _collect(of(1, 2, 3).pipe(map(fn)))
        assert received == [1]
        assert errors == [boom]
        assert done == []


class TestFilter:
    """filter() operator."""

    def test_passes_matching_values(self):
        received, _, _, _ = _collect(of(1, 2, 3, 4).pipe(filter(lambda v: v % 2 == 0)))
        assert received == [2, 4]


class TestTake:
    """take() operator."""

    def test_takes_first_n_and_completes(self):
        source = Subject()
        received, _, done, _ = _collect(source.pipe(take(2)))
        source.next("a")
        source.next("b")
        source.next("c")
        assert received == ["a", "b"]
        assert done == [True]
        assert source.observer_count == 0

    def test_zero_completes_without_subscribing(self):
        source = Subject()
        received, _, done, _ = _collect(source.pipe(take(0)))
        assert received == []
        assert done == [True]
        assert source.observer_count == 0

    def test_upstream_failing_after_take_is_ignored(self):
        def fails_after_emitting(subscriber):
            subscriber.next("first")
            raise RuntimeError("late")

        received, errors, done, _ = _collect(Stream(fails_after_emitting).pipe(take(1)))
        assert received == ["first"]
        assert errors == []
        assert done == [True]

    def test_completes_early_if_source_completes(self):
        received, _, done, _ = _collect(of(1).pipe(take(5)))
        assert received == [1]
        assert done == [True]


class TestMapTo:
    """map_to() operator."""

    def test_replaces_values(self):
        received, _, _, _ = _collect(of(1, 2).pipe(map_to("x")))
        assert received == ["x", "x"]


class TestDefaultIfEmpty:
    """default_if_empty() operator."""

    def test_emits_default_when_empty(self):
        received, _, done, _ = _collect(empty().pipe(default_if_empty("fallback")))
        assert received == ["fallback"]
        assert done == [True]

    def test_passes_values_when_not_empty(self):
        received, _, _, _ = _collect(of(1).pipe(default_if_empty("fallback")))
        assert received == [1]

    def test_error_is_not_replaced(self):
        boom = ValueError("boom")
        received, errors, _, _ = _collect(throw(boom).pipe(default_if_empty("fallback")))
        assert received == []
        assert errors == [boom]


class TestMergeMap:
    """merge_map() operator."""

    def test_flattens_and_passes_index(self):
        calls = []

        def project(value, index):
            calls.append((value, index))
            return [value, value * 10]

        received, _, done, _ = _collect(of(1, 2).pipe(merge_map(project)))
        assert calls == [(1, 0), (2, 1)]
        assert received == [1, 10, 2, 20]
        assert done == [True]

    def test_inners_run_concurrently(self):
        source = Subject()
        inners = [Subject(), Subject()]
        received, _, _, _ = _collect(source.pipe(merge_map(lambda v, i: inners[i])))
        source.next("a")
        source.next("b")
        inners[1].next("from b")
        inners[0].next("from a")
        assert received == ["from b", "from a"]

    def test_waits_for_active_inners(self):
        source = Subject()
        inner = Subject()
        received, _, done, _ = _collect(source.pipe(merge_map(lambda v, i: inner)))
        source.next(1)
        source.complete()
        assert done == []
        inner.complete()
        assert done == [True]

    def test_inner_error_tears_down_everything(self):
        source = Subject()
        first, second = Subject(), Subject()
        inners = iter([first, second])
        boom = ValueError("boom")
        _, errors, _, _ = _collect(source.pipe(merge_map(lambda v, i: next(inners))))
        source.next(1)
        source.next(2)
        first.error(boom)
        assert errors == [boom]
        assert source.observer_count == 0
        assert second.observer_count == 0

    def test_projection_error(self):
        boom = ValueError("boom")

        def project(value, index):
            raise boom

        _, errors, _, _ = _collect(of(1).pipe(merge_map(project)))
        assert errors == [boom]

    def test_unadaptable_projection_errors(self):
        _, errors, _, _ = _collect(of(1).pipe(merge_map(lambda v, i: 42)))
        assert len(errors) == 1
        assert isinstance(errors[0], TypeError)

    def test_unsubscribe_releases_inners(self):
        source = Subject()
        inner = Subject()
        _, _, _, sub = _collect(source.pipe(merge_map(lambda v, i: inner)))
        source.next(1)
        source.next(2)
        assert inner.observer_count == 2
        sub.unsubscribe()
        assert inner.observer_count == 0
        assert source.observer_count == 0

    def test_never_inner_keeps_output_open(self):
        _, _, done, sub = _collect(of(1).pipe(merge_map(lambda v, i: never())))
        assert done == []
        assert not sub.closed
