"""
Tests for HandlerList ordering, reset and consumption tracking.
"""
import threading

from mockworker import Handler, HandlerList, Lifecycle


def make(name: str, lifecycle: Lifecycle = Lifecycle.PERMANENT) -> Handler:
    return Handler(lambda r: True, lambda r: name, lifecycle=lifecycle, name=name)


def names(handlers) -> list[str]:
    return [h.name for h in handlers]


class TestPrepend:
    def test_initial_order_preserved(self):
        handlers = HandlerList([make("a"), make("b"), make("c")])

        assert names(handlers.active_handlers()) == ["a", "b", "c"]

    def test_prepend_goes_first(self):
        handlers = HandlerList([make("initial")])

        handlers.prepend([make("runtime")])

        assert names(handlers.active_handlers()) == ["runtime", "initial"]

    def test_prepend_order_preserved_and_latest_first(self):
        handlers = HandlerList([make("i1"), make("i2")])

        handlers.prepend([make("h1"), make("h2")])
        handlers.prepend([make("h3")])

        assert names(handlers.active_handlers()) == ["h3", "h1", "h2", "i1", "i2"]

    def test_prepend_empty_is_noop(self):
        handlers = HandlerList([make("a")])

        handlers.prepend([])

        assert names(handlers.list_handlers()) == ["a"]

    def test_same_structure_handlers_coexist(self):
        predicate = lambda r: True  # noqa: E731
        resolver = lambda r: "x"  # noqa: E731
        a = Handler(predicate, resolver)
        b = Handler(predicate, resolver)
        handlers = HandlerList([a])

        handlers.prepend([b])

        assert handlers.active_handlers() == (b, a)

    def test_snapshot_is_not_affected_by_later_prepend(self):
        handlers = HandlerList([make("a")])
        snapshot = handlers.active_handlers()

        handlers.prepend([make("b")])

        assert names(snapshot) == ["a"]
        assert names(handlers.active_handlers()) == ["b", "a"]


class TestReset:
    def test_reset_drops_runtime_handlers(self):
        handlers = HandlerList([make("a"), make("b")])
        handlers.prepend([make("x"), make("y")])

        handlers.reset()

        assert names(handlers.active_handlers()) == ["a", "b"]

    def test_reset_clears_consumed_flags(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([once, make("b")])
        handlers.mark_consumed(once)

        handlers.reset()

        assert not handlers.is_consumed(once)
        assert names(handlers.active_handlers()) == ["once", "b"]

    def test_reset_is_idempotent_after_many_operations(self):
        initial = [make("a", Lifecycle.ONE_TIME), make("b"), make("c", Lifecycle.ONE_TIME)]
        handlers = HandlerList(initial)
        for i in range(5):
            handlers.prepend([make(f"r{i}", Lifecycle.ONE_TIME)])
        for handler in handlers.list_handlers():
            handlers.mark_consumed(handler)

        handlers.reset()
        handlers.reset()

        assert handlers.active_handlers() == tuple(initial)
        assert not any(handlers.is_consumed(h) for h in initial)

    def test_reset_with_next_handlers_replaces_baseline(self):
        old = make("old")
        new_once = make("new", Lifecycle.ONE_TIME)
        handlers = HandlerList([old])
        handlers.prepend([make("runtime")])

        handlers.reset([new_once])

        assert handlers.active_handlers() == (new_once,)
        assert handlers.initial_handlers == (new_once,)

        handlers.mark_consumed(new_once)
        handlers.reset()

        assert handlers.active_handlers() == (new_once,)


class TestRestore:
    def test_restore_rearms_but_keeps_runtime_handlers(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([make("initial")])
        handlers.prepend([once])
        handlers.mark_consumed(once)

        handlers.restore()

        assert names(handlers.active_handlers()) == ["once", "initial"]


class TestConsumption:
    def test_consumed_handler_hidden_from_active_but_listed(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([once, make("b")])

        assert handlers.mark_consumed(once) is True

        assert names(handlers.active_handlers()) == ["b"]
        assert names(handlers.list_handlers()) == ["once", "b"]
        assert handlers.is_consumed(once)

    def test_mark_consumed_is_idempotent(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([once])

        assert handlers.mark_consumed(once) is True
        assert handlers.mark_consumed(once) is False
        assert handlers.is_consumed(once)

    def test_mark_consumed_ignores_permanent_handlers(self):
        permanent = make("p")
        handlers = HandlerList([permanent])

        assert handlers.mark_consumed(permanent) is False
        assert handlers.active_handlers() == (permanent,)

    def test_declared_once_consumes_permanent_handler(self):
        permanent = make("p")
        handlers = HandlerList([permanent])

        assert handlers.mark_consumed(permanent, declared_once=True) is True
        assert handlers.active_handlers() == ()

    def test_mark_consumed_unknown_handler_is_silent(self):
        handlers = HandlerList([make("a")])
        stranger = make("stranger", Lifecycle.ONE_TIME)

        assert handlers.mark_consumed(stranger) is False
        assert not handlers.is_consumed(stranger)

    def test_mark_consumed_removed_handler_is_silent(self):
        runtime_once = make("r", Lifecycle.ONE_TIME)
        handlers = HandlerList([make("a")])
        handlers.prepend([runtime_once])
        handlers.reset()

        assert handlers.mark_consumed(runtime_once) is False

    def test_claim_fails_only_when_already_consumed(self):
        once = make("once", Lifecycle.ONE_TIME)
        removed = make("removed", Lifecycle.ONE_TIME)
        handlers = HandlerList([once])

        assert handlers.claim(once) is True
        assert handlers.claim(once) is False
        assert handlers.claim(removed) is True
        assert handlers.claim(make("permanent")) is True

    def test_claim_after_reset_serves_without_consuming(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([once])
        generation, snapshot = handlers.snapshot()
        assert snapshot == (once,)

        handlers.reset()

        assert handlers.claim(once, generation=generation) is True
        assert not handlers.is_consumed(once)
        assert handlers.active_handlers() == (once,)

        current, _ = handlers.snapshot()
        assert current != generation
        assert handlers.claim(once, generation=current) is True
        assert handlers.is_consumed(once)

    def test_concurrent_mark_consumed_has_single_winner(self):
        once = make("once", Lifecycle.ONE_TIME)
        handlers = HandlerList([once])
        barrier = threading.Barrier(8)
        results: list[bool] = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            won = handlers.mark_consumed(once)
            with lock:
                results.append(won)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 7


def test_len_and_repr():
    handlers = HandlerList([make("a"), make("b")])

    assert len(handlers) == 2
    assert "handlers=2" in repr(handlers)
