import asyncio
import logging

import pytest

from resource_view.views.compute import compute_keys
from resource_view.views.errors import ViewPreconditionError


def test_later_computation_sees_earlier_result():
    computations = {
        "a": lambda body, req, res: 1,
        "b": lambda body, req, res: body["a"] + 1,
    }
    body = asyncio.run(compute_keys({}, computations, None, None))
    assert body == {"a": 1, "b": 2}


def test_awaitable_results_are_awaited():
    async def slow_name(body, req, res):
        await asyncio.sleep(0)
        return "computed"

    body = asyncio.run(compute_keys({}, {"name": slow_name}, None, None))
    assert body == {"name": "computed"}


def test_none_result_leaves_existing_value():
    body = asyncio.run(
        compute_keys({"x": 5}, {"x": lambda *_: None, "y": lambda *_: None}, None, None)
    )
    assert body == {"x": 5}
    assert "y" not in body


def test_contexts_are_passed_through():
    seen = []

    def record(body, req, res):
        seen.append((req, res))
        return "ok"

    request, response = object(), object()
    asyncio.run(compute_keys({}, {"k": record}, request, response))
    assert seen == [(request, response)]


def test_computations_run_one_at_a_time():
    events = []

    async def first(body, req, res):
        events.append("first:start")
        await asyncio.sleep(0.02)
        events.append("first:end")
        return 1

    async def second(body, req, res):
        events.append("second:start")
        return 2

    asyncio.run(compute_keys({}, {"a": first, "b": second}, None, None))
    assert events == ["first:start", "first:end", "second:start"]


def test_non_callable_fails_before_anything_runs():
    calls = []

    def tracked(body, req, res):
        calls.append(1)
        return 1

    with pytest.raises(ViewPreconditionError):
        asyncio.run(compute_keys({}, {"a": tracked, "b": 3}, None, None))
    assert calls == []


def test_body_must_be_a_dict():
    with pytest.raises(ViewPreconditionError):
        asyncio.run(compute_keys([], {"a": lambda *_: 1}, None, None))


def test_empty_computations_return_body():
    body = {"x": 1}
    assert asyncio.run(compute_keys(body, None, None, None)) is body
    assert asyncio.run(compute_keys(body, {}, None, None)) is body


def test_failing_computation_propagates():
    def boom(body, req, res):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(compute_keys({}, {"a": boom}, None, None))


def test_timing_is_logged_when_enabled(monkeypatch, caplog):
    from resource_view.views import compute

    monkeypatch.setattr(compute, "TIMING_ENABLED", True)
    with caplog.at_level(logging.DEBUG, logger="resource_view.views.compute"):
        asyncio.run(compute_keys({}, {"a": lambda *_: 1}, None, None))
    assert any("Computed key 'a'" in r.getMessage() for r in caplog.records)
