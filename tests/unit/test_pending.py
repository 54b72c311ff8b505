from __future__ import annotations

import asyncio

import pytest

from roomwire.handlers.pending import PendingRequestTable
from roomwire.state.errors import ServerError, RequestAborted, RequestTimeout


@pytest.mark.asyncio
async def test_resolve_settles_future_and_forgets_ref() -> None:
    table = PendingRequestTable(timeout_s=1.0)
    future = table.register("r1")

    assert table.resolve("r1", {"ok": True}) is True
    assert await future == {"ok": True}
    assert "r1" not in table
    assert len(table) == 0


@pytest.mark.asyncio
async def test_timeout_fires_once_and_late_reply_is_ignored() -> None:
    table = PendingRequestTable(timeout_s=0.02)
    future = table.register("r1")

    with pytest.raises(RequestTimeout) as excinfo:
        await future
    assert excinfo.value.ref == "r1"
    assert excinfo.value.timeout_s == pytest.approx(0.02)
    assert "r1" not in table

    assert table.resolve("r1", {"late": True}) is False
    assert isinstance(future.exception(), RequestTimeout)


@pytest.mark.asyncio
async def test_shared_ref_fans_out_to_every_registration() -> None:
    table = PendingRequestTable(timeout_s=0.05)
    first = table.register("shared")
    second = table.register("shared")
    assert len(table) == 2

    table.resolve("shared", 42)

    assert await first == 42
    assert await second == 42
    # both timers were cancelled together with the reply
    await asyncio.sleep(0.08)
    assert first.result() == 42
    assert second.result() == 42


@pytest.mark.asyncio
async def test_timeout_removes_only_the_expired_registration() -> None:
    table = PendingRequestTable(timeout_s=0.1)
    early = table.register("r")
    await asyncio.sleep(0.06)
    late = table.register("r")

    with pytest.raises(RequestTimeout):
        await early
    assert not late.done()
    assert "r" in table

    table.resolve("r", "done")
    assert await late == "done"


@pytest.mark.asyncio
async def test_reject_fails_every_registration() -> None:
    table = PendingRequestTable(timeout_s=1.0)
    future = table.register("r1")

    table.reject("r1", ServerError(message="nope", ref="r1", error="nope"))

    with pytest.raises(ServerError):
        await future


@pytest.mark.asyncio
async def test_abort_all_rejects_with_reason_and_cancels_timers() -> None:
    table = PendingRequestTable(timeout_s=0.02)
    a = table.register("a")
    b = table.register("b")
    reason = RuntimeError("socket gone")

    assert table.abort_all(reason) == 2
    assert len(table) == 0

    for future in (a, b):
        with pytest.raises(RequestAborted) as excinfo:
            await future
        assert excinfo.value.reason is reason


@pytest.mark.asyncio
async def test_discard_leaves_sibling_registrations_alone() -> None:
    table = PendingRequestTable(timeout_s=1.0)
    kept = table.register("r")
    dropped = table.register("r")

    table.discard("r", dropped)

    assert dropped.cancelled()
    assert len(table) == 1
    table.resolve("r", "x")
    assert await kept == "x"
