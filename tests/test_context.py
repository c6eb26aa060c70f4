"""Tests for CheckContext."""

from __future__ import annotations

import time

import pytest

from k8status.context import CheckContext, ContextCanceled, DeadlineExceeded


class TestCheckContext:
    def test_background(self) -> None:
        ctx = CheckContext.background()
        assert ctx.err() is None
        assert ctx.timeout() is None
        assert ctx.timeout(1.0) == 1.0
        ctx.raise_if_done()

    def test_cancel(self) -> None:
        ctx = CheckContext.background()
        ctx.cancel()
        assert ctx.cancelled
        assert isinstance(ctx.err(), ContextCanceled)
        with pytest.raises(ContextCanceled, match="context canceled"):
            ctx.raise_if_done()

    def test_expired_deadline(self) -> None:
        ctx = CheckContext.background().with_timeout(0)
        assert isinstance(ctx.err(), DeadlineExceeded)
        assert ctx.timeout(1.0) == 0.0

    def test_timeout_is_capped(self) -> None:
        ctx = CheckContext.background().with_timeout(30)
        assert ctx.timeout(1.0) == 1.0
        assert 29 < ctx.timeout() <= 30

    def test_child_never_outlives_parent(self) -> None:
        parent = CheckContext.background().with_timeout(5)
        child = parent.with_timeout(60)
        assert child.deadline == parent.deadline

    def test_child_shares_cancellation(self) -> None:
        parent = CheckContext.background()
        child = parent.with_timeout(60)
        parent.cancel()
        assert isinstance(child.err(), ContextCanceled)

    def test_deadline_passes(self) -> None:
        ctx = CheckContext(deadline=time.monotonic() - 1)
        with pytest.raises(DeadlineExceeded):
            ctx.raise_if_done()
