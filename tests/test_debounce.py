import asyncio

import pytest

from apps.realtime.debounce import Debouncer


class TestDebouncer:
    @pytest.mark.asyncio
    async def test_burst_fires_once_after_last_event(self):
        loop = asyncio.get_running_loop()
        debouncer = Debouncer(0.05)
        fired = []

        last_call = None
        for i in range(10):
            last_call = loop.time()
            debouncer.call("projects", lambda n: fired.append((n, loop.time())), i)
            await asyncio.sleep(0.01)

        await asyncio.sleep(0.15)
        assert len(fired) == 1
        value, at = fired[0]
        assert value == 9
        assert at >= last_call + 0.05

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        debouncer = Debouncer(0.02)
        fired = []
        debouncer.call("projects", fired.append, "projects")
        debouncer.call("vendors", fired.append, "vendors")
        await asyncio.sleep(0.08)
        assert sorted(fired) == ["projects", "vendors"]

    @pytest.mark.asyncio
    async def test_coroutine_callback_runs(self):
        debouncer = Debouncer(0.01)
        done = asyncio.Event()

        async def callback():
            done.set()

        debouncer.call("t", callback)
        await asyncio.wait_for(done.wait(), timeout=1)
        await debouncer.drain()
        assert not debouncer.pending()

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        debouncer = Debouncer(0.02)
        fired = []
        debouncer.call("t", fired.append, 1)
        assert debouncer.pending("t")
        debouncer.cancel_all()
        await asyncio.sleep(0.05)
        assert fired == []

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged_not_raised(self, caplog):
        debouncer = Debouncer(0.01)

        def boom():
            raise RuntimeError("boom")

        debouncer.call("t", boom)
        await asyncio.sleep(0.05)
        assert "Debounced callback" in caplog.text
