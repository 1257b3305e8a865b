"""Tests for EventBus, Subscriptions and TimerArena in core/events.py"""

import asyncio

import pytest

from core.events import EventBus, Subscriptions, TimerArena


class TestEventBus:
    def test_handlers_run_in_order(self):
        bus = EventBus('data')
        calls = []
        bus.subscribe('data', lambda value: calls.append(('first', value)))
        bus.subscribe('data', lambda value: calls.append(('second', value)))

        bus.emit('data', 42)

        assert calls == [('first', 42), ('second', 42)]

    def test_unsubscribe(self):
        bus = EventBus('data')
        calls = []
        unsubscribe = bus.subscribe('data', calls.append)

        unsubscribe()
        unsubscribe()
        bus.emit('data', 1)

        assert calls == []
        assert bus.handler_count('data') == 0

    def test_unknown_event(self):
        bus = EventBus('data')
        with pytest.raises(KeyError):
            bus.subscribe('other', print)
        assert bus.names == ('data',)


class TestSubscriptions:
    def test_release_all(self):
        bus = EventBus('a', 'b')
        subscriptions = Subscriptions()
        subscriptions.add(bus.subscribe('a', print))
        subscriptions.add(bus.subscribe('b', print))
        assert len(subscriptions) == 2

        subscriptions.release()

        assert len(subscriptions) == 0
        assert bus.handler_count('a') == bus.handler_count('b') == 0


class TestTimerArena:
    def test_fires_and_forgets(self):
        timers = TimerArena()
        calls = []

        async def main():
            timers.call_later(0, calls.append, 'fired')
            assert timers.pending == 1
            await asyncio.sleep(0.01)

        asyncio.run(main())

        assert calls == ['fired']
        assert timers.pending == 0

    def test_cancel_all(self):
        timers = TimerArena()
        calls = []

        async def main():
            timers.call_later(0.01, calls.append, 1)
            timers.call_later(0.01, calls.append, 2)
            timers.cancel_all()
            await asyncio.sleep(0.03)

        asyncio.run(main())

        assert calls == []
        assert timers.pending == 0

    def test_cancel_one(self):
        timers = TimerArena()
        calls = []

        async def main():
            handle = timers.call_later(0.01, calls.append, 1)
            timers.call_later(0.01, calls.append, 2)
            timers.cancel(handle)
            await asyncio.sleep(0.03)

        asyncio.run(main())

        assert calls == [2]
