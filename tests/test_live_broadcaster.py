"""Tests del broadcaster en vivo y del formato SSE."""

import asyncio
import json

import pytest

from monitor_api.live import LiveBroadcaster, LiveEvent, event_stream, format_sse


class TestLiveBroadcaster:
    @pytest.mark.asyncio
    async def test_snapshot_is_first_event(self, broadcaster):
        sub = broadcaster.subscribe([{"channel": "chiller", "status": "no-data"}])

        event = await sub.get(timeout=1)

        assert event.event == "snapshot"
        assert event.data[0]["status"] == "no-data"
        assert broadcaster.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_publish_from_worker_thread(self, broadcaster):
        first = broadcaster.subscribe([])
        second = broadcaster.subscribe([])
        await first.get(timeout=1)
        await second.get(timeout=1)

        delivered = await asyncio.to_thread(broadcaster.publish, "reading", {"temperature": 3.1})

        assert delivered == 2
        for sub in (first, second):
            event = await sub.get(timeout=1)
            assert event == LiveEvent("reading", {"temperature": 3.1})

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        broadcaster = LiveBroadcaster(queue_size=3)
        sub = broadcaster.subscribe("snap")

        for i in range(5):
            broadcaster.publish("reading", i)
        await asyncio.sleep(0.01)

        received = []
        while True:
            event = await sub.get(timeout=0.01)
            if event is None:
                break
            received.append(event.data)

        assert received == [2, 3, 4]
        assert sub.dropped == 3

    @pytest.mark.asyncio
    async def test_unsubscribe(self, broadcaster):
        sub = broadcaster.subscribe([])
        broadcaster.unsubscribe(sub)

        assert broadcaster.subscriber_count == 0
        assert broadcaster.publish("alert", {}) == 0

    def test_subscriber_with_closed_loop_is_removed(self, broadcaster):
        async def _subscribe():
            return broadcaster.subscribe([])

        asyncio.run(_subscribe())
        assert broadcaster.subscriber_count == 1

        assert broadcaster.publish("reading", {}) == 0
        assert broadcaster.subscriber_count == 0

    def test_stats(self, broadcaster):
        broadcaster.publish("reading", {})
        assert broadcaster.stats == {"subscribers": 0, "published": 1, "dropped": 0}


class TestEventStream:
    def test_format_sse(self):
        text = format_sse(LiveEvent("alert", {"channel": "freezer", "temp": -12.5}))
        assert text == 'event: alert\ndata: {"channel": "freezer", "temp": -12.5}\n\n'

    @pytest.mark.asyncio
    async def test_stream_sequence_and_cleanup(self, broadcaster):
        disconnected = False

        async def is_disconnected():
            return disconnected

        stream = event_stream(broadcaster, [{"channel": "chiller"}], is_disconnected, heartbeat_seconds=0.01)
        assert broadcaster.subscriber_count == 0

        snapshot = await stream.__anext__()
        assert broadcaster.subscriber_count == 1
        assert snapshot.startswith("event: snapshot\n")
        assert json.loads(snapshot.split("data: ", 1)[1]) == [{"channel": "chiller"}]

        heartbeat = await stream.__anext__()
        assert heartbeat.startswith("event: heartbeat\n")

        broadcaster.publish("reading", {"temperature": 4})
        await asyncio.sleep(0)
        reading = await stream.__anext__()
        assert reading.startswith("event: reading\n")

        disconnected = True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
        assert broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_stream_never_started_leaves_no_subscriber(self, broadcaster):
        async def is_disconnected():
            return True

        stream = event_stream(broadcaster, [], is_disconnected, heartbeat_seconds=0.01)
        await stream.aclose()

        assert broadcaster.subscriber_count == 0
        assert broadcaster.publish("reading", {"temperature": 4}) == 0
