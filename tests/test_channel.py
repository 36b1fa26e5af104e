"""
Tests for run channels and the channel registry.
"""

import asyncio
import json

import pytest

from notionflow.realtime import (
    ChannelClosedError,
    ChannelRegistry,
    InvalidEventError,
    ProgressEvent,
    RunChannel,
)


class TestProgressEvent:
    """Tests for the event wire shape."""

    def test_to_message_flattens_payload(self):
        event = ProgressEvent("page_created", 7, {"pageId": "p1", "flow": "createPageWithBlocks"})
        assert event.to_message() == {
            "type": "page_created",
            "flowRunId": 7,
            "pageId": "p1",
            "flow": "createPageWithBlocks",
        }

    def test_stamped_adds_timestamp(self):
        message = ProgressEvent("flow_started", 7).stamped().to_message()
        assert "timestamp" in message

    def test_from_message_drops_sender_timestamp(self):
        event = ProgressEvent.from_message(
            {"type": "custom", "flowRunId": 3, "timestamp": "yesterday", "x": 1}
        )
        assert event.timestamp is None
        assert event.payload == {"x": 1}

    def test_from_message_uses_default_run_id(self):
        event = ProgressEvent.from_message({"type": "custom"}, default_run_id="9")
        assert event.flow_run_id == "9"

    def test_from_message_requires_type(self):
        with pytest.raises(InvalidEventError):
            ProgressEvent.from_message({"flowRunId": 1})


class TestRunChannel:
    """Tests for attach/post/detach."""

    @pytest.mark.asyncio
    async def test_post_reaches_every_observer(self, observer_factory):
        channel = RunChannel("1")
        first, second = observer_factory(), observer_factory()
        channel.attach(first)
        channel.attach(second)

        await channel.post(ProgressEvent("flow_started", 1))

        assert first.types == ["flow_started"]
        assert first.messages == second.messages

    @pytest.mark.asyncio
    async def test_post_stamps_each_event(self, observer_factory):
        channel = RunChannel("1")
        observer = observer_factory()
        channel.attach(observer)

        delivered = await channel.post({"type": "custom", "value": 42})

        (event,) = observer.events
        assert event["timestamp"] == delivered.timestamp.isoformat()
        assert event["flowRunId"] == "1"
        assert event["value"] == 42

    @pytest.mark.asyncio
    async def test_no_replay_for_late_observer(self, observer_factory):
        channel = RunChannel("1")
        early = observer_factory()
        channel.attach(early)
        await channel.post(ProgressEvent("flow_started", 1))

        late = observer_factory()
        channel.attach(late)
        await channel.post(ProgressEvent("page_created", 1))

        assert early.types == ["flow_started", "page_created"]
        assert late.types == ["page_created"]

    @pytest.mark.asyncio
    async def test_failed_observer_is_dropped_silently(self, observer_factory):
        channel = RunChannel("1")
        broken = observer_factory(fail=True)
        healthy = observer_factory()
        channel.attach(broken)
        channel.attach(healthy)

        await channel.post(ProgressEvent("flow_started", 1))
        await channel.post(ProgressEvent("flow_completed", 1))

        assert channel.observer_count == 1
        assert healthy.types == ["flow_started", "flow_completed"]

    @pytest.mark.asyncio
    async def test_detach_stops_delivery(self, observer_factory):
        channel = RunChannel("1")
        observer = observer_factory()
        channel.attach(observer)
        channel.detach(observer)

        await channel.post(ProgressEvent("flow_started", 1))

        assert observer.messages == []

    @pytest.mark.asyncio
    async def test_concurrent_posts_keep_one_order(self, observer_factory):
        channel = RunChannel("1")
        first, second = observer_factory(), observer_factory()
        channel.attach(first)
        channel.attach(second)

        await asyncio.gather(
            *(channel.post({"type": "step", "n": n}) for n in range(20))
        )

        assert first.messages == second.messages
        timestamps = [e["timestamp"] for e in first.events]
        assert timestamps == sorted(timestamps)


class TestChannelConnection:
    """Tests for the in-memory duplex connection."""

    @pytest.mark.asyncio
    async def test_receives_posted_events(self):
        channel = RunChannel("5")
        connection = channel.connect()

        await channel.post(ProgressEvent("flow_started", 5))

        assert json.loads(await connection.receive())["type"] == "flow_started"

    @pytest.mark.asyncio
    async def test_send_broadcasts_to_others(self, observer_factory):
        channel = RunChannel("5")
        observer = observer_factory()
        channel.attach(observer)
        connection = channel.connect()

        await connection.send({"type": "note", "text": "hi"})

        assert observer.types == ["note"]

    @pytest.mark.asyncio
    async def test_close_detaches_and_ends_receive(self):
        channel = RunChannel("5")
        connection = channel.connect()

        connection.close()

        assert channel.observer_count == 0
        with pytest.raises(ChannelClosedError):
            await connection.receive()

    @pytest.mark.asyncio
    async def test_abort_raises_error_on_receive(self):
        channel = RunChannel("5")
        connection = channel.connect()

        connection.abort(RuntimeError("upstream broke"))

        with pytest.raises(RuntimeError, match="upstream broke"):
            await connection.receive()


class TestChannelRegistry:
    """Tests for run id -> channel resolution."""

    def test_same_id_same_channel(self):
        registry = ChannelRegistry()
        assert registry.get("42") is registry.get("42")
        assert registry.get(42) is registry.get("42")

    def test_different_ids_are_isolated(self):
        registry = ChannelRegistry()
        assert registry.get("1") is not registry.get("2")

    @pytest.mark.asyncio
    async def test_post_goes_only_to_its_channel(self, observer_factory):
        registry = ChannelRegistry()
        one, two = observer_factory(), observer_factory()
        registry.get(1).attach(one)
        registry.get(2).attach(two)

        await registry.post(1, ProgressEvent("flow_started", 1))

        assert one.types == ["flow_started"]
        assert two.messages == []

    def test_release_keeps_observed_channels(self, observer_factory):
        registry = ChannelRegistry()
        registry.get("1").attach(observer_factory())
        registry.get("2")

        assert registry.release("1") is False
        assert registry.release("2") is True
        assert "1" in registry
        assert "2" not in registry

    @pytest.mark.asyncio
    async def test_close_ends_connections(self):
        registry = ChannelRegistry()
        connection = registry.get("1").connect()

        registry.close()

        assert len(registry) == 0
        with pytest.raises(ChannelClosedError):
            await connection.receive()
