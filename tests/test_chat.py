"""Tests for the chat broadcaster's retention and fan-out."""

import asyncio

import pytest

from campusfeed.services.chat import ChatBroadcaster


def texts(messages):
    return [m.text for m in messages]


class TestHistory:
    def test_history_is_bounded_to_capacity(self):
        chat = ChatBroadcaster(capacity=50)

        for i in range(60):
            chat.post(f"m{i}")

        history = texts(chat.history())
        assert len(history) == 50
        assert history == [f"m{i}" for i in range(10, 60)]

    def test_history_keeps_arrival_order_below_capacity(self):
        chat = ChatBroadcaster(capacity=50)
        for word in ("a", "b", "c"):
            chat.post(word)

        assert texts(chat.history()) == ["a", "b", "c"]

    def test_messages_carry_arrival_time(self):
        chat = ChatBroadcaster()
        message = chat.post("hi")

        assert message.time.tzinfo is not None
        assert message.to_dict() == {"text": "hi", "time": message.time.isoformat()}

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ChatBroadcaster(capacity=0)


class TestFanOut:
    def test_new_subscriber_gets_snapshot_then_live_messages(self):
        chat = ChatBroadcaster(capacity=50)
        chat.post("before-1")
        chat.post("before-2")

        sub = chat.subscribe()
        chat.post("after-1")
        chat.post("after-2")

        assert texts(sub.snapshot) == ["before-1", "before-2"]
        assert texts(sub.pending()) == ["after-1", "after-2"]
        assert sub.pending() == []

    def test_snapshot_is_not_affected_by_later_posts(self):
        chat = ChatBroadcaster(capacity=3)
        chat.post("a")
        sub = chat.subscribe()
        for word in ("b", "c", "d"):
            chat.post(word)

        assert texts(sub.snapshot) == ["a"]

    def test_every_subscriber_sees_same_order(self):
        chat = ChatBroadcaster()
        subs = [chat.subscribe() for _ in range(3)]

        for i in range(10):
            chat.post(str(i))

        expected = [str(i) for i in range(10)]
        for sub in subs:
            assert texts(sub.pending()) == expected

    def test_unsubscribed_client_receives_nothing_more(self):
        chat = ChatBroadcaster()
        sub = chat.subscribe()
        other = chat.subscribe()

        chat.unsubscribe(sub)
        chat.unsubscribe(sub)
        chat.post("later")

        assert sub.pending() == []
        assert texts(other.pending()) == ["later"]
        assert chat.subscriber_count == 1

    def test_slow_client_is_dropped_without_affecting_others(self):
        chat = ChatBroadcaster(capacity=50, client_queue_size=3)
        slow = chat.subscribe()
        fast = chat.subscribe()

        for i in range(5):
            chat.post(str(i))
            assert texts(fast.pending()) == [str(i)]

        assert slow.dropped
        assert chat.subscriber_count == 1
        assert len(chat.history()) == 5

    def test_get_waits_for_next_message(self):
        async def scenario():
            chat = ChatBroadcaster()
            sub = chat.subscribe()
            waiter = asyncio.ensure_future(sub.get())
            await asyncio.sleep(0)
            assert not waiter.done()

            chat.post("hello")
            message = await asyncio.wait_for(waiter, timeout=1)
            return message.text

        assert asyncio.run(scenario()) == "hello"

    def test_get_returns_none_after_unsubscribe(self):
        async def scenario():
            chat = ChatBroadcaster()
            sub = chat.subscribe()
            chat.unsubscribe(sub)
            return await asyncio.wait_for(sub.get(), timeout=1)

        assert asyncio.run(scenario()) is None
