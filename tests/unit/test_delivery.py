"""
Unit tests for DeliveryOrchestrator

Covered:
- success marks the item posted
- sink rejection / sink exception / render exception count a retry
- against the real store: a failing sink keeps the item pending with
  a growing retry count
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from review_monitor.delivery import DeliveryOrchestrator
from review_monitor.models import DeliveryState, NotificationPayload, Source


def _subscription():
    return SimpleNamespace(id=1, source='steam', source_user_id='76561198000000001',
                           display_name='Dave')


def _item():
    return SimpleNamespace(
        id=10, source='steam', title='Portal 2', content='Excellent.', rating=1.0,
        occurred_at=None, cover_image_ref=None, subject_id='620', review_url=None,
        retry_count=0,
    )


def _store():
    return SimpleNamespace(
        mark_posted=AsyncMock(return_value=True),
        increment_retry=AsyncMock(return_value=True),
    )


def _sink(result=True):
    return SimpleNamespace(send=AsyncMock(return_value=result))


@pytest.mark.unit
class TestAttemptDeliver:
    """Outcome recording."""

    @pytest.mark.asyncio
    async def test_success_marks_posted(self):
        store, sink = _store(), _sink(True)
        orchestrator = DeliveryOrchestrator(store, sink)

        assert await orchestrator.attempt_deliver(_subscription(), _item()) is True

        store.mark_posted.assert_awaited_once_with(10)
        store.increment_retry.assert_not_awaited()
        payload = sink.send.await_args.args[0]
        assert isinstance(payload, NotificationPayload)
        assert 'Portal 2' in payload.text

    @pytest.mark.asyncio
    async def test_sink_rejection_counts_retry(self):
        store = _store()
        orchestrator = DeliveryOrchestrator(store, _sink(False))

        assert await orchestrator.attempt_deliver(_subscription(), _item()) is False

        store.increment_retry.assert_awaited_once_with(10)
        store.mark_posted.assert_not_awaited()
        assert orchestrator.stats == {'delivered': 0, 'failed': 1}

    @pytest.mark.asyncio
    async def test_sink_exception_counts_retry(self):
        store = _store()
        sink = SimpleNamespace(send=AsyncMock(side_effect=ConnectionError('chat unreachable')))
        orchestrator = DeliveryOrchestrator(store, sink)

        assert await orchestrator.attempt_deliver(_subscription(), _item()) is False
        store.increment_retry.assert_awaited_once_with(10)

    @pytest.mark.asyncio
    async def test_render_exception_counts_retry(self):
        store, sink = _store(), _sink(True)
        renderer = MagicMock(side_effect=KeyError('source'))
        orchestrator = DeliveryOrchestrator(store, sink, renderer=renderer)

        assert await orchestrator.attempt_deliver(_subscription(), _item()) is False

        sink.send.assert_not_awaited()
        store.increment_retry.assert_awaited_once_with(10)

    @pytest.mark.asyncio
    async def test_store_failure_does_not_raise(self):
        store = _store()
        store.mark_posted.return_value = False
        orchestrator = DeliveryOrchestrator(store, _sink(True))

        assert await orchestrator.attempt_deliver(_subscription(), _item()) is True


@pytest.mark.unit
class TestDeliveryWithStore:
    """Delivery state as persisted."""

    @pytest.mark.asyncio
    async def test_failing_sink_keeps_item_pending(self, store, make_draft):
        subscription = await store.add_subscription('42', Source.STEAM, '76561198000000001')
        item = await store.upsert(make_draft('x'), subscription.id)
        orchestrator = DeliveryOrchestrator(store, _sink(False))

        for _ in range(3):
            current = await store.get_item(item.id)
            await orchestrator.attempt_deliver(subscription, current)

        row = await store.get_item(item.id)
        assert row.delivery_state == DeliveryState.PENDING.value
        assert row.retry_count == 3
        assert await store.get_undelivered(3) == []

    @pytest.mark.asyncio
    async def test_success_after_failure(self, store, make_draft):
        subscription = await store.add_subscription('42', Source.STEAM, '76561198000000001')
        item = await store.upsert(make_draft('x'), subscription.id)
        sink = SimpleNamespace(send=AsyncMock(side_effect=[False, True]))
        orchestrator = DeliveryOrchestrator(store, sink)

        assert await orchestrator.attempt_deliver(subscription, item) is False
        assert await orchestrator.attempt_deliver(subscription, await store.get_item(item.id)) is True

        row = await store.get_item(item.id)
        assert row.delivery_state == DeliveryState.POSTED.value
        assert row.retry_count == 1
