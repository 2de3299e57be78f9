"""通知分发与库存巡检"""

from datetime import date, timedelta

from stockroom.services import scheduler
from stockroom.services.notifier import EXPIRING_SOON, LOW_STOCK, Notifier, notifier


async def test_publish_reaches_sync_and_async_handlers():
    bus = Notifier()
    seen = []

    def sync_handler(event, payload):
        seen.append(("sync", payload["n"]))

    async def async_handler(event, payload):
        seen.append(("async", payload["n"]))

    bus.subscribe("demo", sync_handler)
    bus.subscribe("demo", async_handler)
    bus.subscribe("demo", sync_handler)

    delivered = await bus.publish("demo", {"n": 1})

    assert delivered == 2
    assert seen == [("sync", 1), ("async", 1)]


async def test_failing_handler_is_skipped():
    bus = Notifier()
    seen = []

    def broken(event, payload):
        raise ValueError("boom")

    bus.subscribe("demo", broken)
    bus.subscribe("demo", lambda event, payload: seen.append(payload))

    assert await bus.publish("demo", {"ok": True}) == 1
    assert seen == [{"ok": True}]


async def test_unsubscribe_and_unknown_event():
    bus = Notifier()
    seen = []
    handler = lambda event, payload: seen.append(event)  # noqa: E731
    bus.subscribe("demo", handler)
    bus.unsubscribe("demo", handler)

    assert await bus.publish("demo", {}) == 0
    assert await bus.publish("nobody-listens", {}) == 0
    assert seen == []


async def test_scan_publishes_low_stock_and_expiring(session_factory, make_ingredient):
    await make_ingredient("Butter", 2, minimum_stock=10, expiry_date=date.today() + timedelta(days=1))
    await make_ingredient("Flour", 100, minimum_stock=10)
    low, expiring = [], []
    notifier.subscribe(LOW_STOCK, lambda event, payload: low.append(payload["name"]))
    notifier.subscribe(EXPIRING_SOON, lambda event, payload: expiring.append(payload["name"]))

    counts = await scheduler.scan_stock_alerts(session_factory)

    assert counts == {"low_stock": 1, "expiring": 1}
    assert low == ["Butter"]
    assert expiring == ["Butter"]


def test_status_without_scheduler():
    assert scheduler.get_scheduler_status() == {"enabled": False, "running": False, "jobs": []}
