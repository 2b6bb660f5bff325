from core import EventBus


async def test_emit_reaches_every_subscriber():
    bus = EventBus()
    seen = []

    @bus.on("admin.success")
    async def first(data):
        seen.append(("first", data["message"]))

    async def second(data):
        seen.append(("second", data["message"]))
    bus.subscribe("admin.success", second)

    await bus.emit("admin.success", {"message": "ok"})

    assert sorted(seen) == [("first", "ok"), ("second", "ok")]
    assert bus.get_subscriptions() == {"admin.success": 2}


async def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    async def broken(data):
        raise RuntimeError("boom")

    async def working(data):
        seen.append(data)

    bus.subscribe("admin.error", broken)
    bus.subscribe("admin.error", working)
    await bus.emit("admin.error", {"message": "x"})

    assert seen == [{"message": "x"}]


async def test_sync_handlers_and_unsubscribe():
    bus = EventBus()
    seen = []
    bus.subscribe("socket.connected", seen.append)
    await bus.emit("socket.connected")
    bus.unsubscribe("socket.connected", seen.append)
    await bus.emit("socket.connected")

    assert seen == [{}]


async def test_emit_without_handlers_is_noop():
    await EventBus().emit("nobody.listens", {"a": 1})
