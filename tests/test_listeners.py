"""Tests for ListenerSet."""

from __future__ import annotations

from session_bridge.utils.listeners import ListenerSet


class TestListenerSet:
    """Tests for synchronous and scheduled delivery."""

    def test_emit_calls_in_registration_order(self):
        # Arrange
        calls: list[str] = []
        listeners: ListenerSet[int] = ListenerSet("test")
        listeners.add(lambda v: calls.append(f"a{v}"))
        listeners.add(lambda v: calls.append(f"b{v}"))

        # Act
        listeners.emit(1)

        # Assert
        assert calls == ["a1", "b1"]

    def test_unsubscribe_during_emit_skips_removed_listener(self):
        # Arrange
        calls: list[str] = []
        listeners: ListenerSet[int] = ListenerSet("test")
        unsubscribe_b = None

        def first(value: int) -> None:
            calls.append("a")
            unsubscribe_b()

        listeners.add(first)
        unsubscribe_b = listeners.add(lambda v: calls.append("b"))

        # Act
        listeners.emit(1)

        # Assert
        assert calls == ["a"]
        assert len(listeners) == 1

    async def test_emit_soon_runs_on_next_turn(self):
        # Arrange
        calls: list[int] = []
        listeners: ListenerSet[int] = ListenerSet("test")
        listeners.add(calls.append)

        # Act
        listeners.emit_soon(7)
        before = list(calls)
        await listeners.wait_idle()

        # Assert
        assert before == []
        assert calls == [7]

    async def test_clear_drops_scheduled_deliveries(self):
        # Arrange
        calls: list[int] = []
        listeners: ListenerSet[int] = ListenerSet("test")
        listeners.add(calls.append)
        listeners.emit_soon(1)

        # Act
        listeners.clear()
        await listeners.wait_idle()

        # Assert
        assert calls == []
        assert len(listeners) == 0
