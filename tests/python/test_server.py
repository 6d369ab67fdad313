import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from wormsim.app import server
from wormsim.app.server import SimulationController
from wormsim.sim.core.config import ConfigError, SimulationConfig


def _controller() -> SimulationController:
    return SimulationController(SimulationConfig(num_worms=3, max_length=10.0))


def test_snapshot_queue_ack_cleanup() -> None:
    controller = _controller()

    async def exercise() -> None:
        controller.tick = 1
        await controller._broadcast_snapshot()
        controller.tick = 2
        await controller._broadcast_snapshot()
        async with controller._queue_lock:
            queued_ticks = [item.tick for item in controller._snapshot_queue]
        assert queued_ticks == [1, 2]
        await controller.acknowledge(1)
        async with controller._queue_lock:
            remaining_ticks = [item.tick for item in controller._snapshot_queue]
        assert remaining_ticks == [2]

    asyncio.run(exercise())


def test_serialized_snapshot_carries_draw_commands() -> None:
    controller = _controller()
    queued = controller._serialize_snapshot()
    message = json.loads(queued.payload)
    assert message["type"] == "snapshot"
    payload = message["payload"]
    assert len(payload["worms"]) == 3
    assert payload["commands"][0] == ["begin"]
    assert payload["viewport"]["width"] == 1280.0


def test_params_are_clamped_and_unknown_rejected() -> None:
    controller = _controller()

    async def exercise() -> None:
        params = await controller.update_params({"max_thickness": 200, "shadow": False})
        assert params == {"max_thickness": 80.0, "max_segment_spacing": 4.0, "shadow": False}
        assert controller.world.config.shadow is False
        with pytest.raises(ConfigError):
            await controller.update_params({"speed": 2})

    asyncio.run(exercise())


def test_refresh_reset_and_resize() -> None:
    controller = _controller()

    async def exercise() -> None:
        await controller.refresh({"min_thickness": 30.0, "max_thickness": 40.0})
        assert all(30.0 <= worm.thickness <= 40.0 for worm in controller.world.worms)
        await controller.resize(640, 480)
        assert controller.world.viewport == (640, 480)
        with pytest.raises(ConfigError):
            await controller.resize(0, 480)
        controller.tick = 12
        await controller.reset()
        assert controller.tick == 0
        async with controller._queue_lock:
            assert [item.tick for item in controller._snapshot_queue] == [0]

    asyncio.run(exercise())


def test_toggle_flips_running() -> None:
    controller = _controller()

    async def exercise() -> None:
        assert await controller.toggle() is True
        assert await controller.toggle() is False
        controller._broadcast_task.cancel()

    asyncio.run(exercise())


def _client(monkeypatch, controller: SimulationController) -> TestClient:
    monkeypatch.setattr(server, "controller", controller)
    return TestClient(server.app)


def test_params_route_maps_errors_to_400(monkeypatch) -> None:
    client = _client(monkeypatch, _controller())
    response = client.post("/api/params", json={"speed": 2})
    assert response.status_code == 400
    assert "speed" in response.json()["detail"]
    response = client.post("/api/params", json={"max_thickness": 200})
    assert response.status_code == 200
    assert response.json()["max_thickness"] == 80.0


def test_refresh_route_rejects_bad_overrides(monkeypatch) -> None:
    controller = _controller()
    client = _client(monkeypatch, controller)
    response = client.post("/api/control/refresh", json={"num_worms": "x"})
    assert response.status_code == 400
    assert controller.config.num_worms == 3
    response = client.post("/api/control/refresh", json={"bogus": 1})
    assert response.status_code == 400


def test_viewport_route_rejects_non_positive_size(monkeypatch) -> None:
    controller = _controller()
    client = _client(monkeypatch, controller)
    assert client.post("/api/viewport", json={"width": 0, "height": 480}).status_code == 400
    assert client.post("/api/viewport", json={"width": 640}).status_code == 400
    response = client.post("/api/viewport", json={"width": 640, "height": 480})
    assert response.status_code == 200
    assert controller.world.viewport == (640.0, 480.0)


def test_websocket_skips_bad_messages_and_drops_client_on_close(monkeypatch) -> None:
    controller = _controller()
    controller.tick = 5
    asyncio.run(controller._broadcast_snapshot())
    client = _client(monkeypatch, controller)

    with client.websocket_connect("/ws") as websocket:
        message = websocket.receive_json()
        assert message["type"] == "snapshot"
        assert message["tick"] == 5
        assert len(controller.clients) == 1
        websocket.send_text("not json")
        websocket.send_text("[1, 2]")
        websocket.send_json({"type": "ack", "tick": 5})

    assert controller.clients == set()
    assert controller._client_last_sent == {}
    assert list(controller._snapshot_queue) == []
