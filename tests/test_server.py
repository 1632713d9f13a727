import pytest

pytest.importorskip("fastapi")
testclient = pytest.importorskip("fastapi.testclient")

from toycon.engine.session import GraphSession  # noqa: E402
from toycon.server import create_app  # noqa: E402


def test_websocket_compile_and_tick() -> None:
    session = GraphSession()
    client = testclient.TestClient(create_app(session))

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "COMPILE", "source": "x = 3 * 2;"})
        compiled = ws.receive_json()
        assert compiled["ok"] is True

        ws.send_json({"type": "TICK", "dt": 0.1})
        status = ws.receive_json()
        assert status["type"] == "TICK"
        assert status["outputs"][str(compiled["symbols"]["x"])] == [6.0]

        ws.send_json({"type": "NOPE"})
        assert ws.receive_json()["type"] == "ERROR"

    response = client.get("/graph")
    assert response.status_code == 200
    assert response.json()["nodes"] == 3
    assert response.json()["text"].startswith("TOYCON_v1")


def test_websocket_ticks_report_screen_sinks() -> None:
    session = GraphSession()
    client = testclient.TestClient(create_app(session))

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "COMPILE", "source": "screen(1, 2, 1, 0, 0);"})
        assert ws.receive_json()["ok"] is True
        for _ in range(2):
            ws.send_json({"type": "TICK", "dt": 0.1})
            status = ws.receive_json()
        assert status["tick"] == 2
        assert list(status["sinks"].values()) == [{"drawn": 1}]
    assert session.graph.tick_count == 2
