"""WebSocket front end for a GraphSession.

Requires the ``server`` extra (fastapi, uvicorn). One session is shared by
all clients; every message is dispatched on a worker thread under the
session lock.
"""

from typing import Any

from toycon.engine.session import GraphSession


def create_app(session: GraphSession | None = None) -> Any:
    from fastapi import FastAPI, WebSocket, WebSocketDisconnect
    from fastapi.concurrency import run_in_threadpool

    shared = session if session is not None else GraphSession()
    app = FastAPI(title="toycon")
    app.state.session = shared

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        try:
            while True:
                message = await websocket.receive_json()
                await websocket.send_json(await run_in_threadpool(shared.handle_message, message))
        except WebSocketDisconnect:
            return

    @app.get("/graph")
    def graph_text() -> dict[str, Any]:
        return {"text": shared.save_text(), "nodes": len(shared.graph)}

    return app
