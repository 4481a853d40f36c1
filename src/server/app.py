"""
FastAPI application for the pingprobe agent.

A controller connects to /ws and sends measurement jobs:

    {"action": "measure", "testId": "...", "measurementId": "...",
     "measurement": {"type": "ping", "target": "8.8.8.8", ...}}

Each job runs in its own task. Its messages are sent back on the same
socket as {"type": "progress" | "result", "testId", "measurementId", "result"}.
Jobs with invalid options are answered with {"type": "error", ..., "errors"}.
"""

import asyncio
import uuid
from typing import Any, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
import uvicorn

from .. import __version__
from ..command import PingCommand
from ..config import Settings, get_settings
from ..exceptions import InvalidOptionsError
from ..logger import configure_logging, scoped_logger
from ..transports import Transport


logger = scoped_logger("agent-server")


class WebSocketTransport(Transport):
    """Sends measurement messages over a websocket shared by many jobs."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._lock = asyncio.Lock()

    async def send(self, message: dict[str, Any]) -> None:
        async with self._lock:
            await self.websocket.send_json(message)

    async def push_progress(self, message: dict[str, Any]) -> None:
        await self.send({"type": "progress", **message})

    async def push_result(self, message: dict[str, Any]) -> None:
        await self.send({"type": "result", **message})


def create_app(
    settings: Optional[Settings] = None,
    command: Optional[PingCommand] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Probe settings (defaults to the process-wide settings)
        command: Measurement command to run jobs with
    """
    settings = settings or get_settings()
    command = command or PingCommand(settings)

    app = FastAPI(
        title="pingprobe agent",
        description="ICMP and TCP ping measurements with streamed progress",
        version=__version__,
    )

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok", "version": __version__}

    async def run_measurement(transport: WebSocketTransport, job: dict[str, Any]):
        """Run one job. Invalid options are reported back to the sender, other failures are logged."""
        test_id = str(job.get("testId") or uuid.uuid4().hex)
        measurement_id = str(job.get("measurementId") or uuid.uuid4().hex)

        try:
            await command.run(transport, measurement_id, test_id, job.get("measurement") or {})
        except InvalidOptionsError as e:
            logger.info(
                "Rejected measurement with invalid options.",
                extra={"fields": {"measurementId": measurement_id, "errors": e.errors}},
            )
            await transport.send({
                "type": "error",
                "testId": test_id,
                "measurementId": measurement_id,
                "errors": e.errors,
            })
        except Exception:
            logger.exception(
                "Measurement job failed.",
                extra={"fields": {"testId": test_id, "measurementId": measurement_id}},
            )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for measurement jobs."""
        await websocket.accept()
        transport = WebSocketTransport(websocket)
        jobs: set[asyncio.Task] = set()

        try:
            while True:
                data = await websocket.receive_json()
                action = data.get("action") if isinstance(data, dict) else None

                if action == "measure":
                    job = asyncio.create_task(run_measurement(transport, data))
                    jobs.add(job)
                    job.add_done_callback(jobs.discard)
                elif action == "ping":
                    await transport.send({"type": "pong"})
                else:
                    await transport.send({
                        "type": "error",
                        "message": f"Unknown action: {action}",
                    })

        except WebSocketDisconnect:
            logger.info("Controller disconnected.", extra={"fields": {"pendingJobs": len(jobs)}})
        finally:
            for job in list(jobs):
                job.cancel()

    return app


def run_server(host: str = "127.0.0.1", port: int = 8765):
    """Run the agent server."""
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)

    uvicorn.run(app, host=host, port=port, log_level="warning")
