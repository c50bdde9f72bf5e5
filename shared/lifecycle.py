"""Service lifecycle coordination shared by both services.

A service moves strictly forward through ``starting → serving → draining →
stopped``. The first termination signal starts draining: uvicorn stops
accepting connections and lets in-flight requests finish, then the FastAPI
lifespan releases owned dependencies through :class:`OwnedResources`. A hard
ceiling timer bounds the whole shutdown; if it fires the process exits with
status 1 regardless of outstanding work.
"""

from __future__ import annotations

import enum
import os
import signal
import socket
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from types import FrameType
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

logger = structlog.get_logger()


class LifecycleState(str, enum.Enum):
    STARTING = "starting"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


_ORDER = {state: index for index, state in enumerate(LifecycleState)}


class LifecycleError(RuntimeError):
    """Raised on a backward or repeated lifecycle transition."""


class LifecycleCoordinator:
    """Tracks lifecycle state, the shutdown ceiling and the final exit status."""

    def __init__(
        self,
        service_name: str,
        *,
        shutdown_timeout: float = 30.0,
        exit_func: Callable[[int], Any] = os._exit,
    ) -> None:
        self.service_name = service_name
        self.shutdown_timeout = shutdown_timeout
        self._exit = exit_func
        self._state = LifecycleState.STARTING
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._failures: list[str] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def failed(self) -> bool:
        return bool(self._failures)

    def _transition(self, new_state: LifecycleState) -> None:
        with self._lock:
            old_state = self._state
            if _ORDER[new_state] <= _ORDER[old_state]:
                raise LifecycleError(
                    f"{self.service_name}: cannot move from {old_state.value} to {new_state.value}"
                )
            self._state = new_state
        logger.info(
            "lifecycle_transition",
            old_state=old_state.value,
            new_state=new_state.value,
        )

    def mark_serving(self) -> bool:
        """Enter ``serving``. Returns False if shutdown already began."""
        if self._state is not LifecycleState.STARTING:
            logger.warning("lifecycle_serving_skipped", state=self._state.value)
            return False
        self._transition(LifecycleState.SERVING)
        return True

    def begin_drain(self, reason: str) -> bool:
        """Enter ``draining`` and arm the shutdown ceiling.

        Returns False when draining had already begun, so callers can treat a
        repeated signal as a request to force the exit.
        """
        if self._state in (LifecycleState.DRAINING, LifecycleState.STOPPED):
            return False
        logger.info("graceful_shutdown_started", reason=reason)
        self._transition(LifecycleState.DRAINING)
        self._timer = threading.Timer(self.shutdown_timeout, self._on_timeout)
        self._timer.daemon = True
        self._timer.start()
        return True

    def record_failure(self, reason: str, **details: Any) -> None:
        self._failures.append(reason)
        logger.error(reason, **details)

    def finish(self) -> int:
        """Enter ``stopped`` and return the process exit status."""
        if self._timer is not None:
            self._timer.cancel()
        if self._state is not LifecycleState.STOPPED:
            self._transition(LifecycleState.STOPPED)
        exit_code = 1 if self._failures else 0
        logger.info("shutdown_complete", exit_code=exit_code, failures=self._failures)
        return exit_code

    def _on_timeout(self) -> None:
        logger.error("forced_shutdown", reason="timeout exceeded", timeout=self.shutdown_timeout)
        self._failures.append("shutdown_timeout")
        self._exit(1)

    @asynccontextmanager
    async def dependencies(self) -> AsyncIterator[OwnedResources]:
        """Scope for resources released in reverse order on exit.

        Every release runs even when an earlier one fails. Release failures
        are logged only; they do not change the exit status.
        """
        stack = AsyncExitStack()
        try:
            yield OwnedResources(stack)
        finally:
            try:
                await stack.aclose()
            except Exception as exc:
                logger.error("dependency_release_failed", error_type=type(exc).__name__)


class OwnedResources:
    """Registers release callbacks on an exit stack, run in reverse order."""

    def __init__(self, stack: AsyncExitStack) -> None:
        self._stack = stack

    def add(self, name: str, release: Callable[[], Awaitable[Any]]) -> None:
        async def _release() -> None:
            try:
                await release()
            except Exception as exc:
                logger.error(
                    "dependency_release_failed",
                    dependency=name,
                    error_type=type(exc).__name__,
                )
            else:
                logger.info("dependency_released", dependency=name)

        self._stack.push_async_callback(_release)


class GracefulServer(uvicorn.Server):
    """uvicorn server whose signal handling goes through the coordinator.

    The first signal drains (stop accepting, finish in-flight requests); a
    second one makes uvicorn stop waiting for open connections.
    """

    def __init__(self, config: uvicorn.Config, coordinator: LifecycleCoordinator) -> None:
        super().__init__(config)
        self.coordinator = coordinator
        self.shut_down = False

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        try:
            reason = signal.Signals(sig).name
        except ValueError:
            reason = str(sig)
        if self.coordinator.begin_drain(reason):
            self.should_exit = True
        else:
            logger.warning("forced_exit_requested", signal=reason)
            self.force_exit = True

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        self.shut_down = True
        await super().shutdown(sockets=sockets)


def build_server(
    app: FastAPI,
    *,
    host: str,
    port: int,
    log_level: str = "info",
) -> GracefulServer:
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level.lower(),
        log_config=None,
        lifespan="on",
    )
    return GracefulServer(config, app.state.lifecycle)


async def run_server(server: GracefulServer) -> int:
    """Serve until a termination signal and return the exit status."""
    coordinator = server.coordinator
    logger.info("server_starting", host=server.config.host, port=server.config.port)
    try:
        await server.serve()
        # Some uvicorn releases skip shutdown when a signal lands during startup
        if server.started and not server.shut_down:
            logger.warning("server_shutdown_skipped")
            await server.shutdown()
    except Exception as exc:
        coordinator.record_failure("server_error", error_type=type(exc).__name__)
    else:
        if not server.started:
            coordinator.record_failure("server_start_failed")
    return coordinator.finish()


async def serve(
    app: FastAPI,
    *,
    host: str,
    port: int,
    log_level: str = "info",
) -> int:
    """Run ``app`` until a termination signal and return the exit status."""
    return await run_server(build_server(app, host=host, port=port, log_level=log_level))
