"""Run an agent in a separate process.

The child process imports the agent's handlers module, calls
``instantiate()`` and serves requests sent over a pipe. Agent contexts live
in the child; the dispatcher only holds integer handles to them.
"""

import asyncio
import importlib
import itertools
import logging
import multiprocessing
from multiprocessing.connection import Connection
from typing import Any, Optional, Sequence

from ..core.exceptions import AgentProcessError, UnknownActionError
from ..core.models import ActionContext, ActionResult, AppAction, SessionContext

logger = logging.getLogger(__name__)

_SHUTDOWN = "shutdown"


class _AgentHost:
    """Child-side dispatcher for requests from the shim."""

    def __init__(self, agent: Any):
        self.agent = agent
        self.contexts: dict[int, Any] = {}
        self._ids = itertools.count(1)

    def _session(self, handle: int) -> SessionContext:
        if handle not in self.contexts:
            raise AgentProcessError(f"Unknown agent context handle: {handle}")
        return SessionContext(agent_context=self.contexts[handle])

    async def initialize_agent_context(self) -> int:
        handle = next(self._ids)
        self.contexts[handle] = await self.agent.initialize_agent_context()
        return handle

    async def update_agent_context(self, enable: bool, handle: int) -> None:
        await self.agent.update_agent_context(enable, self._session(handle))
        if not enable:
            del self.contexts[handle]

    async def execute_action(self, action: AppAction, handle: int) -> ActionResult:
        return await self.agent.execute_action(action, ActionContext(self._session(handle)))

    async def execute_command(self, command: Sequence[str], handle: int) -> Optional[ActionResult]:
        return await self.agent.execute_command(command, ActionContext(self._session(handle)))


def _agent_process_main(handlers_module: str, conn: Connection) -> None:
    """Child process entry point."""
    loop = asyncio.new_event_loop()
    try:
        module = importlib.import_module(handlers_module)
        host = _AgentHost(module.instantiate())
        conn.send(("ok", None))
    except Exception as e:
        conn.send(("error", ("AgentLoadError", f"Failed to load {handlers_module}: {e}")))
        conn.close()
        return

    try:
        while True:
            try:
                method, args = conn.recv()
            except EOFError:
                break
            if method == _SHUTDOWN:
                break
            try:
                result = loop.run_until_complete(getattr(host, method)(*args))
                conn.send(("ok", result))
            except UnknownActionError as e:
                conn.send(("error", ("UnknownActionError", e.action_name)))
            except Exception as e:
                conn.send(("error", (type(e).__name__, str(e))))
    finally:
        conn.close()
        loop.close()


class AgentProcessShim:
    """Agent proxy forwarding every call to a child process."""

    def __init__(self, handlers_module: str):
        """Start the child process for ``handlers_module``.

        Raises:
            AgentProcessError: If the child could not load the agent
        """
        self.handlers_module = handlers_module
        ctx = multiprocessing.get_context("spawn")
        self._conn, child_conn = ctx.Pipe()
        self._process = ctx.Process(
            target=_agent_process_main,
            args=(handlers_module, child_conn),
            name=f"agent-{handlers_module}",
            daemon=True,
        )
        self._process.start()
        child_conn.close()
        self._lock = asyncio.Lock()

        try:
            status, payload = self._conn.recv()
        except EOFError as e:
            raise AgentProcessError(f"Agent process for {handlers_module} exited during startup") from e
        if status != "ok":
            self._process.join(timeout=5)
            raise AgentProcessError(payload[1])
        logger.info(f"Agent process started for {handlers_module} (pid {self._process.pid})")

    def _roundtrip(self, method: str, args: tuple) -> tuple:
        self._conn.send((method, args))
        return self._conn.recv()

    async def _call(self, method: str, *args: Any) -> Any:
        async with self._lock:
            try:
                status, payload = await asyncio.to_thread(self._roundtrip, method, args)
            except (EOFError, OSError) as e:
                raise AgentProcessError(f"Agent process {self.handlers_module} is gone: {e}") from e

        if status == "ok":
            return payload

        error_type, message = payload
        if error_type == "UnknownActionError":
            raise UnknownActionError(message)
        raise AgentProcessError(f"{error_type}: {message}")

    async def initialize_agent_context(self) -> int:
        return await self._call("initialize_agent_context")

    async def update_agent_context(self, enable: bool, session_context: SessionContext) -> None:
        await self._call("update_agent_context", enable, session_context.agent_context)

    async def execute_action(self, action: AppAction, action_context: ActionContext) -> ActionResult:
        return await self._call("execute_action", action, action_context.agent_context)

    async def execute_command(
        self, command: Sequence[str], action_context: ActionContext
    ) -> Optional[ActionResult]:
        return await self._call("execute_command", list(command), action_context.agent_context)

    def close(self) -> None:
        """Stop the child process."""
        if self._process.is_alive():
            try:
                self._conn.send((_SHUTDOWN, ()))
            except OSError as e:
                logger.debug(f"Agent process pipe already closed: {e}")
            self._process.join(timeout=5)
        self._conn.close()


def create_agent_process_shim(handlers_module: str) -> AgentProcessShim:
    return AgentProcessShim(handlers_module)
