"""
Shell host: attaches an interactive ssh terminal to a display surface
"""
import asyncio
import os
import subprocess
import threading
from typing import Callable, Optional

from ...core.constants import DEFAULT_SURFACE_ATTEMPTS, DEFAULT_STOP_TIMEOUT
from ...core.exceptions import ShellStartError, SurfaceNotReadyError
from ...core.interfaces import SurfaceProvider
from ...core.logging import get_logger
from ..session.models import SessionRecord
from .command import ShellCommandBuilder, ShellInvocation

logger = get_logger(__name__)


class ShellHost:
    """
    Owns at most one terminal child process.

    Lifecycle:
    1. ``start`` schedules the first attach attempt on the event loop and
       returns a future that resolves to the child PID
    2. while the surface is not ready the attempt reschedules itself, up to
       ``max_attempts`` more times, then fails with SurfaceNotReadyError
    3. a watcher thread waits for the child; a self-initiated exit is
       redelivered to ``on_exit`` on the event loop
    4. ``stop`` cancels a pending attach and terminates the child

    Every public method must be called from the event loop thread.
    """

    def __init__(
        self,
        builder: Optional[ShellCommandBuilder] = None,
        on_exit: Optional[Callable[[int], None]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        max_attempts: int = DEFAULT_SURFACE_ATTEMPTS,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
        retry_delay: float = 0.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self.builder = builder or ShellCommandBuilder()
        self.on_exit = on_exit
        self.on_warning = on_warning
        self.max_attempts = max_attempts
        self.stop_timeout = stop_timeout
        self.retry_delay = retry_delay
        self._loop = loop
        self._popen = popen
        self._process: Optional[subprocess.Popen] = None
        self._attach: Optional[asyncio.Future] = None
        # Bumped on every start/stop so stale attempts and exits are ignored
        self._generation = 0
        self.attempts = 0

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def is_attaching(self) -> bool:
        return self._attach is not None and not self._attach.done()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    # ------------------------------------------------------------------
    # Attach
    # ------------------------------------------------------------------

    def start(self, session: SessionRecord, surface: SurfaceProvider) -> asyncio.Future:
        """
        Schedule attachment of a shell for ``session`` into ``surface``.

        Returns:
            Future resolving to the child PID, or failing with
            SurfaceNotReadyError / ShellStartError
        """
        self.stop()
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._generation += 1
        self.attempts = 0

        future = loop.create_future()
        self._attach = future
        loop.call_soon(self._attempt, session, surface, future, self._generation, 0)
        return future

    def _attempt(
        self,
        session: SessionRecord,
        surface: SurfaceProvider,
        future: asyncio.Future,
        generation: int,
        attempt: int,
    ) -> None:
        if future.done() or generation != self._generation:
            return
        self.attempts = attempt + 1

        try:
            ready = surface.ready()
        except Exception as e:
            logger.debug("Surface readiness check raised: %s", e)
            ready = False

        if not ready:
            if attempt < self.max_attempts:
                logger.debug(
                    "Surface for '%s' not ready (attempt %d), rescheduling",
                    session.name, attempt + 1,
                )
                if self.retry_delay > 0:
                    self._loop.call_later(
                        self.retry_delay, self._attempt, session, surface, future, generation, attempt + 1
                    )
                else:
                    self._loop.call_soon(self._attempt, session, surface, future, generation, attempt + 1)
                return
            self._attach = None
            future.set_exception(SurfaceNotReadyError(
                f"Terminal surface not ready after {attempt + 1} attempts"
            ))
            return

        try:
            pid = self._spawn(session, surface.identifier, generation)
        except ShellStartError as e:
            self._attach = None
            future.set_exception(e)
            return
        self._attach = None
        future.set_result(pid)

    def _launch(self, invocation: ShellInvocation) -> subprocess.Popen:
        for warning in invocation.warnings:
            logger.warning(warning)
            if self.on_warning:
                self.on_warning(warning)

        env = {**os.environ, **invocation.env} if invocation.env else None
        try:
            return self._popen(
                invocation.argv,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ShellStartError(f"Failed to start {invocation.argv[0]}: {e}") from e

    def _spawn(self, session: SessionRecord, surface_id: Optional[str], generation: int) -> int:
        invocation = self.builder.shell(session, surface_id)
        process = self._launch(invocation)
        self._process = process
        logger.info("Shell for '%s' started (pid %s)", session.name, process.pid)

        watcher = threading.Thread(
            target=self._watch,
            args=(process, generation, self._loop),
            daemon=True,
            name=f"ShellHost-Watcher-{process.pid}",
        )
        watcher.start()
        return process.pid

    # ------------------------------------------------------------------
    # Exit notification
    # ------------------------------------------------------------------

    def _watch(self, process: subprocess.Popen, generation: int, loop: asyncio.AbstractEventLoop) -> None:
        """Runs on the watcher thread; must not touch host state"""
        code = process.wait()
        try:
            loop.call_soon_threadsafe(self._deliver_exit, process, generation, code)
        except RuntimeError:
            logger.debug("Event loop closed before shell exit (%s) was delivered", code)

    def _deliver_exit(self, process: subprocess.Popen, generation: int, code: int) -> None:
        if generation != self._generation or self._process is not process:
            logger.debug("Ignoring exit of stopped shell (pid %s)", process.pid)
            return
        self._process = None
        logger.info("Shell (pid %s) exited with status %s", process.pid, code)
        if self.on_exit:
            self.on_exit(code)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Cancel a pending attach and terminate the child; idempotent"""
        self._generation += 1
        attach, self._attach = self._attach, None
        if attach is not None and not attach.done():
            attach.cancel()

        process, self._process = self._process, None
        if process is None or process.poll() is not None:
            return

        try:
            process.terminate()
            process.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Shell (pid %s) ignored SIGTERM, killing", process.pid)
            process.kill()
            process.wait()
        except ProcessLookupError:
            pass

    # ------------------------------------------------------------------
    # Editor
    # ------------------------------------------------------------------

    def open_editor(self, session: SessionRecord, remote_path: str) -> int:
        """
        Open ``remote_path`` in the remote editor in a separate terminal.

        The process is not tracked; closing it has no effect on the session.
        """
        process = self._launch(self.builder.editor(session, remote_path))
        logger.info("Editor for %s:%s started (pid %s)", session.name, remote_path, process.pid)
        return process.pid
