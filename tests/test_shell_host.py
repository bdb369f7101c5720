"""
Shell host: bounded surface attach, exit redelivery and stop
"""
import asyncio
import threading

import pytest

from sshbench.core.exceptions import ShellStartError, SurfaceNotReadyError
from sshbench.domain.session.models import SessionRecord
from sshbench.domain.terminal import ShellCommandBuilder, ShellHost, TerminalSettings

from conftest import CountingSurface, FakePopen, wait_until


def make_host(popen, which=lambda name: f"/usr/bin/{name}", **kwargs) -> ShellHost:
    builder = ShellCommandBuilder(TerminalSettings(), which=which)
    return ShellHost(builder=builder, popen=popen, stop_timeout=0.1, **kwargs)


@pytest.mark.asyncio
async def test_surface_never_ready_fails_after_bounded_attempts(session, popen):
    host = make_host(popen)
    surface = CountingSurface(ready_on=None)

    with pytest.raises(SurfaceNotReadyError):
        await host.start(session, surface)

    # one initial attempt plus five reschedules
    assert surface.calls == 6
    assert host.attempts == 6
    assert popen.processes == []
    assert not host.is_attaching


@pytest.mark.asyncio
async def test_surface_ready_on_last_allowed_attempt(session, popen):
    host = make_host(popen)
    surface = CountingSurface(ready_on=6)

    pid = await host.start(session, surface)

    assert surface.calls == 6
    assert pid == popen.last.pid
    assert host.is_running


@pytest.mark.asyncio
async def test_attaches_immediately_when_surface_ready(session, popen):
    host = make_host(popen)
    surface = CountingSurface(ready_on=1, identifier="77")

    await host.start(session, surface)

    assert surface.calls == 1
    argv = popen.last.argv
    assert argv[:3] == ["xterm", "-into", "77"]
    assert argv[-1] == "u@h"


@pytest.mark.asyncio
async def test_password_session_passes_password_through_environment(session, popen):
    host = make_host(popen)
    await host.start(session, CountingSurface())

    process = popen.last
    assert "/usr/bin/sshpass" in process.argv
    assert "p" not in process.argv
    assert process.env["SSHPASS"] == "p"


@pytest.mark.asyncio
async def test_missing_password_helper_warns_and_still_starts(session, popen):
    warnings = []
    host = make_host(popen, which=lambda name: None, on_warning=warnings.append)

    await host.start(session, CountingSurface())

    assert len(warnings) == 1
    assert "sshpass" in warnings[0]
    assert "sshpass" not in " ".join(popen.last.argv)


@pytest.mark.asyncio
async def test_spawn_failure_is_reported_as_shell_start_error(session):
    host = make_host(FakePopen(error=FileNotFoundError("xterm")))

    with pytest.raises(ShellStartError):
        await host.start(session, CountingSurface())


@pytest.mark.asyncio
async def test_exit_is_delivered_on_the_event_loop_thread(session, popen):
    exits = []
    host = make_host(popen, on_exit=lambda code: exits.append((code, threading.current_thread())))
    await host.start(session, CountingSurface())

    popen.last.finish(3)
    await wait_until(lambda: exits)

    code, thread = exits[0]
    assert code == 3
    assert thread is threading.main_thread()
    assert not host.is_running
    assert host.pid is None


@pytest.mark.asyncio
async def test_stop_suppresses_exit_notification(session, popen):
    exits = []
    host = make_host(popen, on_exit=exits.append)
    await host.start(session, CountingSurface())
    process = popen.last

    host.stop()
    await asyncio.sleep(0.05)

    assert process.terminated
    assert exits == []


@pytest.mark.asyncio
async def test_stop_kills_a_process_that_ignores_terminate(session):
    popen = FakePopen(ignore_term=True)
    host = make_host(popen)
    await host.start(session, CountingSurface())

    host.stop()

    assert popen.last.terminated
    assert popen.last.killed


@pytest.mark.asyncio
async def test_stop_is_idempotent_and_tolerates_exited_process(session, popen):
    host = make_host(popen)
    host.stop()

    await host.start(session, CountingSurface())
    popen.last.finish(0)
    host.stop()
    host.stop()

    assert not popen.last.terminated


@pytest.mark.asyncio
async def test_stop_cancels_pending_attach(session, popen):
    host = make_host(popen, retry_delay=0.05)
    surface = CountingSurface(ready_on=None)

    attach = host.start(session, surface)
    host.stop()

    assert attach.cancelled()
    await asyncio.sleep(0.1)
    assert surface.calls == 0
    assert popen.processes == []


@pytest.mark.asyncio
async def test_editor_opens_untracked_terminal(popen):
    host = make_host(popen)
    keyed = SessionRecord(name="k", host="h", username="u", port=2222, private_key_path="/keys/id")

    pid = host.open_editor(keyed, "/home/u/my notes.txt")

    argv = popen.last.argv
    assert pid == popen.last.pid
    assert "-into" not in argv
    assert argv[-2:] == ["nano", "'/home/u/my notes.txt'"]
    assert ["-p", "2222"] == argv[argv.index("-p"):argv.index("-p") + 2]
    assert not host.is_running
