"""Tests for the run-to-completion command runner."""

from __future__ import annotations

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from claudewrap.errors import ClaudeWrapError, ExecutableNotFoundError, ProcessFailedError
from claudewrap.runner import CommandResult, execute_command


class _Pipe:
    """Returns its chunks in order, then EOF; or blocks forever if *held*."""

    def __init__(self, *chunks: bytes, held: bool = False) -> None:
        self._chunks = list(chunks)
        self._held = held

    async def read(self, n: int = -1) -> bytes:
        if self._chunks:
            return self._chunks.pop(0)
        if self._held:
            await asyncio.Event().wait()
        return b""


def _make_proc(
    stdout: bytes = b"",
    stderr: bytes = b"",
    returncode: int | None = 0,
) -> MagicMock:
    proc = MagicMock()
    proc.pid = 4242
    proc.stdout = _Pipe(stdout) if stdout else _Pipe()
    proc.stderr = _Pipe(stderr) if stderr else _Pipe()
    proc.returncode = returncode
    proc.wait = AsyncMock(return_value=returncode)
    return proc


class TestExecuteCommand:
    async def test_captures_output(self) -> None:
        proc = _make_proc(b'{"ok": true}', b"warn", 0)
        with patch("asyncio.create_subprocess_exec", return_value=proc) as spawn:
            result = await execute_command(["claude", "--version"], cwd="/tmp")

        assert result == CommandResult('{"ok": true}', "warn", 0)
        args, kwargs = spawn.call_args
        assert args == ("claude", "--version")
        assert kwargs["cwd"] == "/tmp"
        assert kwargs["stdin"] == asyncio.subprocess.DEVNULL
        assert kwargs["start_new_session"] is True
        assert kwargs["env"]["CI"] == "true"

    async def test_non_zero_exit_is_returned(self) -> None:
        proc = _make_proc(b"", b"API Error", 1)
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            result = await execute_command(["claude"])
        assert result.exit_code == 1
        assert result.stderr == "API Error"

    async def test_api_key_injected(self) -> None:
        proc = _make_proc()
        with patch("asyncio.create_subprocess_exec", return_value=proc) as spawn:
            await execute_command(["claude"], api_key="sk-abc")
        assert spawn.call_args.kwargs["env"]["ANTHROPIC_API_KEY"] == "sk-abc"

    async def test_invalid_utf8_replaced(self) -> None:
        proc = _make_proc(b"ok \xff")
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            result = await execute_command(["claude"])
        assert result.stdout == "ok \ufffd"

    async def test_output_read_in_chunks(self) -> None:
        proc = _make_proc()
        proc.stdout = _Pipe(b'{"result": ', b'"hi"}')
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            result = await execute_command(["claude"])
        assert result.stdout == '{"result": "hi"}'

    async def test_missing_executable(self) -> None:
        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError()):
            with pytest.raises(ExecutableNotFoundError, match="nope"):
                await execute_command(["nope"])

    async def test_spawn_error(self) -> None:
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(ClaudeWrapError, match="denied"):
                await execute_command(["claude"])


class TestLingeringOutput:
    async def test_returns_when_exited_despite_open_pipe(self) -> None:
        proc = _make_proc(returncode=0)
        proc.stdout = _Pipe(b'{"result": "ok"}', held=True)
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with patch("claudewrap.helpers.DRAIN_TIMEOUT", 0.05):
                result = await asyncio.wait_for(execute_command(["claude"]), timeout=2.0)

        assert result == CommandResult('{"result": "ok"}', "", 0)

    async def test_timeout_kills_process_group(self) -> None:
        proc = _make_proc(returncode=None)
        proc.stdout = _Pipe(held=True)
        proc.stderr = _Pipe(held=True)

        async def _hang() -> int:
            await asyncio.Event().wait()
            return -9

        proc.wait = _hang

        def _kill(target: MagicMock, sig: int) -> None:
            target.returncode = -9

        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with patch(
                "claudewrap.runner.signal_process_group", side_effect=_kill
            ) as killer:
                with pytest.raises(ProcessFailedError, match="timed out") as excinfo:
                    await asyncio.wait_for(
                        execute_command(["claude"], timeout=0.01), timeout=2.0
                    )

        killer.assert_called_once_with(proc, signal.SIGKILL)
        assert excinfo.value.exit_code == -9
