"""Tests for ClaudeClient argument building, chat parsing, and retry."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from claudewrap.args import build_chat_args, build_stream_args, default_args
from claudewrap.client import ClaudeClient, build_response, is_auth_failure
from claudewrap.config.models import ClientConfig, OAuthCredentials
from claudewrap.errors import ProcessFailedError
from claudewrap.models import ClaudeResponse, PromptRequest, ResultMessage
from claudewrap.runner import CommandResult
from claudewrap.session import Session

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _make_config(**overrides: Any) -> ClientConfig:
    return ClientConfig(working_directory=Path.cwd(), **overrides)


def _payload(**fields: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "type": "result",
        "subtype": "success",
        "is_error": False,
        "result": "Hello!",
        "session_id": "sess-1",
    }
    base.update(fields)
    return base


def _ok(payload: Any = None) -> CommandResult:
    return CommandResult(json.dumps(payload or _payload()), "", 0)


def _auth_failure() -> CommandResult:
    payload = _payload(
        subtype="error_during_execution",
        is_error=True,
        result="Invalid bearer token",
    )
    return CommandResult(json.dumps(payload), "", 1)


# ------------------------------------------------------------------ #
# Arguments
# ------------------------------------------------------------------ #


class TestArgs:
    def test_minimal_chat_args(self) -> None:
        args = build_chat_args(_make_config(), PromptRequest(prompt="hi"))
        assert args == ["claude", "--output-format", "json", "--print", "hi"]

    def test_full_chat_args(self) -> None:
        config = _make_config(
            executable_path="/opt/claude",
            model="claude-sonnet-4-5",
            skip_permissions=True,
        )
        request = PromptRequest(
            prompt="hi",
            system_prompt="be brief",
            append_system_prompt="and kind",
        )
        args = build_chat_args(config, request, session_id="sess-1")
        assert args == [
            "/opt/claude",
            "--output-format", "json",
            "--model", "claude-sonnet-4-5",
            "--dangerously-skip-permissions",
            "--print", "hi",
            "--system-prompt", "be brief",
            "--append-system-prompt", "and kind",
            "--resume", "sess-1",
        ]

    def test_stream_args_use_stream_json_and_verbose(self) -> None:
        args = build_stream_args(_make_config(), PromptRequest(prompt="hi"))
        assert args[:4] == ["claude", "--output-format", "stream-json", "--verbose"]
        assert args[-2:] == ["--print", "hi"]

    def test_default_args_without_options(self) -> None:
        assert default_args(_make_config()) == ["--output-format", "json"]


# ------------------------------------------------------------------ #
# Response parsing
# ------------------------------------------------------------------ #


class TestBuildResponse:
    def test_success_object(self) -> None:
        response = build_response(_ok())
        assert response.success
        assert response.exit_code == 0
        assert response.message is not None
        assert response.message.result == "Hello!"
        assert response.message.session_id == "sess-1"
        assert response.error is None

    def test_array_uses_last_element(self) -> None:
        stdout = json.dumps([
            {"type": "system", "subtype": "init"},
            _payload(result="last one"),
        ])
        response = build_response(CommandResult(stdout, "", 0))
        assert response.message is not None
        assert response.message.result == "last one"

    def test_unknown_fields_are_kept(self) -> None:
        response = build_response(_ok(_payload(usage={"input_tokens": 3})))
        assert response.message is not None
        assert response.message.model_extra == {"usage": {"input_tokens": 3}}

    def test_unparseable_stdout_is_not_failure(self) -> None:
        response = build_response(CommandResult("not json", "", 0))
        assert response.success
        assert response.message is None
        assert response.stdout == "not json"

    def test_empty_stdout(self) -> None:
        response = build_response(CommandResult("", "", 0))
        assert response.success
        assert response.message is None

    def test_wrong_field_types_yield_no_message(self) -> None:
        response = build_response(CommandResult('{"is_error": "maybe?"}', "", 0))
        assert response.message is None

    def test_non_zero_exit_goes_to_error(self) -> None:
        response = build_response(CommandResult(json.dumps(_payload()), "boom", 3))
        assert not response.success
        assert response.exit_code == 3
        assert response.message is None
        assert response.error is not None
        assert response.payload is response.error
        assert response.stderr == "boom"


class TestAuthFailureSignature:
    @pytest.mark.parametrize(
        "result",
        ["Invalid bearer token", "OAuth token has expired", "x OAuth y"],
    )
    def test_detected(self, result: str) -> None:
        assert is_auth_failure(ResultMessage(is_error=True, result=result))

    def test_requires_is_error(self) -> None:
        assert not is_auth_failure(ResultMessage(result="Invalid bearer token"))

    def test_other_errors_ignored(self) -> None:
        assert not is_auth_failure(ResultMessage(is_error=True, result="Rate limited"))

    def test_missing_message(self) -> None:
        assert not is_auth_failure(None)


# ------------------------------------------------------------------ #
# chat()
# ------------------------------------------------------------------ #


class TestChat:
    async def test_chat_runs_cli(self) -> None:
        client = ClaudeClient(_make_config(api_key="sk-x", timeout=30))
        with patch(
            "claudewrap.client.execute_command", AsyncMock(return_value=_ok())
        ) as execute:
            response = await client.chat("hi", session_id="sess-0")

        assert isinstance(response, ClaudeResponse)
        assert response.success
        command = execute.call_args.args[0]
        assert command[-2:] == ["--resume", "sess-0"]
        assert execute.call_args.kwargs["api_key"] == "sk-x"
        assert execute.call_args.kwargs["timeout"] == 30
        assert execute.call_args.kwargs["cwd"] == Path.cwd()

    async def test_auth_failure_retries_once_after_refresh(self) -> None:
        oauth = OAuthCredentials(access_token="a", refresh_token="r", expires_at=0)
        refresher = AsyncMock(return_value=True)
        client = ClaudeClient(_make_config(oauth=oauth), token_refresher=refresher)
        execute = AsyncMock(side_effect=[_auth_failure(), _ok()])

        with patch("claudewrap.client.execute_command", execute):
            response = await client.chat("hi")

        assert isinstance(response, ClaudeResponse)
        assert response.success
        assert execute.await_count == 2
        assert execute.call_args_list[0].args == execute.call_args_list[1].args
        refresher.assert_awaited_once_with(oauth)

    async def test_second_auth_failure_is_surfaced(self) -> None:
        refresher = AsyncMock(return_value=True)
        client = ClaudeClient(_make_config(), token_refresher=refresher)
        execute = AsyncMock(side_effect=[_auth_failure(), _auth_failure()])

        with patch("claudewrap.client.execute_command", execute):
            response = await client.chat("hi")

        assert isinstance(response, ClaudeResponse)
        assert not response.success
        assert execute.await_count == 2
        refresher.assert_awaited_once()

    async def test_failed_refresh_returns_original_response(self) -> None:
        refresher = AsyncMock(return_value=False)
        client = ClaudeClient(_make_config(), token_refresher=refresher)
        execute = AsyncMock(side_effect=[_auth_failure()])

        with patch("claudewrap.client.execute_command", execute):
            response = await client.chat("hi")

        assert isinstance(response, ClaudeResponse)
        assert response.error is not None
        assert response.error.result == "Invalid bearer token"
        assert execute.await_count == 1
        refresher.assert_awaited_once_with(None)

    async def test_other_failures_do_not_refresh(self) -> None:
        refresher = AsyncMock(return_value=True)
        client = ClaudeClient(_make_config(), token_refresher=refresher)
        failure = CommandResult("", "API Error", 1)

        with patch("claudewrap.client.execute_command", AsyncMock(return_value=failure)):
            response = await client.chat("hi")

        assert isinstance(response, ClaudeResponse)
        assert not response.success
        assert response.stderr == "API Error"
        refresher.assert_not_awaited()

    async def test_stream_request_dispatches_to_stream(self) -> None:
        client = ClaudeClient(_make_config())
        sentinel = object()
        on_token = MagicMock()
        process = MagicMock()
        process.start = AsyncMock(return_value=sentinel)

        with patch("claudewrap.client.StreamProcess", return_value=process) as cls:
            result = await client.chat(
                PromptRequest(prompt="hi", stream=True, on_token=on_token),
                session_id="sess-2",
            )

        assert result is sentinel
        args = cls.call_args.args[1]
        assert "stream-json" in args
        assert args[-2:] == ["--resume", "sess-2"]
        process.start.assert_awaited_once_with({"token": on_token})


class TestStream:
    async def test_keyword_listeners_merged_with_request_hooks(self) -> None:
        client = ClaudeClient(_make_config())
        on_token = MagicMock()
        on_session = MagicMock()
        process = MagicMock()
        process.start = AsyncMock()

        with patch("claudewrap.client.StreamProcess", return_value=process):
            await client.stream(
                PromptRequest(prompt="hi", on_token=on_token),
                session=on_session,
            )

        process.start.assert_awaited_once_with(
            {"token": on_token, "session": on_session}
        )


# ------------------------------------------------------------------ #
# version / options / sessions
# ------------------------------------------------------------------ #


class TestVersion:
    async def test_version_strips_output(self) -> None:
        client = ClaudeClient(_make_config(executable_path="/bin/claude"))
        result = CommandResult("1.0.43 (Claude Code)\n", "", 0)
        with patch(
            "claudewrap.client.execute_command", AsyncMock(return_value=result)
        ) as execute:
            assert await client.version() == "1.0.43 (Claude Code)"
        assert execute.call_args.args[0] == ["/bin/claude", "--version"]

    async def test_version_failure_raises(self) -> None:
        client = ClaudeClient(_make_config())
        result = CommandResult("", "bad flag", 2)
        with patch("claudewrap.client.execute_command", AsyncMock(return_value=result)):
            with pytest.raises(ProcessFailedError) as excinfo:
                await client.version()
        assert excinfo.value.exit_code == 2
        assert excinfo.value.stderr == "bad flag"


class TestOptions:
    def test_default_config(self) -> None:
        client = ClaudeClient()
        assert client.options.executable_path == "claude"
        assert client.options.abort_timeout == 3.0

    def test_options_returns_copy(self) -> None:
        client = ClaudeClient(_make_config(model="a"))
        assert client.options == client.options
        assert client.options is not client.options

    def test_set_options_merges(self) -> None:
        client = ClaudeClient(_make_config(model="a", verbose=True))
        updated = client.set_options(model="b")
        assert updated.model == "b"
        assert updated.verbose is True
        assert client.options.model == "b"

    def test_invalid_options_keep_previous(self) -> None:
        client = ClaudeClient(_make_config(model="a"))
        with pytest.raises(ValidationError):
            client.set_options(abort_timeout=-1)
        with pytest.raises(ValidationError):
            client.set_options(no_such_option=True)
        assert client.options.model == "a"
        assert client.options.abort_timeout == 3.0

    def test_new_session(self) -> None:
        client = ClaudeClient(_make_config())
        session = client.new_session()
        assert isinstance(session, Session)
        assert session.client is client
        assert session.session_ids == []
