"""Unit tests for the command line interface."""

import json

import pytest
from unittest.mock import patch

from llm_stream_normalizer.cli import event_to_json, format_event, list_sessions, main, replay
from llm_stream_normalizer.models.events import ProviderEvent, TokenUsage
from llm_stream_normalizer.streaming.markers import TOOL_BEGIN, TOOL_END
from tests.helpers.streaming_mocks import openai_chunk, openai_usage_chunk


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "kimi.jsonl"
    chunks = [
        openai_chunk(f"Hello {TOOL_BEGIN}"),
        openai_chunk("functions.lookup:0 {}"),
        openai_chunk(f"{TOOL_END}world", finish_reason="stop"),
        openai_usage_chunk(120, 45, cost=0.0031),
    ]
    path.write_text("\n".join(json.dumps(c) for c in chunks) + "\n")
    return path


class TestFormatting:

    def test_format_content(self):
        assert format_event(ProviderEvent.content_delta("hi")) == "content_delta 'hi'"

    def test_format_finish_with_usage(self):
        line = format_event(ProviderEvent.finish("stop", usage=TokenUsage(1, 2, cost=0.5)))
        assert line.startswith("finish reason=stop")
        assert "completion_tokens=2" in line

    def test_format_error(self):
        line = format_event(ProviderEvent.error_event(ValueError("boom")))
        assert line == "error ValueError: boom retryable=False"

    def test_event_to_json_drops_empty_fields(self):
        data = json.loads(event_to_json(ProviderEvent.tool_call_start(0, "call_1", "search")))
        assert data == {"type": "tool_call_start", "tool_call_id": "call_1",
                        "tool_call_index": 0, "tool_name": "search"}


class TestReplayCommand:

    @pytest.mark.asyncio
    async def test_replay_prints_events(self, recording, capsys):
        exit_code = await replay("kimi", str(recording))
        out = capsys.readouterr().out

        assert exit_code == 0
        assert "content_delta 'Hello '" in out
        assert "content_delta 'world'" in out
        assert "tool_calls_section" not in out
        assert out.strip().splitlines()[-1].startswith("finish reason=stop")

    @pytest.mark.asyncio
    async def test_replay_persists_usage(self, recording, tmp_path, capsys):
        db = str(tmp_path / "sessions.db")
        assert await replay("kimi", str(recording), session_db=db, session_id="s1", as_json=True) == 0
        assert await replay("kimi", str(recording), session_db=db, session_id="s1", as_json=True) == 0

        lines = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
        assert lines[-1]["type"] == "finish"

        await list_sessions(db)
        out = capsys.readouterr().out
        assert "s1" in out
        assert "prompt_tokens=120 completion_tokens=45 cost=$0.006200" in out

    @pytest.mark.asyncio
    async def test_replay_malformed_recording(self, tmp_path, capsys):
        path = tmp_path / "broken.jsonl"
        path.write_text("{broken\n")
        assert await replay("openai", str(path)) == 1
        assert "MalformedChunkError" in capsys.readouterr().out


class TestMain:

    def test_replay_exit_code(self, recording):
        with patch("sys.argv", ["llm-stream", "replay", "kimi", str(recording)]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == 0

    def test_no_command_prints_help(self, capsys):
        with patch("sys.argv", ["llm-stream"]):
            main()
        assert "usage" in capsys.readouterr().out.lower()
