"""Tests for the JSONL log parser and prompt classifier."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from factories import NOW, SONNET, assistant_line, tool_result_line, ts, user_line, write_jsonl
from result import Err, Ok

from ccu.data.parser import (
    iter_prompt_timestamps,
    parse_files,
    parse_line,
    parse_timestamp,
    parse_usage_file,
    parse_user_prompt_timestamp,
)
from ccu.models.entries import Parsed, Skip

DEEP_LINE = "[" * 200_000 + "]" * 200_000


class TestParseLine:
    def test_assistant_turn(self) -> None:
        line = json.dumps(assistant_line(NOW, usage=(10, 20, 30, 40)))
        outcome = parse_line(line)
        assert isinstance(outcome, Parsed)
        entry = outcome.entry
        assert entry.model == SONNET
        assert entry.tokens.input_tokens == 10
        assert entry.tokens.output_tokens == 20
        assert entry.tokens.cache_read_input_tokens == 30
        assert entry.tokens.cache_creation_input_tokens == 40
        assert entry.timestamp == ts(NOW)
        assert entry.session_id == "session-aaaaaaaa-0001"
        assert entry.cwd == "/home/dev/src/widget"

    def test_skips_blank_and_invalid_json(self) -> None:
        assert parse_line("", "/keep") == Skip("/keep")
        assert parse_line("   \n", "/keep") == Skip("/keep")
        assert parse_line("{not json", "/keep") == Skip("/keep")
        assert parse_line("[1, 2, 3]", "/keep") == Skip("/keep")

    def test_skips_non_assistant_but_carries_cwd(self) -> None:
        line = json.dumps(user_line(NOW, cwd="/new/dir"))
        assert parse_line(line, "/old") == Skip("/new/dir")

    def test_skips_assistant_without_model_or_usage(self) -> None:
        no_usage = assistant_line(NOW)
        del no_usage["message"]["usage"]  # type: ignore[attr-defined]
        no_model = assistant_line(NOW)
        del no_model["message"]["model"]  # type: ignore[attr-defined]
        no_message = {"type": "assistant", "timestamp": ts(NOW)}

        assert isinstance(parse_line(json.dumps(no_usage)), Skip)
        assert isinstance(parse_line(json.dumps(no_model)), Skip)
        assert isinstance(parse_line(json.dumps(no_message)), Skip)

    def test_inherits_last_cwd_when_missing(self) -> None:
        line = json.dumps(assistant_line(NOW, cwd=None))
        outcome = parse_line(line, "/from/earlier")
        assert isinstance(outcome, Parsed)
        assert outcome.entry.cwd == "/from/earlier"
        assert outcome.cwd == "/from/earlier"

    def test_malformed_counters_become_zero(self) -> None:
        raw = assistant_line(NOW)
        raw["message"]["usage"] = {  # type: ignore[index]
            "input_tokens": "12",
            "output_tokens": -5,
            "cache_read_input_tokens": {"bad": 1},
            "cache_creation_input_tokens": 7.9,
        }
        outcome = parse_line(json.dumps(raw))
        assert isinstance(outcome, Parsed)
        tokens = outcome.entry.tokens
        assert tokens.input_tokens == 12
        assert tokens.output_tokens == 0
        assert tokens.cache_read_input_tokens == 0
        assert tokens.cache_creation_input_tokens == 7

    def test_deeply_nested_line_is_skipped(self) -> None:
        assert parse_line(DEEP_LINE, "/keep") == Skip("/keep")

    def test_missing_timestamp_and_session(self) -> None:
        raw = assistant_line(NOW)
        del raw["timestamp"]
        raw["sessionId"] = 42
        outcome = parse_line(json.dumps(raw))
        assert isinstance(outcome, Parsed)
        assert outcome.entry.timestamp == ""
        assert outcome.entry.session_id == ""


class TestParseUsageFile:
    def test_parses_assistant_turns_only(self, tmp_path: Path) -> None:
        path = write_jsonl(
            tmp_path / "s.jsonl",
            [
                user_line(NOW),
                assistant_line(NOW, usage=(1, 2, 0, 0)),
                tool_result_line(NOW),
                assistant_line(NOW, usage=(3, 4, 0, 0)),
            ],
        )
        result = parse_usage_file(path)
        assert isinstance(result, Ok)
        assert [e.tokens.input_tokens for e in result.ok_value] == [1, 3]

    def test_junk_file_yields_empty_list(self, tmp_path: Path) -> None:
        path = write_jsonl(
            tmp_path / "junk.jsonl",
            [
                "",
                "garbage {",
                '"just a string"',
                user_line(NOW),
                {"type": "summary", "summary": "Fixed bug"},
            ],
        )
        result = parse_usage_file(path)
        assert isinstance(result, Ok)
        assert result.ok_value == []

    def test_sticky_cwd_is_reset_per_file(self, tmp_path: Path) -> None:
        first = write_jsonl(
            tmp_path / "a.jsonl",
            [user_line(NOW, cwd="/projects/alpha"), assistant_line(NOW, cwd=None)],
        )
        second = write_jsonl(tmp_path / "b.jsonl", [assistant_line(NOW, cwd=None)])

        entries = parse_files([first, second])
        assert [e.cwd for e in entries] == ["/projects/alpha", ""]

    def test_cwd_follows_most_recent_entry(self, tmp_path: Path) -> None:
        path = write_jsonl(
            tmp_path / "s.jsonl",
            [
                user_line(NOW, cwd="/one"),
                assistant_line(NOW, cwd=None),
                {"type": "system", "cwd": "/two"},
                assistant_line(NOW, cwd=None),
                assistant_line(NOW, cwd="/three"),
            ],
        )
        result = parse_usage_file(path)
        assert isinstance(result, Ok)
        assert [e.cwd for e in result.ok_value] == ["/one", "/two", "/three"]

    def test_deeply_nested_line_does_not_fail_file(self, tmp_path: Path) -> None:
        path = write_jsonl(tmp_path / "deep.jsonl", [DEEP_LINE, assistant_line(NOW)])
        result = parse_usage_file(path)
        assert isinstance(result, Ok)
        assert len(result.ok_value) == 1

    def test_missing_file_is_err(self, tmp_path: Path) -> None:
        result = parse_usage_file(tmp_path / "missing.jsonl")
        assert isinstance(result, Err)
        assert "missing.jsonl" in result.err_value

    def test_parse_files_skips_unreadable(self, tmp_path: Path) -> None:
        good = write_jsonl(tmp_path / "good.jsonl", [assistant_line(NOW, usage=(5, 0, 0, 0))])
        entries = parse_files([tmp_path / "gone.jsonl", good])
        assert len(entries) == 1
        assert entries[0].tokens.input_tokens == 5

    def test_undecodable_bytes_do_not_abort(self, tmp_path: Path) -> None:
        path = tmp_path / "bytes.jsonl"
        payload = b"\xff\xfe broken\n" + json.dumps(assistant_line(NOW)).encode() + b"\n"
        path.write_bytes(payload)
        result = parse_usage_file(path)
        assert isinstance(result, Ok)
        assert len(result.ok_value) == 1


class TestPromptClassifier:
    def test_plain_text_prompt(self) -> None:
        line = json.dumps(user_line(NOW, "hello"))
        assert parse_user_prompt_timestamp(line) == ts(NOW)

    def test_text_block_prompt(self) -> None:
        content = [{"type": "text", "text": "hi"}, {"type": "image", "source": {}}]
        assert parse_user_prompt_timestamp(json.dumps(user_line(NOW, content))) == ts(NOW)

    def test_tool_result_only_is_not_a_prompt(self) -> None:
        assert parse_user_prompt_timestamp(json.dumps(tool_result_line(NOW))) is None

    def test_mixed_tool_result_and_text_counts(self) -> None:
        content = [
            {"type": "tool_result", "tool_use_id": "t", "content": "ok"},
            {"type": "text", "text": "now do this"},
        ]
        assert parse_user_prompt_timestamp(json.dumps(user_line(NOW, content))) == ts(NOW)

    def test_non_user_and_malformed(self) -> None:
        assert parse_user_prompt_timestamp(json.dumps(assistant_line(NOW))) is None
        assert parse_user_prompt_timestamp("{oops") is None
        assert parse_user_prompt_timestamp(json.dumps({"type": "user"})) is None
        assert parse_user_prompt_timestamp(json.dumps(user_line(NOW, {"text": "x"}))) is None
        assert parse_user_prompt_timestamp(json.dumps(user_line(NOW, []))) is None

    def test_deeply_nested_line(self) -> None:
        assert parse_user_prompt_timestamp(DEEP_LINE) is None

    def test_missing_timestamp(self) -> None:
        raw = user_line(NOW)
        del raw["timestamp"]
        assert parse_user_prompt_timestamp(json.dumps(raw)) is None

    def test_iter_prompt_timestamps_skips_bad_files(self, tmp_path: Path) -> None:
        earlier = NOW - timedelta(hours=1)
        path = write_jsonl(
            tmp_path / "s.jsonl",
            [user_line(earlier), tool_result_line(NOW), user_line(NOW), "bad"],
        )
        stamps = list(iter_prompt_timestamps([tmp_path / "missing.jsonl", path]))
        assert stamps == [earlier.replace(microsecond=0), NOW]


class TestParseTimestamp:
    def test_z_suffix(self) -> None:
        assert parse_timestamp("2026-03-11T12:00:00.000Z") == NOW

    def test_offset_is_normalized_to_utc(self) -> None:
        parsed = parse_timestamp("2026-03-11T14:00:00+02:00")
        assert parsed == NOW
        assert parsed is not None and parsed.tzinfo == UTC

    def test_lowercase_separators(self) -> None:
        assert parse_timestamp("2026-03-11t12:00:00z") == datetime(2026, 3, 11, 12, tzinfo=UTC)

    @pytest.mark.parametrize(
        "value",
        ["2026-03-11", "20260311T120000Z", "2026-03-11T12:00:00", "2026-03-11 12:00:00Z"],
    )
    def test_rejects_non_rfc3339(self, value: str) -> None:
        assert parse_timestamp(value) is None

    def test_invalid(self) -> None:
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None
