"""Tests for the chat-sync command line."""

import json
from unittest.mock import patch

import pytest
import yaml

from chat_sync.cli import build_parser, main
from chat_sync.exceptions import EndpointUnreachableError
from chat_sync.state import SyncState
from chat_sync.storage import SqliteKeyValueStore

from conftest import ScriptedClient


def _load_state(db):
    store = SqliteKeyValueStore(db)
    state = SyncState.load(store)
    return store, state


@pytest.fixture
def scripted():
    client = ScriptedClient()
    with patch("chat_sync.delivery.SyncClient", return_value=client):
        yield client


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_defaults(self):
        args = build_parser().parse_args(["status"])
        assert args.db == "data/chat_sync.db"
        assert args.verbose is False


class TestCommands:
    """Tests for the chat-sync subcommands."""

    def test_config_set_and_show(self, temp_db, capsys):
        """Settings set from the command line are persisted and printed."""
        assert main(["--db", str(temp_db), "config", "set", "maxBufferSize=2", "dedup_enabled=off"]) == 0
        shown = yaml.safe_load(capsys.readouterr().out)
        assert shown["maxBufferSize"] == 2
        assert shown["dedupEnabled"] is False

        store, state = _load_state(temp_db)
        assert state.settings.max_buffer_size == 2
        store.close()

    def test_config_lowering_buffer_size_trims_queue(self, temp_db):
        """A smaller maxBufferSize drops the oldest queued payloads."""
        store, state = _load_state(temp_db)
        for n in range(4):
            state.queue.push({"type": "message", "userMessage": f"u{n}"})
        store.close()

        assert main(["--db", str(temp_db), "config", "set", "maxBufferSize=1"]) == 0

        store, state = _load_state(temp_db)
        assert [item["userMessage"] for item in state.queue] == ["u3"]
        store.close()

    def test_config_set_rejects_unknown_key(self, temp_db):
        with pytest.raises(SystemExit):
            main(["--db", str(temp_db), "config", "set", "colour=blue"])

    def test_status(self, temp_db, capsys):
        assert main(["--db", str(temp_db), "status"]) == 0
        status = yaml.safe_load(capsys.readouterr().out)
        assert status["queued"] == 0
        assert status["enabled"] is True

    def test_flush(self, temp_db, scripted, capsys):
        """Flush sends queued payloads and closes its HTTP client."""
        store, state = _load_state(temp_db)
        state.queue.push({"type": "message", "userMessage": "queued"})
        store.close()

        assert main(["--db", str(temp_db), "flush"]) == 0
        assert "Flushed 1, 0 still queued" in capsys.readouterr().out
        assert scripted.sent == [{"type": "message", "userMessage": "queued"}]
        assert scripted.closed is True

    def test_flush_offline_exit_code(self, temp_db, scripted):
        """A flush that leaves payloads queued exits non-zero."""
        store, state = _load_state(temp_db)
        state.queue.push({"type": "message"})
        store.close()
        scripted.go_offline()

        assert main(["--db", str(temp_db), "flush"]) == 1

    def test_connection_test(self, temp_db, scripted, capsys):
        assert main(["--db", str(temp_db), "test"]) == 0
        assert "Connection OK" in capsys.readouterr().out

        scripted.default = EndpointUnreachableError("Cannot connect to http://localhost:4000/st-sync")
        assert main(["--db", str(temp_db), "test"]) == 1

    def test_export(self, temp_db, tmp_path):
        store, state = _load_state(temp_db)
        state.queue.push({"type": "message", "userMessage": "queued"})
        store.close()

        output = tmp_path / "queue.json"
        assert main(["--db", str(temp_db), "export", str(output)]) == 0
        assert json.loads(output.read_text())["count"] == 1

    def test_replay(self, temp_db, tmp_path, scripted, capsys):
        """Replay syncs each turn and then the whole transcript."""
        transcript = tmp_path / "chat.yaml"
        transcript.write_text(
            yaml.safe_dump(
                {
                    "character": "Aria",
                    "chatId": "chat-x",
                    "messages": [
                        {"role": "user", "text": "hi"},
                        {"role": "assistant", "text": "hello"},
                    ],
                }
            ),
            encoding="utf-8",
        )

        assert main(["--db", str(temp_db), "replay", str(transcript)]) == 0
        assert [body["type"] for body in scripted.sent] == ["message", "full_conversation"]
        assert "Replayed 1 turns" in capsys.readouterr().out
