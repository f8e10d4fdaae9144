"""Tests for the command-line surface."""
import io

from rich.console import Console
from typer.testing import CliRunner

from cortex.cli.app import StreamPrinter, app
from cortex.conversation import GroundingSource, Message, Role

runner = CliRunner()


class TestCommands:
    """Tests for CLI commands."""

    def test_models_lists_catalog(self):
        result = runner.invoke(app, ["models"])

        assert result.exit_code == 0
        for model_id in ("flash", "reasoning", "research"):
            assert model_id in result.output

    def test_sessions_empty(self, monkeypatch):
        monkeypatch.setenv("CORTEX_STORAGE", "memory")

        result = runner.invoke(app, ["sessions"])

        assert result.exit_code == 0
        assert "No saved conversations" in result.output

    def test_chat_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("CORTEX_STORAGE", "memory")

        result = runner.invoke(app, ["chat"])

        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output


class TestStreamPrinter:
    """Tests for incremental printing."""

    def test_prints_only_new_text(self):
        buffer = io.StringIO()
        printer = StreamPrinter(Console(file=buffer, width=120))
        message = Message(role=Role.ASSISTANT, is_streaming=True, model_used="flash")

        printer(message)
        message.update_stream("Hel", [])
        printer(message)
        message.update_stream("Hello", [GroundingSource(title="A", uri="https://a")])
        printer(message)
        message.finish(latency=1500)
        printer(message)

        output = buffer.getvalue()
        assert output.count("Cortex:") == 1
        assert "Hello" in output
        assert "https://a" in output
        assert "1.5s" in output

    def test_user_messages_ignored(self):
        buffer = io.StringIO()
        printer = StreamPrinter(Console(file=buffer))

        printer(Message(role=Role.USER, content="hi"))

        assert buffer.getvalue() == ""
