"""Provider factory functions for CLI.

Centralizes creation of the remote provider, session storage and logging
from environment variables. Hides configuration details from command
implementations.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from ..config import DEFAULT_MODEL_ID, LogLevel
from ..llm import LLMProvider, create_llm_provider
from ..sessions import KeyValueStorage, SessionStore, create_key_value_storage

# Default console for output
_console = Console()

DEFAULT_DB_PATH = "~/.cortex/sessions.db"


def configure_logging(level: str | None = None) -> None:
    """Route cortex logs through Rich.

    Environment variables:
        CORTEX_LOG_LEVEL: debug, info, warning or error (default: warning)
    """
    numeric = LogLevel.from_string(level or os.getenv("CORTEX_LOG_LEVEL", "warning"))
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def get_storage() -> KeyValueStorage:
    """Create session storage backend from environment variables.

    Environment variables:
        CORTEX_STORAGE: Backend type (memory, sqlite; default: sqlite)
        CORTEX_DB_PATH: SQLite file (default: ~/.cortex/sessions.db)
    """
    backend = os.getenv("CORTEX_STORAGE", "sqlite").lower()
    if backend == "sqlite":
        return create_key_value_storage("sqlite", path=os.getenv("CORTEX_DB_PATH", DEFAULT_DB_PATH))
    return create_key_value_storage(backend)


def get_session_store(storage: KeyValueStorage) -> SessionStore:
    return SessionStore(storage)


def get_model_id() -> str:
    """Initial model id from CORTEX_MODEL (default: flash)."""
    return os.getenv("CORTEX_MODEL", DEFAULT_MODEL_ID).lower()


def require_llm(console: Console | None = None) -> LLMProvider:
    """Create the Gemini provider, exiting if it is not configured.

    Raises:
        SystemExit: If GEMINI_API_KEY is not set

    Environment variables:
        GEMINI_API_KEY: Gemini API key (required)
    """
    import typer

    con = console or _console
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        con.print("[red]Error: GEMINI_API_KEY not set in environment[/red]")
        raise typer.Exit(code=1)
    return create_llm_provider("gemini", api_key=api_key)
