"""Configuration constants.

Centralizes fixed strings and limits used by the conversation core.
"""


class LogLevel:
    """Log level constants with numeric values for comparison.

    Values match the standard logging module:
    DEBUG < INFO < WARNING < ERROR.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARNING",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the name for a log level."""
        return cls._names.get(level, "UNKNOWN")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns WARNING if invalid."""
        return cls._from_string.get(level_str.strip().lower(), cls.WARNING)


# Greeting shown at the top of every new conversation (never persisted alone)
WELCOME_MESSAGE_ID = "welcome"
WELCOME_MESSAGE_TEXT = "Hello, I'm Cortex. How can I help you today?"

# Outbound text used when the user submits attachments without any text
DEFAULT_ATTACHMENT_INSTRUCTION = "Analyze this attachment."

# User-safe text for failed turns; details go to the log only
GENERIC_ERROR_TEXT = "I encountered an issue. Please try again later."

# Session titles
SESSION_TITLE_MAX_LENGTH = 30
DEFAULT_SESSION_TITLE = "New Chat"

# Durable storage key holding the serialized session collection
SESSIONS_STORAGE_KEY = "cortex_sessions"

# Remote service configuration
SYSTEM_INSTRUCTION = (
    "You are Cortex, an advanced AI assistant. You are helpful, harmless, and honest. "
    "Use markdown for formatting, such as headers (##), lists, and bold text. "
    "If the user provides a document, analyze its content."
)
REASONING_THINKING_BUDGET = 16384  # Tokens reserved for the reasoning variant

DEFAULT_MODEL_ID = "flash"
