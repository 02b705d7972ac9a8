"""AI chatroom backend core: one request/response contract over many LLM providers."""

__version__ = "1.0.0"
