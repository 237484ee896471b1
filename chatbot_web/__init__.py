"""Chat gateway in front of a hosted LLM completion API, plus its client."""

__version__ = "0.1.0"
