"""Scorer backend adapters."""

from .chat_completions_adapter import ChatCompletionsScorerAdapter
from .response_models import ScorerResponse

__all__ = ["ChatCompletionsScorerAdapter", "ScorerResponse"]
