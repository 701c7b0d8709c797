"""Upstream executors."""

from .base import ProviderExecutor
from .gemini_executor import GeminiExecutor, PreparedCall, resolve_model

__all__ = ["ProviderExecutor", "GeminiExecutor", "PreparedCall", "resolve_model"]
