"""Completion back-ends used to answer queries from retrieved context.

Usage:
    from codebase_rag.completion import CompletionProvider, OllamaProvider

    provider = OllamaProvider(base_url="http://localhost:11434")
    result = await provider.complete(prompt, system_prompt, model)
"""
from .base import CompletionProvider, CompletionResult
from .ollama import OllamaProvider

__all__ = [
    "CompletionProvider",
    "CompletionResult",
    "OllamaProvider",
]
