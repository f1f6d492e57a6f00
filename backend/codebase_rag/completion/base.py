"""CompletionProvider abstract interface for text generation back-ends.

The RAG context assembler depends only on this interface, so any model
server can answer queries as long as it can turn a prompt and a system
prompt into text.

Usage:
    from codebase_rag.completion import OllamaProvider

    provider = OllamaProvider(base_url="http://localhost:11434")
    result = await provider.complete(
        prompt="Where is auth handled?",
        system_prompt="You are a helpful coding assistant...",
        model="qwen2.5-coder:7b",
    )
    print(result.content)
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class CompletionResult:
    """Text returned by a completion back-end.

    Attributes:
        content: The generated text.
        model: The model that produced it.
    """
    content: str
    model: str = ""


class CompletionProvider(ABC):
    """Abstract base class for completion providers."""

    @abstractmethod
    async def complete(self, prompt: str, system_prompt: str, model: str) -> CompletionResult:
        """Generate text for *prompt* under *system_prompt*.

        Args:
            prompt: The user's question.
            system_prompt: Instructions plus any retrieved context.
            model: Back-end specific model identifier.

        Returns:
            CompletionResult: The generated text.

        Raises:
            Exception: On transport or back-end errors.  Callers do not retry.
        """

    async def aclose(self) -> None:
        """Release network resources.  No-op by default."""
