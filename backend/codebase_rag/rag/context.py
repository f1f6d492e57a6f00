"""Prompt context assembly for RAG queries.

Retrieved chunks are rendered as ``--- <filename> ---`` blocks, embedded in
a system prompt and sent with the user's question to the completion
provider.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from codebase_rag.completion import CompletionProvider

from .errors import NoRelevantContextError, NotIndexedError
from .inverted_index import InvertedIndex
from .models import Document
from .retriever import DEFAULT_TOP_K, RetrievedChunk, search

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "qwen2.5-coder:7b"

SYSTEM_PROMPT_TEMPLATE = """You are a helpful coding assistant with access to the user's codebase.
Use the following context from their files to answer questions accurately.
If the answer isn't in the context, say so but try to be helpful.

CODEBASE CONTEXT:
{context}"""


@dataclass
class SourceRef:
    """A chunk that was placed in the prompt."""

    file: str
    path: str
    relevance: str


@dataclass
class AnswerResult:
    """Generated answer plus the sources it was grounded on."""

    response: str
    model: str
    sources_used: List[SourceRef] = field(default_factory=list)
    total_indexed: int = 0


def build_context(results: Sequence[RetrievedChunk]) -> str:
    """Join retrieved chunks, in order, into one context block."""
    return "\n\n".join(f"--- {r.filename} ---\n{r.content}" for r in results)


def build_system_prompt(context: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(context=context)


def format_relevance(score: float) -> str:
    """Render a score as a whole percentage, rounding halves up."""
    return f"{math.floor(score * 100 + 0.5)}%"


class ContextAssembler:
    """Answers questions from retrieved codebase context.

    Args:
        provider:      Completion back-end; its errors propagate unchanged.
        default_model: Model used when the caller does not name one.
    """

    def __init__(self, provider: CompletionProvider, default_model: str = DEFAULT_MODEL) -> None:
        self._provider = provider
        self._default_model = default_model

    async def answer(
        self,
        documents: Sequence[Document],
        index: InvertedIndex,
        query: str,
        model: Optional[str] = None,
        top_k: int = DEFAULT_TOP_K,
    ) -> AnswerResult:
        """Retrieve context for *query* and generate an answer.

        Raises:
            NotIndexedError: If *documents* is empty.
            NoRelevantContextError: If retrieval returns nothing.
        """
        if not documents:
            raise NotIndexedError()

        results = search(documents, index, query, top_k)
        if not results:
            raise NoRelevantContextError()

        model = model or self._default_model
        system_prompt = build_system_prompt(build_context(results))
        logger.info(
            "[ContextAssembler] Answering with %d chunk(s) model=%s", len(results), model
        )

        completion = await self._provider.complete(
            prompt=query,
            system_prompt=system_prompt,
            model=model,
        )

        return AnswerResult(
            response=completion.content,
            model=model,
            sources_used=[
                SourceRef(file=r.filename, path=r.path, relevance=format_relevance(r.score))
                for r in results
            ],
            total_indexed=len(documents),
        )
