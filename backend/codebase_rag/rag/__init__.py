"""RAG (Retrieval-Augmented Generation) module for codebase search.

Provides path-confined directory indexing, fixed-window text chunking,
a token inverted index with lexical-overlap retrieval, prompt context
assembly and JSON snapshot persistence.
"""
