"""Codebase RAG backend.

Indexes a project directory into overlapping text chunks, keeps a token
inverted index over them, and answers keyword queries with ranked context
that is handed to a completion model.
"""
