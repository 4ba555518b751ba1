"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- Text extraction from plain text, PDF and DOCX files
- Document chunking with overlap
- Embedding generation
- In-memory chunk storage
- Similarity ranking and retrieval
- Grounded answer synthesis
"""
