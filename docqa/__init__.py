"""DocQA - ask questions about a document, answered from its own text."""
