"""Task RAG - retrieval-augmented answers over active and completed tasks.

This package embeds a user query, retrieves the most relevant task records
from a vector index, renders them into a bounded context block and asks a
completion provider for a grounded answer.
"""

__version__ = "0.1.0"
