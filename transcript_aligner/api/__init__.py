"""External service client package: async HTTP interface to speech and language APIs.

WHY: Transcription, correction, lemmatization and synthesis are external
collaborators. This package encapsulates all of that communication so the
core stays free of I/O.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. OpenAIClient provides
one method per service; replies are parsed into the core IR.

RULES:
- All HTTP requests go through OpenAIClient; other modules only catch httpx errors
- Authentication is via Bearer token from config
"""

from transcript_aligner.api.client import LemmaResponseError, OpenAIAPIError, OpenAIClient

__all__ = ["OpenAIClient", "OpenAIAPIError", "LemmaResponseError"]
