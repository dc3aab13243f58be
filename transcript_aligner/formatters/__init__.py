"""Output formatter registry.

WHY: The CLI needs a single lookup to find a formatter by name; adding a
format means creating the class, importing it here and adding one line.

RULES:
- Keys are snake_case identifiers
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from transcript_aligner.formatters.chunk_manifest import ChunkManifestFormatter
from transcript_aligner.formatters.text_manifest import TextManifestFormatter

if TYPE_CHECKING:
    from transcript_aligner.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "chunk_manifest": ChunkManifestFormatter,
    "text_manifest": TextManifestFormatter,
}
