"""Chunk manifest formatter: temporal chunks plus their chunk transcripts.

WHY: The player and the storage layer consume one document per session:
the list of playable chunks, each carrying the rebased transcript it will
be shown and reconciled against. Producing it in one place keeps the
chunk metadata and the sliced transcripts consistent.

HOW: Pairs each chunk with its rebased slice via chunk_with_transcripts()
(create_chunks() plus get_chunk_transcript()), and serializes both with their
to_dict() methods. The document is validated against
schemas/chunk_manifest.schema.json before being returned.

RULES:
- Chunk entries use the camelCase session keys (startTime, previewText, ...)
- Every chunk carries a "transcript" with rebased word and segment times
- Schema validation is mandatory, raises on invalid output
- Output suffix is "-chunks.json"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from transcript_aligner.core.ir import Transcript
from transcript_aligner.formatters._schema import get_schema
from transcript_aligner.formatters.base import BaseFormatter, FormatterOutput, FormatterSource
from transcript_aligner.pipeline import chunk_with_transcripts

SCHEMA_FILE = "chunk_manifest.schema.json"


def build_chunk_manifest(transcript: Transcript) -> dict[str, Any]:
    """Build the manifest dict without validating it."""
    chunks = []
    for chunk, chunk_transcript in chunk_with_transcripts(transcript):
        entry = chunk.to_dict()
        entry["transcript"] = chunk_transcript.to_dict()
        chunks.append(entry)

    return {
        "language": transcript.language,
        "duration": transcript.duration_s,
        "chunks": chunks,
    }


class ChunkManifestFormatter(BaseFormatter):
    """Formats a transcript as a schema-validated chunk manifest."""

    @property
    def name(self) -> str:
        return "Chunk manifest"

    def format(self, source: FormatterSource) -> list[FormatterOutput]:
        """Build, validate and serialize the chunk manifest.

        Raises:
            TypeError: If source is not a Transcript.
            jsonschema.ValidationError: If the manifest does not conform.
        """
        if not isinstance(source, Transcript):
            raise TypeError(
                "ChunkManifestFormatter expects a Transcript, got {}".format(type(source).__name__)
            )

        output = build_chunk_manifest(source)
        jsonschema.validate(instance=output, schema=get_schema(SCHEMA_FILE))

        return [
            FormatterOutput(
                suffix="-chunks.json",
                content=json.dumps(output, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
