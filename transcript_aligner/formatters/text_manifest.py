"""Text manifest formatter: synthesis-sized prose chunks.

HOW: create_text_chunks() splits the prose; each TextChunk is serialized
with to_dict() and the document is validated against
schemas/text_manifest.schema.json.

RULES:
- Every chunk starts with status "pending"; synthesis updates it later
- Output suffix is "-text-chunks.json"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from transcript_aligner.core.text_chunking import create_text_chunks
from transcript_aligner.formatters._schema import get_schema
from transcript_aligner.formatters.base import BaseFormatter, FormatterOutput, FormatterSource

SCHEMA_FILE = "text_manifest.schema.json"


def build_text_manifest(text: str) -> dict[str, Any]:
    return {"chunks": [chunk.to_dict() for chunk in create_text_chunks(text)]}


class TextManifestFormatter(BaseFormatter):
    """Formats raw prose as a schema-validated text-chunk manifest."""

    @property
    def name(self) -> str:
        return "Text chunk manifest"

    def format(self, source: FormatterSource) -> list[FormatterOutput]:
        if not isinstance(source, str):
            raise TypeError(
                "TextManifestFormatter expects prose text, got {}".format(type(source).__name__)
            )

        output = build_text_manifest(source)
        jsonschema.validate(instance=output, schema=get_schema(SCHEMA_FILE))

        return [
            FormatterOutput(
                suffix="-text-chunks.json",
                content=json.dumps(output, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
