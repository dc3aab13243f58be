"""Abstract base formatter and output container.

WHY: The session layer stores two kinds of payload: temporal chunk
manifests built from a transcript and text-chunk manifests built from
prose. The CLI should emit either through one interface.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type.

RULES:
- Subclasses MUST implement ``name`` and ``format()``
- ``format()`` returns a list; both current formatters return one item
- ``suffix`` starts with a hyphen, e.g. ``"-chunks.json"``
- The caller prepends the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from transcript_aligner.core.ir import Transcript

FormatterSource = Union[Transcript, str]


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: Appended to the source stem, e.g. ``"-chunks.json"``.
        content: The file content.
        media_type: MIME type for the content.
    """

    suffix: str
    content: str | bytes
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name."""

    @abstractmethod
    def format(self, source: FormatterSource) -> list[FormatterOutput]:
        """Convert a transcript (or raw prose) into one or more output files."""
