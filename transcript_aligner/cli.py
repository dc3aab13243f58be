"""Command-line interface for the transcript aligner.

WHY: Chunking, extraction and reconciliation are useful on their own,
outside the session server: to inspect where a recording would be cut,
to pull out one chunk's transcript, or to run correction over a saved
recognizer reply. The CLI exposes each step as a subcommand.

HOW: argparse with one subcommand per operation. Offline commands
(chunks, extract, text-chunks) read a file and write JSON. Networked
commands (punctuate, lemmatize, align-tts, synthesize) open an
OpenAIClient and run the async pipeline via asyncio.run(). Status
messages go to stderr; JSON goes to stdout or to --output.

RULES:
- Input transcripts are recognizer verbose JSON (see Transcript.from_dict)
- JSON output is UTF-8 with ensure_ascii=False
- Status output goes to stderr (not stdout)
- Exit code 1 on config errors, unreadable input or service failure
- --verbose switches logging from INFO to DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import httpx

from transcript_aligner.api.client import OpenAIAPIError, OpenAIClient
from transcript_aligner.config import (
    DEFAULT_LANGUAGE,
    LEMMA_BATCH_SIZE,
    PUNCTUATION_BATCH_SIZE,
    TTS_VOICE,
)
from transcript_aligner.core.chunking import format_time, get_chunk_transcript
from transcript_aligner.core.interpolate import estimate_word_timestamps
from transcript_aligner.core.ir import Transcript
from transcript_aligner.core.text_chunking import create_text_chunks
from transcript_aligner.formatters import FORMATTERS
from transcript_aligner.pipeline import (
    add_punctuation,
    lemmatize_transcript,
    transcribe_and_align_synthesized,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _load_transcript(path: str) -> Transcript:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("{} does not contain a transcript object".format(path))
    return Transcript.from_dict(data)


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _emit(content: str, output: Optional[str]) -> None:
    """Write content to --output when given, else to stdout."""
    if output:
        Path(output).write_text(content, encoding="utf-8")
        _status("Saved: {}".format(output))
    else:
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


# ----------------------------------------------------------------------
# Offline commands
# ----------------------------------------------------------------------


def _cmd_chunks(args: argparse.Namespace) -> None:
    transcript = _load_transcript(args.transcript)
    output = FORMATTERS["chunk_manifest"]().format(transcript)[0]
    manifest = json.loads(output.content)
    for chunk in manifest["chunks"]:
        _status("  {} {}-{} ({} words)".format(
            chunk["id"],
            format_time(chunk["startTime"]),
            format_time(chunk["endTime"]),
            chunk["wordCount"],
        ))
    _emit(output.content, args.output)


def _cmd_extract(args: argparse.Namespace) -> None:
    if args.end < args.start:
        raise ValueError("--end ({}) must not be before --start ({})".format(args.end, args.start))
    transcript = _load_transcript(args.transcript)
    chunk = get_chunk_transcript(transcript, args.start, args.end)
    _status("Extracted {} words, {} segments".format(len(chunk.words), len(chunk.segments)))
    _emit(_dump(chunk.to_dict()), args.output)


def _cmd_text_chunks(args: argparse.Namespace) -> None:
    output = FORMATTERS["text_manifest"]().format(_read_text(args.text))[0]
    _emit(output.content, args.output)


# ----------------------------------------------------------------------
# Networked commands
# ----------------------------------------------------------------------


async def _run_punctuate(args: argparse.Namespace) -> Transcript:
    transcript = _load_transcript(args.transcript)
    async with OpenAIClient() as client:
        return await add_punctuation(
            transcript, client, batch_size=args.batch_size, on_status=_status
        )


async def _run_lemmatize(args: argparse.Namespace) -> Transcript:
    transcript = _load_transcript(args.transcript)
    async with OpenAIClient() as client:
        return await lemmatize_transcript(
            transcript, client, batch_size=args.batch_size, on_status=_status
        )


async def _run_align_tts(args: argparse.Namespace) -> Transcript:
    text = _read_text(args.text)
    async with OpenAIClient() as client:
        try:
            return await transcribe_and_align_synthesized(
                text, Path(args.audio), client, language=args.language, on_status=_status
            )
        except (OpenAIAPIError, httpx.HTTPError) as exc:
            if args.fallback_duration is None:
                raise
            logger.warning("Transcription of synthesized audio failed, estimating timing: %s", exc)
            _status("Transcription failed; estimating word timing from text length")
            return estimate_word_timestamps(text, args.fallback_duration, args.language)


async def _run_synthesize(args: argparse.Namespace) -> List[Path]:
    text_path = Path(args.text)
    output_dir = Path(args.output_dir) if args.output_dir else text_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    chunks = create_text_chunks(_read_text(args.text))
    saved = []
    async with OpenAIClient() as client:
        for chunk in chunks:
            _status("Synthesizing {} ({}/{})...".format(chunk.id, chunk.index + 1, len(chunks)))
            path = output_dir / "{}-{}.mp3".format(text_path.stem, chunk.id)
            saved.append(await client.synthesize(chunk.text, path, voice=args.voice))
    return saved


def _cmd_punctuate(args: argparse.Namespace) -> None:
    _emit(_dump(asyncio.run(_run_punctuate(args)).to_dict()), args.output)


def _cmd_lemmatize(args: argparse.Namespace) -> None:
    _emit(_dump(asyncio.run(_run_lemmatize(args)).to_dict()), args.output)


def _cmd_align_tts(args: argparse.Namespace) -> None:
    _emit(_dump(asyncio.run(_run_align_tts(args)).to_dict()), args.output)


def _cmd_synthesize(args: argparse.Namespace) -> None:
    saved = asyncio.run(_run_synthesize(args))
    _status("Done! Saved {} file(s)".format(len(saved)))
    for path in saved:
        _status("  {}".format(path.name))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect the parser without
    running any command.
    """
    parser = argparse.ArgumentParser(
        prog="transcript_aligner",
        description="Chunk timestamped transcripts at natural pauses, split prose "
                    "for speech synthesis, and align corrected or synthesized text "
                    "back onto recognizer timing.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_output(p: argparse.ArgumentParser) -> None:
        p.add_argument("--output", "-o", default=None, help="Write JSON here instead of stdout.")

    p = sub.add_parser("chunks", help="Split a transcript into ~3 minute chunks.")
    p.add_argument("transcript", help="Recognizer verbose JSON file.")
    add_output(p)
    p.set_defaults(func=_cmd_chunks)

    p = sub.add_parser("extract", help="Extract one time range with rebased timestamps.")
    p.add_argument("transcript", help="Recognizer verbose JSON file.")
    p.add_argument("--start", type=float, required=True, help="Range start in seconds.")
    p.add_argument("--end", type=float, required=True, help="Range end in seconds.")
    add_output(p)
    p.set_defaults(func=_cmd_extract)

    p = sub.add_parser("text-chunks", help="Split prose into synthesis-sized chunks.")
    p.add_argument("text", help="UTF-8 text file.")
    add_output(p)
    p.set_defaults(func=_cmd_text_chunks)

    p = sub.add_parser("punctuate", help="Restore punctuation, keeping original timing.")
    p.add_argument("transcript", help="Recognizer verbose JSON file.")
    p.add_argument(
        "--batch-size", type=int, default=PUNCTUATION_BATCH_SIZE,
        help="Words per correction request (default: %(default)s).",
    )
    add_output(p)
    p.set_defaults(func=_cmd_punctuate)

    p = sub.add_parser("lemmatize", help="Annotate every word with its lemma.")
    p.add_argument("transcript", help="Recognizer verbose JSON file.")
    p.add_argument(
        "--batch-size", type=int, default=LEMMA_BATCH_SIZE,
        help="Unique words per lemmatization request (default: %(default)s).",
    )
    add_output(p)
    p.set_defaults(func=_cmd_lemmatize)

    p = sub.add_parser("align-tts", help="Time original prose against its synthesized audio.")
    p.add_argument("text", help="The prose that was synthesized.")
    p.add_argument("audio", help="The synthesized audio file.")
    p.add_argument(
        "--language", default=DEFAULT_LANGUAGE,
        help="ISO 639-1 code (default: %(default)s).",
    )
    p.add_argument(
        "--fallback-duration", type=float, default=None,
        help="Audio length in seconds; if transcription fails, estimate timing "
             "from text length instead of exiting with an error.",
    )
    add_output(p)
    p.set_defaults(func=_cmd_align_tts)

    p = sub.add_parser("synthesize", help="Synthesize each text chunk to an mp3 file.")
    p.add_argument("text", help="UTF-8 text file.")
    p.add_argument("--voice", default=TTS_VOICE, help="Synthesis voice (default: %(default)s).")
    p.add_argument("--output-dir", default=None, help="Directory for mp3 files (default: next to the text).")
    p.set_defaults(func=_cmd_synthesize)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        args.func(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (OSError, ValueError) as e:
        # Missing API key, unreadable input, malformed JSON
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except (OpenAIAPIError, httpx.HTTPError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
