"""Transcript Aligner: segmentation and cross-system token reconciliation.

WHY: Speech-to-text, text-correction, lemmatization and speech-synthesis
services each return their own, slightly different view of the same
words. This package turns that noisy output into one consistent,
time-ordered, chunked representation in which every token stays
traceable to a timestamp, however the services re-spelled, split,
merged, inserted or dropped tokens.

HOW: Three layers: core (pure segmenters, reconciliation engine,
interpolator), api (async client for the external services), and
pipeline (batching and per-batch fallback around the core). Formatters
turn the results into the payloads the session layer stores.

RULES:
- Core functions are pure: no I/O, no module state, deterministic output
- Networking, batching and fallback live only in api/ and pipeline.py
- A failed external call degrades to uncorrected content, never to a
  missing chunk or a token without a timestamp
"""

__version__ = "0.1.0"
