"""Core segmentation, reconciliation and interpolation modules.

WHY: The core package holds the parts that must be deterministic and
correct under partial failure: the IR dataclasses, the two-pointer
reconciliation engine, the interpolator and both segmenters. Everything
outside it is orchestration.

HOW: ir.py defines the data structures, normalize.py the comparison
primitives, reconcile.py the alignment engine, interpolate.py timing
recovery, chunking.py and text_chunking.py the two segmenters.

RULES:
- No I/O, no logging, no module-level mutable state
- Every tunable is a keyword parameter defaulting to a config constant
- Functions return new values; inputs are never mutated
"""
