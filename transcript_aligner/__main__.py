"""Package entry point for ``python -m transcript_aligner``.

WHY: Users run the tool as ``python -m transcript_aligner chunks t.json``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package.

HOW: Delegates to the CLI's main() function.
"""

from transcript_aligner.cli import main

if __name__ == "__main__":
    main()
