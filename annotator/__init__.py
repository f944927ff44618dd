"""
Annotator - concurrent labeling of records against candidate answers.

Holds a collection of annotation records in memory, lets any number of
clients claim and answer them concurrently, and persists the results to
a line-delimited JSON file with atomic saves.

Layout:
- models       Record / Candidate
- persistence  record file codec
- ledger       sparse set, reader/writer lock, ledger, autosave
- terms        frequency-ranked term index
- routes/main  FastAPI adapter
- cli          command line entry point
"""

__version__ = "0.1.0"
