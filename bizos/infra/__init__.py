"""Infrastructure layer package.

Implements Port interfaces with concrete adapters (local files, Redis).
Brain layer code MUST NOT import from this package directly; adapters
are wired in by the composition root.
"""
