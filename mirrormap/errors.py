"""Error taxonomy for mirror map generation. Every error is terminal for a run."""

from typing import Optional


class MirrorMapError(RuntimeError):
    """Base class; ``detail`` carries optional operator-facing context (e.g. a diff)."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail


class PreconditionError(MirrorMapError):
    """Bad arguments or environment detected before any computation."""


class ConsistencyError(MirrorMapError):
    """Input file and live topology disagree."""


class ExternalDependencyError(MirrorMapError):
    """Catalog database missing or unreachable."""


class RunInterrupted(MirrorMapError):
    """Operator interrupted the run."""
