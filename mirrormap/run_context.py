"""
Per-run context: owns the catalog session and every staged file of one
run, and tears them down on every exit path.
"""

import logging
import signal
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from mirrormap.errors import RunInterrupted

logger = logging.getLogger(__name__)

# SIGINT already surfaces as KeyboardInterrupt
_TRAPPED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


class RunContext:
    def __init__(self, handle_signals: bool = False):
        self.handle_signals = handle_signals
        self.session: Optional[Session] = None
        self._staged: List[Path] = []
        self._previous_handlers: Dict[int, Any] = {}

    def __enter__(self) -> "RunContext":
        if self.handle_signals:
            for signum in _TRAPPED_SIGNALS:
                self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @staticmethod
    def _on_signal(signum, frame):
        raise RunInterrupted(f"Received signal {signal.Signals(signum).name}")

    def attach_session(self, session: Session) -> Session:
        self.session = session
        return session

    def stage(self, path: Path) -> Path:
        """Register a temporary file to be removed at teardown unless published."""
        self._staged.append(Path(path))
        return Path(path)

    def release(self, path: Path) -> None:
        """Forget a staged file that has been published."""
        self._staged = [staged for staged in self._staged if staged != Path(path)]

    @property
    def staged_files(self) -> List[Path]:
        return list(self._staged)

    def close(self) -> None:
        if self.session is not None:
            try:
                self.session.close()
            finally:
                self.session = None

        for path in self._staged:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning(f"Could not remove staged file '{path}': {exc}")
        self._staged = []

        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers = {}
