"""
Plan Writer
Serializes a MirrorPlan into the gpmovemirrors configuration format and
publishes it atomically.
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from mirrormap.config import FILESPACE_ORDER_KEY
from mirrormap.errors import PreconditionError
from mirrormap.models import MirrorPlan
from mirrormap.run_context import RunContext

PLAN_FILE_MODE = 0o644  # mkstemp creates 0600


def check_output_path(path: Union[str, Path]) -> Path:
    """
    Verify the plan file can be written without touching it.

    Returns:
        The absolute output path
    """
    target = Path(path).expanduser().absolute()
    parent = target.parent
    if target.is_dir():
        raise PreconditionError(f"Cannot create output file '{target}', it is a directory.")
    if not parent.is_dir() or not os.access(parent, os.W_OK | os.X_OK):
        raise PreconditionError(
            f"Cannot create output file '{target}', please check directory permissions and try again."
        )
    if target.exists() and not os.access(target, os.W_OK):
        raise PreconditionError(f"Cannot overwrite output file '{target}', please check file permissions.")
    return target


def render_plan(plan: MirrorPlan) -> str:
    lines = [f"{FILESPACE_ORDER_KEY}={':'.join(plan.filespace_order)}"]
    lines.extend(directive.to_line() for directive in plan.directives)
    return "\n".join(lines) + "\n"


def write_plan(plan: MirrorPlan, path: Union[str, Path], context: RunContext) -> Path:
    """
    Stage the plan next to ``path`` and move it into place in one step.
    A failed run leaves any previous file at ``path`` untouched.
    """
    target = check_output_path(path)
    try:
        fd, staged_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        staged = context.stage(Path(staged_name))
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(render_plan(plan))
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(staged, PLAN_FILE_MODE)
        os.replace(staged, target)
    except OSError as exc:
        raise PreconditionError(f"Cannot create output file '{target}': {exc}") from exc
    context.release(staged)
    return target
