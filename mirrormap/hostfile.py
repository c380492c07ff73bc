from pathlib import Path
from typing import List, Union

from mirrormap.errors import PreconditionError


def read_host_file(path: Union[str, Path]) -> List[str]:
    """Hostnames in file order; surrounding whitespace stripped, blank lines ignored."""
    host_path = Path(path)
    if not host_path.is_file():
        raise PreconditionError(f"Input file '{host_path}' does not exist.")
    try:
        raw = host_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PreconditionError(f"Input file '{host_path}' cannot be read: {exc}") from exc

    hosts = [line.strip() for line in raw.splitlines() if line.strip()]
    if not hosts:
        raise PreconditionError(f"Input file '{host_path}' does not list any hosts.")
    return hosts
