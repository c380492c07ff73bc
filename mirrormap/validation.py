"""
Pre-flight checks that gate the assignment and resolution stages.
Each check is a hard stop; nothing is computed until all of them pass.
"""

import logging
from dataclasses import dataclass
from itertools import zip_longest
from typing import List, Sequence, Tuple

from mirrormap.errors import ConsistencyError, PreconditionError
from mirrormap.topology import TopologySnapshot

logger = logging.getLogger(__name__)

MIN_BLOCK_SIZE = 2


@dataclass(frozen=True)
class ValidatedLayout:
    hosts: Tuple[str, ...]
    block_size: int
    instances_per_host: int

    @property
    def block_count(self) -> int:
        return len(self.hosts) // self.block_size


def validate_block_size(block_size: int) -> None:
    if int(block_size) < MIN_BLOCK_SIZE:
        raise PreconditionError("Block group size must be greater than 1.")


def _require_host_count(ordered_hosts: Sequence[str], primary_host_count: int) -> None:
    if len(ordered_hosts) != primary_host_count:
        raise ConsistencyError(
            f"The number of primary hosts ({primary_host_count}) in the database does not match "
            f"the number of block mirror hosts ({len(ordered_hosts)}) in the input file."
        )


def _require_divisible(primary_host_count: int, block_size: int) -> None:
    if primary_host_count % block_size != 0:
        raise ConsistencyError(
            f"The number of primary hosts, {primary_host_count}, must be a multiple of "
            f"the block group size, {block_size}."
        )


def side_by_side(left: List[str], right: List[str]) -> str:
    """Two sorted host columns, database on the left, input file on the right."""
    width = max([len("database")] + [len(name) for name in left])
    lines = [f"{'database'.ljust(width)}  input file"]
    for db_host, file_host in zip_longest(left, right, fillvalue=""):
        marker = " " if db_host == file_host else "*"
        lines.append(f"{db_host.ljust(width)} {marker}{file_host}")
    return "\n".join(lines)


def _require_same_hosts(ordered_hosts: Sequence[str], primary_hosts: Sequence[str]) -> None:
    db_sorted = sorted(primary_hosts)
    file_sorted = sorted(ordered_hosts)
    if db_sorted != file_sorted:
        raise ConsistencyError(
            "Server hostnames in the database do not match the hostnames in the input file.",
            detail=side_by_side(db_sorted, file_sorted),
        )


def _require_uniform_instances(counts: dict) -> int:
    distinct = set(counts.values())
    if len(distinct) != 1:
        listing = "\n".join(f"{host}: {count}" for host, count in sorted(counts.items()))
        raise ConsistencyError(
            "Every primary host must carry the same number of primary segments.",
            detail=listing,
        )
    return distinct.pop()


def validate_layout(
    ordered_hosts: Sequence[str], block_size: int, snapshot: TopologySnapshot
) -> ValidatedLayout:
    """
    Check the input host list against the live topology.

    Args:
        ordered_hosts: Hostnames from the input file, block order
        block_size: Hosts per block
        snapshot: Captured cluster topology

    Returns:
        ValidatedLayout ready for assignment generation

    Raises:
        PreconditionError: block size below 2
        ConsistencyError: host counts, divisibility, host names or
            per-host instance counts disagree
    """
    validate_block_size(block_size)
    primary_host_count = snapshot.primary_host_count
    _require_host_count(ordered_hosts, primary_host_count)
    _require_divisible(primary_host_count, block_size)
    _require_same_hosts(ordered_hosts, snapshot.primary_hosts)
    instances_per_host = _require_uniform_instances(snapshot.primary_counts())

    layout = ValidatedLayout(
        hosts=tuple(ordered_hosts),
        block_size=int(block_size),
        instances_per_host=instances_per_host,
    )
    logger.info(
        f"Validated {len(layout.hosts)} host(s) in {layout.block_count} block(s) of {layout.block_size}, "
        f"{layout.instances_per_host} primary segment(s) per host"
    )
    return layout
