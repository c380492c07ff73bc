"""
Block Rotation Assignment
Derives, for every host, the round-robin sequence of mirror partners drawn
from its own block. Pure functions, no I/O.
"""

from dataclasses import dataclass
from typing import List, Sequence

from mirrormap.models import Host, MirrorAssignment


@dataclass(frozen=True)
class RotationCursor:
    position: int  # 1..block_size
    lap: int = 0


def advance(cursor: RotationCursor, block_size: int) -> RotationCursor:
    """Step one position forward, wrapping block_size back to 1 and starting a new lap."""
    if cursor.position >= block_size:
        return RotationCursor(position=1, lap=cursor.lap + 1)
    return RotationCursor(position=cursor.position + 1, lap=cursor.lap)


def partner_positions(position: int, block_size: int, count: int) -> List[int]:
    """
    Positions (1-based, within the block) that host ``position`` mirrors onto.

    The walk starts on the host itself, so the first partner is the next
    position; later laps restart from 1. The host's own position is skipped.
    """
    if block_size < 2:
        raise ValueError("block_size must be at least 2")
    if not 1 <= position <= block_size:
        raise ValueError(f"position {position} outside block of size {block_size}")
    if count < 0:
        raise ValueError("count must not be negative")

    picks: List[int] = []
    cursor = RotationCursor(position=position)
    while len(picks) < count:
        if cursor.position != position:
            picks.append(cursor.position)
        cursor = advance(cursor, block_size)
    return picks


def build_blocks(ordered_hosts: Sequence[str], block_size: int) -> List[List[Host]]:
    if block_size < 2:
        raise ValueError("block_size must be at least 2")
    if len(ordered_hosts) % block_size != 0:
        raise ValueError(
            f"{len(ordered_hosts)} hosts cannot be split into blocks of {block_size}"
        )
    blocks = []
    for block in range(len(ordered_hosts) // block_size):
        offset = block * block_size
        blocks.append([
            Host(name=ordered_hosts[offset + idx], block=block, position=idx + 1)
            for idx in range(block_size)
        ])
    return blocks


def generate_assignments(
    ordered_hosts: Sequence[str], block_size: int, instances_per_host: int
) -> List[MirrorAssignment]:
    """
    Host-level mirror map in host-block order, ``instances_per_host`` entries per host.

    Args:
        ordered_hosts: Hostnames in block order
        block_size: Hosts per block
        instances_per_host: Primary segments hosted on every host

    Returns:
        One MirrorAssignment per primary segment instance
    """
    assignments: List[MirrorAssignment] = []
    for members in build_blocks(ordered_hosts, block_size):
        for host in members:
            picks = partner_positions(host.position, block_size, instances_per_host)
            for occurrence, pick in enumerate(picks, start=1):
                assignments.append(MirrorAssignment(
                    host=host.name,
                    occurrence=occurrence,
                    partner=members[pick - 1].name,
                    block=host.block,
                ))
    return assignments
