"""
Segment Mapping Resolver
Joins the host-level mirror map with the live topology and emits one
relocation directive per mirror that has to move.
"""

import logging
from typing import Dict, List, Optional, Sequence

from mirrormap.config import SYSTEM_FILESPACE
from mirrormap.errors import ConsistencyError
from mirrormap.models import MirrorAssignment, MirrorPlan, RelocationDirective, SegmentInstance
from mirrormap.topology import TopologySnapshot
from mirrormap.validation import ValidatedLayout

logger = logging.getLogger(__name__)


class SegmentMappingResolver:
    """
    Turns MirrorAssignments into RelocationDirectives.

    Args:
        snapshot: Captured cluster topology
        system_filespace: Name of the system filespace
        system_location_only: Current-mirror records carry only the system
            filespace location instead of every filespace location
    """

    def __init__(
        self,
        snapshot: TopologySnapshot,
        system_filespace: str = SYSTEM_FILESPACE,
        system_location_only: bool = False,
    ):
        self.snapshot = snapshot
        self.system_filespace = system_filespace
        self.system_location_only = system_location_only

    # ========================================================================
    # STEP 1: PRIMARY SEQUENCE
    # ========================================================================

    def primary_sequence(self, hosts: Sequence[str]) -> List[SegmentInstance]:
        """
        Primaries host by host in file order, each host's list ordered by content.
        Every primary is joined through the system filespace only, so the
        filespace key is constant within a host.
        """
        sequence: List[SegmentInstance] = []
        for host in hosts:
            sequence.extend(sorted(self.snapshot.primaries_on(host), key=lambda inst: inst.content))
        return sequence

    # ========================================================================
    # STEPS 2-3: MIRROR RECORDS
    # ========================================================================

    def _system_oid(self) -> int:
        oid = self.snapshot.filespace_oid(self.system_filespace)
        if oid is None:
            raise ConsistencyError(f"Filespace '{self.system_filespace}' not found in the catalog.")
        return oid

    def current_mirror_location(self, mirror: SegmentInstance) -> str:
        """address:port:location[:location...] of the mirror as it stands today."""
        if self.system_location_only:
            system_oid = self._system_oid()
            if system_oid not in mirror.locations:
                raise ConsistencyError(
                    f"Mirror dbid {mirror.dbid} (content {mirror.content}) has no "
                    f"'{self.system_filespace}' location."
                )
            paths = [mirror.locations[system_oid]]
        else:
            paths = [path for _, path in mirror.locations_by_oid(descending=True)]
        return ":".join([mirror.address, str(mirror.port)] + paths)

    @staticmethod
    def new_mirror_location(mirror: SegmentInstance) -> str:
        """
        :port:replication_port:location[:location...] for the relocated mirror.
        Ports stay as they are; the host address is prepended by the join.
        """
        paths = [path for _, path in mirror.locations_by_oid(descending=True)]
        return ":" + ":".join([str(mirror.port), str(mirror.replication_port)] + paths)

    # ========================================================================
    # STEPS 4-5: JOIN
    # ========================================================================

    def resolve(
        self, layout: ValidatedLayout, assignments: Sequence[MirrorAssignment]
    ) -> List[RelocationDirective]:
        sequence = self.primary_sequence(layout.hosts)
        if len(sequence) != len(assignments):
            raise ConsistencyError(
                f"Primary segment sequence ({len(sequence)}) does not match the "
                f"mirror assignment sequence ({len(assignments)})."
            )

        mirrors: Dict[int, Optional[SegmentInstance]] = {}
        directives: List[RelocationDirective] = []
        for primary, assignment in zip(sequence, assignments):
            if primary.address != assignment.host:
                raise ConsistencyError(
                    f"Primary content {primary.content} on '{primary.address}' lines up with "
                    f"an assignment for '{assignment.host}'."
                )
            if primary.content not in mirrors:
                mirrors[primary.content] = self.snapshot.mirror_for(primary.content)
            mirror = mirrors[primary.content]
            if mirror is None:
                logger.warning(f"Content {primary.content} has no mirror, skipping")
                continue

            current = self.current_mirror_location(mirror)
            if current.split(":", 1)[0] == assignment.partner:
                logger.debug(
                    f"Content {primary.content} already mirrored on '{assignment.partner}', no move needed"
                )
                continue

            directives.append(RelocationDirective(
                content=primary.content,
                current_location=current,
                new_address=assignment.partner,
                new_location=self.new_mirror_location(mirror),
            ))
        return directives

    def filespace_order(self) -> List[str]:
        """Non-system filespace names ordered by oid."""
        ordered = sorted(self.snapshot.filespaces, key=lambda fs: fs.oid)
        return [fs.name for fs in ordered if fs.name != self.system_filespace]


def resolve_directives(
    layout: ValidatedLayout,
    assignments: Sequence[MirrorAssignment],
    snapshot: TopologySnapshot,
    system_filespace: str = SYSTEM_FILESPACE,
    system_location_only: bool = False,
) -> MirrorPlan:
    resolver = SegmentMappingResolver(
        snapshot,
        system_filespace=system_filespace,
        system_location_only=system_location_only,
    )
    directives = resolver.resolve(layout, assignments)
    logger.info(
        f"{len(directives)} of {len(assignments)} mirror(s) need to move"
    )
    return MirrorPlan(filespace_order=resolver.filespace_order(), directives=directives)
