"""
Topology Snapshot
Read-only view of the live cluster layout: primary hosts, segment instances
with their filespace locations, and the filespace catalog.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from mirrormap.config import COORDINATOR_CONTENT
from mirrormap.models import (
    Filespace,
    FilespaceCatalog,
    FilespaceEntry,
    SegmentConfiguration,
    SegmentInstance,
    PRIMARY_ROLE,
)

logger = logging.getLogger(__name__)


class TopologySource(Protocol):
    """Anything that can describe the cluster layout."""

    def fetch_hosts(self) -> List[str]:
        ...

    def fetch_segment_instances(self, hosts: Iterable[str]) -> List[SegmentInstance]:
        ...

    def fetch_filespaces(self) -> List[Filespace]:
        ...


class CatalogTopology:
    """
    TopologySource backed by the cluster's system catalog.

    Args:
        db: SQLAlchemy session bound to the coordinator database
    """

    def __init__(self, db: Session):
        self.db = db

    def fetch_hosts(self) -> List[str]:
        """Distinct primary addresses, coordinator excluded, ordered by address."""
        stmt = (
            select(SegmentConfiguration.address)
            .where(
                SegmentConfiguration.preferred_role == PRIMARY_ROLE,
                SegmentConfiguration.content != COORDINATOR_CONTENT,
            )
            .distinct()
            .order_by(SegmentConfiguration.address)
        )
        return list(self.db.scalars(stmt).all())

    def fetch_segment_instances(self, hosts: Iterable[str]) -> List[SegmentInstance]:
        """
        Primary and mirror instances for every content whose primary lives on ``hosts``.
        """
        host_list = sorted(set(hosts))
        if not host_list:
            return []

        contents = (
            select(SegmentConfiguration.content)
            .where(
                SegmentConfiguration.preferred_role == PRIMARY_ROLE,
                SegmentConfiguration.content != COORDINATOR_CONTENT,
                SegmentConfiguration.address.in_(host_list),
            )
        )
        rows = self.db.scalars(
            select(SegmentConfiguration)
            .where(SegmentConfiguration.content.in_(contents))
            .order_by(SegmentConfiguration.content, SegmentConfiguration.dbid)
        ).all()

        dbids = [row.dbid for row in rows]
        locations: Dict[int, Dict[int, str]] = {dbid: {} for dbid in dbids}
        if dbids:
            entries = self.db.scalars(
                select(FilespaceEntry).where(FilespaceEntry.fsedbid.in_(dbids))
            ).all()
            for entry in entries:
                locations[entry.fsedbid][entry.fsefsoid] = entry.fselocation

        return [
            SegmentInstance(
                dbid=row.dbid,
                content=row.content,
                preferred_role=row.preferred_role,
                address=row.address,
                port=row.port,
                replication_port=row.replication_port,
                locations=locations[row.dbid],
            )
            for row in rows
        ]

    def fetch_filespaces(self) -> List[Filespace]:
        rows = self.db.scalars(select(FilespaceCatalog).order_by(FilespaceCatalog.oid)).all()
        return [Filespace(oid=row.oid, name=row.fsname) for row in rows]


@dataclass(frozen=True)
class TopologySnapshot:
    primary_hosts: List[str]
    instances: List[SegmentInstance]
    filespaces: List[Filespace]
    _primaries_by_host: Dict[str, List[SegmentInstance]] = field(init=False, repr=False, compare=False)
    _mirrors_by_content: Dict[int, SegmentInstance] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_host: Dict[str, List[SegmentInstance]] = defaultdict(list)
        mirrors: Dict[int, SegmentInstance] = {}
        for inst in self.instances:
            if inst.content == COORDINATOR_CONTENT:
                continue
            if inst.is_primary:
                by_host[inst.address].append(inst)
            elif inst.is_mirror:
                mirrors.setdefault(inst.content, inst)
        for primaries in by_host.values():
            primaries.sort(key=lambda inst: inst.content)
        object.__setattr__(self, "_primaries_by_host", dict(by_host))
        object.__setattr__(self, "_mirrors_by_content", mirrors)

    @classmethod
    def capture(cls, source: TopologySource) -> "TopologySnapshot":
        """Read the topology once; everything downstream works off this copy."""
        hosts = source.fetch_hosts()
        instances = source.fetch_segment_instances(hosts)
        filespaces = source.fetch_filespaces()
        logger.info(
            f"Captured topology: {len(hosts)} primary host(s), "
            f"{len(instances)} segment instance(s), {len(filespaces)} filespace(s)"
        )
        return cls(primary_hosts=list(hosts), instances=list(instances), filespaces=list(filespaces))

    @property
    def primary_host_count(self) -> int:
        return len(self.primary_hosts)

    def primaries(self) -> List[SegmentInstance]:
        return [inst for inst in self.instances if inst.is_primary and inst.content != COORDINATOR_CONTENT]

    def primaries_on(self, host: str) -> List[SegmentInstance]:
        """Primaries on ``host`` ordered by content."""
        return list(self._primaries_by_host.get(host, ()))

    def primary_counts(self) -> Dict[str, int]:
        return {host: len(self._primaries_by_host.get(host, ())) for host in self.primary_hosts}

    def mirror_for(self, content: int) -> Optional[SegmentInstance]:
        return self._mirrors_by_content.get(content)

    def filespace_oid(self, name: str) -> Optional[int]:
        for fs in self.filespaces:
            if fs.name == name:
                return fs.oid
        return None
