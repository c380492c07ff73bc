from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

CatalogBase = declarative_base()

# ============================================================================
# CATALOG TABLES (read-only views of the cluster's system catalog)
# ============================================================================

class SegmentConfiguration(CatalogBase):
    """One row per segment instance, primary or mirror"""
    __tablename__ = "gp_segment_configuration"

    dbid = Column(Integer, primary_key=True)
    content = Column(Integer, nullable=False)  # -1 for the coordinator
    role = Column(String(1), nullable=False)
    preferred_role = Column(String(1), nullable=False)  # 'p' or 'm'
    mode = Column(String(1))
    status = Column(String(1))
    port = Column(Integer, nullable=False)
    hostname = Column(Text)
    address = Column(Text, nullable=False)
    replication_port = Column(Integer)


class FilespaceCatalog(CatalogBase):
    """Named storage area"""
    __tablename__ = "pg_filespace"

    oid = Column(Integer, primary_key=True)
    fsname = Column(String, unique=True, nullable=False)


class FilespaceEntry(CatalogBase):
    """Storage location of one segment instance inside one filespace"""
    __tablename__ = "pg_filespace_entry"

    fsefsoid = Column(Integer, primary_key=True)
    fsedbid = Column(Integer, primary_key=True)
    fselocation = Column(Text, nullable=False)


# ============================================================================
# IN-MEMORY VALUES
# ============================================================================

PRIMARY_ROLE = "p"
MIRROR_ROLE = "m"


@dataclass(frozen=True)
class Host:
    name: str
    block: int  # 0-based block index
    position: int  # 1..block_size within the block


@dataclass(frozen=True)
class Filespace:
    oid: int
    name: str


@dataclass(frozen=True)
class SegmentInstance:
    """Snapshot of one primary or mirror copy of a content id."""
    dbid: int
    content: int
    preferred_role: str
    address: str
    port: int
    replication_port: int
    locations: Dict[int, str] = field(default_factory=dict)  # filespace oid -> path

    @property
    def is_primary(self) -> bool:
        return self.preferred_role == PRIMARY_ROLE

    @property
    def is_mirror(self) -> bool:
        return self.preferred_role == MIRROR_ROLE

    def locations_by_oid(self, descending: bool = False) -> List[Tuple[int, str]]:
        return sorted(self.locations.items(), key=lambda item: item[0], reverse=descending)


@dataclass(frozen=True)
class MirrorAssignment:
    """Occurrence ``occurrence`` of ``host`` gets its new mirror on ``partner``."""
    host: str
    occurrence: int
    partner: str
    block: int


@dataclass(frozen=True)
class RelocationDirective:
    content: int
    current_location: str
    new_address: str
    new_location: str

    def to_line(self) -> str:
        return f"{self.current_location} {self.new_address}{self.new_location}"


@dataclass(frozen=True)
class MirrorPlan:
    filespace_order: List[str]
    directives: List[RelocationDirective]
