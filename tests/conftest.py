import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mirrormap.models import (  # noqa: E402
    CatalogBase,
    Filespace,
    FilespaceCatalog,
    FilespaceEntry,
    SegmentConfiguration,
    SegmentInstance,
)
from mirrormap.topology import TopologySnapshot  # noqa: E402

SYSTEM_OID = 3052
FS1_OID = 16385
FS2_OID = 16390

DEFAULT_FILESPACES = [Filespace(SYSTEM_OID, "pg_system"), Filespace(FS1_OID, "fs1")]


def make_instances(
    hosts: List[str],
    per_host: int = 1,
    mirror_of: Optional[Callable[[int], str]] = None,
    filespace_oids: Iterable[int] = (SYSTEM_OID, FS1_OID),
) -> List[SegmentInstance]:
    """
    Primary/mirror pairs with contents numbered host by host in ``hosts`` order.
    Without ``mirror_of`` every host's mirrors sit on the next host (group mirroring).
    """
    oids = list(filespace_oids)
    instances = []
    for i, host in enumerate(hosts):
        for j in range(per_host):
            content = i * per_host + j
            mirror_host = mirror_of(content) if mirror_of else hosts[(i + 1) % len(hosts)]
            instances.append(SegmentInstance(
                dbid=2 + content,
                content=content,
                preferred_role="p",
                address=host,
                port=40000 + j,
                replication_port=41000 + j,
                locations={oid: _path(oid, "primary", content) for oid in oids},
            ))
            instances.append(SegmentInstance(
                dbid=1000 + content,
                content=content,
                preferred_role="m",
                address=mirror_host,
                port=50000 + j,
                replication_port=51000 + j,
                locations={oid: _path(oid, "mirror", content) for oid in oids},
            ))
    return instances


_ROOTS = {SYSTEM_OID: "/data", FS1_OID: "/fs1", FS2_OID: "/fs2"}


def _path(oid: int, role: str, content: int) -> str:
    return f"{_ROOTS[oid]}/{role}/gpseg{content}"


class FakeTopology:
    """In-memory TopologySource."""

    def __init__(self, instances: List[SegmentInstance], filespaces: List[Filespace]):
        self.instances = instances
        self.filespaces = filespaces
        self.calls: Dict[str, int] = {"hosts": 0, "instances": 0, "filespaces": 0}

    def fetch_hosts(self) -> List[str]:
        self.calls["hosts"] += 1
        return sorted({inst.address for inst in self.instances if inst.is_primary and inst.content != -1})

    def fetch_segment_instances(self, hosts):
        self.calls["instances"] += 1
        wanted = set(hosts)
        contents = {inst.content for inst in self.instances if inst.is_primary and inst.address in wanted}
        return [inst for inst in self.instances if inst.content in contents]

    def fetch_filespaces(self) -> List[Filespace]:
        self.calls["filespaces"] += 1
        return sorted(self.filespaces, key=lambda fs: fs.oid)


@pytest.fixture
def build_instances():
    return make_instances


@pytest.fixture
def fake_topology():
    return FakeTopology


@pytest.fixture
def snapshot_of():
    def _build(instances, filespaces=None) -> TopologySnapshot:
        return TopologySnapshot.capture(FakeTopology(instances, filespaces or list(DEFAULT_FILESPACES)))
    return _build


@pytest.fixture
def seed_catalog(tmp_path):
    """Write instances into a SQLite catalog and return its URL."""
    def _seed(instances, filespaces=None, name: str = "catalog.db") -> str:
        url = f"sqlite:///{(tmp_path / name).as_posix()}"
        engine = create_engine(url)
        CatalogBase.metadata.create_all(engine)
        with Session(engine) as session:
            for fs in filespaces or DEFAULT_FILESPACES:
                session.add(FilespaceCatalog(oid=fs.oid, fsname=fs.name))
            session.add(SegmentConfiguration(
                dbid=1, content=-1, role="p", preferred_role="p", mode="s", status="u",
                port=5432, hostname="mdw", address="mdw", replication_port=None,
            ))
            session.add(FilespaceEntry(fsefsoid=SYSTEM_OID, fsedbid=1, fselocation="/data/master/gpseg-1"))
            for inst in instances:
                session.add(SegmentConfiguration(
                    dbid=inst.dbid,
                    content=inst.content,
                    role=inst.preferred_role,
                    preferred_role=inst.preferred_role,
                    mode="s",
                    status="u",
                    port=inst.port,
                    hostname=inst.address,
                    address=inst.address,
                    replication_port=inst.replication_port,
                ))
                for oid, location in inst.locations.items():
                    session.add(FilespaceEntry(fsefsoid=oid, fsedbid=inst.dbid, fselocation=location))
            session.commit()
        engine.dispose()
        return url
    return _seed


@pytest.fixture
def host_file(tmp_path):
    def _write(hosts: List[str], name: str = "hosts.txt") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(hosts) + "\n", encoding="utf-8")
        return path
    return _write
