"""
Mirror map pipeline:
ValidationGate -> BlockAssignmentGenerator -> SegmentMappingResolver -> PlanWriter
"""

import logging
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel
from sqlalchemy.exc import DBAPIError

from mirrormap.config import DEFAULT_BLOCK_SIZE, SYSTEM_FILESPACE
from mirrormap.database import check_database, create_catalog_engine, open_session
from mirrormap.errors import ExternalDependencyError
from mirrormap.hostfile import read_host_file
from mirrormap.models import MirrorPlan
from mirrormap.plan_writer import check_output_path, write_plan
from mirrormap.resolver import resolve_directives
from mirrormap.rotation import generate_assignments
from mirrormap.run_context import RunContext
from mirrormap.topology import CatalogTopology, TopologySnapshot
from mirrormap.validation import validate_block_size, validate_layout

logger = logging.getLogger(__name__)


class RunRequest(BaseModel):
    host_file: Path
    database_url: str
    output_path: Path
    block_size: int = DEFAULT_BLOCK_SIZE
    system_filespace: str = SYSTEM_FILESPACE
    system_location_only: bool = False


def build_plan(
    ordered_hosts: Sequence[str],
    block_size: int,
    snapshot: TopologySnapshot,
    system_filespace: str = SYSTEM_FILESPACE,
    system_location_only: bool = False,
) -> MirrorPlan:
    """Validate, rotate and resolve against an already captured topology."""
    layout = validate_layout(ordered_hosts, block_size, snapshot)
    assignments = generate_assignments(layout.hosts, layout.block_size, layout.instances_per_host)
    logger.debug(f"Generated {len(assignments)} host-level mirror assignment(s)")
    return resolve_directives(
        layout,
        assignments,
        snapshot,
        system_filespace=system_filespace,
        system_location_only=system_location_only,
    )


def generate_mirror_map(request: RunRequest, handle_signals: bool = False) -> Path:
    """
    Run the whole pipeline and publish the plan file.

    Returns:
        Path of the written plan file

    Raises:
        MirrorMapError: any failure; no plan file is written in that case
    """
    validate_block_size(request.block_size)
    hosts = read_host_file(request.host_file)
    output_path = check_output_path(request.output_path)

    engine = create_catalog_engine(request.database_url)
    try:
        check_database(engine)
        with RunContext(handle_signals=handle_signals) as context:
            session = context.attach_session(open_session(engine))
            try:
                snapshot = TopologySnapshot.capture(CatalogTopology(session))
            except DBAPIError as exc:
                raise ExternalDependencyError(f"Unable to read cluster topology: {exc.orig or exc}") from exc

            plan = build_plan(
                hosts,
                request.block_size,
                snapshot,
                system_filespace=request.system_filespace,
                system_location_only=request.system_location_only,
            )
            return write_plan(plan, output_path, context)
    finally:
        engine.dispose()
