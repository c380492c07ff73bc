import os
import signal

import pytest

from mirrormap import plan_writer
from mirrormap.errors import PreconditionError, RunInterrupted
from mirrormap.hostfile import read_host_file
from mirrormap.models import MirrorPlan, RelocationDirective
from mirrormap.plan_writer import check_output_path, render_plan, write_plan
from mirrormap.run_context import RunContext

PLAN = MirrorPlan(
    filespace_order=["fs1", "fs2"],
    directives=[
        RelocationDirective(
            content=1,
            current_location="sdw1:50000:/data/mirror/gpseg1",
            new_address="sdw3",
            new_location=":50000:51000:/data/mirror/gpseg1",
        ),
    ],
)


def test_render_plan():
    assert render_plan(PLAN) == (
        "filespaceOrder=fs1:fs2\n"
        "sdw1:50000:/data/mirror/gpseg1 sdw3:50000:51000:/data/mirror/gpseg1\n"
    )


def test_render_plan_without_extra_filespaces():
    assert render_plan(MirrorPlan(filespace_order=[], directives=[])) == "filespaceOrder=\n"


def test_write_plan_replaces_existing_file(tmp_path):
    target = tmp_path / "movemirrors.cfg"
    target.write_text("old\n")
    with RunContext() as context:
        written = write_plan(PLAN, target, context)
        assert context.staged_files == []
    assert written == target
    assert target.read_text() == render_plan(PLAN)
    assert [p.name for p in tmp_path.iterdir()] == ["movemirrors.cfg"]


def test_failed_publish_keeps_previous_plan(tmp_path, monkeypatch):
    target = tmp_path / "movemirrors.cfg"
    target.write_text("previous plan\n")

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(plan_writer.os, "replace", broken_replace)
    with pytest.raises(PreconditionError, match="Cannot create output file") as excinfo:
        with RunContext() as context:
            write_plan(PLAN, target, context)

    assert target.read_text() == "previous plan\n"
    assert [p.name for p in tmp_path.iterdir()] == ["movemirrors.cfg"]
    assert isinstance(excinfo.value.__cause__, OSError)


def test_check_output_path_rejects_missing_directory(tmp_path):
    with pytest.raises(PreconditionError, match="permissions"):
        check_output_path(tmp_path / "missing" / "movemirrors.cfg")


def test_check_output_path_rejects_directory(tmp_path):
    with pytest.raises(PreconditionError, match="directory"):
        check_output_path(tmp_path)


def test_check_output_path_does_not_create_file(tmp_path):
    target = tmp_path / "movemirrors.cfg"
    assert check_output_path(target) == target
    assert not target.exists()


class _Session:
    closed = False

    def close(self):
        self.closed = True


def test_run_context_tears_down_on_error(tmp_path):
    staged = tmp_path / "staged.tmp"
    staged.write_text("partial")
    session = _Session()
    with pytest.raises(RuntimeError):
        with RunContext() as context:
            context.attach_session(session)
            context.stage(staged)
            raise RuntimeError("boom")
    assert session.closed
    assert context.session is None
    assert not staged.exists()


def test_run_context_converts_sigterm_and_restores_handler():
    previous = signal.getsignal(signal.SIGTERM)
    with pytest.raises(RunInterrupted):
        with RunContext(handle_signals=True):
            os.kill(os.getpid(), signal.SIGTERM)
    assert signal.getsignal(signal.SIGTERM) == previous


def test_read_host_file_skips_blank_lines(tmp_path):
    path = tmp_path / "hosts.txt"
    path.write_text("sdw1\n\n  sdw2  \n\t\nsdw3")
    assert read_host_file(path) == ["sdw1", "sdw2", "sdw3"]


def test_read_host_file_missing_or_empty(tmp_path):
    with pytest.raises(PreconditionError, match="does not exist"):
        read_host_file(tmp_path / "nope.txt")
    empty = tmp_path / "empty.txt"
    empty.write_text("\n\n")
    with pytest.raises(PreconditionError, match="does not list"):
        read_host_file(empty)
