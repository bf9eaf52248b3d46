import shutil
from pathlib import Path

import pytest

from ipainspect.src.utils import workspace as workspace_module
from ipainspect.src.utils.workspace import ScratchWorkspace


def test_directory_exists_inside_and_is_removed(scratch_dir: Path):
    with ScratchWorkspace(scratch_dir) as workspace:
        path = workspace.path
        (path / "nested").mkdir()
        (path / "nested" / "file").write_bytes(b"data")
        assert path.parent == scratch_dir
        assert path.name.startswith("ipainspect-")

    assert not path.exists()
    assert workspace.path is None


def test_removed_when_body_raises(scratch_dir: Path):
    with pytest.raises(RuntimeError, match="boom"):
        with ScratchWorkspace(scratch_dir) as workspace:
            path = workspace.path
            raise RuntimeError("boom")

    assert not path.exists()


def test_concurrent_workspaces_are_distinct(scratch_dir: Path):
    with ScratchWorkspace(scratch_dir) as first, ScratchWorkspace(scratch_dir) as second:
        assert first.path != second.path
        assert first.path.is_dir() and second.path.is_dir()

    assert list(scratch_dir.iterdir()) == []


def test_missing_parent_is_created(tmp_path: Path):
    parent = tmp_path / "a" / "b"
    with ScratchWorkspace(parent) as workspace:
        assert workspace.path.parent == parent


def test_removal_failure_does_not_mask_the_original_error(scratch_dir: Path, monkeypatch):
    def refuse(path):
        raise PermissionError(f"cannot remove {path}")

    monkeypatch.setattr(workspace_module.shutil, "rmtree", refuse)

    with pytest.raises(KeyError):
        with ScratchWorkspace(scratch_dir) as workspace:
            path = workspace.path
            raise KeyError("original")

    monkeypatch.undo()
    assert path.exists()
    shutil.rmtree(path)


def test_already_removed_directory_is_fine(scratch_dir: Path):
    with ScratchWorkspace(scratch_dir) as workspace:
        shutil.rmtree(workspace.path)
