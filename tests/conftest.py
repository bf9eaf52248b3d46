import os
from pathlib import Path

import pytest

# Keep test output readable; must be set before the shared console exists
os.environ.setdefault("IPAINSPECT_QUIET", "1")

from ipainspect.src.utils.config_loader import AnalysisLimits
from tests._fixtures.cert_builder import make_apple_chain, make_signed_data
from tests._fixtures.macho_builder import (
    SAMPLE_ENTITLEMENTS,
    build_signature,
    build_thin_macho,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    """Point config lookups at an empty location and clear overrides."""
    monkeypatch.setenv("IPAINSPECT_CONFIG", str(tmp_path / "missing-config.toml"))
    for name in (
        "IPAINSPECT_MAX_TOTAL_SIZE",
        "IPAINSPECT_MAX_ENTRIES",
        "IPAINSPECT_SCRATCH_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def limits(scratch_dir: Path) -> AnalysisLimits:
    return AnalysisLimits(scratch_dir=scratch_dir)


@pytest.fixture
def apple_chain():
    return make_apple_chain()


@pytest.fixture
def signed_binary(apple_chain) -> bytes:
    """A thin arm64 binary with identifier, team, entitlements and a chain"""
    signature = build_signature(
        identifier="com.example.demo",
        team_identifier="ABCDE12345",
        entitlements=SAMPLE_ENTITLEMENTS,
        cms_der=make_signed_data(apple_chain),
    )
    return build_thin_macho(signature=signature)


@pytest.fixture
def unsigned_binary() -> bytes:
    return build_thin_macho()
