from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from ipainspect.src.core.analyzer import IPAAnalyzer, analyze_ipa
from ipainspect.src.core.errors import (
    AmbiguousBundleError,
    ArchiveFormatError,
    NoBundleFoundError,
    ResourceLimitExceededError,
    UnsafeEntryPathError,
)
from ipainspect.src.macho.constants import CSMAGIC_EMBEDDED_ENTITLEMENTS
from ipainspect.src.utils.config_loader import AnalysisLimits
from tests._fixtures.ipa_builder import build_ipa, build_zip
from tests._fixtures.macho_builder import (
    SAMPLE_ENTITLEMENTS,
    build_signature,
    build_thin_macho,
    wrap_blob,
)

INFO_PLIST = b"<?xml version=\"1.0\"?><plist version=\"1.0\"><dict/></plist>"


@pytest.fixture
def analyzer(limits: AnalysisLimits) -> IPAAnalyzer:
    return IPAAnalyzer(limits)


def test_signed_ipa(analyzer: IPAAnalyzer, scratch_dir: Path, signed_binary: bytes):
    ipa = build_ipa(
        executable=signed_binary,
        extra_files={
            "Frameworks/Kit.framework/Kit": b"k" * 10,
            "PlugIns/Widget.appex/Widget": b"w" * 5,
        },
    )

    result = analyzer.analyze(ipa)

    assert result.bundle_name == "Demo"
    assert result.executable == "Demo"
    assert result.is_signed is True
    assert result.architectures == ("arm64",)
    assert result.file_size == len(signed_binary) + len(INFO_PLIST) + 15
    assert result.embedded_framework_count == 1
    assert result.plugin_count == 1
    assert result.has_info_plist is True
    assert result.info_plist_size == len(INFO_PLIST)
    assert result.error is None

    identity = result.signature.signer_identity
    assert identity.bundle_identifier == "com.example.demo"
    assert identity.team_identifier == "ABCDE12345"
    assert identity.authorities[0] == "Apple Development: Jane Doe (ABCDE12345)"
    assert result.signature.entitlements == SAMPLE_ENTITLEMENTS
    assert list(scratch_dir.iterdir()) == []


def test_unsigned_ipa(analyzer: IPAAnalyzer, unsigned_binary: bytes):
    result = analyzer.analyze(build_ipa(executable=unsigned_binary))

    assert result.is_signed is False
    assert result.signature.signer_identity is None
    assert result.signature.certificates is None
    assert result.architectures == ("arm64",)
    assert result.error is None


def test_missing_executable_is_reported(analyzer: IPAAnalyzer):
    ipa = build_zip(
        {"Payload/Demo.app/Info.plist": INFO_PLIST},
        directories=["Payload", "Payload/Demo.app"],
    )

    result = analyzer.analyze(ipa)

    assert result.is_signed is False
    assert result.executable is None
    assert result.architectures == ()
    assert result.error == "no main executable found"


def test_unrecognized_executable_is_reported(analyzer: IPAAnalyzer):
    result = analyzer.analyze(build_ipa(executable=b"#!/bin/sh\necho hello\n"))

    assert result.is_signed is False
    assert result.architectures == ()
    assert "unknown architecture" in result.error
    assert "code signature unreadable" in result.error


def test_malformed_signature_reads_as_unsigned(analyzer: IPAAnalyzer):
    signature = bytearray(build_signature(cms_der=b""))
    signature[0:4] = b"\xde\xad\xbe\xef"

    result = analyzer.analyze(build_ipa(executable=build_thin_macho(signature=bytes(signature))))

    assert result.is_signed is False
    assert result.architectures == ("arm64",)
    assert result.error.startswith("code signature unreadable")


def test_broken_entitlements_do_not_abort(analyzer: IPAAnalyzer):
    blob = wrap_blob(
        CSMAGIC_EMBEDDED_ENTITLEMENTS,
        b"<plist><dict><key>d</key><date>garbage</date></dict></plist>",
    )
    binary = build_thin_macho(signature=build_signature(entitlements_blob=blob, cms_der=b""))

    result = analyzer.analyze(build_ipa(executable=binary))

    assert result.is_signed is True
    assert result.signature.entitlements is None
    assert "entitlements could not be decoded" in result.error


def test_no_bundle_cleans_up(analyzer: IPAAnalyzer, scratch_dir: Path):
    ipa = build_zip({"Payload/readme.txt": b"hello"})

    with pytest.raises(NoBundleFoundError):
        analyzer.analyze(ipa)
    assert list(scratch_dir.iterdir()) == []


def test_two_bundles_are_rejected(analyzer: IPAAnalyzer):
    ipa = build_zip({"Payload/A.app/A": b"a", "Payload/B.app/B": b"b"})

    with pytest.raises(AmbiguousBundleError) as excinfo:
        analyzer.analyze(ipa)
    assert excinfo.value.bundle_names == ["A.app", "B.app"]


def test_path_traversal_writes_nothing(analyzer: IPAAnalyzer, scratch_dir: Path):
    ipa = build_zip({"Payload/Demo.app/Demo": b"x", "../../escaped": b"owned"})

    with pytest.raises(UnsafeEntryPathError):
        analyzer.analyze(ipa)
    assert list(scratch_dir.iterdir()) == []
    assert not (scratch_dir.parent / "escaped").exists()


def test_entry_limit(scratch_dir: Path, unsigned_binary: bytes):
    analyzer = IPAAnalyzer(AnalysisLimits(max_entries=2, scratch_dir=scratch_dir))

    with pytest.raises(ResourceLimitExceededError):
        analyzer.analyze(build_ipa(executable=unsigned_binary))
    assert list(scratch_dir.iterdir()) == []


def test_not_a_zip(analyzer: IPAAnalyzer):
    with pytest.raises(ArchiveFormatError):
        analyzer.analyze(b"definitely not a zip archive")


def test_concurrent_analyses_agree(analyzer: IPAAnalyzer, scratch_dir: Path, signed_binary: bytes):
    ipa = build_ipa(executable=signed_binary)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(analyzer.analyze, [ipa] * 8))

    assert all(result == results[0] for result in results)
    assert results[0].is_signed is True
    assert list(scratch_dir.iterdir()) == []


def test_analyze_ipa_from_path(tmp_path: Path, limits: AnalysisLimits, signed_binary: bytes):
    path = tmp_path / "Demo.ipa"
    path.write_bytes(build_ipa(executable=signed_binary))

    from_path = analyze_ipa(path, limits)
    with open(path, "rb") as fh:
        from_file = analyze_ipa(fh, limits)

    assert from_path == from_file
    assert from_path.to_dict()["signature"]["signer_identity"]["team_identifier"] == "ABCDE12345"
