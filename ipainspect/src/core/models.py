from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ApplicationBundle:
    """The single .app directory found under Payload"""

    name: str  # Directory name without the .app extension
    path: Path


@dataclass(frozen=True)
class CertificateSummary:
    """Fields read from one X.509 certificate of the signing chain"""

    subject: Optional[str] = None
    issuer: Optional[str] = None
    valid_from: Optional[str] = None  # ISO-8601
    valid_to: Optional[str] = None  # ISO-8601
    subject_key_identifier: Optional[str] = None  # AB:CD:... hex
    common_name: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(asdict(self).values())


@dataclass(frozen=True)
class CodeDirectoryInfo:
    """Summary of the code directory blob"""

    version: int
    flags: int
    hash_type: int
    code_slots: int
    special_slots: int
    page_size: int  # Bytes per hashed page, 0 means a single page


@dataclass(frozen=True)
class SignerIdentity:
    bundle_identifier: Optional[str]
    team_identifier: Optional[str]
    signature_format: str
    authorities: Tuple[str, ...]  # Leaf first
    signature_size: int
    is_ad_hoc: bool
    code_directory: Optional[CodeDirectoryInfo] = None


@dataclass(frozen=True)
class SignatureRecord:
    """Signing state of one executable.

    When ``is_signed`` is False the signer identity, certificates and
    entitlements are always None.
    """

    is_signed: bool
    signer_identity: Optional[SignerIdentity] = None
    certificates: Optional[Tuple[CertificateSummary, ...]] = None
    entitlements: Optional[Dict[str, Any]] = None
    certificate_failures: int = 0
    notes: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.is_signed and (
            self.signer_identity is not None
            or self.certificates is not None
            or self.entitlements is not None
        ):
            raise ValueError("Unsigned records cannot carry signing details")

    @classmethod
    def unsigned(cls, notes: Tuple[str, ...] = ()) -> "SignatureRecord":
        return cls(is_signed=False, notes=tuple(notes))


@dataclass(frozen=True)
class BundleMetadata:
    file_size: int
    embedded_framework_count: int
    plugin_count: int
    has_info_plist: bool
    info_plist_size: Optional[int] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Everything reported about one package"""

    bundle_name: str
    is_signed: bool
    signature: SignatureRecord
    architectures: Tuple[str, ...]
    file_size: int
    embedded_framework_count: int
    plugin_count: int
    has_info_plist: bool
    info_plist_size: Optional[int] = None
    executable: Optional[str] = None  # Path relative to the bundle
    diagnostics: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def error(self) -> Optional[str]:
        return "; ".join(self.diagnostics) if self.diagnostics else None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict suitable for json.dumps"""
        data = asdict(self)
        data["error"] = self.error
        return data
