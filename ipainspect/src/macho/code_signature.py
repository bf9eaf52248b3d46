"""Reader for the embedded code signature of a Mach-O executable.

The signature lives in __LINKEDIT and is referenced by LC_CODE_SIGNATURE.
It is a big-endian superblob whose index points at the code directory,
requirements, entitlements and a CMS blob wrapper with the certificate
chain.
"""

import plistlib
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ipainspect.logger import get_console
from ipainspect.src.core.errors import SignatureParseError
from ipainspect.src.core.models import CodeDirectoryInfo, SignatureRecord, SignerIdentity
from ipainspect.src.macho.architectures import unique_architectures
from ipainspect.src.macho.certificates import extract_certificates
from ipainspect.src.macho.constants import (
    CS_ADHOC,
    CS_SUPPORTSTEAMID,
    CSMAGIC_BLOBWRAPPER,
    CSMAGIC_CODEDIRECTORY,
    CSMAGIC_EMBEDDED_ENTITLEMENTS,
    CSMAGIC_EMBEDDED_SIGNATURE,
    CSMAGIC_REQUIREMENTS,
    CSSLOT_CODEDIRECTORY,
    CSSLOT_ENTITLEMENTS,
    CSSLOT_REQUIREMENTS,
    CSSLOT_SIGNATURESLOT,
    MAX_SUPERBLOB_COUNT,
)
from ipainspect.src.macho.header import MachOFile, MachOSlice

CODE_DIRECTORY_HEADER = struct.Struct(">9I4B")  # Through pageSize
TEAM_OFFSET_POSITION = 48


@dataclass(frozen=True)
class CodeDirectory:
    identifier: str
    team_identifier: Optional[str]
    info: CodeDirectoryInfo


def _read_signature_data(slices: List[MachOSlice]) -> Optional[bytes]:
    """Return the raw signature of the first slice that carries one"""
    for macho_slice in slices:
        if not macho_slice.binary.has_code_signature:
            continue
        signature = macho_slice.binary.code_signature
        data = bytes(signature.content)
        if len(data) != signature.data_size:
            raise SignatureParseError(
                f"Code signature truncated: expected {signature.data_size} bytes, found {len(data)}"
            )
        return data
    return None


def parse_superblob(data: bytes) -> Dict[int, Tuple[int, bytes]]:
    """Map slot type -> (magic, blob bytes) for an embedded signature superblob"""
    if len(data) < 12:
        raise SignatureParseError("Code signature too short for a superblob header")

    magic, length, count = struct.unpack_from(">III", data, 0)
    if magic != CSMAGIC_EMBEDDED_SIGNATURE:
        raise SignatureParseError(f"Bad superblob magic 0x{magic:08x}")
    if length < 12 or length > len(data):
        raise SignatureParseError(
            f"Superblob length {length} does not fit in {len(data)} signature bytes"
        )
    if count > MAX_SUPERBLOB_COUNT or 12 + count * 8 > length:
        raise SignatureParseError(f"Superblob index with {count} entries overruns blob")

    blobs = {}
    for index in range(count):
        slot, offset = struct.unpack_from(">II", data, 12 + index * 8)
        if offset + 8 > length:
            raise SignatureParseError(f"Blob {index} (slot 0x{slot:x}) starts past the superblob")
        blob_magic, blob_length = struct.unpack_from(">II", data, offset)
        if blob_length < 8 or offset + blob_length > length:
            raise SignatureParseError(
                f"Blob {index} (slot 0x{slot:x}) has invalid length {blob_length}"
            )
        blobs[slot] = (blob_magic, data[offset : offset + blob_length])
    return blobs


def _read_cstring(blob: bytes, offset: int, what: str) -> str:
    if offset <= 0 or offset >= len(blob):
        raise SignatureParseError(f"Code directory {what} offset {offset} is out of range")
    end = blob.find(b"\0", offset)
    if end == -1:
        raise SignatureParseError(f"Code directory {what} is not terminated")
    return blob[offset:end].decode("utf-8", errors="replace")


def parse_code_directory(blob: bytes) -> CodeDirectory:
    if len(blob) < CODE_DIRECTORY_HEADER.size:
        raise SignatureParseError("Code directory is truncated")

    (
        magic,
        length,
        version,
        flags,
        _hash_offset,
        ident_offset,
        special_slots,
        code_slots,
        _code_limit,
        _hash_size,
        hash_type,
        _platform,
        page_size,
    ) = CODE_DIRECTORY_HEADER.unpack_from(blob, 0)

    if magic != CSMAGIC_CODEDIRECTORY:
        raise SignatureParseError(f"Bad code directory magic 0x{magic:08x}")
    if length > len(blob):
        raise SignatureParseError("Code directory length exceeds its blob")
    blob = blob[:length]

    team_identifier = None
    if version >= CS_SUPPORTSTEAMID and len(blob) >= TEAM_OFFSET_POSITION + 4:
        (team_offset,) = struct.unpack_from(">I", blob, TEAM_OFFSET_POSITION)
        if team_offset:
            team_identifier = _read_cstring(blob, team_offset, "team identifier")

    return CodeDirectory(
        identifier=_read_cstring(blob, ident_offset, "identifier"),
        team_identifier=team_identifier,
        info=CodeDirectoryInfo(
            version=version,
            flags=flags,
            hash_type=hash_type,
            code_slots=code_slots,
            special_slots=special_slots,
            page_size=(1 << page_size) if page_size else 0,
        ),
    )


def parse_entitlements(blob: bytes) -> dict:
    """Decode an XML entitlements blob without interpreting it"""
    try:
        entitlements = plistlib.loads(blob[8:])
    except Exception as e:
        # plistlib reports malformed values with whatever error its parser hits
        raise ValueError(f"{type(e).__name__}: {e}") from e
    if not isinstance(entitlements, dict):
        raise ValueError("entitlements plist is not a dictionary")
    return entitlements


def describe_format(macho: MachOFile) -> str:
    kind = "universal" if macho.is_universal else "thin"
    description = f"Mach-O {kind} ({' '.join(unique_architectures(macho.slices))})"
    if macho.path.parent.suffix == ".app":
        return f"app bundle with {description}"
    return description


def inspect_signature(binary_path: Path) -> SignatureRecord:
    """Read signing details from an executable.

    A binary without LC_CODE_SIGNATURE is reported as unsigned. A signature
    that is present but malformed raises SignatureParseError.
    """
    console = get_console()
    macho = MachOFile(binary_path)
    data = _read_signature_data(macho.slices)
    if data is None:
        console.log(f"[yellow]{macho.path.name} is not signed")
        return SignatureRecord.unsigned()

    blobs = parse_superblob(data)

    magic, cd_blob = blobs.get(CSSLOT_CODEDIRECTORY, (None, b""))
    if magic != CSMAGIC_CODEDIRECTORY:
        raise SignatureParseError("Superblob does not contain a code directory")
    code_directory = parse_code_directory(cd_blob)

    notes = []
    entitlements = None
    magic, blob = blobs.get(CSSLOT_ENTITLEMENTS, (None, b""))
    if magic == CSMAGIC_EMBEDDED_ENTITLEMENTS:
        try:
            entitlements = parse_entitlements(blob)
        except ValueError as e:
            console.log(f"[yellow]Warning: could not decode entitlements: {e}")
            notes.append(f"entitlements could not be decoded: {e}")

    cms_der = b""
    magic, blob = blobs.get(CSSLOT_SIGNATURESLOT, (None, b""))
    if magic == CSMAGIC_BLOBWRAPPER:
        cms_der = blob[8:]

    certificates, failures = extract_certificates(cms_der)
    if failures:
        notes.append(f"{failures} certificate(s) could not be decoded")

    requirements_magic, _ = blobs.get(CSSLOT_REQUIREMENTS, (None, b""))
    if requirements_magic is not None and requirements_magic != CSMAGIC_REQUIREMENTS:
        notes.append(f"unexpected requirements blob magic 0x{requirements_magic:08x}")

    identity = SignerIdentity(
        bundle_identifier=code_directory.identifier or None,
        team_identifier=code_directory.team_identifier or None,
        signature_format=describe_format(macho),
        authorities=tuple(c.common_name for c in certificates if c.common_name),
        signature_size=len(cms_der),
        is_ad_hoc=bool(code_directory.info.flags & CS_ADHOC) or not cms_der,
        code_directory=code_directory.info,
    )
    console.log(
        f"[green]Signed:[/] {identity.bundle_identifier} "
        f"(team {identity.team_identifier or 'not set'}, {len(certificates)} certificate(s))"
    )

    return SignatureRecord(
        is_signed=True,
        signer_identity=identity,
        certificates=tuple(certificates),
        entitlements=entitlements,
        certificate_failures=failures,
        notes=tuple(notes),
    )
