from typing import List, Optional, Tuple

from asn1crypto import cms, parser, x509
from asn1crypto.core import Void

from ipainspect.logger import get_console
from ipainspect.src.core.models import CertificateSummary

# asn1crypto parses lazily, so a damaged certificate only fails when read
DECODE_ERRORS = (ValueError, TypeError, KeyError)


def format_key_identifier(value: bytes) -> str:
    """Render a key identifier like openssl does: AB:CD:EF"""
    return ":".join(f"{byte:02X}" for byte in value)


def _read_field(getter) -> Optional[str]:
    try:
        value = getter()
    except DECODE_ERRORS:
        return None
    return value or None


def summarize_certificate(cert: x509.Certificate) -> CertificateSummary:
    """Pull the display fields out of a certificate, skipping unreadable ones"""

    def validity(key: str) -> str:
        return cert["tbs_certificate"]["validity"][key].native.isoformat()

    def key_identifier() -> Optional[str]:
        value = cert.key_identifier
        return format_key_identifier(value) if value else None

    def common_name() -> Optional[str]:
        value = cert.subject.native.get("common_name")
        # Several CN attributes decode to a list, the last is the most specific
        if isinstance(value, list):
            return value[-1] if value else None
        return value

    return CertificateSummary(
        subject=_read_field(lambda: cert.subject.human_friendly),
        issuer=_read_field(lambda: cert.issuer.human_friendly),
        valid_from=_read_field(lambda: validity("not_before")),
        valid_to=_read_field(lambda: validity("not_after")),
        subject_key_identifier=_read_field(key_identifier),
        common_name=_read_field(common_name),
    )


def order_chain(certificates: List[CertificateSummary]) -> List[CertificateSummary]:
    """Order certificates leaf first by following issuer links.

    Certificates that do not link into the chain keep their original order
    at the end.
    """
    remaining = list(certificates)
    if len(remaining) < 2:
        return remaining

    def issues_another(candidate: CertificateSummary) -> bool:
        return any(
            other is not candidate
            and other.issuer is not None
            and other.issuer == candidate.subject
            for other in remaining
        )

    def has_parent(candidate: CertificateSummary) -> bool:
        return any(
            other is not candidate and other.subject == candidate.issuer for other in remaining
        )

    end_entities = [cert for cert in remaining if not issues_another(cert)]
    leaf = next(
        (cert for cert in end_entities if has_parent(cert)),
        end_entities[0] if end_entities else remaining[0],
    )
    ordered = [leaf]
    remaining.remove(leaf)

    current = leaf
    while remaining and current.issuer and current.issuer != current.subject:
        parent = next((c for c in remaining if c.subject == current.issuer), None)
        if parent is None:
            break
        ordered.append(parent)
        remaining.remove(parent)
        current = parent

    return ordered + remaining


def split_certificate_set(data: bytes) -> Tuple[List[x509.Certificate], int]:
    """Walk the raw contents of a certificate SET one element at a time.

    Complete elements are loaded as certificates. A truncated element ends
    the walk and counts as one failure; everything before it is kept.
    """
    certificates = []
    pointer = 0
    while pointer < len(data):
        try:
            class_, _method, tag, header, contents, trailer = parser.parse(data[pointer:])
        except ValueError:
            return certificates, 1
        end = pointer + len(header) + len(contents) + len(trailer)
        # Other CertificateChoices are context tagged, plain certificates are a SEQUENCE
        if class_ == 0 and tag == 16:
            certificates.append(x509.Certificate.load(data[pointer:end]))
        pointer = end
    return certificates, 0


def extract_certificates(cms_der: bytes) -> Tuple[List[CertificateSummary], int]:
    """Decode the certificates of a CMS SignedData blob.

    Returns the readable certificates, leaf first, and the number that
    could not be decoded. A single bad certificate never drops the others.
    """
    console = get_console()
    if not cms_der:
        return [], 0

    try:
        content_info = cms.ContentInfo.load(cms_der)
        if content_info["content_type"].native != "signed_data":
            raise ValueError(f"unexpected content type {content_info['content_type'].native}")
        certificate_set = content_info["content"]["certificates"]
    except DECODE_ERRORS as e:
        console.log(f"[yellow]Warning: unreadable certificate container: {e}")
        return [], 1
    if isinstance(certificate_set, Void):
        return [], 0

    try:
        entries = [choice.chosen for choice in certificate_set if choice.name == "certificate"]
        failures = 0
    except DECODE_ERRORS as e:
        console.log(f"[yellow]Warning: certificate set is damaged, reading entries one by one: {e}")
        entries, failures = split_certificate_set(certificate_set.contents)

    summaries = []
    for index, cert in enumerate(entries):
        try:
            summary = summarize_certificate(cert)
        except DECODE_ERRORS as e:
            console.log(f"[yellow]Warning: skipping certificate {index}: {e}")
            failures += 1
            continue

        if summary.is_empty():
            console.log(f"[yellow]Warning: skipping unreadable certificate {index}")
            failures += 1
            continue
        summaries.append(summary)

    return order_chain(summaries), failures
