"""Typed errors raised while analysing a package.

Errors raised before a bundle is located abort the analysis. Errors about a
single binary (format, signature) are caught by the analyzer and turned into
diagnostics on the result.
"""


class AnalysisError(Exception):
    """Base class for all analysis failures"""


class ArchiveFormatError(AnalysisError):
    """The input is not a readable ZIP container"""


class UnsafeEntryPathError(AnalysisError):
    """An archive entry would be written outside the workspace"""

    def __init__(self, entry_name: str):
        super().__init__(f"Archive entry escapes extraction directory: {entry_name}")
        self.entry_name = entry_name


class ResourceLimitExceededError(AnalysisError):
    """The archive exceeds the configured size or entry count"""


class InvalidPackageStructureError(AnalysisError):
    """The extracted payload does not look like an app package"""


class AmbiguousBundleError(InvalidPackageStructureError):
    """More than one .app bundle was found under Payload"""

    def __init__(self, bundle_names):
        self.bundle_names = list(bundle_names)
        super().__init__(
            f"Expected exactly one .app bundle, found {len(self.bundle_names)}: "
            f"{', '.join(self.bundle_names)}"
        )


class NoBundleFoundError(AnalysisError):
    """No .app bundle exists under Payload"""


class UnrecognizedBinaryFormatError(AnalysisError):
    """The executable does not start with a known Mach-O or fat magic"""


class SignatureParseError(AnalysisError):
    """The embedded code signature is present but malformed"""
