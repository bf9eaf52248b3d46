from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

from ipainspect.logger import get_console
from ipainspect.src.core.errors import SignatureParseError, UnrecognizedBinaryFormatError
from ipainspect.src.core.models import AnalysisResult, SignatureRecord
from ipainspect.src.ipa.archive_extractor import PackageSource, extract_archive
from ipainspect.src.ipa.bundle_locator import find_executable, locate_bundle
from ipainspect.src.ipa.bundle_metadata import read_bundle_metadata
from ipainspect.src.macho.architectures import get_architectures
from ipainspect.src.macho.code_signature import inspect_signature
from ipainspect.src.utils.config_loader import AnalysisLimits
from ipainspect.src.utils.workspace import ScratchWorkspace

BINARY_ERRORS = (UnrecognizedBinaryFormatError, SignatureParseError)


class IPAAnalyzer:
    """Runs the whole analysis of one package inside its own workspace.

    Instances hold only configuration, so one analyzer can serve concurrent
    calls for different packages.
    """

    def __init__(self, limits: Optional[AnalysisLimits] = None):
        self.limits = limits or AnalysisLimits()
        self.console = get_console()

    def analyze(self, source: PackageSource) -> AnalysisResult:
        """Analyze a package given as a path, bytes or binary file object.

        Archive and layout problems raise; problems with the executable itself
        are reported in the result's diagnostics.
        """
        with ScratchWorkspace(self.limits.scratch_dir) as workspace:
            extract_archive(source, workspace.path, self.limits)
            bundle = locate_bundle(workspace.path)
            executable = find_executable(bundle.path, bundle.name)

            diagnostics: List[str] = []
            if executable is None:
                diagnostics.append("no main executable found")
                architectures, signature = (), SignatureRecord.unsigned()
            else:
                self.console.log(f"[blue]Inspecting executable:[/] {executable.name}")
                architectures, signature = self._inspect_binary(executable, diagnostics)

            metadata = read_bundle_metadata(bundle.path)

            return AnalysisResult(
                bundle_name=bundle.name,
                is_signed=signature.is_signed,
                signature=signature,
                architectures=architectures,
                file_size=metadata.file_size,
                embedded_framework_count=metadata.embedded_framework_count,
                plugin_count=metadata.plugin_count,
                has_info_plist=metadata.has_info_plist,
                info_plist_size=metadata.info_plist_size,
                executable=(
                    executable.relative_to(bundle.path).as_posix() if executable else None
                ),
                diagnostics=tuple(diagnostics) + signature.notes,
            )

    def _inspect_binary(
        self, executable: Path, diagnostics: List[str]
    ) -> Tuple[Tuple[str, ...], SignatureRecord]:
        # Both readers only read the file, so they can run side by side
        with ThreadPoolExecutor(max_workers=2) as pool:
            architectures_future = pool.submit(get_architectures, executable)
            signature_future = pool.submit(inspect_signature, executable)

        try:
            architectures = architectures_future.result()
        except UnrecognizedBinaryFormatError as e:
            self.console.log(f"[yellow]Unknown architecture: {e}")
            diagnostics.append(f"unknown architecture: {e}")
            architectures = ()

        try:
            signature = signature_future.result()
        except BINARY_ERRORS as e:
            self.console.log(f"[yellow]Could not read code signature: {e}")
            diagnostics.append(f"code signature unreadable: {e}")
            signature = SignatureRecord.unsigned()

        return architectures, signature


def analyze_ipa(source: PackageSource, limits: Optional[AnalysisLimits] = None) -> AnalysisResult:
    """Analyze a package with the given (or default) limits"""
    return IPAAnalyzer(limits).analyze(source)
