from pathlib import Path
from typing import Iterable, List, Tuple

from ipainspect.src.macho.header import MachOFile, MachOSlice


def unique_architectures(slices: Iterable[MachOSlice]) -> Tuple[str, ...]:
    """Architecture names in slice order with repeats dropped"""
    architectures: List[str] = []
    for macho_slice in slices:
        if macho_slice.architecture not in architectures:
            architectures.append(macho_slice.architecture)
    return tuple(architectures)


def get_architectures(binary_path: Path) -> Tuple[str, ...]:
    """Return the architectures a binary was built for.

    Raises UnrecognizedBinaryFormatError if the file is not a Mach-O or fat binary.
    """
    return unique_architectures(MachOFile(binary_path).slices)
