from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

import lief
from lief import MachO

from ipainspect.src.core.errors import UnrecognizedBinaryFormatError
from ipainspect.src.macho.constants import ARCHITECTURE_NAMES, CPU_SUBTYPE_MASK


@dataclass(frozen=True)
class MachOSlice:
    """One architecture slice, either the whole file or a fat member"""

    cpu_type: int
    cpu_subtype: int
    in_fat: bool = False
    binary: Any = field(default=None, compare=False, repr=False)  # lief.MachO.Binary

    @property
    def architecture(self) -> str:
        return architecture_name(self.cpu_type, self.cpu_subtype)


def architecture_name(cpu_type: int, cpu_subtype: int) -> str:
    subtype = cpu_subtype & ~CPU_SUBTYPE_MASK & 0xFFFFFFFF
    name = ARCHITECTURE_NAMES.get((cpu_type, subtype)) or ARCHITECTURE_NAMES.get(
        (cpu_type, None)
    )
    return name or f"cpu(0x{cpu_type:x})"


class MachOFile:
    """A parsed Mach-O or fat file with one slice per architecture.

    The lief objects backing each slice stay valid for as long as this
    instance is alive.
    """

    def __init__(self, binary_path: Path):
        self.path = Path(binary_path)
        path = str(self.path)

        if not lief.is_macho(path):
            raise UnrecognizedBinaryFormatError(f"{self.path.name} is not a Mach-O binary")

        self.parsed = MachO.parse(path)
        if self.parsed is None:
            raise UnrecognizedBinaryFormatError(f"Could not parse Mach-O headers of {self.path.name}")

        if isinstance(self.parsed, MachO.FatBinary):
            binaries = [self.parsed.at(i) for i in range(self.parsed.size)]
        else:
            binaries = [self.parsed]
        if not binaries:
            raise UnrecognizedBinaryFormatError(f"{self.path.name} has no readable architecture")

        self.is_universal = MachO.is_fat(path)
        self.slices: List[MachOSlice] = [
            MachOSlice(
                cpu_type=binary.header.cpu_type.value,
                cpu_subtype=binary.header.cpu_subtype,
                in_fat=self.is_universal,
                binary=binary,
            )
            for binary in binaries
        ]
