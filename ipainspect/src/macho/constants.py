# CPU types and code signature constants, from <mach/machine.h> and the
# Security framework's cscdefs.h.

CPU_ARCH_ABI64 = 0x01000000
CPU_ARCH_ABI64_32 = 0x02000000
CPU_SUBTYPE_MASK = 0xFF000000

CPU_TYPE_X86 = 7
CPU_TYPE_X86_64 = CPU_TYPE_X86 | CPU_ARCH_ABI64
CPU_TYPE_ARM = 12
CPU_TYPE_ARM64 = CPU_TYPE_ARM | CPU_ARCH_ABI64
CPU_TYPE_ARM64_32 = CPU_TYPE_ARM | CPU_ARCH_ABI64_32
CPU_TYPE_POWERPC = 18
CPU_TYPE_POWERPC64 = CPU_TYPE_POWERPC | CPU_ARCH_ABI64

# (cputype, cpusubtype) -> name; subtype None is the fallback for the type
ARCHITECTURE_NAMES = {
    (CPU_TYPE_ARM, 5): "armv4t",
    (CPU_TYPE_ARM, 6): "armv6",
    (CPU_TYPE_ARM, 9): "armv7",
    (CPU_TYPE_ARM, 11): "armv7s",
    (CPU_TYPE_ARM, 12): "armv7k",
    (CPU_TYPE_ARM, None): "arm",
    (CPU_TYPE_ARM64, 2): "arm64e",
    (CPU_TYPE_ARM64, None): "arm64",
    (CPU_TYPE_ARM64_32, None): "arm64_32",
    (CPU_TYPE_X86, None): "i386",
    (CPU_TYPE_X86_64, 8): "x86_64h",
    (CPU_TYPE_X86_64, None): "x86_64",
    (CPU_TYPE_POWERPC, None): "ppc",
    (CPU_TYPE_POWERPC64, None): "ppc64",
}

CSMAGIC_REQUIREMENTS = 0xFADE0C01
CSMAGIC_CODEDIRECTORY = 0xFADE0C02
CSMAGIC_EMBEDDED_SIGNATURE = 0xFADE0CC0
CSMAGIC_EMBEDDED_ENTITLEMENTS = 0xFADE7171
CSMAGIC_EMBEDDED_DER_ENTITLEMENTS = 0xFADE7172
CSMAGIC_BLOBWRAPPER = 0xFADE0B01

CSSLOT_CODEDIRECTORY = 0
CSSLOT_REQUIREMENTS = 2
CSSLOT_ENTITLEMENTS = 5
CSSLOT_DER_ENTITLEMENTS = 7
CSSLOT_SIGNATURESLOT = 0x10000

CS_ADHOC = 0x2

# Code directory versions that introduced optional fields
CS_SUPPORTSSCATTER = 0x20100
CS_SUPPORTSTEAMID = 0x20200

MAX_SUPERBLOB_COUNT = 256
