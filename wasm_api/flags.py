# wasm_api/flags.py
from typing import List
from .settings import Settings

TARGET = "--target=wasm32-unknown-unknown-wasm"

CLANG_ALLOWED = [
    "-O0", "-O1", "-O2", "-O3", "-O4", "-Os", "-fno-exceptions", "-fno-rtti",
    "-ffast-math", "-fno-inline", "-std=c99", "-std=c89", "-std=c++14",
    "-std=c++1z", "-std=c++11", "-std=c++98", "-g",
]

LLD_ALLOWED = ["--import-memory", "-g"]

def _matches(flag: str, options: str) -> bool:
    if flag in options:
        return True
    # language standards are matched regardless of case
    return flag.startswith("-std=") and flag in options.lower()

def get_clang_options(options: str, settings: Settings) -> List[str]:
    """Compile-stage argv fragment: fixed prefix plus allow-listed flags found in `options`."""
    flags = [
        TARGET,
        f"--sysroot={settings.sysroot}",
        f"-I{settings.INCLUDE_DIR}",
        "-fdiagnostics-print-source-range-info",
        "-fno-exceptions",
        "-c",
    ]
    if not options:
        return flags
    return flags + [o for o in CLANG_ALLOWED if _matches(o, options)]

def get_lld_options(options: str, settings: Settings) -> List[str]:
    """Link-stage argv fragment; allowed linker flags are passed through ``-Wl,``."""
    flags = [
        TARGET,
        f"--sysroot={settings.sysroot}",
        "-nostartfiles",
        "-Wl,--allow-undefined,--no-entry,--no-threads",
    ]
    if not options:
        return flags
    return flags + ["-Wl," + o for o in LLD_ALLOWED if o in options]
