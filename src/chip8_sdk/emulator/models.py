"""
CHIP-8 Interpreter Quirk Definitions
====================================

Defines the behavioural variants of CHIP-8 interpreters.

Historical ("legacy") interpreters such as the original COSMAC VIP one and
the commonly adopted ("modern") interpreters disagree on the exact semantics
of a handful of instructions:

- 8XY6 / 8XYE: legacy shifts VY into VX, modern shifts VX in place
- FX55 / FX65: legacy leaves I pointing past the stored registers
- BNNN: legacy jumps to NNN + V0, modern (BXNN) jumps to XNN + VX

The quirk set is chosen once when the emulator is constructed and never
changes while a program runs.
"""

from dataclasses import dataclass
from enum import Enum


class MemoryPolicy(Enum):
    """
    What happens when an instruction addresses memory past 0xFFF.

    WRAP reduces the address modulo the memory size, FAULT raises
    MemoryAccessError.
    """
    WRAP = "wrap"
    FAULT = "fault"


@dataclass(frozen=True)
class Quirks:
    """
    Behaviour switches for the instructions that differ between interpreters.

    Attributes:
        name: Preset name ("legacy" or "modern")
        shift_uses_vy: 8XY6/8XYE copy VY into VX before shifting
        load_store_increments_i: FX55/FX65 leave I = I + X + 1
        jump_uses_vx: BXNN adds VX instead of V0
        clip_sprites: Sprite pixels past the right/bottom edge are dropped
            instead of wrapping. The start coordinate always wraps.
        index_overflow_sets_vf: FX1E sets VF=1 when I + VX passes 0xFFF
    """
    name: str
    shift_uses_vy: bool
    load_store_increments_i: bool
    jump_uses_vx: bool
    clip_sprites: bool = True
    index_overflow_sets_vf: bool = True

    @property
    def is_legacy(self) -> bool:
        """True for the COSMAC VIP behaviour set."""
        return self.name == "legacy"


# =============================================================================
# Predefined Quirk Sets
# =============================================================================

QUIRKS_LEGACY = Quirks(
    name="legacy",
    shift_uses_vy=True,
    load_store_increments_i=True,
    jump_uses_vx=False,
)

QUIRKS_MODERN = Quirks(
    name="modern",
    shift_uses_vy=False,
    load_store_increments_i=False,
    jump_uses_vx=True,
)

QUIRKS_DEFAULT = QUIRKS_MODERN

_QUIRK_MAP = {
    "LEGACY": QUIRKS_LEGACY,
    "COSMAC": QUIRKS_LEGACY,
    "VIP": QUIRKS_LEGACY,
    "MODERN": QUIRKS_MODERN,
}


def get_quirks(mode: str) -> Quirks:
    """
    Get the quirk set for a mode name.

    Args:
        mode: Mode name (case-insensitive): "legacy", "modern", or an alias

    Returns:
        Quirks instance

    Raises:
        ValueError: If the mode name is unknown
    """
    key = mode.upper().strip()

    if key in _QUIRK_MAP:
        return _QUIRK_MAP[key]

    if key in ("DEFAULT", ""):
        return QUIRKS_DEFAULT

    available = ", ".join(sorted(m.lower() for m in _QUIRK_MAP))
    raise ValueError(f"Unknown quirk mode '{mode}'. Available: {available}")


def list_quirk_modes() -> list[Quirks]:
    """Get all predefined quirk sets."""
    return [QUIRKS_LEGACY, QUIRKS_MODERN]
