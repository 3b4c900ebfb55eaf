"""
Institution Profiles

Dataclasses describing the repair and classification rules of one
institution. Profiles are static data: adding an institution means adding a
profile module under ``banks/`` and registering it.
"""
import re
from dataclasses import dataclass, field
from typing import Pattern, Tuple

from ofx_ingest.common.models import Institution


@dataclass(frozen=True)
class RepairRule:
    """
    A single regex substitution.

    Attributes:
        pattern: Regular expression, compiled on creation
        replacement: Replacement text (``re.sub`` syntax)
        description: Optional note shown in debug logs
    """
    pattern: str
    replacement: str
    description: str = ""
    compiled: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "compiled", re.compile(self.pattern))

    def apply(self, text: str) -> Tuple[str, int]:
        """Returns (new_text, number_of_substitutions)."""
        return self.compiled.subn(self.replacement, text)


def rules(*pairs: Tuple[str, str]) -> Tuple[RepairRule, ...]:
    """Builds an ordered repair table from (pattern, replacement) pairs."""
    return tuple(RepairRule(pattern, replacement) for pattern, replacement in pairs)


@dataclass(frozen=True)
class InstitutionProfile:
    """
    Configuration for one institution's OFX exports.

    Attributes:
        institution: Enum member this profile belongs to
        label: Name written to ``source_institution``
        markers: Exact substrings identifying the institution, in priority order
        bank_ids: FEBRABAN codes that resolve a generic <BANKID> to this profile
        repair_rules: Ordered institution-specific repair table
        merge_name_and_memo: Combine NAME and MEMO as "name - memo" when both differ
    """
    institution: Institution
    label: str
    markers: Tuple[str, ...] = ()
    bank_ids: Tuple[str, ...] = ()
    repair_rules: Tuple[RepairRule, ...] = ()
    merge_name_and_memo: bool = False


UNKNOWN_PROFILE = InstitutionProfile(
    institution=Institution.UNKNOWN,
    label=Institution.UNKNOWN.value,
)
