"""
Text Repair Engine

Statement exports arrive with deterministic corruption: accented letters
replaced by '?', '.', or a UTF-8 byte pair decoded as cp1252, plus
institution-specific abbreviations. Repair is a fixed sequence of
substitution tables:

1. GLOBAL_REPAIR_RULES, applied to every document, in table order
2. the institution profile's own table
3. removal of anything outside printable ASCII (tab/CR/LF kept)
"""
import re
from typing import Iterable, Optional

from ofx_ingest.common.logging_config import get_logger
from .institutions.profile import InstitutionProfile, RepairRule, rules

logger = get_logger(__name__)

# One corrupted character: a single stand-in, or a mojibake pair starting
# with U+00C3. Never crosses a tag boundary or whitespace.
_X = r'(?:\u00c3[^<\s]|[^<\s])'
# End of word
_EOW = r'(?![A-Za-z0-9])'

GLOBAL_REPAIR_RULES = rules(
    (rf'Cobran{_X}a', 'Cobranca'),
    (rf'COBRAN{_X}A', 'COBRANCA'),
    (r'I\.O\.F\.', 'IOF'),
    (rf'Servi{_X}o', 'Servico'),
    (rf'SERVI{_X}O', 'SERVICO'),
    (rf'cr{_X}dito', 'credito'),
    (rf'CR{_X}DITO', 'CREDITO'),
    (rf'd{_X}bito', 'debito'),
    (rf'D{_X}BITO', 'DEBITO'),
    (rf'cart{_X}o', 'cartao'),
    (rf'CART{_X}O', 'CARTAO'),
    (rf'Dep{_X}sito', 'Deposito'),
    (rf'DEP{_X}SITO', 'DEPOSITO'),
    (rf'Transfer{_X}ncia', 'Transferencia'),
    (rf'TRANSFER{_X}NCIA', 'TRANSFERENCIA'),
    (r'Dep [^<\r\n]+? dinheiro', 'Deposito em dinheiro'),
    (rf'Jos{_X}{_EOW}', 'Jose'),
    (rf'Leit{_X}o', 'Leitao'),
    # Runs after Servi?o so the whole word is consumed
    (r'Tarifa [^<\r\n]+? Servi[^<\s]*', 'Tarifa de Servicos'),
)

NON_PRINTABLE = re.compile(r'[^\t\n\r\x20-\x7e]')


def apply_rules(text: str, table: Iterable[RepairRule], table_name: str = "") -> str:
    """Applies each rule of ``table`` to ``text`` in order."""
    for rule in table:
        text, count = rule.apply(text)
        if count:
            logger.debug(
                f"Repair rule applied: {rule.pattern!r}",
                table=table_name,
                replacements=count,
            )
    return text


def strip_non_printable(text: str) -> str:
    return NON_PRINTABLE.sub('', text)


def repair_text(text: str, profile: Optional[InstitutionProfile] = None) -> str:
    """
    Runs the full repair sequence for a statement.

    Args:
        text: Raw decoded statement text
        profile: Profile of the detected institution, or None when unknown

    Returns:
        Repaired text containing printable ASCII and line breaks only
    """
    repaired = apply_rules(text or "", GLOBAL_REPAIR_RULES, "global")
    if profile is not None and profile.repair_rules:
        logger.debug(f"Applying repair rules for {profile.label}", rule_count=len(profile.repair_rules))
        repaired = apply_rules(repaired, profile.repair_rules, profile.label)
    return strip_non_printable(repaired)
