from ofx_ingest.common.models import Institution
from .c6 import C6_BANK
from .safra import SAFRA
from .bb import BANCO_DO_BRASIL

# Detection priority follows insertion order.
PROFILES = {
    Institution.C6_BANK: C6_BANK,
    Institution.SAFRA: SAFRA,
    Institution.BANCO_DO_BRASIL: BANCO_DO_BRASIL,
}

__all__ = [
    'PROFILES',
    'C6_BANK',
    'SAFRA',
    'BANCO_DO_BRASIL',
]
