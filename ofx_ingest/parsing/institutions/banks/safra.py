from ofx_ingest.common.models import Institution
from ..profile import InstitutionProfile, rules

SAFRA = InstitutionProfile(
    institution=Institution.SAFRA,
    label="SAFRA",
    markers=('SAFRA', '<FI>SAFRA</FI>', 'BANCO SAFRA', 'BANCOSAFRA'),
    bank_ids=('422', '074'),
    repair_rules=rules(
        (r'SAQ\.', 'SAQUE'),
        (r'PGTO\.', 'PAGAMENTO'),
        (r'DEP\.', 'DEPOSITO'),
        (r'--', '-'),
        # Safra pads memos with runs of blanks; line breaks are left alone
        (r'[ \t]{2,}', ' '),
        (r'\u00c3[\u0080-\u00bf]', ''),
    ),
    merge_name_and_memo=True,
)
