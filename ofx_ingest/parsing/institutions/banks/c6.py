from ofx_ingest.common.models import Institution
from ..profile import InstitutionProfile, rules

# C6 exports hyphenated PIX labels, abbreviated payments and leftover
# "??" / UTF-8 lead bytes where accented letters used to be.
C6_BANK = InstitutionProfile(
    institution=Institution.C6_BANK,
    label="C6 BANK",
    markers=('C6 BANK', '<FI>C6 BANK</FI>', 'c6bank', 'C6BANK'),
    bank_ids=('336',),
    repair_rules=rules(
        (r'PIX - ENVIADO', 'PIX ENVIADO'),
        (r'PIX - RECEBIDO', 'PIX RECEBIDO'),
        (r'TRANSF\. ENTRE CONTAS', 'TRANSFERENCIA ENTRE CONTAS'),
        (r'PAGTO\.', 'PAGAMENTO'),
        (r'\?\?', ''),
        (r'\u00c3[\u0080-\u00bf]', ''),
    ),
    merge_name_and_memo=True,
)
