from ofx_ingest.common.models import Institution
from ..profile import InstitutionProfile, rules

# BB writes "Dep dinheiro ATM" and similar short forms in MEMO.
BANCO_DO_BRASIL = InstitutionProfile(
    institution=Institution.BANCO_DO_BRASIL,
    label="BANCO DO BRASIL",
    markers=('BANCO DO BRASIL', '<FI>BANCO DO BRASIL</FI>'),
    bank_ids=('001',),
    repair_rules=rules(
        (r'Dep dinheiro ATM', 'Deposito dinheiro ATM'),
        (r'Transf\. ', 'Transferencia '),
    ),
)
