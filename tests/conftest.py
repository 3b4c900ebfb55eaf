"""
Shared OFX samples and builders.
"""
from datetime import datetime

import pytest

OFX_HEADER = """OFXHEADER:100
DATA:OFXSGML
VERSION:102
SECURITY:NONE
ENCODING:USASCII
CHARSET:1252
COMPRESSION:NONE
OLDFILEUID:NONE
NEWFILEUID:NONE
"""

FIXED_NOW = datetime(2025, 1, 10, 9, 30, 0)


def build_block(**tags) -> str:
    """<STMTTRN> block in SGML style; None values are left out."""
    lines = ["<STMTTRN>"]
    for tag, value in tags.items():
        if value is not None:
            lines.append(f"<{tag.upper()}>{value}")
    lines.append("</STMTTRN>")
    return "\n".join(lines)


def build_ofx(blocks, fi_org=None, bank_id="001", acct_id="12345-6",
              dtserver="20240331120000[-3:BRT]", dtstart="20240301", dtend="20240331") -> str:
    """A complete SGML statement around the given blocks."""
    signon = ["<SIGNONMSGSRSV1>", "<SONRS>", "<STATUS>", "<CODE>0", "<SEVERITY>INFO", "</STATUS>"]
    if dtserver:
        signon.append(f"<DTSERVER>{dtserver}")
    signon.append("<LANGUAGE>POR")
    if fi_org:
        signon += ["<FI>", f"<ORG>{fi_org}", "</FI>"]
    signon += ["</SONRS>", "</SIGNONMSGSRSV1>"]

    account = ["<BANKACCTFROM>"]
    if bank_id:
        account.append(f"<BANKID>{bank_id}")
    if acct_id:
        account.append(f"<ACCTID>{acct_id}")
    account += ["<ACCTTYPE>CHECKING", "</BANKACCTFROM>"]

    body = [
        "<OFX>",
        *signon,
        "<BANKMSGSRSV1>",
        "<STMTTRNRS>",
        "<TRNUID>1001",
        "<STMTRS>",
        "<CURDEF>BRL",
        *account,
        "<BANKTRANLIST>",
        f"<DTSTART>{dtstart}",
        f"<DTEND>{dtend}",
        *blocks,
        "</BANKTRANLIST>",
        "</STMTRS>",
        "</STMTTRNRS>",
        "</BANKMSGSRSV1>",
        "</OFX>",
    ]
    return OFX_HEADER + "\n" + "\n".join(body) + "\n"


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def bb_statement():
    """Banco do Brasil statement with a debit, a credit and a PIX."""
    return build_ofx(
        [
            build_block(trntype="DEBIT", dtposted="20240315", trnamt="-150.00",
                        fitid="T1", memo="Cobran.a Servi.o"),
            build_block(trntype="CREDIT", dtposted="20240316100000[-3:BRT]", trnamt="200.50",
                        fitid="T2", name="Jose Leitao"),
            build_block(trntype="DEBIT", dtposted="20240320", trnamt="-35.90",
                        fitid="T3", refnum="998877", memo="Pix - Enviado"),
        ],
        fi_org="BANCO DO BRASIL",
    )


@pytest.fixture
def c6_statement():
    return build_ofx(
        [
            build_block(trntype="DEBIT", dtposted="20240329120000[-03:BRT]", trnamt="-89.90",
                        fitid="C6-001", name="MERCADO CENTRAL", memo="PAGTO. BOLETO"),
            build_block(trntype="CREDIT", dtposted="20240330", trnamt="1500.00",
                        fitid="C6-002", name="EMPRESA XYZ LTDA", memo="PIX - RECEBIDO"),
            build_block(trntype="DEBIT", dtposted="20240331", trnamt="-20.00",
                        fitid="C6-003", name="PADARIA", memo="PADARIA"),
        ],
        fi_org="C6 BANK",
        bank_id="336",
        acct_id="9988776",
    )


@pytest.fixture
def empty_statement():
    return build_ofx([])
