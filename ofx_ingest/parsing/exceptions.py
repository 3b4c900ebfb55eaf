"""
Exceptions raised by the statement parser.

Problems inside a statement (bad blocks, dates, amounts) are reported in
the import diagnostics. Only a caller handing over something that is not a
statement at all gets an exception.
"""


class StatementImportError(Exception):
    """Base class for statement import errors."""


class InvalidStatementError(StatementImportError):
    """
    Raised when the input cannot be treated as statement text.

    Carries:
    - The filename that failed (when known)
    - A sample of the offending content
    """

    def __init__(self, message: str, filename: str = None, sample_text: str = None):
        self.filename = filename
        self.sample_text = sample_text

        details = []
        if filename:
            details.append(f"Arquivo: {filename}")
        if sample_text:
            details.append(f"Amostra: {sample_text[:200]}...")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)
