from .ofx import OfxStatementParser, decode_statement

__all__ = ['OfxStatementParser', 'decode_statement']
