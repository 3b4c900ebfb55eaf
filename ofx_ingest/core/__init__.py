from .diagnostics import DiagnosticsCollector
from .fingerprint import (
    FingerprintStore,
    GateDecision,
    InMemoryFingerprintStore,
    check_fingerprint,
    compute_fingerprint,
)

__all__ = [
    'DiagnosticsCollector',
    'FingerprintStore',
    'GateDecision',
    'InMemoryFingerprintStore',
    'check_fingerprint',
    'compute_fingerprint',
]
