from functools import lru_cache

from ofx_ingest.common.settings import Settings, load_settings
from ofx_ingest.core.fingerprint import InMemoryFingerprintStore

# Process-wide fingerprint store, one scope per wallet.
# A deployment backed by a database replaces this with a store whose
# add_if_absent is a single atomic INSERT.
fingerprint_store = InMemoryFingerprintStore()


def get_fingerprint_store() -> InMemoryFingerprintStore:
    """FastAPI dependency; override in tests or deployments."""
    return fingerprint_store


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
