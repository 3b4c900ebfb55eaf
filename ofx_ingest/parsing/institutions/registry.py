"""
Institution Registry

Classifies a statement by institution and hands out the matching profile.
Classification never fails: anything unrecognised degrades to UNKNOWN.
"""
from typing import Dict, Optional

from ofx_ingest.common.logging_config import get_logger
from ofx_ingest.common.models import Institution, InstitutionMatch
from ofx_ingest.common.tags import find_tag
from .banks import PROFILES
from .profile import InstitutionProfile, UNKNOWN_PROFILE

logger = get_logger(__name__)

# Generic identity tags, highest priority first
IDENTITY_TAGS = ('FI', 'BANKID', 'ORG')


def _normalize_code(code: str) -> str:
    return code.replace(".", "").strip().lstrip("0")


class InstitutionRegistry:
    """
    Registry of institution profiles.

    Marker detection walks profiles in registration order, so earlier
    profiles win when a document carries markers of several institutions.
    """

    def __init__(self, profiles: Optional[Dict[Institution, InstitutionProfile]] = None):
        self.profiles: Dict[Institution, InstitutionProfile] = dict(PROFILES if profiles is None else profiles)

    def get_profile(self, institution: Institution) -> InstitutionProfile:
        return self.profiles.get(institution, UNKNOWN_PROFILE)

    def resolve_tag_value(self, value: str) -> Institution:
        """Maps a raw FI/BANKID/ORG value to a known institution, if any."""
        code = _normalize_code(value)
        upper = value.strip().upper()
        for institution, profile in self.profiles.items():
            if upper == profile.label.upper():
                return institution
            if code and code in (_normalize_code(b) for b in profile.bank_ids):
                return institution
        return Institution.UNKNOWN

    def detect(self, text: str) -> InstitutionMatch:
        """
        Identify the institution that produced ``text``.

        1. Exact marker substrings, per profile, in priority order
        2. Generic identity tags <FI>, <BANKID>, <ORG>
        3. UNKNOWN
        """
        text = text or ""
        for institution, profile in self.profiles.items():
            for marker in profile.markers:
                if marker in text:
                    logger.debug(f"Institution identified by marker: {marker!r}", institution=profile.label)
                    return InstitutionMatch(institution, profile.label, f"marker:{marker}")

        for tag in IDENTITY_TAGS:
            value = find_tag(text, tag)
            if value:
                institution = self.resolve_tag_value(value)
                label = self.get_profile(institution).label if institution is not Institution.UNKNOWN else value
                logger.debug(f"Institution identified via tag {tag}: {value}", institution=label)
                return InstitutionMatch(institution, label, f"tag:{tag}")

        logger.warning("Could not identify the institution of the statement")
        return InstitutionMatch(Institution.UNKNOWN, Institution.UNKNOWN.value, "none")


default_registry = InstitutionRegistry()


def detect_institution(text: str) -> InstitutionMatch:
    """Classifies ``text`` with the built-in profiles."""
    return default_registry.detect(text)


def get_profile(institution: Institution) -> InstitutionProfile:
    return default_registry.get_profile(institution)
