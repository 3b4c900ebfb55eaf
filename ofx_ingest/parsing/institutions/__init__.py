from .profile import InstitutionProfile, RepairRule, UNKNOWN_PROFILE, rules
from .registry import InstitutionRegistry, default_registry, detect_institution, get_profile

__all__ = [
    'InstitutionProfile',
    'RepairRule',
    'UNKNOWN_PROFILE',
    'rules',
    'InstitutionRegistry',
    'default_registry',
    'detect_institution',
    'get_profile',
]
