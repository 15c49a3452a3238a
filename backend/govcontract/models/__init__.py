# Import every model so Base.metadata is complete for create_all / alembic.
from .company import Company
from .profile import Profile, Role
from .opportunity import Opportunity
from .opportunity_match import OpportunityMatch
from .application import Application, ApplicationStatus
from .ai_cache import AICacheEntry, CacheTier

__all__ = [
    "Company",
    "Profile",
    "Role",
    "Opportunity",
    "OpportunityMatch",
    "Application",
    "ApplicationStatus",
    "AICacheEntry",
    "CacheTier",
]
