"""
models/__init__.py
------------------
Re-export all models so create_tables.py can import Base and discover
all tables via a single import:

    from estate_crm.models import Base
"""

from estate_crm.db.base import Base
from estate_crm.models.company import Company
from estate_crm.models.user import User
from estate_crm.models.lead import Lead, LeadPropertyInterest, LeadStatus
from estate_crm.models.property import Property, PropertyStatus
from estate_crm.models.apartment import Apartment

__all__ = [
    "Base",
    "Company",
    "User",
    "Lead",
    "LeadPropertyInterest",
    "LeadStatus",
    "Property",
    "PropertyStatus",
    "Apartment",
]
