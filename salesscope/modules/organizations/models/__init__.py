# salesscope/modules/organizations/models/__init__.py

from .organization_models import Organization, User

__all__ = ["Organization", "User"]
