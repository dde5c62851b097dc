"""Import every model so that Base.metadata knows all tables."""

from agencydesk.models.base import Base
from agencydesk.models.user import User
from agencydesk.models.admin import Admin
from agencydesk.models.permission_group import PermissionGroup
from agencydesk.models.role import Role
from agencydesk.models.team_member import TeamMember
from agencydesk.models.client import Client
from agencydesk.models.service import Service
from agencydesk.models.collaborator import Collaborator
from agencydesk.models.rate_card import RateCard
from agencydesk.models.public_profile import PublicProfile
from agencydesk.models.project import Project
from agencydesk.models.milestone import Milestone, MilestoneUpload
from agencydesk.models.invoice import Invoice
from agencydesk.models.payment import Payment
from agencydesk.models.lead import Lead

__all__ = [
    "Base",
    "User",
    "Admin",
    "PermissionGroup",
    "Role",
    "TeamMember",
    "Client",
    "Service",
    "Collaborator",
    "RateCard",
    "PublicProfile",
    "Project",
    "Milestone",
    "MilestoneUpload",
    "Invoice",
    "Payment",
    "Lead",
]
