"""Default permission group catalog and system role templates."""

from agencydesk.models.permission_group import GroupVisibility

CRUD = ("view", "create", "update", "delete")


def group(name: str, label: str, visibility: GroupVisibility = GroupVisibility.PUBLIC) -> dict:
    return {
        "group": name,
        "name": label,
        "description": label,
        "permissions": [
            {
                "key": f"{verb}_{name}",
                "label": f"{verb} {name}".replace("_", " "),
                "description": "",
                "default": False,
            }
            for verb in CRUD
        ],
        "visibility": visibility,
    }


def matrix_from(groups: dict[str, list[str]]) -> dict[str, dict[str, bool]]:
    return {name: {key: True for key in keys} for name, keys in groups.items()}


# Private groups are hidden from owners building roles
DEFAULT_PERMISSION_GROUPS = [
    group("team", "Team Management"),
    group("collaborator", "Collaborators"),
    group("lead", "Lead Management"),
    group("client", "Clients"),
    group("project", "Project Management"),
    group("milestone", "Milestones"),
    group("service", "Service Catalog"),
    group("profile", "Public Profile"),
    group("rate_card", "Rate Cards"),
    group("payment", "Payments"),
    group("invoice", "Invoices"),
    group("role", "Role Management"),
    group("permission_group", "Permission Groups", GroupVisibility.PRIVATE),
    group("admin", "Admin Controls", GroupVisibility.PRIVATE),
]


SYSTEM_ROLE_TEMPLATES = [
    {
        "name": "Viewer",
        "description": "View-only access across modules",
        "permissions": matrix_from(
            {
                "team": ["view_team"],
                "lead": ["view_lead"],
                "project": ["view_project"],
                "profile": ["view_profile"],
                "service": ["view_service"],
                "collaborator": ["view_collaborator"],
                "payment": ["view_payment"],
            }
        ),
    },
    {
        "name": "Manager",
        "description": "Manage team, profiles, projects, services, leads, collaborators",
        "permissions": matrix_from(
            {
                "team": ["view_team", "create_team", "update_team"],
                "lead": ["view_lead", "create_lead", "update_lead"],
                "project": ["view_project", "create_project", "update_project"],
                "profile": ["view_profile", "create_profile", "update_profile"],
                "service": ["view_service", "create_service", "update_service"],
                "collaborator": ["view_collaborator", "create_collaborator", "update_collaborator"],
            }
        ),
    },
    {
        "name": "Sales",
        "description": "Lead and collaborator focused",
        "permissions": matrix_from(
            {
                "lead": ["view_lead", "create_lead", "update_lead"],
                "collaborator": ["view_collaborator", "create_collaborator", "update_collaborator"],
            }
        ),
    },
    {
        "name": "Finance",
        "description": "Invoices and payments",
        "permissions": matrix_from(
            {
                "invoice": ["view_invoice", "create_invoice", "update_invoice"],
                "payment": ["view_payment", "create_payment"],
            }
        ),
    },
    {
        "name": "Role Admin",
        "description": "Can manage roles for the owner",
        "permissions": matrix_from(
            {"role": ["view_role", "create_role", "update_role", "delete_role"]}
        ),
    },
]
