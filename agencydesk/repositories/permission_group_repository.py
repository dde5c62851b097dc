from sqlalchemy.orm import Session
from agencydesk.models.permission_group import GroupVisibility, PermissionGroup


class PermissionGroupRepository:
    """Repository for the permission group catalog"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, public_only: bool = False) -> list[PermissionGroup]:
        """Get catalog entries ordered by group name"""
        query = self.db.query(PermissionGroup)
        if public_only:
            query = query.filter(PermissionGroup.visibility == GroupVisibility.PUBLIC)
        return query.order_by(PermissionGroup.group).all()

    def get_by_group(self, group: str) -> PermissionGroup | None:
        """Get catalog entry by group name"""
        return self.db.query(PermissionGroup).filter(PermissionGroup.group == group).first()

    def catalog(self, public_only: bool = False) -> dict[str, set[str]]:
        """Group name -> declared action keys"""
        return {entry.group: entry.keys for entry in self.get_all(public_only=public_only)}

    def create(self, entry: PermissionGroup) -> PermissionGroup:
        """Create new catalog entry"""
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry
