from sqlalchemy.orm import Session
from agencydesk.models.role import Role


class RoleRepository:
    """Repository for Role model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, role_id: int) -> Role | None:
        """Get role by ID"""
        return self.db.query(Role).filter(Role.id == role_id).first()

    def get_by_name(self, name: str, created_by: int | None) -> Role | None:
        """
        Get role by exact name within one owner's scope.

        Args:
            name: Trimmed role name (case-sensitive)
            created_by: Owner user ID, or None for system templates

        Returns:
            Role or None if the name is free
        """
        query = self.db.query(Role).filter(Role.name == name)
        if created_by is None:
            query = query.filter(Role.created_by.is_(None))
        else:
            query = query.filter(Role.created_by == created_by)
        return query.first()

    def get_system_roles(self) -> list[Role]:
        """Get all admin-managed role templates"""
        return (
            self.db.query(Role)
            .filter(Role.is_system_role.is_(True))
            .order_by(Role.id)
            .all()
        )

    def create(self, role: Role) -> Role:
        """
        Create new role.

        Raises:
            IntegrityError: If (name, created_by) already exists
        """
        self.db.add(role)
        self.db.commit()
        self.db.refresh(role)
        return role

    def update(self, role: Role) -> Role:
        """Update role"""
        self.db.commit()
        self.db.refresh(role)
        return role

    def delete(self, role: Role) -> None:
        """Delete role"""
        self.db.delete(role)
        self.db.commit()
