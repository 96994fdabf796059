# app/domains/user/service.py
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.permissions import DEFAULT_ROLE_PERMISSIONS
from app.exceptions.base import NotFoundError, PersistenceError
from models import Permission, Role, User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get a user by ID with roles and their permissions loaded."""
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.roles).selectinload(Role.permissions))
            .where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, name: str, email: str, roles: list[str] | None = None) -> User:
        """Create a new user holding the given roles."""
        user = User(name=name, email=email)
        if roles:
            user.roles = [await self._get_role(role_name) for role_name in roles]

        try:
            self.db.add(user)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to create user: {str(e)}") from e
        return await self.get_user_by_id(user.id)

    async def assign_role(self, user_id: int, role_name: str) -> User:
        """Give a user an additional role."""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", details={"id": user_id})

        role = await self._get_role(role_name)
        if role not in user.roles:
            user.roles.append(role)
            try:
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise PersistenceError(f"Failed to assign role: {str(e)}") from e
        return await self.get_user_by_id(user_id)

    async def ensure_default_roles(self) -> list[Role]:
        """Create the default roles and permissions if missing. Idempotent."""
        result = await self.db.execute(select(Permission))
        permissions = {permission.name: permission for permission in result.scalars().all()}

        for bundle in DEFAULT_ROLE_PERMISSIONS.values():
            for token in bundle:
                if token.value not in permissions:
                    permission = Permission(name=token.value)
                    self.db.add(permission)
                    permissions[token.value] = permission

        result = await self.db.execute(select(Role))
        roles = {role.name: role for role in result.scalars().all()}
        for role_name, bundle in DEFAULT_ROLE_PERMISSIONS.items():
            role = roles.get(role_name)
            if role is None:
                role = Role(name=role_name, permissions=[])
                self.db.add(role)
                roles[role_name] = role
            role.permissions = [permissions[token.value] for token in sorted(bundle)]

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to provision roles: {str(e)}") from e
        return list(roles.values())

    async def _get_role(self, role_name: str) -> Role:
        result = await self.db.execute(select(Role).where(Role.name == role_name))
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError(f"Role '{role_name}' not found", details={"role": role_name})
        return role
