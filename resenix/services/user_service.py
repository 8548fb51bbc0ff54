from datetime import datetime, timezone
from typing import List, Optional
import logging

from pydantic import ValidationError

from ..auth.firebase_auth import FirebaseAuth, firebase_auth
from ..core.exceptions import NotFoundError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.user import PermissionSet, User, UserCreate, UserRole, UserStatus

logger = logging.getLogger(__name__)


class UserService:
    """Profiles in the users collection, plus the matching Firebase Auth accounts."""

    def __init__(self, db: Optional[DatabaseService] = None, auth: Optional[FirebaseAuth] = None):
        self.db = db or database_service
        self.auth = auth or firebase_auth

    async def get_user(self, user_id: str) -> Optional[User]:
        success, doc, error = await self.db.get_document(COLLECTIONS['users'], user_id)
        if not success or not doc:
            logger.debug("User %s not found: %s", user_id, error)
            return None
        try:
            return User(**doc)
        except ValidationError as e:
            logger.error("Stored profile %s is malformed: %s", user_id, e)
            return None

    async def list_users(self, role: Optional[UserRole] = None, status: Optional[UserStatus] = None) -> List[User]:
        filters = []
        if role:
            filters.append(('role', '==', UserRole(role).value))
        if status:
            filters.append(('status', '==', UserStatus(status).value))

        success, docs, error = await self.db.query_documents(COLLECTIONS['users'], filters or None)
        if not success:
            raise PersistenceError(error or "Failed to list users")

        users = []
        for doc in docs:
            try:
                users.append(User(**doc))
            except ValidationError as e:
                logger.warning("Skipping malformed user profile %s: %s", doc.get('id'), e)
        users.sort(key=lambda u: u.email)
        return users

    async def create_user(self, payload: UserCreate) -> User:
        account = await self.auth.create_user(payload.email, payload.password)
        permissions = payload.permissions or PermissionSet.for_role(payload.role)
        now = datetime.now(timezone.utc)

        profile = {
            'email': payload.email,
            'role': payload.role.value,
            'status': payload.status.value,
            'permissions': permissions.dict(),
            'created_at': now,
            'updated_at': now,
        }
        success, doc_id, error = await self.db.create_document(
            COLLECTIONS['users'], profile, document_id=account['uid']
        )
        if not success:
            # Do not leave an auth account without a profile behind
            await self.auth.delete_user(account['uid'])
            raise PersistenceError(error or "Failed to store user profile")

        logger.info("Created user %s (%s)", payload.email, payload.role.value)
        return User(id=doc_id, **profile)

    async def _update(self, user_id: str, data: dict) -> User:
        data['updated_at'] = datetime.now(timezone.utc)
        success, error = await self.db.update_document(COLLECTIONS['users'], user_id, data)
        if not success:
            raise NotFoundError("User", user_id) if "not found" in (error or "") else PersistenceError(error)
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def update_permissions(self, user_id: str, permissions: PermissionSet) -> User:
        return await self._update(user_id, {'permissions': permissions.dict()})

    async def update_status(self, user_id: str, status: UserStatus) -> User:
        user = await self._update(user_id, {'status': UserStatus(status).value})
        await self.auth.update_user(user_id, disabled=user.status == UserStatus.INACTIVE)
        return user

    async def update_role(self, user_id: str, role: UserRole, reset_permissions: bool = False) -> User:
        data = {'role': UserRole(role).value}
        if reset_permissions:
            data['permissions'] = PermissionSet.for_role(role).dict()
        return await self._update(user_id, data)

    async def delete_user(self, user_id: str) -> None:
        if await self.get_user(user_id) is None:
            raise NotFoundError("User", user_id)
        success, error = await self.db.delete_document(COLLECTIONS['users'], user_id)
        if not success:
            raise PersistenceError(error or "Failed to delete user profile")
        await self.auth.delete_user(user_id)
        logger.info("Deleted user %s", user_id)


user_service = UserService()
