from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, root_validator
from typing import Any, Dict, Optional
from enum import Enum
from datetime import datetime

# ──────────────────────────────────────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────────────────────────────────────

class UserRole(str, Enum):
    ADMIN = "admin"
    VIEWER = "viewer"
    CUSTOM = "custom"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Resource(str, Enum):
    EQUIPMENTS = "equipments"
    TASKS = "tasks"
    USERS = "users"
    REPORTS = "reports"
    DASHBOARD = "dashboard"
    INVOICES = "invoices"
    ORDERS = "orders"


class Action(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    ADMIN = "admin"


# ──────────────────────────────────────────────────────────────────────────────
# Permissions
# ──────────────────────────────────────────────────────────────────────────────

class ResourcePermissions(BaseModel):
    view: bool = False
    edit: bool = False
    delete: bool = False
    admin: bool = False

    class Config:
        extra = "forbid"

    @classmethod
    def all(cls) -> "ResourcePermissions":
        return cls(view=True, edit=True, delete=True, admin=True)


class PermissionSet(BaseModel):
    """
    Per-resource grants. Every resource is an explicit field, so an unknown
    resource or action in stored data is rejected when the set is built.
    """

    equipments: ResourcePermissions = Field(default_factory=ResourcePermissions)
    tasks: ResourcePermissions = Field(default_factory=ResourcePermissions)
    users: ResourcePermissions = Field(default_factory=ResourcePermissions)
    reports: ResourcePermissions = Field(default_factory=ResourcePermissions)
    dashboard: ResourcePermissions = Field(default_factory=ResourcePermissions)
    invoices: ResourcePermissions = Field(default_factory=ResourcePermissions)
    orders: ResourcePermissions = Field(default_factory=ResourcePermissions)

    class Config:
        extra = "forbid"

    @root_validator(pre=True)
    def _fold_legacy(cls, v: Any) -> Dict:
        # Early accounts were written with `permissions: "view"`
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            action = Action(v)
            return {r.value: {action.value: True} for r in Resource}
        return v

    def allows(self, resource: Resource | str, action: Action | str) -> bool:
        grants: ResourcePermissions = getattr(self, Resource(resource).value)
        return bool(getattr(grants, Action(action).value))

    def grant(self, resource: Resource | str, action: Action | str, value: bool = True) -> "PermissionSet":
        data = self.dict()
        data[Resource(resource).value][Action(action).value] = value
        return PermissionSet(**data)

    @classmethod
    def full(cls) -> "PermissionSet":
        return cls(**{r.value: ResourcePermissions.all() for r in Resource})

    @classmethod
    def view_only(cls) -> "PermissionSet":
        return cls(**{r.value: ResourcePermissions(view=True) for r in Resource})

    @classmethod
    def for_role(cls, role: UserRole | str) -> "PermissionSet":
        """Default grants stored for a new account of the given role."""
        role = UserRole(role)
        if role == UserRole.ADMIN:
            return cls.full()
        if role == UserRole.VIEWER:
            return cls.view_only()
        return cls()


# ──────────────────────────────────────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────────────────────────────────────

class User(BaseModel):
    id: str
    email: EmailStr
    role: UserRole = UserRole.VIEWER
    status: UserStatus = UserStatus.ACTIVE
    permissions: PermissionSet = Field(default_factory=PermissionSet)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @root_validator(pre=True)
    def _fold_legacy(cls, v: Dict) -> Dict:
        v = dict(v)
        v.setdefault("id", v.get("uid") or v.get("_doc_id"))
        # Legacy profiles used a boolean `active` flag
        if "status" not in v and "active" in v:
            v["status"] = UserStatus.ACTIVE if v.pop("active") else UserStatus.INACTIVE
        v.pop("_doc_id", None)
        v.pop("uid", None)
        return v

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.VIEWER
    status: UserStatus = UserStatus.ACTIVE
    permissions: Optional[PermissionSet] = None


class PermissionsUpdate(BaseModel):
    permissions: PermissionSet


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserRoleUpdate(BaseModel):
    role: UserRole
    reset_permissions: bool = False


class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    status: UserStatus
    permissions: PermissionSet
