from pydantic import BaseModel, Field, root_validator, validator
from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime
from enum import Enum

# Raw timestamp shapes found in stored documents: datetime, ISO string, or
# the {"seconds", "nanoseconds"} pair emitted by client SDKs.
RawTimestamp = Union[datetime, str, Dict[str, Any]]


def _fold_keys(values: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    """Copy camelCase keys sent by the dashboard onto their snake_case names."""
    out = dict(values)
    for camel, snake in mapping.items():
        if camel in out:
            value = out.pop(camel)
            out.setdefault(snake, value)
    out.pop("_doc_id", None)
    return out


class EquipmentStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    DECOMMISSIONED = "decommissioned"


class AssetType(str, Enum):
    HOURS = "hr"
    KILOMETERS = "km"
    DAV = "dav"


class TaskStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportType(str, Enum):
    GENERAL = "general"
    EQUIPMENT = "equipment"


# ──────────────────────────────────────────────────────────────────────────────
# Equipment
# ──────────────────────────────────────────────────────────────────────────────

EQUIPMENT_KEYS = {
    "serialNumber": "serial_number",
    "assetNumber": "asset_number",
    "assetType": "asset_type",
    "imageUrl": "image_url",
    "operatingHours": "operating_hours",
    "cumulativeHours": "cumulative_hours",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


class Equipment(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=2)
    serial_number: str = Field(..., min_length=2)
    asset_number: str = Field(..., min_length=2)
    asset_type: AssetType = AssetType.HOURS
    location: str = Field(..., min_length=2)
    status: EquipmentStatus = EquipmentStatus.ACTIVE
    image_url: Optional[str] = None
    operating_hours: float = Field(..., ge=0)  # usage budget before next maintenance
    cumulative_hours: float = Field(default=0, ge=0)  # sum of logged usage
    created_at: Optional[RawTimestamp] = None
    updated_at: Optional[datetime] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, EQUIPMENT_KEYS)


class EquipmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    serial_number: Optional[str] = Field(None, min_length=2)
    asset_number: Optional[str] = Field(None, min_length=2)
    asset_type: Optional[AssetType] = None
    location: Optional[str] = Field(None, min_length=2)
    status: Optional[EquipmentStatus] = None
    image_url: Optional[str] = None
    operating_hours: Optional[float] = Field(None, ge=0)

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, EQUIPMENT_KEYS)


class EquipmentStatusUpdate(BaseModel):
    status: EquipmentStatus


# ──────────────────────────────────────────────────────────────────────────────
# Usage log
# ──────────────────────────────────────────────────────────────────────────────

class UsageRecord(BaseModel):
    date: str  # YYYY-MM-DD, one record per day
    hours_worked: float = Field(..., ge=0)

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"hoursWorked": "hours_worked"})

    @validator("date", pre=True)
    def _normalize_date(cls, value):
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return date.fromisoformat(str(value)[:10]).isoformat()


class LogHoursRequest(BaseModel):
    date: date
    hours_worked: float

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"hoursWorked": "hours_worked"})


class MaintenanceEvent(BaseModel):
    maintenance_date: str
    maintenance_type: str
    previous_hours: float = 0

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {
            "maintenanceDate": "maintenance_date",
            "maintenanceType": "maintenance_type",
            "previousHours": "previous_hours",
        })


class EquipmentUsage(BaseModel):
    id: Optional[str] = None
    equipment_id: str
    usage: List[UsageRecord] = []
    maintenances: List[MaintenanceEvent] = []

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"equipmentId": "equipment_id"})


# ──────────────────────────────────────────────────────────────────────────────
# Maintenance tasks
# ──────────────────────────────────────────────────────────────────────────────

class TaskResource(BaseModel):
    resource: str = Field(..., min_length=2)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=2)


TASK_KEYS = {
    "equipmentId": "equipment_id",
    "maintenanceType": "maintenance_type",
    "dueDate": "due_date",
    "createdAt": "created_at",
    "completedAt": "completed_at",
}


class MaintenanceTask(BaseModel):
    id: Optional[str] = None
    equipment_id: str
    maintenance_type: str = Field(..., min_length=2)
    due_date: str
    status: TaskStatus = TaskStatus.SCHEDULED
    resources: List[TaskResource] = []
    notes: str = ""
    created_at: Optional[RawTimestamp] = None
    completed_at: Optional[str] = None  # set once, on completion

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, TASK_KEYS)


class TaskCreate(BaseModel):
    equipment_id: str = Field(..., min_length=1)
    maintenance_type: str = Field(..., min_length=2)
    due_date: date
    resources: List[TaskResource] = []
    notes: str = ""

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, TASK_KEYS)


class TaskUpdate(BaseModel):
    equipment_id: Optional[str] = None
    maintenance_type: Optional[str] = Field(None, min_length=2)
    due_date: Optional[date] = None
    resources: Optional[List[TaskResource]] = None
    notes: Optional[str] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, TASK_KEYS)


# ──────────────────────────────────────────────────────────────────────────────
# Purchasing
# ──────────────────────────────────────────────────────────────────────────────

class RequisitionItem(BaseModel):
    material: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1)
    photo: Optional[str] = None

    @root_validator(pre=True)
    def _fold_legacy(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"qty": "quantity", "image": "photo"})


class PurchaseRequisition(BaseModel):
    id: Optional[str] = None
    pr_number: str
    date: Optional[RawTimestamp] = None
    requester: str
    location: str
    department: str
    items: List[RequisitionItem]
    status: ApprovalStatus = ApprovalStatus.PENDING
    justification: Optional[str] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"prNumber": "pr_number"})


class RequisitionCreate(BaseModel):
    requester: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    items: List[RequisitionItem] = Field(..., min_length=1)
    justification: Optional[str] = None


class OrderItem(BaseModel):
    material: str
    description: str = ""
    quantity: float = Field(..., gt=0)
    unit: str
    unit_cost: float = Field(..., ge=0)
    line_total: Optional[float] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {"qty": "quantity", "unitCost": "unit_cost", "lineTotal": "line_total"})


ORDER_KEYS = {
    "poNumber": "po_number",
    "prNumber": "pr_number",
    "paymentTerms": "payment_terms",
    "deliveryDate": "delivery_date",
    "taxRate": "tax_rate",
    "taxAmount": "tax_amount",
    "shippingCost": "shipping_cost",
}


class PurchaseOrder(BaseModel):
    id: Optional[str] = None
    po_number: str
    pr_number: str
    vendor: str
    payment_terms: str
    delivery_date: str
    items: List[OrderItem]
    subtotal: float
    tax_rate: float = 0  # percent
    tax_amount: float
    shipping_cost: float = 0
    total: float
    notes: Optional[str] = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    created_at: Optional[RawTimestamp] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, ORDER_KEYS)


class OrderCreate(BaseModel):
    pr_number: str = Field(..., min_length=1)
    vendor: str = Field(..., min_length=1)
    payment_terms: str = Field(..., min_length=1)
    delivery_date: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    tax_rate: float = Field(default=0, ge=0)
    shipping_cost: float = Field(default=0, ge=0)
    notes: Optional[str] = None

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, ORDER_KEYS)


class StatusUpdate(BaseModel):
    status: ApprovalStatus


class Vendor(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @root_validator(pre=True)
    def _strip_doc_id(cls, v: Dict) -> Dict:
        return _fold_keys(v, {})


# ──────────────────────────────────────────────────────────────────────────────
# Reports
# ──────────────────────────────────────────────────────────────────────────────

class Report(BaseModel):
    id: Optional[str] = None
    file_name: str
    file_url: Optional[str] = None
    type: ReportType
    equipment_id: Optional[str] = None
    equipment_name: Optional[str] = None
    generated_at: datetime
    generated_by: str
    file_size: int = 0

    @root_validator(pre=True)
    def _fold_camel_case(cls, v: Dict) -> Dict:
        return _fold_keys(v, {
            "fileName": "file_name",
            "fileUrl": "file_url",
            "equipmentId": "equipment_id",
            "equipmentName": "equipment_name",
            "generatedAt": "generated_at",
            "generatedBy": "generated_by",
            "fileSize": "file_size",
        })
