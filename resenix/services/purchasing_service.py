from datetime import datetime, timezone
from typing import List, Optional
import logging

from pydantic import ValidationError

from ..core.exceptions import ConflictError, NotFoundError, PersistenceError
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService, database_service
from ..models.database_models import (
    ApprovalStatus,
    OrderCreate,
    OrderItem,
    PurchaseOrder,
    PurchaseRequisition,
    RequisitionCreate,
    Vendor,
)
from .document_number_service import DocumentNumberService, document_number_service

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    return round(value, 2)


def compute_order_totals(items: List[OrderItem], tax_rate: float, shipping_cost: float) -> dict:
    """Line totals, subtotal, tax (tax_rate is a percentage) and grand total."""
    priced = [item.copy(update={"line_total": _money(item.quantity * item.unit_cost)}) for item in items]
    subtotal = _money(sum(item.line_total for item in priced))
    tax_amount = _money(subtotal * tax_rate / 100)
    return {
        "items": priced,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": _money(subtotal + tax_amount + shipping_cost),
    }


class PurchasingService:
    """Purchase requisitions, the purchase orders raised from them, and vendors."""

    def __init__(self, db: Optional[DatabaseService] = None, numbers: Optional[DocumentNumberService] = None):
        self.db = db or database_service
        self.numbers = numbers or document_number_service

    # ── Requisitions ─────────────────────────────────────────────────────────

    async def create_requisition(self, payload: RequisitionCreate) -> PurchaseRequisition:
        pr_number = await self.numbers.next_number("PR")
        data = payload.dict()
        data.update({
            "pr_number": pr_number,
            "date": datetime.now(timezone.utc),
            "status": ApprovalStatus.PENDING.value,
        })
        success, doc_id, error = await self.db.create_document(COLLECTIONS["requisitions"], data)
        if not success:
            raise PersistenceError(error or "Failed to create requisition")
        logger.info(f"Created requisition {pr_number} for {payload.department}")
        return PurchaseRequisition(id=doc_id, **data)

    async def list_requisitions(self, status: Optional[ApprovalStatus] = None) -> List[PurchaseRequisition]:
        filters = [("status", "==", ApprovalStatus(status).value)] if status else None
        success, docs, error = await self.db.query_documents(COLLECTIONS["requisitions"], filters)
        if not success:
            raise PersistenceError(error or "Failed to list requisitions")
        return self._parse_all(PurchaseRequisition, docs, key=lambda pr: pr.pr_number)

    async def get_requisition_by_number(self, pr_number: str) -> PurchaseRequisition:
        success, docs, error = await self.db.query_documents(
            COLLECTIONS["requisitions"], [("pr_number", "==", pr_number)], limit=1
        )
        if not success:
            raise PersistenceError(error or "Failed to look up requisition")
        if not docs:
            raise NotFoundError("Requisition", pr_number)
        return PurchaseRequisition(**docs[0])

    async def update_requisition_status(self, requisition_id: str, status: ApprovalStatus) -> None:
        success, error = await self.db.update_document(
            COLLECTIONS["requisitions"], requisition_id, {"status": ApprovalStatus(status).value}
        )
        if not success:
            raise NotFoundError("Requisition", requisition_id)
        logger.info(f"Requisition {requisition_id} marked {ApprovalStatus(status).value}")

    # ── Orders ───────────────────────────────────────────────────────────────

    async def create_order(self, payload: OrderCreate) -> PurchaseOrder:
        """Raise a PO against an approved requisition."""
        requisition = await self.get_requisition_by_number(payload.pr_number)
        if requisition.status != ApprovalStatus.APPROVED:
            raise ConflictError(
                f"Requisition {payload.pr_number} is {requisition.status.value}; only approved requisitions can be ordered"
            )

        totals = compute_order_totals(payload.items, payload.tax_rate, payload.shipping_cost)
        po_number = await self.numbers.next_number("PO")
        data = payload.dict(exclude={"items"})
        data.update({
            "po_number": po_number,
            "items": [item.dict() for item in totals["items"]],
            "subtotal": totals["subtotal"],
            "tax_amount": totals["tax_amount"],
            "total": totals["total"],
            "status": ApprovalStatus.PENDING.value,
            "created_at": datetime.now(timezone.utc),
        })
        success, doc_id, error = await self.db.create_document(COLLECTIONS["orders"], data)
        if not success:
            raise PersistenceError(error or "Failed to create purchase order")
        logger.info(f"Created purchase order {po_number} from {payload.pr_number} (total {data['total']})")
        return PurchaseOrder(id=doc_id, **data)

    async def list_orders(self, status: Optional[ApprovalStatus] = None) -> List[PurchaseOrder]:
        filters = [("status", "==", ApprovalStatus(status).value)] if status else None
        success, docs, error = await self.db.query_documents(COLLECTIONS["orders"], filters)
        if not success:
            raise PersistenceError(error or "Failed to list purchase orders")
        return self._parse_all(PurchaseOrder, docs, key=lambda po: po.po_number)

    async def update_order_status(self, order_id: str, status: ApprovalStatus) -> None:
        success, error = await self.db.update_document(
            COLLECTIONS["orders"], order_id, {"status": ApprovalStatus(status).value}
        )
        if not success:
            raise NotFoundError("Order", order_id)
        logger.info(f"Order {order_id} marked {ApprovalStatus(status).value}")

    # ── Vendors ──────────────────────────────────────────────────────────────

    async def list_vendors(self) -> List[Vendor]:
        success, docs, error = await self.db.query_documents(COLLECTIONS["vendors"])
        if not success:
            raise PersistenceError(error or "Failed to list vendors")
        return self._parse_all(Vendor, docs, key=lambda v: v.name.lower())

    async def get_vendor(self, vendor_id: str) -> Vendor:
        success, doc, _ = await self.db.get_document(COLLECTIONS["vendors"], vendor_id)
        if not success or not doc:
            raise NotFoundError("Vendor", vendor_id)
        return Vendor(**doc)

    async def create_vendor(self, vendor: Vendor) -> Vendor:
        data = vendor.dict(exclude={"id"}, exclude_none=True)
        success, doc_id, error = await self.db.create_document(COLLECTIONS["vendors"], data)
        if not success:
            raise PersistenceError(error or "Failed to create vendor")
        return vendor.copy(update={"id": doc_id})

    @staticmethod
    def _parse_all(model, docs, key):
        parsed = []
        for doc in docs:
            try:
                parsed.append(model(**doc))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {model.__name__} {doc.get('id')}: {e}")
        parsed.sort(key=key)
        return parsed


purchasing_service = PurchasingService()
