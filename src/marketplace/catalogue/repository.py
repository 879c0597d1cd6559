"""Product queries and the conditional stock writes."""

from datetime import UTC, datetime

import structlog
from protean import Q
from protean.exceptions import ValidationError

from marketplace.catalogue.product import Product, ProductStatus
from marketplace.domain import marketplace
from marketplace.shared.pagination import Page, paginate

logger = structlog.get_logger(__name__)

# Re-reads allowed when another writer changed on_hand between our read and
# our conditional write but enough stock may still remain.
DECREMENT_ATTEMPTS = 3

# Providers whose DAO accepts column expressions in update_all
SQL_PROVIDERS = ("sqlite", "postgresql")


@marketplace.repository(part_of=Product)
class ProductRepository:
    def _current(self, product_id) -> Product | None:
        return self._dao.query.filter(id=str(product_id)).all().first

    def active_by_ids(self, product_ids) -> list[Product]:
        """Load the distinct requested products that are currently active, in one query."""
        ids = list(dict.fromkeys(str(pid) for pid in product_ids))
        if not ids:
            return []
        return list(
            self._dao.query.filter(id__in=ids, status=ProductStatus.ACTIVE.value).limit(len(ids)).all().items
        )

    def list_active(self, supplier_id=None, search=None, page=None, limit=None) -> Page:
        return self.list_products(
            status=ProductStatus.ACTIVE.value, supplier_id=supplier_id, search=search, page=page, limit=limit
        )

    def list_products(self, status=None, supplier_id=None, search=None, page=None, limit=None) -> Page:
        criteria = {}
        if status:
            criteria["status"] = ProductStatus.parse(status).value
        if supplier_id:
            criteria["supplier_id"] = str(supplier_id)
        queryset = self._dao.query.filter(**criteria) if criteria else self._dao.query
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return paginate(queryset, page=page, limit=limit)

    def decrement_stock(self, product_id, quantity: int, attempts: int = DECREMENT_ATTEMPTS) -> bool:
        """Take ``quantity`` units if, at write time, at least that many are on hand.

        On SQL stores this is a single ``UPDATE ... SET on_hand = on_hand - n
        WHERE id = ? AND on_hand >= n``, so it lands whenever enough stock
        remains, whatever other writers did since the caller's read.

        The in-memory store cannot express a relative update, so there the
        write is conditioned on the value just read (and on it still covering
        ``quantity``). On a lost race the count is re-read; the call gives up
        once stock is short or the attempts run out.

        Returns ``True`` when exactly one row was updated.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        if self._provider.conn_info["provider"] in SQL_PROVIDERS:
            on_hand = self._dao.database_model_cls.on_hand
            updated = self._dao.query.filter(id=str(product_id), on_hand__gte=quantity).update_all(
                on_hand=on_hand - quantity, updated_at=datetime.now(UTC)
            )
            return updated == 1

        for attempt in range(1, attempts + 1):
            current = self._current(product_id)
            if current is None or current.on_hand < quantity:
                return False

            updated = self._dao.query.filter(
                id=str(product_id), on_hand=current.on_hand, on_hand__gte=quantity
            ).update_all(on_hand=current.on_hand - quantity, updated_at=datetime.now(UTC))
            if updated == 1:
                return True

            logger.info(
                "stock_decrement_conflict",
                product_id=str(product_id),
                observed_on_hand=current.on_hand,
                attempt=attempt,
            )

        return False

    def set_stock(self, product_id, quantity: int, expected_on_hand: int | None = None) -> bool:
        """Overwrite the absolute stock level for a manual inventory edit.

        With ``expected_on_hand`` the write only lands if the stored count
        still equals it; without it the last writer wins. Returns whether a
        row was updated.
        """
        if quantity is None or quantity < 0:
            raise ValidationError({"on_hand": ["Stock on hand cannot be negative"]})

        criteria = {"id": str(product_id)}
        if expected_on_hand is not None:
            criteria["on_hand"] = expected_on_hand

        updated = self._dao.query.filter(**criteria).update_all(on_hand=quantity, updated_at=datetime.now(UTC))
        return updated == 1
