"""Order listings: by purchaser, by supplier and across the marketplace.

Every listing is newest first and paginated with the shared page/limit
clamping. Supplier listings return whole orders; narrowing the lines to one
supplier is a presentation concern (see ``marketplace.order.views``).
"""

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus, supplier_key
from marketplace.shared.pagination import Page, paginate


@marketplace.repository(part_of=Order)
class OrderRepository:
    def _query(self, status=None, **criteria):
        if status:
            criteria["status"] = OrderStatus.parse(status).value
        return self._dao.query.filter(**criteria) if criteria else self._dao.query

    def list_by_owner(self, owner_id, page=None, limit=None, status=None) -> Page:
        return paginate(self._query(status, user_id=str(owner_id)), page=page, limit=limit)

    def list_by_supplier(self, supplier_id, page=None, limit=None, status=None) -> Page:
        """Orders containing at least one line from ``supplier_id``."""
        query = self._query(status, supplier_index__contains=supplier_key(supplier_id))
        return paginate(query, page=page, limit=limit)

    def list_all(self, page=None, limit=None, status=None) -> Page:
        return paginate(self._query(status), page=page, limit=limit)
