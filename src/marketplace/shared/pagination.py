"""Page-number pagination shared by every listing query."""

import math
from dataclasses import dataclass, field

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def clamp(page=None, limit=None) -> tuple[int, int]:
    """Normalize request values: ``page`` is 1-indexed, ``limit`` in ``[1, 100]``.

    Missing or zero values fall back to page 1 and the default limit.
    """
    page = max(1, int(page or 1))
    limit = min(MAX_LIMIT, max(1, int(limit or DEFAULT_LIMIT)))
    return page, limit


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


@dataclass
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_LIMIT
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def map(self, fn) -> "Page":
        return Page(items=[fn(item) for item in self.items], page=self.page, limit=self.limit, total=self.total)

    def to_dict(self, serialize=None) -> dict:
        items = [serialize(item) for item in self.items] if serialize else list(self.items)
        return {
            "items": items,
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def paginate(queryset, page=None, limit=None, order_by: str = "-created_at") -> Page:
    """Run a Protean queryset for one page, newest first by default."""
    page, limit = clamp(page, limit)
    results = queryset.order_by(order_by).offset(offset_for(page, limit)).limit(limit).all()
    return Page(items=list(results.items), page=page, limit=limit, total=results.total)
