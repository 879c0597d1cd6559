"""Tests for role-dependent product projections."""

import pytest
from marketplace.catalogue.product import Product
from marketplace.catalogue.views import FullProductView, PublicProductView, project
from marketplace.shared.actors import Actor, Role
from protean.exceptions import ValidationError


@pytest.fixture()
def product():
    return Product.create(
        supplier_id="supplier-1",
        name="Mug",
        selling_price=24.0,
        cost_price=9.5,
        on_hand=3,
        status="active",
    )


class TestProject:
    def test_admin_sees_full_view(self, product):
        view = project(product, Role.ADMIN, "admin-1")
        assert isinstance(view, FullProductView)
        assert view.kind == "full"
        assert view.cost_price == 9.5

    def test_owning_supplier_sees_full_view(self, product):
        view = project(product, "supplier", "supplier-1")
        assert view.kind == "full"

    def test_other_supplier_sees_public_view(self, product):
        view = project(product, "supplier", "supplier-2")
        assert isinstance(view, PublicProductView)
        assert view.kind == "public"

    def test_shopper_sees_public_view_without_cost(self, product):
        view = project(product, Role.USER, "user-1")
        assert "cost_price" not in view.model_dump()
        assert view.selling_price == 24.0
        assert view.on_hand == 3

    def test_anonymous_viewer(self, product):
        assert project(product).kind == "public"

    def test_accepts_actor(self, product):
        assert project(product, Actor(id="admin-1", role=Role.ADMIN)).kind == "full"

    def test_unknown_role_rejected(self, product):
        with pytest.raises(ValidationError):
            project(product, "superuser", "x")
