# Overview: Pytest coverage for recording, editing and deleting sales.

import pytest

from motostock.extensions import db
from motostock.models import AuditLog, MotorcycleStatus, Sale
from motostock.services import sale_service, transfer_service
from motostock.services.errors import PermissionDeniedError, ValidationError, PreconditionError
from motostock.services.sale_service import SaleNotFoundError, SaleValidationError
from motostock.services.stock_service import MotorcycleNotFoundError

from conftest import bike


def _sell(actor, chassis_number, price_cents=15000, **kwargs):
    sale = sale_service.record_sale(
        actor,
        chassis_number=chassis_number,
        customer_name=kwargs.pop("customer_name", "Jane Doe"),
        price_cents=price_cents,
        **kwargs,
    )
    db.session.commit()
    return sale


class TestRecordSale:

    def test_sale_marks_bike_sold(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 6)[5]

        sale = _sell(sales_officer, chassis, customer_phone="0771234567")

        assert sale.reference == "S-000001"
        assert sale.branch_id == branch.id
        assert sale.sales_officer_id == sales_officer.id
        sold = bike(chassis)
        assert sold.status == MotorcycleStatus.SOLD
        assert sold.price_cents == 15000
        assert sold.sold_at == sale.sold_at
        assert sold.current_location_id == branch.id

    def test_delete_returns_bike_to_branch(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        sale_service.delete_sale(sales_officer, sale.id)
        db_session.commit()

        restored = bike(chassis)
        assert restored.status == MotorcycleStatus.AT_BRANCH
        assert restored.price_cents is None
        assert restored.sold_at is None
        assert restored.current_location_id == branch.id
        assert db_session.query(Sale).count() == 0

    def test_sold_bike_cannot_be_sold_again(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)[0]
        _sell(sales_officer, chassis)

        with pytest.raises(PreconditionError):
            _sell(sales_officer, chassis, customer_name="Someone Else")

    def test_bike_at_other_branch_cannot_be_sold(self, db_session, other_branch, sales_officer, make_bikes):
        chassis = make_bikes(other_branch, 1)[0]

        with pytest.raises(PreconditionError):
            _sell(sales_officer, chassis)
        db_session.rollback()
        assert bike(chassis).status == MotorcycleStatus.AT_BRANCH

    def test_bike_in_transit_cannot_be_sold(
        self, db_session, warehouse, branch, warehouse_manager, admin, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer_service.initiate_transfer(
            warehouse_manager, from_location_id=warehouse.id, to_location_id=branch.id, chassis_numbers=chassis,
        )
        db_session.commit()

        with pytest.raises(PreconditionError):
            _sell(admin, chassis[0])

    @pytest.mark.parametrize("price", [0, -100, 12.5, "1e5", "abc", True])
    def test_invalid_price_rejected(self, db_session, branch, sales_officer, make_bikes, price):
        chassis = make_bikes(branch, 1)[0]

        with pytest.raises(ValidationError):
            _sell(sales_officer, chassis, price_cents=price)
        db_session.rollback()
        assert bike(chassis).status == MotorcycleStatus.AT_BRANCH

    def test_blank_customer_rejected(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)[0]

        with pytest.raises(ValidationError):
            _sell(sales_officer, chassis, customer_name="   ")

    def test_unknown_chassis(self, db_session, branch, sales_officer):
        with pytest.raises(MotorcycleNotFoundError):
            _sell(sales_officer, "BW-9999")

    def test_admin_sells_at_bikes_branch(self, db_session, other_branch, admin, make_bikes):
        chassis = make_bikes(other_branch, 1)[0]

        sale = _sell(admin, chassis)

        assert sale.branch_id == other_branch.id

    def test_warehouse_stock_cannot_be_sold(self, db_session, warehouse, admin, make_bikes):
        chassis = make_bikes(warehouse, 1)[0]

        with pytest.raises(PreconditionError):
            _sell(admin, chassis)

    def test_warehouse_manager_cannot_sell(self, db_session, branch, warehouse_manager, make_bikes):
        chassis = make_bikes(branch, 1)[0]

        with pytest.raises(PermissionDeniedError):
            _sell(warehouse_manager, chassis)

    def test_sale_is_audited(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)[0]

        sale = _sell(sales_officer, chassis)

        entry = db_session.query(AuditLog).filter_by(action="SALE_RECORDED").one()
        assert entry.details == f"Sold motorcycle {chassis} to Jane Doe ({sale.reference})"


class TestUpdateSale:

    def test_price_change_mirrored_on_bike(self, db_session, branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        sale_service.update_sale(sales_officer, sale.id, price_cents=14500, customer_name="Jane Smith")
        db_session.commit()

        sale = db_session.get(Sale, sale.id)
        assert sale.price_cents == 14500
        assert sale.customer_name == "Jane Smith"
        assert bike(chassis).price_cents == 14500

    def test_officer_cannot_edit_colleagues_sale(
        self, db_session, branch, sales_officer, other_sales_officer, make_bikes
    ):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        with pytest.raises(PermissionDeniedError):
            sale_service.update_sale(other_sales_officer, sale.id, price_cents=100)
        with pytest.raises(PermissionDeniedError):
            sale_service.delete_sale(other_sales_officer, sale.id)

    def test_branch_manager_manages_branch_sales(
        self, db_session, branch, sales_officer, branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        sale_service.update_sale(branch_manager, sale.id, customer_phone="0700000000")
        db_session.commit()

        assert db_session.get(Sale, sale.id).customer_phone == "0700000000"

    def test_other_branch_manager_denied(
        self, db_session, branch, sales_officer, other_branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        with pytest.raises(PermissionDeniedError):
            sale_service.delete_sale(other_branch_manager, sale.id)

    def test_unknown_sale(self, db_session, admin):
        with pytest.raises(SaleNotFoundError):
            sale_service.update_sale(admin, 31337, price_cents=100)


class TestListSales:

    def test_scope_by_role(
        self, db_session, branch, other_branch, admin, branch_manager,
        sales_officer, other_sales_officer, make_bikes
    ):
        first, second = make_bikes(branch, 2)
        elsewhere = make_bikes(other_branch, 1)[0]
        _sell(sales_officer, first)
        _sell(other_sales_officer, second)
        _sell(admin, elsewhere)

        assert len(sale_service.list_sales(admin)) == 3
        assert len(sale_service.list_sales(branch_manager)) == 2
        assert [s.chassis_number for s in sale_service.list_sales(sales_officer)] == [first]

    def test_date_range(self, db_session, branch, sales_officer, make_bikes):
        first, second = make_bikes(branch, 2)
        _sell(sales_officer, first, sold_at="2026-01-10T10:00:00Z")
        _sell(sales_officer, second, sold_at="2026-02-10T10:00:00Z")

        january = sale_service.list_sales(sales_officer, start="2026-01-01", end="2026-01-31")
        assert [s.chassis_number for s in january] == [first]

        with pytest.raises(SaleValidationError):
            sale_service.list_sales(sales_officer, start="2026-02-01", end="2026-01-01")

    def test_officer_cannot_view_colleagues_sale(
        self, db_session, branch, sales_officer, other_sales_officer, make_bikes
    ):
        chassis = make_bikes(branch, 1)[0]
        sale = _sell(sales_officer, chassis)

        with pytest.raises(PermissionDeniedError):
            sale_service.get_sale(other_sales_officer, sale.id)
