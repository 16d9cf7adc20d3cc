"""Tests for CorporateActionsService."""

from datetime import date
from decimal import Decimal

import pytest

from wealth.constants import MovementType
from wealth.models import Movement
from wealth.services.corporate_actions_service import CorporateActionsService
from wealth.services.portfolio.position_service import PositionService


@pytest.fixture
def service(db):
    return CorporateActionsService(db)


@pytest.fixture
def stock(db, portfolio):
    """100 shares bought at 10, now at 12."""
    return PositionService(db).create_position(
        portfolio.id,
        name="PETR4",
        instrument_type="Ações",
        quantity=Decimal("100"),
        purchase_price=Decimal("10"),
        current_price=Decimal("12"),
    )


class TestCorporateEvents:
    """Test events that change quantity or prices."""

    def test_bonus_issue(self, service, stock, portfolio):
        movement = service.apply_event(stock.id, MovementType.BONUS, quantity=Decimal("10"))

        assert stock.quantity == Decimal("110")
        assert stock.current_value == Decimal("1320.00")
        assert stock.total_invested == Decimal("1000.00")
        assert portfolio.total_value == Decimal("1320")
        assert movement.type == MovementType.BONUS
        assert movement.quantity == Decimal("10")
        assert movement.total_value == Decimal("120.00")

    def test_split(self, service, stock, portfolio):
        movement = service.apply_event(
            stock.id, MovementType.SPLIT, ratio=Decimal("2"), event_date=date(2025, 3, 3)
        )

        assert stock.quantity == Decimal("200")
        assert stock.current_price == Decimal("6.00000000")
        assert stock.purchase_price == Decimal("5.00000000")
        assert stock.current_value == Decimal("1200.00")
        assert portfolio.total_value == Decimal("1200")
        assert movement.quantity == Decimal("100")
        assert movement.notes == "ratio 1:2"
        assert movement.movement_date == date(2025, 3, 3)

    def test_reverse_split_floors_quantity(self, service, stock):
        movement = service.apply_event(stock.id, MovementType.REVERSE_SPLIT, ratio=Decimal("3"))

        assert stock.quantity == Decimal("33")
        assert stock.current_price == Decimal("36.00000000")
        assert stock.purchase_price == Decimal("30.00000000")
        assert stock.current_value == Decimal("1188.00")
        assert movement.quantity == Decimal("67")

    def test_reverse_split_to_zero_is_rejected(self, service, stock):
        with pytest.raises(ValueError):
            service.apply_event(stock.id, MovementType.REVERSE_SPLIT, ratio=Decimal("1000"))
        assert stock.quantity == Decimal("100")

    @pytest.mark.parametrize("ratio", [Decimal("0"), Decimal("-2"), None])
    def test_non_positive_split_ratio(self, service, stock, ratio):
        with pytest.raises(ValueError):
            service.apply_event(stock.id, MovementType.SPLIT, ratio=ratio)

    def test_amortization_of_priced_position(self, service, stock):
        service.apply_event(stock.id, MovementType.AMORTIZATION, amount=Decimal("120"))

        assert stock.total_invested == Decimal("900.00")
        assert stock.current_price == Decimal("10.80000000")
        assert stock.current_value == Decimal("1080.00")

    def test_amortization_of_valued_position(self, db, service, portfolio):
        deposit = PositionService(db).create_position(
            portfolio.id,
            name="Debênture XYZ",
            instrument_type="Debêntures",
            current_value=Decimal("5000"),
            total_invested=Decimal("4000"),
        )

        service.apply_event(deposit.id, MovementType.AMORTIZATION, amount=Decimal("1000"))

        assert deposit.current_value == Decimal("4000")
        assert deposit.total_invested == Decimal("3200.00")
        assert portfolio.total_value == Decimal("4000")

    def test_amortization_above_value(self, service, stock):
        with pytest.raises(ValueError):
            service.apply_event(stock.id, MovementType.AMORTIZATION, amount=Decimal("5000"))


class TestCashEvents:
    """Test ledger-only events."""

    def test_dividend_only_writes_ledger(self, db, service, stock):
        movement = service.apply_event(
            stock.id, MovementType.DIVIDEND, amount=Decimal("50"), notes="Q1"
        )

        assert movement.type == MovementType.DIVIDEND
        assert movement.total_value == Decimal("50")
        assert movement.notes == "Q1"
        assert stock.quantity == Decimal("100")
        assert stock.current_value == Decimal("1200.00")
        assert db.query(Movement).filter_by(position_id=stock.id).count() == 2

    def test_cash_event_needs_amount(self, service, stock):
        with pytest.raises(ValueError):
            service.apply_event(stock.id, MovementType.JCP)

    def test_unknown_event(self, service, stock):
        with pytest.raises(ValueError):
            service.apply_event(stock.id, "merger", amount=Decimal("1"))
