"""Corporate and cash events applied to positions.

Corporate events (bonus issue, split, reverse split, amortization) change a
position's quantity and/or prices; cash events (dividend, JCP, income) only
add a ledger entry. Each event is one transaction: position change, movement
and portfolio re-aggregation commit together or not at all.
"""

import logging
from datetime import date
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from wealth.constants import MovementType
from wealth.models import Movement, Position
from wealth.services.portfolio.position_service import PRICE_PRECISION, build_movement
from wealth.services.portfolio.valuation_service import (
    CENT,
    PortfolioValuationService,
    derive_position_values,
    to_decimal,
)
from wealth.services.repositories import MovementRepository, PositionRepository

logger = logging.getLogger(__name__)


class CorporateActionsService:
    """
    Service for applying corporate actions and cash events to positions.

    Supports:
    - Bonus issue (bonificação): extra shares at no cost
    - Split (desdobramento): quantity x ratio, prices / ratio
    - Reverse split (grupamento): quantity / ratio (floored), prices x ratio
    - Amortization: capital returned, reducing value and invested
    - Dividend, JCP and income: ledger only
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._positions = PositionRepository(db)
        self._movements = MovementRepository(db)
        self._valuation = PortfolioValuationService(db)

    def apply_event(
        self,
        position_id: int,
        event_type: str,
        *,
        quantity: Decimal | None = None,
        ratio: Decimal | None = None,
        amount: Decimal | None = None,
        event_date: date | None = None,
        notes: str | None = None,
    ) -> Movement:
        """Apply an event to a position.

        Args:
            position_id: Target position
            event_type: A MovementType corporate or cash event
            quantity: Shares received (bonus issue)
            ratio: Split / reverse split factor (e.g. 2 for 1:2)
            amount: Cash amount (amortization, dividend, JCP, income)
            event_date: Date of the event (defaults to today)
            notes: Free text stored on the movement

        Returns:
            The ledger movement written for the event

        Raises:
            NotFoundError: If the position does not exist
            ValueError: On an unknown event type or invalid parameters
        """
        handlers = {
            MovementType.BONUS: lambda p: self._bonus(p, quantity),
            MovementType.SPLIT: lambda p: self._split(p, ratio),
            MovementType.REVERSE_SPLIT: lambda p: self._reverse_split(p, ratio),
            MovementType.AMORTIZATION: lambda p: self._amortization(p, amount),
        }
        if event_type not in MovementType.CORPORATE_EVENTS + MovementType.CASH_EVENTS:
            raise ValueError(f"Unsupported event type: {event_type}")

        position = self._positions.get_by_id(position_id)
        try:
            if event_type in handlers:
                details = handlers[event_type](position)
            else:
                details = self._cash_event(amount)

            default_notes = details.pop("notes", None)
            movement = self._movements.record(
                build_movement(
                    position,
                    event_type,
                    movement_date=event_date,
                    notes=notes or default_notes,
                    **details,
                )
            )
            self._valuation.recompute_portfolio_totals(position.portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Applied {event_type} to position {position.id} ({position.name})")
        return movement

    @staticmethod
    def _unit_value(position: Position) -> Decimal:
        if position.current_price is not None:
            return to_decimal(position.current_price)
        quantity = to_decimal(position.quantity or 0)
        if quantity == 0:
            raise ValueError("Position has no quantity or price")
        return to_decimal(position.current_value) / quantity

    def _bonus(self, position: Position, quantity) -> dict:
        if quantity is None or to_decimal(quantity) <= 0:
            raise ValueError("Bonus issue needs a positive quantity")
        quantity = to_decimal(quantity)
        unit_value = self._unit_value(position)

        position.quantity = to_decimal(position.quantity or 0) + quantity
        position.current_price = unit_value
        derive_position_values(position)
        return {
            "quantity": quantity,
            "unit_price": unit_value,
            "total_value": (quantity * unit_value).quantize(CENT, rounding=ROUND_HALF_UP),
        }

    def _split(self, position: Position, ratio) -> dict:
        ratio = self._valid_ratio(ratio)
        held = to_decimal(position.quantity or 0)
        unit_value = self._unit_value(position)

        position.quantity = held * ratio
        position.current_price = (unit_value / ratio).quantize(PRICE_PRECISION)
        if position.purchase_price is not None:
            position.purchase_price = (to_decimal(position.purchase_price) / ratio).quantize(
                PRICE_PRECISION
            )
        derive_position_values(position)
        return {
            "quantity": position.quantity - held,
            "unit_price": position.current_price,
            "notes": f"ratio 1:{ratio}",
        }

    def _reverse_split(self, position: Position, ratio) -> dict:
        ratio = self._valid_ratio(ratio)
        held = to_decimal(position.quantity or 0)
        unit_value = self._unit_value(position)

        new_quantity = (held / ratio).to_integral_value(rounding=ROUND_FLOOR)
        if new_quantity == 0:
            raise ValueError(f"Reverse split 1:{ratio} would leave {held} shares at zero")

        position.quantity = new_quantity
        position.current_price = (unit_value * ratio).quantize(PRICE_PRECISION)
        if position.purchase_price is not None:
            position.purchase_price = (to_decimal(position.purchase_price) * ratio).quantize(
                PRICE_PRECISION
            )
        derive_position_values(position)
        return {
            "quantity": held - new_quantity,
            "unit_price": position.current_price,
            "notes": f"ratio {ratio}:1",
        }

    def _amortization(self, position: Position, amount) -> dict:
        if amount is None or to_decimal(amount) <= 0:
            raise ValueError("Amortization needs a positive amount")
        amount = to_decimal(amount)
        value = to_decimal(position.current_value)
        if amount > value:
            raise ValueError(f"Amortization {amount} exceeds position value {value}")

        remaining = 1 - amount / value
        position.total_invested = (to_decimal(position.total_invested) * remaining).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        if position.current_price is not None and position.quantity:
            position.current_price = (to_decimal(position.current_price) * remaining).quantize(
                PRICE_PRECISION
            )
        else:
            position.current_value = value - amount
        derive_position_values(position)
        return {"total_value": amount}

    @staticmethod
    def _cash_event(amount) -> dict:
        if amount is None or to_decimal(amount) <= 0:
            raise ValueError("Cash events need a positive amount")
        return {"total_value": to_decimal(amount)}

    @staticmethod
    def _valid_ratio(ratio) -> Decimal:
        if ratio is None or to_decimal(ratio) <= 0:
            raise ValueError("Split ratio must be positive")
        return to_decimal(ratio)
