"""Mutating operations on positions.

Every operation writes the position change, its ledger movement and the
portfolio re-aggregation in one transaction. Any failure rolls back all of it.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from wealth.config import settings
from wealth.constants import MovementType
from wealth.models import Movement, Position
from wealth.services.portfolio.valuation_service import (
    CENT,
    PortfolioValuationService,
    derive_position_values,
    to_decimal,
)
from wealth.services.repositories import (
    MovementRepository,
    PortfolioRepository,
    PositionRepository,
)

logger = logging.getLogger(__name__)

PRICE_PRECISION = Decimal("0.00000001")

EDITABLE_FIELDS = (
    "name",
    "instrument_type",
    "ticker",
    "quantity",
    "purchase_price",
    "current_price",
    "current_value",
    "total_invested",
    "currency",
    "maturity_date",
)


def build_movement(position: Position, movement_type: str, **values) -> Movement:
    """Ledger entry describing a change to a position."""
    return Movement(
        portfolio_id=values.pop("portfolio_id", position.portfolio_id),
        position_id=position.id,
        type=movement_type,
        asset_name=position.name,
        ticker=position.ticker,
        asset_type=position.instrument_type,
        quantity=values.pop("quantity", None) or Decimal("0"),
        unit_price=values.pop("unit_price", None) or Decimal("0"),
        total_value=values.pop("total_value", None) or Decimal("0"),
        notes=values.pop("notes", None),
        movement_date=values.pop("movement_date", None) or date.today(),
    )


class PositionService:
    """Create, edit, remove and move positions.

    Usage:
        service = PositionService(db)
        position = service.create_position(
            portfolio_id, name="PETR4", instrument_type="Ações",
            quantity=Decimal("100"), purchase_price=Decimal("10"), current_price=Decimal("12"),
        )
        service.add_contribution(position.id, quantity=Decimal("10"), unit_price=Decimal("11"))
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._portfolios = PortfolioRepository(db)
        self._positions = PositionRepository(db)
        self._movements = MovementRepository(db)
        self._valuation = PortfolioValuationService(db)

    def create_position(
        self,
        portfolio_id: str,
        *,
        name: str,
        instrument_type: str,
        ticker: str | None = None,
        quantity: Decimal | None = None,
        purchase_price: Decimal | None = None,
        current_price: Decimal | None = None,
        current_value: Decimal | None = None,
        total_invested: Decimal | None = None,
        currency: str | None = None,
        maturity_date: date | None = None,
        source: str = "manual",
        movement_date: date | None = None,
    ) -> Position:
        """Add a position to a portfolio and record the purchase.

        Raises:
            NotFoundError: If the portfolio does not exist
            ValueError: If the position has neither a price nor a value
        """
        portfolio = self._portfolios.get_by_id(portfolio_id)
        if current_price is None and current_value is None and purchase_price is None:
            raise ValueError("A position needs a current price, a current value or a purchase price")
        if current_price is None and current_value is None:
            current_price = purchase_price

        try:
            position = Position(
                portfolio_id=portfolio.id,
                name=name,
                instrument_type=instrument_type,
                ticker=ticker.upper() if ticker else None,
                quantity=quantity,
                purchase_price=purchase_price,
                current_price=current_price,
                current_value=current_value,
                total_invested=total_invested,
                currency=(currency or settings.reporting_currency).upper(),
                maturity_date=maturity_date,
                source=source,
            )
            derive_position_values(position)
            self._positions.add(position)

            self._movements.record(
                build_movement(
                    position,
                    MovementType.PURCHASE,
                    quantity=quantity,
                    unit_price=purchase_price,
                    total_value=position.total_invested,
                    movement_date=movement_date,
                )
            )
            self._valuation.recompute_portfolio_totals(portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Created position {position.id} ({position.name}) in portfolio {portfolio.id}")
        return position

    def update_position(self, position_id: int, **changes) -> Position:
        """Edit a position's fields and re-derive its values.

        total_invested is recomputed from quantity * purchase_price when
        either changes and no explicit total_invested is given.

        Raises:
            NotFoundError: If the position does not exist
            ValueError: On unknown fields
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit fields: {sorted(unknown)}")

        position = self._positions.get_by_id(position_id)
        try:
            for field, value in changes.items():
                setattr(position, field, value)

            recompute_invested = "total_invested" not in changes and (
                "quantity" in changes or "purchase_price" in changes
            )
            if "current_value" in changes and "current_price" not in changes:
                # A typed value overrides the price-derived one
                position.current_price = None
            derive_position_values(position, recompute_invested=recompute_invested)

            self._valuation.recompute_portfolio_totals(position.portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return position

    def delete_position(self, position_id: int) -> None:
        """Remove a position and re-aggregate its portfolio."""
        position = self._positions.get_by_id(position_id)
        portfolio = position.portfolio
        try:
            self._positions.delete(position)
            self._valuation.recompute_portfolio_totals(portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info(f"Deleted position {position_id} from portfolio {portfolio.id}")

    def add_contribution(
        self,
        position_id: int,
        *,
        quantity: Decimal | None = None,
        unit_price: Decimal | None = None,
        amount: Decimal | None = None,
        movement_date: date | None = None,
        notes: str | None = None,
    ) -> Position:
        """Add money to a position (aplicação).

        With quantity and unit_price the purchase price becomes the weighted
        average. With only an amount, a priced holding buys units at its
        current price and a value-only position (fixed income) grows by the
        amount; invested grows by the amount either way.

        Raises:
            ValueError: If nothing positive is contributed
        """
        position = self._positions.get_by_id(position_id)

        if quantity is not None and unit_price is not None:
            quantity, unit_price = to_decimal(quantity), to_decimal(unit_price)
            if quantity <= 0 or unit_price < 0:
                raise ValueError("Contribution quantity must be positive")
            amount = (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)
        elif amount is None or to_decimal(amount) <= 0:
            raise ValueError("Contribution needs a positive amount or quantity and unit price")
        else:
            amount = to_decimal(amount)

        try:
            held = to_decimal(position.quantity or 0)
            invested = to_decimal(position.total_invested)
            position.total_invested = invested + amount

            if quantity is not None:
                new_quantity = held + quantity
                old_cost = held * to_decimal(position.purchase_price or unit_price)
                position.purchase_price = ((old_cost + quantity * unit_price) / new_quantity).quantize(
                    PRICE_PRECISION
                )
                position.quantity = new_quantity
                if position.current_price is None:
                    position.current_value = to_decimal(position.current_value) + amount
            elif held > 0 and to_decimal(position.current_price or 0) > 0:
                # Priced holding: the amount buys units at the current price
                unit_price = to_decimal(position.current_price)
                quantity = (amount / unit_price).quantize(PRICE_PRECISION)
                old_cost = held * to_decimal(position.purchase_price or unit_price)
                position.quantity = held + quantity
                position.purchase_price = ((old_cost + amount) / position.quantity).quantize(
                    PRICE_PRECISION
                )
            else:
                position.current_value = to_decimal(position.current_value) + amount

            derive_position_values(position)
            self._movements.record(
                build_movement(
                    position,
                    MovementType.CONTRIBUTION,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_value=amount,
                    movement_date=movement_date,
                    notes=notes,
                )
            )
            self._valuation.recompute_portfolio_totals(position.portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return position

    def redeem(
        self,
        position_id: int,
        *,
        quantity: Decimal | None = None,
        amount: Decimal | None = None,
        movement_date: date | None = None,
        notes: str | None = None,
    ) -> Position | None:
        """Take money out of a position (resgate).

        A partial redemption reduces invested capital in proportion to the
        part redeemed. Redeeming everything removes the position.

        Returns:
            The updated position, or None if it was fully redeemed

        Raises:
            ValueError: If the redemption exceeds the holding
        """
        position = self._positions.get_by_id(position_id)
        portfolio = position.portfolio
        held = to_decimal(position.quantity or 0)
        value = to_decimal(position.current_value)

        if quantity is not None:
            quantity = to_decimal(quantity)
            if quantity <= 0:
                raise ValueError("Redemption quantity must be positive")
            if quantity > held:
                raise ValueError(f"Cannot redeem {quantity}; position holds {held}")
            fraction = quantity / held
            redeemed_value = (value * fraction).quantize(CENT, rounding=ROUND_HALF_UP)
        elif amount is not None:
            redeemed_value = to_decimal(amount)
            if redeemed_value <= 0:
                raise ValueError("Redemption amount must be positive")
            if redeemed_value > value:
                raise ValueError(f"Cannot redeem {redeemed_value}; position is worth {value}")
            fraction = redeemed_value / value
        else:
            raise ValueError("Redemption needs a quantity or an amount")

        try:
            self._movements.record(
                build_movement(
                    position,
                    MovementType.REDEMPTION,
                    quantity=quantity,
                    unit_price=position.current_price,
                    total_value=redeemed_value,
                    movement_date=movement_date,
                    notes=notes,
                )
            )

            if fraction >= 1:
                self._positions.delete(position)
                result = None
            else:
                remaining = 1 - fraction
                position.total_invested = (
                    to_decimal(position.total_invested) * remaining
                ).quantize(CENT, rounding=ROUND_HALF_UP)
                if quantity is not None:
                    position.quantity = held - quantity
                    if position.current_price is None:
                        position.current_value = value - redeemed_value
                else:
                    position.current_value = value - redeemed_value
                    if position.quantity is not None:
                        position.quantity = held * remaining
                derive_position_values(position)
                result = position

            self._valuation.recompute_portfolio_totals(portfolio)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return result

    def transfer(
        self,
        position_id: int,
        target_portfolio_id: str,
        movement_date: date | None = None,
    ) -> Position:
        """Move a position to another portfolio, re-aggregating both.

        Raises:
            NotFoundError: If the position or target portfolio does not exist
            ValueError: If the target is the position's current portfolio
        """
        position = self._positions.get_by_id(position_id)
        source = position.portfolio
        target = self._portfolios.get_by_id(target_portfolio_id)
        if target.id == source.id:
            raise ValueError("Position already belongs to this portfolio")

        try:
            value = to_decimal(position.current_value)
            self._movements.record(
                build_movement(
                    position,
                    MovementType.TRANSFER_OUT,
                    quantity=position.quantity,
                    unit_price=position.current_price,
                    total_value=value,
                    movement_date=movement_date,
                    notes=f"to {target.name}",
                )
            )
            position.portfolio = target
            position.portfolio_id = target.id
            self._db.flush()
            self._movements.record(
                build_movement(
                    position,
                    MovementType.TRANSFER_IN,
                    quantity=position.quantity,
                    unit_price=position.current_price,
                    total_value=value,
                    movement_date=movement_date,
                    notes=f"from {source.name}",
                )
            )

            self._valuation.recompute_portfolio_totals(source)
            self._valuation.recompute_portfolio_totals(target)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Transferred position {position.id} from {source.id} to {target.id}")
        return position

    def list_movements(self, position_id: int) -> list[Movement]:
        """Ledger of a position, newest first."""
        self._positions.get_by_id(position_id)
        return list(self._movements.find_by_position(position_id))
