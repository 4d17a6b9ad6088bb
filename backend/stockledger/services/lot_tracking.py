"""
Lot balances derived from the movement ledger.

Receipts carrying a lot number (or an expiry date) open a lot. An exit that
names a lot draws from that lot first; whatever is left over, and every exit
that names no lot, is drawn first-expired-first-out across the lots on hand.
Stock received without lot or expiry is drawn last.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Hashable, Iterable, List, Optional

from stockledger.models.movement import MovementRecord


@dataclass
class LotBalance:
    lot_number: Optional[str]
    expiry_date: Optional[date]
    remaining: int
    first_movement_id: int
    received_at: datetime

    @property
    def label(self) -> str:
        return self.lot_number or f"movement {self.first_movement_id}"


def _lot_key(movement: MovementRecord) -> Optional[Hashable]:
    if movement.lot_number:
        return movement.lot_number
    if movement.expiry_date is not None:
        return ("movement", movement.id)
    return None


def _draw_order(item):
    key, lot = item
    return (key is None, lot.expiry_date or date.max, lot.first_movement_id)


def remaining_lots(movements: Iterable[MovementRecord]) -> List[LotBalance]:
    """
    Replay ``movements`` (non-voided, in ledger order) and return the lots that
    still hold units. Untracked stock is not reported.
    """
    lots: Dict[Optional[Hashable], LotBalance] = {}

    for movement in movements:
        if movement.delta > 0:
            key = _lot_key(movement)
            lot = lots.get(key)
            if lot is None:
                lots[key] = LotBalance(
                    lot_number=movement.lot_number,
                    expiry_date=movement.expiry_date,
                    remaining=movement.delta,
                    first_movement_id=movement.id,
                    received_at=movement.occurred_at,
                )
            else:
                lot.remaining += movement.delta
                if movement.expiry_date is not None and (
                    lot.expiry_date is None or movement.expiry_date < lot.expiry_date
                ):
                    lot.expiry_date = movement.expiry_date
            continue

        quantity = -movement.delta
        named = lots.get(movement.lot_number) if movement.lot_number else None
        if named is not None:
            taken = min(named.remaining, quantity)
            named.remaining -= taken
            quantity -= taken
        for _, lot in sorted(lots.items(), key=_draw_order):
            if quantity == 0:
                break
            taken = min(lot.remaining, quantity)
            lot.remaining -= taken
            quantity -= taken

    return [lot for key, lot in lots.items() if key is not None and lot.remaining > 0]


def lots_expiring_by(movements: Iterable[MovementRecord], cutoff: date) -> List[LotBalance]:
    lots = [lot for lot in remaining_lots(movements) if lot.expiry_date is not None and lot.expiry_date <= cutoff]
    return sorted(lots, key=lambda lot: (lot.expiry_date, lot.first_movement_id))
