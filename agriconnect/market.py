# agriconnect/market.py
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .config import settings
from .logger import get_logger
from .models import MarketItem, PriceHistoryEntry, utcnow
from .price_series import (
    AggregateStats,
    PricePoint,
    RandomSource,
    append_and_trim,
    compute_aggregate_stats,
    compute_trend,
    generate_series,
)

logger = get_logger(__name__)


def item_series(item: MarketItem) -> Tuple[PricePoint, ...]:
    return tuple(PricePoint(price=entry.price, date=entry.date) for entry in item.price_history)


def _store_series(item: MarketItem, series: Sequence[PricePoint]):
    # Rows left out of the new list are removed by the delete-orphan cascade
    item.price_history = [PriceHistoryEntry(price=point.price, date=point.date) for point in series]


def create_item(
    db: Session,
    *,
    name: str,
    category: str,
    region: str,
    current_price: float,
    created_by_id: int,
    unit: Optional[str] = None,
    rng: Optional[RandomSource] = None,
    today: Optional[date] = None,
    commit: bool = True,
) -> MarketItem:
    """
    Stores a new market item together with a freshly generated price history.

    Raises:
        InvalidInput: If the price is negative
    """
    series = generate_series(
        current_price,
        days=settings.PRICE_HISTORY_DAYS,
        rng=rng,
        today=today,
        variance=settings.PRICE_VARIANCE,
    )

    item = MarketItem(
        name=name.strip().lower(),
        category=category,
        region=region.strip(),
        current_price=current_price,
        unit=(unit or "").strip() or settings.DEFAULT_UNIT,
        created_by_id=created_by_id,
    )
    _store_series(item, series)
    db.add(item)

    if commit:
        db.commit()
        db.refresh(item)
        logger.info("Created market item %s (%s, %s) at %.2f", item.id, item.name, item.region, item.current_price)
    return item


def get_item(db: Session, item_id: int) -> Optional[MarketItem]:
    return db.get(MarketItem, item_id)


def list_items(
    db: Session,
    category: Optional[str] = None,
    region: Optional[str] = None,
    search: Optional[str] = None,
    search_region: bool = False,
) -> List[MarketItem]:
    """
    Returns market items, newest first.
    - **region** matches any part of the region, ignoring case
    - **search** matches the name, and the region too when search_region is set
    """
    query = select(MarketItem)
    if category:
        query = query.where(MarketItem.category == category)
    if region:
        query = query.where(MarketItem.region.ilike(f"%{region}%"))
    if search:
        pattern = f"%{search}%"
        if search_region:
            query = query.where(or_(MarketItem.name.ilike(pattern), MarketItem.region.ilike(pattern)))
        else:
            query = query.where(MarketItem.name.ilike(pattern))

    query = query.order_by(MarketItem.created_at.desc(), MarketItem.id.desc())
    return list(db.scalars(query).all())


def update_item(
    db: Session,
    item: MarketItem,
    *,
    name: Optional[str] = None,
    category: Optional[str] = None,
    region: Optional[str] = None,
    current_price: Optional[float] = None,
    unit: Optional[str] = None,
    today: Optional[date] = None,
) -> MarketItem:
    """
    Applies the supplied fields. A new price (zero included) also lands in the
    price history as today's point, dropping the oldest points beyond the window.

    Raises:
        InvalidInput: If the new price is negative
    """
    if current_price is not None:
        new_point = PricePoint(price=current_price, date=today or date.today())
        series = append_and_trim(item_series(item), new_point, limit=settings.PRICE_HISTORY_DAYS)
        _store_series(item, series)
        item.current_price = current_price

    if name:
        item.name = name.strip().lower()
    if category:
        item.category = category
    if region:
        item.region = region.strip()
    if unit:
        item.unit = unit.strip()
    item.updated_at = utcnow()

    db.commit()
    db.refresh(item)
    logger.info("Updated market item %s, current price %.2f", item.id, item.current_price)
    return item


def delete_item(db: Session, item: MarketItem):
    item_id = item.id
    db.delete(item)
    db.commit()
    logger.info("Deleted market item %s", item_id)


def item_trends(
    db: Session,
    category: Optional[str] = None,
    region: Optional[str] = None,
) -> List[dict]:
    items = list_items(db, category=category, region=region)
    return [
        {
            "id": item.id,
            "name": item.name,
            "category": item.category,
            "region": item.region,
            "current_price": item.current_price,
            "trend": compute_trend(item.price_history),
        }
        for item in items
    ]


def stats(db: Session) -> AggregateStats:
    return compute_aggregate_stats(db.scalars(select(MarketItem)).all())


def roll_price_series(db: Session, today: Optional[date] = None) -> int:
    """
    Appends today's current price to every item whose history does not
    already end today. Returns the number of items rolled forward.
    """
    today = today or date.today()
    rolled = 0

    for item in db.scalars(select(MarketItem)).all():
        series = item_series(item)
        if series and series[-1].date >= today:
            continue
        new_point = PricePoint(price=item.current_price, date=today)
        _store_series(item, append_and_trim(series, new_point, limit=settings.PRICE_HISTORY_DAYS))
        rolled += 1

    db.commit()
    logger.info("Rolled price history forward to %s for %d items", today.isoformat(), rolled)
    return rolled
