# agriconnect/weather.py
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .logger import get_logger
from .models import Weather, utcnow

logger = get_logger(__name__)

WEATHER_FIELDS = ("temperature", "humidity", "condition", "wind_speed", "description")


def upsert_weather(
    db: Session,
    *,
    region: str,
    temperature: float,
    humidity: float,
    condition: str,
    wind_speed: Optional[float] = None,
    description: Optional[str] = None,
) -> Weather:
    """Creates the advisory for a region, or replaces the one already stored."""
    region = region.strip().lower()
    weather = db.scalars(select(Weather).where(Weather.region == region)).first()
    if weather is None:
        weather = Weather(region=region)
        db.add(weather)

    weather.temperature = temperature
    weather.humidity = humidity
    weather.condition = condition
    weather.wind_speed = wind_speed or 0.0
    weather.description = description.strip() if description else description
    weather.updated_at = utcnow()

    db.commit()
    db.refresh(weather)
    logger.info("Stored weather for %s: %s, %.1f°", weather.region, weather.condition, weather.temperature)
    return weather


def list_weather(db: Session) -> List[Weather]:
    return list(db.scalars(select(Weather).order_by(Weather.region)).all())


def get_weather(db: Session, weather_id: int) -> Optional[Weather]:
    return db.get(Weather, weather_id)


def get_weather_by_region(db: Session, region: str) -> Optional[Weather]:
    return db.scalars(select(Weather).where(Weather.region == region.strip().lower())).first()


def update_weather(db: Session, weather: Weather, **changes) -> Weather:
    # Only fields the caller actually sent are applied; description may be cleared
    for field in WEATHER_FIELDS:
        if field not in changes:
            continue
        if changes[field] is None and field != "description":
            continue
        setattr(weather, field, changes[field])
    weather.updated_at = utcnow()

    db.commit()
    db.refresh(weather)
    return weather


def delete_weather(db: Session, weather: Weather):
    region = weather.region
    db.delete(weather)
    db.commit()
    logger.info("Deleted weather for %s", region)
