# agriconnect/flows.py
import uuid
from pathlib import Path
from typing import Optional

from prefect import flow, task

from . import market
from .config import settings
from .database import make_session_factory
from .generate_data import write_market_csv
from .logger import get_logger
from .processing import import_market_items_csv

logger = get_logger(__name__)


@task
def import_csv_file(file_path: str, database_url: str, created_by_id: int) -> int:
    contents = Path(file_path).read_bytes()
    return import_market_items_csv(contents, make_session_factory(database_url), created_by_id)


@task
def roll_prices(database_url: str) -> int:
    session_factory = make_session_factory(database_url)
    with session_factory() as db:
        return market.roll_price_series(db)


@task
def generate_market_csv(rows: int) -> str:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_path = upload_dir / f"market_batch_{uuid.uuid4()}.csv"

    logger.info("Generating %d market rows into %s", rows, file_path)
    write_market_csv(file_path, rows)
    return str(file_path)


@flow(name="Market CSV Import Pipeline")
def run_csv_pipeline(file_path: str, created_by_id: int, database_url: Optional[str] = None):
    """Imports a market CSV already sitting on the shared volume."""
    return import_csv_file(file_path, database_url or settings.get_database_url(), created_by_id)


@flow(name="Bulk Market Data Generator")
def run_bulk_generation(num_rows: int = 100, created_by_id: int = 1):
    """
    Generates a specified number of dummy market listings and imports them.
    """
    file_path = generate_market_csv(rows=num_rows)
    return run_csv_pipeline(file_path=file_path, created_by_id=created_by_id)


@flow(name="Daily Price Roll")
def run_daily_price_roll(database_url: Optional[str] = None):
    return roll_prices(database_url or settings.get_database_url())
