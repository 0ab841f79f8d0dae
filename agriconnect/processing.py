# agriconnect/processing.py
import io
from typing import Optional

import pandas as pd
from sqlalchemy.orm import sessionmaker

from . import market
from .config import settings
from .logger import get_logger
from .models import CATEGORIES
from .price_series import RandomSource

logger = get_logger(__name__)

REQUIRED_COLUMNS = {"name", "category", "region", "current_price"}


def _check_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Checks columns and values of a block of rows and returns it with
    'current_price' converted to numbers.

    Raises:
        ValueError: If a column is missing or a value cannot be stored
    """
    if not REQUIRED_COLUMNS.issubset(df.columns):
        missing_cols = REQUIRED_COLUMNS - set(df.columns)
        raise ValueError(f"CSV file is missing required columns: {', '.join(sorted(missing_cols))}")

    # This will raise a ValueError if conversion fails
    prices = pd.to_numeric(df["current_price"])
    if prices.isna().any():
        raise ValueError("'current_price' has empty values")
    if (prices < 0).any():
        raise ValueError("'current_price' cannot be negative")

    unknown = set(df["category"].dropna().astype(str).str.strip().str.lower()) - set(CATEGORIES)
    if unknown or df["category"].isna().any():
        raise ValueError(f"unknown categories: {', '.join(sorted(unknown)) or 'empty'}")

    for column in ("name", "region"):
        if df[column].isna().any() or (df[column].astype(str).str.strip() == "").any():
            raise ValueError(f"'{column}' has empty values")

    df = df.copy()
    df["current_price"] = prices.astype(float)
    df["category"] = df["category"].astype(str).str.strip().str.lower()
    return df


def validate_csv_format(file_contents: bytes):
    """
    Validates CSV format and structure without processing the entire file.

    Args:
        file_contents: The CSV file contents as bytes

    Raises:
        ValueError: If the CSV format is invalid
    """
    try:
        buffer = io.StringIO(file_contents.decode('utf-8'))
        # Read just the first few rows to validate structure
        sample_df = pd.read_csv(buffer, nrows=5)
        _check_frame(sample_df)
    except ValueError as e:
        raise ValueError(f"CSV file contains corrupt or malformed data: {e}")
    except Exception as e:
        raise ValueError(f"Invalid CSV format: {e}")


def import_market_items_csv(
    file_contents: bytes,
    session_factory: sessionmaker,
    created_by_id: int,
    rng: Optional[RandomSource] = None,
    chunk_size: Optional[int] = None,
) -> int:
    """
    Creates one market item per CSV row, each with a generated price history.
    Rows are committed chunk by chunk.

    Args:
        file_contents: The CSV file contents as bytes
        session_factory: Makes the database sessions used for the import
        created_by_id: The admin user recorded as creator

    Returns:
        int: Total number of items created
    """
    buffer = io.StringIO(file_contents.decode('utf-8'))
    total_rows = 0

    try:
        # Use the 'chunksize' argument to create an iterator
        for chunk_df in pd.read_csv(buffer, chunksize=chunk_size or settings.CSV_CHUNK_SIZE):
            chunk_df = _check_frame(chunk_df)
            has_unit = "unit" in chunk_df.columns

            with session_factory() as db:
                for row in chunk_df.to_dict("records"):
                    unit = row.get("unit") if has_unit and pd.notna(row.get("unit")) else None
                    market.create_item(
                        db,
                        name=str(row["name"]),
                        category=row["category"],
                        region=str(row["region"]),
                        current_price=row["current_price"],
                        unit=str(unit) if unit is not None else None,
                        created_by_id=created_by_id,
                        rng=rng,
                        commit=False,
                    )
                db.commit()
            total_rows += len(chunk_df)

        logger.info("Imported %d market items from CSV", total_rows)
        return total_rows
    # Catch specific errors to provide better feedback
    except ValueError as e:
        raise ValueError(f"CSV file contains corrupt or malformed data: {e}")
    except Exception as e:
        raise Exception(f"An unexpected error occurred during CSV processing: {e}")
