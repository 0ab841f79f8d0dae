# agriconnect/generate_data.py
import csv
import random
from pathlib import Path
from typing import Optional

from faker import Faker

HEADERS = ["name", "category", "region", "current_price", "unit"]

PRODUCE = {
    "vegetable": ["tomato", "potato", "onion", "carrot", "cabbage", "spinach", "okra", "cauliflower"],
    "fruit": ["mango", "apple", "banana", "orange", "guava", "grapes", "melon", "apricot"],
}


def write_market_csv(file_path: Path, rows: int, fake: Optional[Faker] = None) -> Path:
    """Writes `rows` dummy market listings to a CSV the import pipeline accepts."""
    fake = fake or Faker()
    regions = [fake.city() for _ in range(max(1, rows // 5))]

    with Path(file_path).open(mode="w", newline="") as file:
        writer = csv.DictWriter(file, fieldnames=HEADERS)
        writer.writeheader()
        for _ in range(rows):
            category = fake.random_element(elements=tuple(PRODUCE))
            writer.writerow({
                "name": fake.random_element(elements=PRODUCE[category]),
                "category": category,
                "region": fake.random_element(elements=regions),
                "current_price": round(random.uniform(20.0, 300.0), 2),  # nosec B311
                "unit": "per kg",
            })

    return Path(file_path)
