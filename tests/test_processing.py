# tests/test_processing.py
import random
from datetime import date, timedelta

import pytest
from faker import Faker
from sqlalchemy import func, select

from agriconnect import market
from agriconnect.generate_data import write_market_csv
from agriconnect.models import MarketItem, PriceHistoryEntry
from agriconnect.price_series import InvalidInput
from agriconnect.processing import import_market_items_csv, validate_csv_format

TODAY = date.today()

VALID_CSV = (
    "name,category,region,current_price,unit\n"
    "Tomato,vegetable,Punjab,95.00,per kg\n"
    "Mango,fruit,Sindh,180.50,\n"
    " Onion ,Vegetable,KPK,132,per dozen"
)


def _count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar()


# --- CSV validation and import ---

def test_validate_csv_format_success():
    validate_csv_format(VALID_CSV.encode("utf-8"))


def test_validate_csv_missing_column():
    csv = "name,category,region\nTomato,vegetable,Punjab"
    with pytest.raises(ValueError) as excinfo:
        validate_csv_format(csv.encode("utf-8"))
    assert "missing required columns" in str(excinfo.value).lower()
    assert "current_price" in str(excinfo.value)


@pytest.mark.parametrize("row", [
    "Tomato,vegetable,Punjab,abc",
    "Tomato,vegetable,Punjab,-4",
    "Tomato,grain,Punjab,40",
    "Tomato,vegetable,,40",
])
def test_validate_csv_corrupt_rows(row):
    csv = "name,category,region,current_price\n" + row
    with pytest.raises(ValueError) as excinfo:
        validate_csv_format(csv.encode("utf-8"))
    assert "corrupt or malformed data" in str(excinfo.value)


def test_import_market_items_csv(db_session, session_factory, admin_user):
    total_rows = import_market_items_csv(
        VALID_CSV.encode("utf-8"), session_factory, admin_user.id, rng=random.Random(5)
    )

    assert total_rows == 3
    items = {item.name: item for item in market.list_items(db_session)}
    assert set(items) == {"tomato", "mango", "onion"}
    assert items["mango"].unit == "per kg"
    assert items["onion"].unit == "per dozen"
    assert items["onion"].category == "vegetable"
    assert items["mango"].current_price == 180.5
    for item in items.values():
        assert len(item.price_history) == 7
        assert item.created_by_id == admin_user.id
        assert item.price_history[-1].date == TODAY


def test_import_in_small_chunks(db_session, session_factory, admin_user):
    total_rows = import_market_items_csv(VALID_CSV.encode("utf-8"), session_factory, admin_user.id, chunk_size=1)
    assert total_rows == 3
    assert _count(db_session, MarketItem) == 3
    assert _count(db_session, PriceHistoryEntry) == 21


def test_import_rejects_bad_chunk(db_session, session_factory, admin_user):
    csv = "name,category,region,current_price\nTomato,vegetable,Punjab,-1"
    with pytest.raises(ValueError) as excinfo:
        import_market_items_csv(csv.encode("utf-8"), session_factory, admin_user.id)
    assert "cannot be negative" in str(excinfo.value)
    assert _count(db_session, MarketItem) == 0


def test_generated_csv_imports(tmp_path, db_session, session_factory, admin_user):
    Faker.seed(0)
    path = write_market_csv(tmp_path / "batch.csv", rows=12, fake=Faker())

    contents = path.read_bytes()
    validate_csv_format(contents)
    assert import_market_items_csv(contents, session_factory, admin_user.id) == 12
    assert _count(db_session, MarketItem) == 12


# --- market service ---

def test_create_item_normalizes_fields(db_session, admin_user):
    item = market.create_item(
        db_session,
        name="  Red Onion ",
        category="vegetable",
        region=" Punjab ",
        current_price=40,
        unit="  ",
        created_by_id=admin_user.id,
        rng=random.Random(1),
    )

    assert item.name == "red onion"
    assert item.region == "Punjab"
    assert item.unit == "per kg"
    assert [entry.date for entry in item.price_history] == [TODAY - timedelta(days=i) for i in range(6, -1, -1)]


def test_create_item_rejects_negative_price(db_session, admin_user):
    with pytest.raises(InvalidInput):
        market.create_item(
            db_session, name="x", category="fruit", region="y", current_price=-1, created_by_id=admin_user.id
        )


def test_update_price_appends_today(db_session, admin_user):
    yesterday = TODAY - timedelta(days=1)
    item = market.create_item(
        db_session, name="tomato", category="vegetable", region="Punjab", current_price=100,
        created_by_id=admin_user.id, today=yesterday,
    )
    before = market.item_series(item)

    market.update_item(db_session, item, current_price=120)

    after = market.item_series(item)
    assert len(after) == 7
    assert after[:6] == before[1:]
    assert after[-1].date == TODAY
    assert after[-1].price == 120
    assert item.current_price == 120
    assert _count(db_session, PriceHistoryEntry) == 7


def test_update_to_zero_price_is_recorded(db_session, admin_user):
    item = market.create_item(
        db_session, name="tomato", category="vegetable", region="Punjab", current_price=100,
        created_by_id=admin_user.id,
    )
    market.update_item(db_session, item, current_price=0)

    assert item.current_price == 0
    assert item.price_history[-1].price == 0


def test_update_without_price_keeps_history(db_session, admin_user):
    item = market.create_item(
        db_session, name="tomato", category="vegetable", region="Punjab", current_price=100,
        created_by_id=admin_user.id,
    )
    before = market.item_series(item)

    market.update_item(db_session, item, region="Sindh", unit="per crate")

    assert item.region == "Sindh"
    assert item.unit == "per crate"
    assert market.item_series(item) == before


def test_list_items_filters(db_session, admin_user):
    for name, category, region in [
        ("tomato", "vegetable", "Punjab"),
        ("mango", "fruit", "Sindh"),
        ("apple", "fruit", "Upper Punjab"),
    ]:
        market.create_item(
            db_session, name=name, category=category, region=region, current_price=10,
            created_by_id=admin_user.id,
        )

    assert {i.name for i in market.list_items(db_session, category="fruit")} == {"mango", "apple"}
    assert {i.name for i in market.list_items(db_session, region="punjab")} == {"tomato", "apple"}
    assert [i.name for i in market.list_items(db_session, search="MAN")] == ["mango"]
    assert market.list_items(db_session, search="sindh") == []
    assert [i.name for i in market.list_items(db_session, search="sindh", search_region=True)] == ["mango"]
    assert [i.name for i in market.list_items(db_session)] == ["apple", "mango", "tomato"]


def test_delete_item_removes_history(db_session, admin_user):
    item = market.create_item(
        db_session, name="tomato", category="vegetable", region="Punjab", current_price=100,
        created_by_id=admin_user.id,
    )
    market.delete_item(db_session, item)

    assert _count(db_session, MarketItem) == 0
    assert _count(db_session, PriceHistoryEntry) == 0


def test_roll_price_series(db_session, admin_user):
    yesterday = TODAY - timedelta(days=1)
    stale = market.create_item(
        db_session, name="tomato", category="vegetable", region="Punjab", current_price=100,
        created_by_id=admin_user.id, today=yesterday,
    )
    fresh = market.create_item(
        db_session, name="mango", category="fruit", region="Sindh", current_price=50,
        created_by_id=admin_user.id,
    )
    fresh_series = market.item_series(fresh)

    assert market.roll_price_series(db_session) == 1
    # A second run on the same day finds nothing to do
    assert market.roll_price_series(db_session) == 0

    db_session.refresh(stale)
    db_session.refresh(fresh)
    assert len(stale.price_history) == 7
    assert stale.price_history[-1].date == TODAY
    assert stale.price_history[-1].price == 100
    assert market.item_series(fresh) == fresh_series


def test_stats_over_stored_items(db_session, admin_user):
    assert market.stats(db_session).total_items == 0

    for name, category, region, price in [
        ("tomato", "vegetable", "Punjab", 95.0),
        ("mango", "fruit", "Sindh", 180.0),
        ("carrot", "vegetable", "Punjab", 72.0),
    ]:
        market.create_item(
            db_session, name=name, category=category, region=region, current_price=price,
            created_by_id=admin_user.id,
        )

    stats = market.stats(db_session)
    assert stats.total_items == 3
    assert stats.average_price == 115.67
    assert stats.region_count == 2
    assert stats.category_breakdown == {"vegetable": 2, "fruit": 1}
    assert stats.regions == ["Punjab", "Sindh"]
