# agriconnect/main.py
import random
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, Header, HTTPException, UploadFile
from sqlalchemy.orm import Session, sessionmaker

from . import market, processing, users, weather
from .config import settings
from .database import Base, SessionLocal, engine
from .logger import get_logger
from .models import MarketItem, User, Weather, utcnow
from .price_series import compute_trend
from .schemas import (
    AggregateStatsRead,
    Category,
    ItemTrend,
    MarketItemCreate,
    MarketItemDetail,
    MarketItemRead,
    MarketItemUpdate,
    UserCreate,
    UserRead,
    WeatherRead,
    WeatherUpdate,
    WeatherUpsert,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES_ON_START:
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="AgriConnect API",
    description="Market prices and weather advisories for farmers and administrators.",
    lifespan=lifespan,
)

# Dependency function for database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Background imports open their own sessions
def get_session_factory() -> sessionmaker:
    return SessionLocal

# Random source for synthetic price history
def get_price_rng():
    return random

def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    user = db.get(User, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user

def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user

def require_farmer(user: User = Depends(get_current_user)) -> User:
    if user.role not in ("farmer", "admin"):
        raise HTTPException(status_code=403, detail="Farmer access required")
    return user

def _get_item_or_404(db: Session, item_id: int) -> MarketItem:
    item = market.get_item(db, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Market item not found")
    return item

def _get_weather_or_404(db: Session, weather_id: int) -> Weather:
    record = weather.get_weather(db, weather_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Weather data not found")
    return record

# This is the route for the root URL "/"
@app.get("/")
def read_root():
    return {"message": "Welcome to the AgriConnect API"}

@app.get("/health")
def health():
    return {"status": "ok", "timestamp": utcnow().isoformat()}

# --- Accounts ---

@app.post("/auth/register", response_model=UserRead, status_code=201)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Public sign-up. Only farmer accounts can be created here; the returned
    id is what the caller sends as X-User-Id.
    """
    if users.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")
    if payload.role and payload.role.strip().lower() == "admin":
        raise HTTPException(
            status_code=403, detail="Only farmer accounts can be created via public registration"
        )
    return users.create_user(db, name=payload.name, email=payload.email, role="farmer", region=payload.region)

@app.get("/auth/me", response_model=UserRead)
def read_current_user(user: User = Depends(get_current_user)):
    return user

# --- Admin: market items ---

@app.post("/admin/market-items", response_model=MarketItemRead, status_code=201)
def create_market_item(
    payload: MarketItemCreate,
    db: Session = Depends(get_db),
    rng=Depends(get_price_rng),
    admin: User = Depends(require_admin),
):
    """
    Creates a market item and seeds its 7-day price history around the current price.
    """
    try:
        return market.create_item(
            db,
            name=payload.name,
            category=payload.category,
            region=payload.region,
            current_price=payload.current_price,
            unit=payload.unit,
            created_by_id=admin.id,
            rng=rng,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/admin/market-items", response_model=List[MarketItemRead])
def admin_list_market_items(
    category: Optional[Category] = None,
    region: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return market.list_items(db, category=category, region=region, search=search)

@app.post("/admin/market-items/upload")
async def upload_market_items(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    session_factory: sessionmaker = Depends(get_session_factory),
    rng=Depends(get_price_rng),
    admin: User = Depends(require_admin),
):
    """
    Uploads a CSV of market items and imports it in the background.
    - **file**: CSV with name, category, region, current_price and optionally unit
    """
    # 1. Validate the file type
    if not file.filename or not file.filename.endswith('.csv'):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a CSV.")

    try:
        # 2. Read the file contents into memory
        contents = await file.read()

        # 3. Validate CSV format before processing
        processing.validate_csv_format(contents)

        # 4. Add the import to run in the background
        logger.info("Queued CSV import of %s by user %s", file.filename, admin.id)
        background_tasks.add_task(
            processing.import_market_items_csv, contents, session_factory, admin.id, rng
        )

        return {
            "message": f"File '{file.filename}' accepted and is being processed in the background."
        }

    except ValueError as e:
        # Handle CSV validation errors
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"An error occurred during file processing: {e}")

@app.get("/admin/market-items/{item_id}", response_model=MarketItemRead)
def admin_get_market_item(
    item_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _get_item_or_404(db, item_id)

@app.put("/admin/market-items/{item_id}", response_model=MarketItemRead)
def update_market_item(
    item_id: int,
    payload: MarketItemUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Updates a market item. A new current price is appended to the price
    history as today's point; only the latest 7 points are kept.
    """
    item = _get_item_or_404(db, item_id)
    try:
        return market.update_item(db, item, **payload.model_dump(exclude_unset=True))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/admin/market-items/{item_id}")
def delete_market_item(
    item_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    market.delete_item(db, _get_item_or_404(db, item_id))
    return {"message": "Market item deleted successfully"}

@app.get("/admin/stats", response_model=AggregateStatsRead)
def get_stats(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Returns dashboard statistics: item count, average current price,
    distinct regions and the number of items per category.
    """
    try:
        return market.stats(db)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Database query failed: {e}")

# --- Admin: weather ---

@app.post("/admin/weather", response_model=WeatherRead)
def upsert_weather(
    payload: WeatherUpsert,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Creates or replaces the weather advisory of a region."""
    return weather.upsert_weather(db, **payload.model_dump())

@app.get("/admin/weather", response_model=List[WeatherRead])
def admin_list_weather(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return weather.list_weather(db)

@app.get("/admin/weather/{weather_id}", response_model=WeatherRead)
def admin_get_weather(
    weather_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return _get_weather_or_404(db, weather_id)

@app.put("/admin/weather/{weather_id}", response_model=WeatherRead)
def update_weather(
    weather_id: int,
    payload: WeatherUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    record = _get_weather_or_404(db, weather_id)
    return weather.update_weather(db, record, **payload.model_dump(exclude_unset=True))

@app.delete("/admin/weather/{weather_id}")
def delete_weather(
    weather_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    weather.delete_weather(db, _get_weather_or_404(db, weather_id))
    return {"message": "Weather data deleted successfully"}

# --- Farmer views ---

@app.get("/farmer/market-items", response_model=List[MarketItemRead])
def farmer_list_market_items(
    category: Optional[Category] = None,
    region: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
):
    """
    Lists market prices.
    - **search**: matches the item name or its region
    """
    return market.list_items(db, category=category, region=region, search=search, search_region=True)

@app.get("/farmer/market-items/{item_id}", response_model=MarketItemDetail)
def farmer_get_market_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
):
    """Returns a market item with its price trend ready for charting."""
    item = _get_item_or_404(db, item_id)
    detail = MarketItemRead.model_validate(item).model_dump()
    return MarketItemDetail(**detail, price_trend=compute_trend(item.price_history))

@app.get("/farmer/price-trends", response_model=List[ItemTrend])
def get_price_trends(
    category: Optional[Category] = None,
    region: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
):
    return market.item_trends(db, category=category, region=region)

@app.get("/farmer/weather", response_model=List[WeatherRead])
def farmer_list_weather(
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
):
    return weather.list_weather(db)

@app.get("/farmer/weather/{region}", response_model=WeatherRead)
def farmer_get_weather(
    region: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_farmer),
):
    record = weather.get_weather_by_region(db, region)
    if record is None:
        raise HTTPException(status_code=404, detail="Weather data not found for this region")
    return record
