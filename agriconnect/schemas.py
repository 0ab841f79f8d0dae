# agriconnect/schemas.py
import datetime as dt
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal["vegetable", "fruit"]
WeatherCondition = Literal["sunny", "cloudy", "rainy", "stormy", "foggy"]


class PricePointRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    price: float
    date: dt.date


class TrendPoint(BaseModel):
    date: str
    price: float


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


class MarketItemCreate(BaseModel):
    name: str = Field(min_length=1)
    category: Category
    region: str = Field(min_length=1)
    current_price: float = Field(ge=0)
    unit: Optional[str] = None

    @field_validator("name", "region")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _not_blank(value)


class MarketItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[Category] = None
    region: Optional[str] = Field(default=None, min_length=1)
    current_price: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None

    @field_validator("name", "region")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


class MarketItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    region: str
    current_price: float
    unit: str
    created_by_id: int
    created_at: dt.datetime
    updated_at: dt.datetime
    price_history: List[PricePointRead]


# The farmer view adds a chart-ready copy of the history
class MarketItemDetail(MarketItemRead):
    price_trend: List[TrendPoint]


class ItemTrend(BaseModel):
    id: int
    name: str
    category: str
    region: str
    current_price: float
    trend: List[TrendPoint]


class AggregateStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_items: int
    average_price: float
    region_count: int
    category_breakdown: Dict[str, int]
    regions: List[str]


class WeatherUpsert(BaseModel):
    region: str = Field(min_length=1)
    temperature: float
    humidity: float = Field(ge=0, le=100)
    condition: WeatherCondition
    wind_speed: float = Field(default=0, ge=0)
    description: Optional[str] = None

    @field_validator("region")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _not_blank(value)


class WeatherUpdate(BaseModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    condition: Optional[WeatherCondition] = None
    wind_speed: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None


class WeatherRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    region: str
    temperature: float
    humidity: float
    condition: str
    wind_speed: float
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: Optional[str] = None
    region: Optional[str] = None

    @field_validator("name", "email")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _not_blank(value)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    region: Optional[str] = None
    created_at: dt.datetime
