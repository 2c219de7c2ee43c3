# datadash/schemas/analytics.py
from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

Direction = Literal["increasing", "decreasing", "stable"]


class CategorySum(BaseModel):
    category: str
    sum: float
    count: int


class DailyTrend(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    total: float
    count: int


class TrendAnalysis(BaseModel):
    slope: float = 0.0
    intercept: float = 0.0
    direction: Direction = "stable"


class ForecastPoint(BaseModel):
    date: str
    predicted_value: float
    confidence: float


class TrendForecast(BaseModel):
    slope: float = 0.0
    intercept: float = 0.0
    direction: Direction = "stable"
    forecast: List[ForecastPoint] = Field(default_factory=list)


class AnalyticsSnapshot(BaseModel):
    total_entries: int = 0
    total_value: float = 0.0
    average_value: float = 0.0
    min_value: float = 0.0
    max_value: float = 0.0
    categories: List[str] = Field(default_factory=list)
    sum_by_category: List[CategorySum] = Field(default_factory=list)
    trends: List[DailyTrend] = Field(default_factory=list)
    trend_analysis: TrendAnalysis = Field(default_factory=TrendAnalysis)
    forecast: List[ForecastPoint] = Field(default_factory=list)
