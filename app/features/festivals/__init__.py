"""Festival demand forecasting.

Pipeline: catalog -> proximity -> velocity + inventory match -> confidence
score -> ranked forecast.
"""

from app.features.festivals.schemas import ForecastItem, ForecastResult
from app.features.festivals.service import FestivalForecastService

__all__ = ["FestivalForecastService", "ForecastItem", "ForecastResult"]
