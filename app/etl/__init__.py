"""ETL module: SofaScore extraction, mapping and the admin import actions."""

from app.etl.base import SportsDataProvider
from app.etl.pipeline import SofascoreImporter
from app.etl.sofascore_provider import SofascoreAPIError, SofascoreProvider

__all__ = [
    "SportsDataProvider",
    "SofascoreProvider",
    "SofascoreAPIError",
    "SofascoreImporter",
]
