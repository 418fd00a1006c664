from src.datasource.base import DataSource, DataSourceError, Document, Unsubscribe, Where
from src.datasource.memory import InMemoryDataSource

__all__ = [
    "DataSource", "DataSourceError", "Document", "Unsubscribe", "Where",
    "InMemoryDataSource",
]
