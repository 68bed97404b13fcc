"""Output formatters for query results."""

from driftsql.formatters.base import Formatter, FormatterRegistry, registry
from driftsql.formatters.csv import CSVFormatter
from driftsql.formatters.json import JSONFormatter
from driftsql.formatters.table import TableFormatter

__all__ = [
    "CSVFormatter",
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "TableFormatter",
    "registry",
]
