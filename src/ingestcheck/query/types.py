"""Shared types for the query package."""

from typing import Any

Row = dict[str, Any]
Table = list[Row]
QueryResult = list[Table]
