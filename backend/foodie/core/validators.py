"""Reusable path and query parameter validators."""

from typing import Annotated

from fastapi import Path, Query

# Positive integer ID validator for path parameters
PositiveIntId = Annotated[int, Path(gt=0, description="Resource ID (must be positive)")]

# Pagination query parameters shared by list endpoints
PageSkip = Annotated[int, Query(ge=0, description="Number of items to skip")]
PageLimit = Annotated[int, Query(ge=1, le=100, description="Maximum items to return")]
