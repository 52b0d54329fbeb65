"""Expose commonly used ORM models at package level.

These re-exports are intentional so callers can import from
``models`` (e.g. `from models import Listing`) and so that
``Base.metadata`` knows every table once the package is imported.
"""

from .ai_summaries import AISummary  # noqa: F401
from .comparison_summaries import ComparisonSummary  # noqa: F401
from .listings import Listing  # noqa: F401
from .user_profiles import UserProfile  # noqa: F401
