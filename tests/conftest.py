import os
from datetime import date
from decimal import Decimal

import pytest

# Keep the web app's module-level store off the filesystem.
os.environ.setdefault("COMPARISON_DATABASE_URL", "sqlite://")

from amort_calc.data_models import LoanConfig


@pytest.fixture
def standard_config():
    return LoanConfig(
        principal=Decimal("250000"),
        rate=Decimal("6.5"),
        term=360,
        start_date=date(2025, 1, 1),
    )
