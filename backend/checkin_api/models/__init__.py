# checkin_api/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py, alembic/env.py) so SQLAlchemy
sees every mapped class before metadata is used.
"""
from checkin_api.db import Base  # noqa: F401  (re-export Base)

from .family import Family  # noqa: F401
from .person import Elder, User  # noqa: F401
from .ministry import ElderMinistry, Ministry, UserMinistry  # noqa: F401
from .event import Event  # noqa: F401
from .checkin import CheckIn  # noqa: F401
from .admin import Admin, Kiosk  # noqa: F401
