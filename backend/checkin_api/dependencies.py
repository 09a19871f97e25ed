"""
Shared FastAPI dependency helpers.

Routers import from here so the wiring stays in one place:

- `get_db` hands each request its own SQLAlchemy session and closes it
  afterward (defined next to `SessionLocal` in `checkin_api.db`).
- `authenticate` / `require_roles` resolve and gate the calling staff member.
- `kiosk_auth` accepts only kiosk-scoped tokens.
"""

from checkin_api.db import get_db  # noqa: F401
from checkin_api.security import (  # noqa: F401
    Principal,
    authenticate,
    kiosk_auth,
    require_roles,
)
