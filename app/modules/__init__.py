"""Domain modules package."""

from app.modules.billing import models as billing_models  # noqa: F401
from app.modules.booking import models as booking_models  # noqa: F401
