"""Alumni directory integration helpers exposed to the application."""

from cpsconnect.alumni.api import router
from cpsconnect.alumni.domain.container import configure, configure_postgres

__all__ = ["router", "configure", "configure_postgres"]
