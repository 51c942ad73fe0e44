"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from siteplod_api.models.site import Site, SiteStatus
from siteplod_api.models.site_file import SiteFile
from siteplod_api.models.site_view import SiteView

__all__ = [
    "Site",
    "SiteFile",
    "SiteStatus",
    "SiteView",
]
