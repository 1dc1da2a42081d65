from .favorites import FavoriteService
from .visits import ProfileVisitService

__all__ = ("FavoriteService", "ProfileVisitService")
