import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from apps.cores.exceptions import Conflict, Forbidden, NotFound, storage_guard
from apps.freelancer.models import Favorite
from apps.projects.models import Project

logger = logging.getLogger(__name__)


class FavoriteService:
    """Freelancer bookmarks on open projects."""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _favorites(self):
        return Favorite.objects.using(self.using)

    @storage_guard("add_favorite")
    def add_favorite(self, actor, project_id):
        if not actor.is_freelancer:
            raise Forbidden("Only freelancers can save projects.")

        project = Project.objects.using(self.using).filter(id=project_id).first()
        if project is None or not project.is_open:
            raise NotFound("Project not found or not open.")

        try:
            with transaction.atomic(using=self.using):
                favorite = self._favorites().create(
                    freelancer_id=actor.user_id,
                    project_id=project.id,
                )
        except IntegrityError as exc:
            raise Conflict("Project is already in your favorites.") from exc

        logger.info("Freelancer %s saved project %s", actor.user_id, project.id)
        return favorite

    @storage_guard("list_favorites")
    def list_favorites(self, freelancer_id):
        return list(
            self._favorites()
            .filter(freelancer_id=freelancer_id, project__deleted=False)
            .select_related("project", "project__client", "project__client__client_profile")
            .prefetch_related("project__tags")
            .order_by("-created_at", "-id")
        )

    @storage_guard("remove_favorite")
    def remove_favorite(self, actor, project_id):
        deleted, _ = self._favorites().filter(
            freelancer_id=actor.user_id, project_id=project_id
        ).delete()
        if not deleted:
            raise NotFound("Favorite not found.")
