"""Cached entity lookups shared by substitution and action executors.

Reads go through the entity cache; a miss loads from the repository and
caches the result. A failing source degrades to None for the caller only.
"""

from __future__ import annotations

from taskflow.application.dtos.custom_field import CustomFieldValueRecord
from taskflow.application.dtos.project import ProjectRecord
from taskflow.application.dtos.task import TaskRecord
from taskflow.application.dtos.user import UserProfile
from taskflow.application.interfaces.repositories import (
    ICustomFieldRepository,
    IProjectRepository,
    ITaskRepository,
    IUserRepository,
)
from taskflow.application.interfaces.services import IEntityCache
from taskflow.core.constants import (
    CACHE_KIND_CUSTOM_FIELD_VALUE,
    CACHE_KIND_PROJECT,
    CACHE_KIND_TASK,
    CACHE_KIND_USER,
)
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class EntityReader:
    """Read-through access to tasks, projects, users and custom field values."""

    def __init__(
        self,
        cache: IEntityCache,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        user_repo: IUserRepository,
        custom_field_repo: ICustomFieldRepository,
    ) -> None:
        self.cache = cache
        self.task_repo = task_repo
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.custom_field_repo = custom_field_repo

    async def get_task(self, task_id: str) -> TaskRecord | None:
        try:
            return await self.cache.get_or_load(
                CACHE_KIND_TASK, task_id, loader=lambda: self.task_repo.get_by_id(task_id)
            )
        except Exception:
            logger.exception("Failed to load task %s", task_id)
            return None

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        try:
            return await self.cache.get_or_load(
                CACHE_KIND_PROJECT,
                project_id,
                loader=lambda: self.project_repo.get_by_id(project_id),
            )
        except Exception:
            logger.exception("Failed to load project %s", project_id)
            return None

    async def get_user(self, user_id: str) -> UserProfile | None:
        try:
            return await self.cache.get_or_load(
                CACHE_KIND_USER, user_id, loader=lambda: self.user_repo.get_by_id(user_id)
            )
        except Exception:
            logger.exception("Failed to load user profile %s", user_id)
            return None

    async def get_custom_field_value(
        self,
        entity_id: str,
        field_name: str,
        entity_type: str,
        project_id: str,
    ) -> CustomFieldValueRecord | None:
        """Resolve a value by field name: definition lookup, then value lookup.

        Args:
            entity_id: Task or project id owning the value.
            field_name: Definition name within the project.
            entity_type: "task" or "project".
            project_id: Project that scopes the definition.

        Returns:
            The stored value record, or None when the field or value is missing.
        """
        try:
            definition = await self.custom_field_repo.find_definition_by_name(
                project_id, field_name, entity_type
            )
            if definition is None:
                logger.warning(
                    "Custom field %r not found in project %s", field_name, project_id
                )
                return None
            return await self.cache.get_or_load(
                CACHE_KIND_CUSTOM_FIELD_VALUE,
                entity_type,
                entity_id,
                definition.id,
                loader=lambda: self.custom_field_repo.get_value(
                    definition.id, entity_id, entity_type
                ),
            )
        except Exception:
            logger.exception(
                "Failed to load custom field %r for %s %s", field_name, entity_type, entity_id
            )
            return None

    async def forget_task(self, task_id: str) -> None:
        await self.cache.invalidate(CACHE_KIND_TASK, task_id)

    async def forget_project(self, project_id: str) -> None:
        await self.cache.invalidate(CACHE_KIND_PROJECT, project_id)

    async def forget_custom_field_value(
        self, entity_type: str, entity_id: str, field_id: str
    ) -> None:
        await self.cache.invalidate(
            CACHE_KIND_CUSTOM_FIELD_VALUE, entity_type, entity_id, field_id
        )
