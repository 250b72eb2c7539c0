"""Project and profile repositories (implement IProjectRepository, IUserRepository)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.dtos.project import ProjectRecord
from taskflow.application.dtos.user import UserProfile
from taskflow.infrastructure.persistence.models.profile import Profile
from taskflow.infrastructure.persistence.models.project import Project
from taskflow.shared.utils.datetime import utc_now


def _to_record(p: Project) -> ProjectRecord:
    return ProjectRecord(
        id=p.id,
        name=p.name,
        status=p.status,
        created_by=p.created_by,
        description=p.description,
    )


class ProjectRepository:
    """Project repository. Implements IProjectRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        async with self.session_factory() as session:
            project = await session.get(Project, project_id)
            return _to_record(project) if project is not None else None

    async def update_status(self, project_id: str, status: str) -> ProjectRecord | None:
        async with self.session_factory.begin() as session:
            project = await session.get(Project, project_id)
            if project is None:
                return None
            project.status = status
            project.updated_at = utc_now()
            await session.flush()
            return _to_record(project)


class UserRepository:
    """Profile lookups. Implements IUserRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        async with self.session_factory() as session:
            profile = await session.get(Profile, user_id)
            if profile is None:
                return None
            return UserProfile(id=profile.id, full_name=profile.full_name, email=profile.email)
