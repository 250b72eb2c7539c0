"""Custom field repository (implements ICustomFieldRepository)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.dtos.custom_field import (
    CustomFieldDefinitionRecord,
    CustomFieldValueRecord,
)
from taskflow.infrastructure.persistence.models.custom_field import (
    CustomFieldDefinition,
    CustomFieldValue,
)
from taskflow.shared.utils.datetime import utc_now


def _to_definition(d: CustomFieldDefinition) -> CustomFieldDefinitionRecord:
    return CustomFieldDefinitionRecord(
        id=d.id,
        project_id=d.project_id,
        name=d.name,
        entity_type=d.entity_type,
        field_type=d.field_type,
    )


def _to_value(v: CustomFieldValue) -> CustomFieldValueRecord:
    return CustomFieldValueRecord(
        id=v.id,
        field_id=v.field_id,
        entity_id=v.entity_id,
        entity_type=v.entity_type,
        value=v.value,
    )


class CustomFieldRepository:
    """Custom field definitions and values. Implements ICustomFieldRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_definition(self, field_id: str) -> CustomFieldDefinitionRecord | None:
        async with self.session_factory() as session:
            definition = await session.get(CustomFieldDefinition, field_id)
            return _to_definition(definition) if definition is not None else None

    async def find_definition_by_name(
        self, project_id: str, name: str, entity_type: str
    ) -> CustomFieldDefinitionRecord | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(CustomFieldDefinition).where(
                    CustomFieldDefinition.project_id == project_id,
                    CustomFieldDefinition.name == name,
                    CustomFieldDefinition.entity_type == entity_type,
                )
            )
            definition = result.scalar_one_or_none()
            return _to_definition(definition) if definition is not None else None

    async def get_value(
        self, field_id: str, entity_id: str, entity_type: str
    ) -> CustomFieldValueRecord | None:
        async with self.session_factory() as session:
            row = await self._find_value(session, field_id, entity_id, entity_type)
            return _to_value(row) if row is not None else None

    async def upsert_value(self, value: CustomFieldValueRecord) -> CustomFieldValueRecord:
        """Insert or replace the value for (field, entity)."""
        async with self.session_factory.begin() as session:
            row = await self._find_value(
                session, value.field_id, value.entity_id, value.entity_type
            )
            if row is None:
                row = CustomFieldValue(
                    field_id=value.field_id,
                    entity_id=value.entity_id,
                    entity_type=value.entity_type,
                    value=value.value,
                )
                session.add(row)
            else:
                row.value = value.value
                row.updated_at = utc_now()
            await session.flush()
            return _to_value(row)

    @staticmethod
    async def _find_value(
        session: AsyncSession, field_id: str, entity_id: str, entity_type: str
    ) -> CustomFieldValue | None:
        result = await session.execute(
            select(CustomFieldValue).where(
                CustomFieldValue.field_id == field_id,
                CustomFieldValue.entity_id == entity_id,
                CustomFieldValue.entity_type == entity_type,
            )
        )
        return result.scalar_one_or_none()
