"""Tests for workflow entities (definitions, actions, trigger data) and enums."""

import pytest
from pydantic import ValidationError

from taskflow.domain.entities.actions import (
    AddCommentAction,
    InvalidAction,
    SendEmailAction,
    UnknownAction,
    UpdateCustomFieldAction,
    UpdateTaskAction,
)
from taskflow.domain.entities.triggers import (
    DueDateConfig,
    ScheduleConfig,
    TaskStatusChangedConfig,
    TaskStatusChangedData,
    parse_trigger_data,
)
from taskflow.domain.entities.workflow import WorkflowExecutionContext
from taskflow.shared.enums import ActionType, TriggerType, WorkflowExecutionStatus


class TestEnums:
    def test_trigger_types(self) -> None:
        got = TriggerType.values()
        assert "task_status_changed" in got
        assert "scheduled" in got
        assert len(got) == 10

    def test_action_types(self) -> None:
        assert len(ActionType.values()) == 11
        assert ActionType.BATCH_UPDATE_TASKS.value == "batch_update_tasks"

    def test_execution_statuses(self) -> None:
        assert WorkflowExecutionStatus.values() == [
            "running",
            "success",
            "partial",
            "failed",
            "cancelled",
        ]


class TestWorkflowDefinition:
    def test_trigger_config_follows_trigger_type(self, workflow_factory) -> None:
        workflow = workflow_factory(trigger_config={"to_status": "done", "colour": "red"})
        assert isinstance(workflow.trigger_config, TaskStatusChangedConfig)
        assert workflow.trigger_config.to_status == "done"
        assert workflow.config_dict() == {"from_status": None, "to_status": "done"}

        due = workflow_factory(trigger_type="due_date_approaching", trigger_config=None)
        assert isinstance(due.trigger_config, DueDateConfig)
        assert due.trigger_config.days_before == 1

    def test_actions_load_by_type(self, workflow_factory) -> None:
        """Unknown action kinds load as UnknownAction instead of failing."""
        workflow = workflow_factory(
            actions=[
                {"type": "send_email", "config": {"subject": "Hi", "message": "Body"}},
                {"type": "launch_rocket", "config": {"speed": 9}},
            ]
        )
        email, unknown = workflow.actions
        assert isinstance(email, SendEmailAction)
        assert email.config.content == "Body"
        assert isinstance(unknown, UnknownAction)
        assert unknown.config == {"speed": 9}
        assert workflow.actions_dump()[1] == {"type": "launch_rocket", "config": {"speed": 9}}

    def test_incomplete_known_action_loads_as_invalid(self, workflow_factory) -> None:
        """A known kind with a bad config loads as InvalidAction; siblings still load."""
        workflow = workflow_factory(
            actions=[
                {"type": "add_comment", "config": {"comment": "Done"}},
                {"type": "send_notification", "config": {}},
                {"type": "update_task"},
            ]
        )
        comment, notification, update = workflow.actions
        assert isinstance(comment, AddCommentAction)
        assert isinstance(notification, InvalidAction)
        assert notification.config_error() == "message: Field required"
        assert isinstance(update, UpdateTaskAction)
        assert workflow.actions_dump()[1] == {"type": "send_notification", "config": {}}

    def test_missing_config_on_required_kind_is_invalid(self, workflow_factory) -> None:
        workflow = workflow_factory(actions=[{"type": "assign_to_user"}])
        [action] = workflow.actions
        assert isinstance(action, InvalidAction)
        assert action.config_error().startswith("config: ")

    def test_custom_field_range_is_flattened(self, workflow_factory) -> None:
        workflow = workflow_factory(
            actions=[
                {
                    "type": "update_custom_field",
                    "config": {
                        "field_id": "cf-1",
                        "value": 5,
                        "entity_type": "task",
                        "validation": {"range": {"min": 1, "max": 10}},
                    },
                }
            ]
        )
        [action] = workflow.actions
        assert isinstance(action, UpdateCustomFieldAction)
        assert (action.config.validation.min, action.config.validation.max) == (1, 10)

    def test_can_trigger_on(self, workflow_factory) -> None:
        assert workflow_factory().can_trigger_on("task_status_changed")
        assert not workflow_factory(is_active=False).can_trigger_on("task_status_changed")
        assert not workflow_factory().can_trigger_on("task_created")

    def test_schedule_config_keeps_unknown_type(self, workflow_factory) -> None:
        workflow = workflow_factory(
            trigger_type="scheduled", trigger_config={"schedule_type": "hourly"}
        )
        assert isinstance(workflow.trigger_config, ScheduleConfig)
        assert workflow.trigger_config.schedule_type == "hourly"


class TestTriggerData:
    def test_parse_by_trigger_type(self) -> None:
        data = parse_trigger_data(
            "task_status_changed",
            {"project_id": "p", "task_id": "t", "from_status": "a", "to_status": "b", "x": 1},
        )
        assert isinstance(data, TaskStatusChangedData)
        assert data.get("x") == 1
        assert data.has("x")
        assert not data.has("user_id")

    def test_missing_required_field(self) -> None:
        with pytest.raises(ValidationError):
            parse_trigger_data("task_created", {"project_id": "p"})

    def test_archive_drops_none(self) -> None:
        data = TaskStatusChangedData(
            project_id="p", task_id="t", from_status="a", to_status="b"
        )
        archived = data.archive()
        assert archived["trigger_type"] == "task_status_changed"
        assert "user_id" not in archived
        assert isinstance(archived["timestamp"], str)


class TestExecutionContext:
    def test_acting_user_falls_back_to_creator(self, workflow_factory) -> None:
        workflow = workflow_factory()
        trigger = TaskStatusChangedData(project_id="proj-1", task_id="t", from_status="a", to_status="b")
        assert WorkflowExecutionContext.build(workflow, trigger).user_id == "owner-1"

        trigger = parse_trigger_data(
            "comment_added", {"project_id": "proj-1", "task_id": "t", "created_by": "user-2"}
        )
        assert WorkflowExecutionContext.build(workflow, trigger).user_id == "user-2"
