"""
Tests for the in-memory entity store.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rizz_codes.models import ChatMessage, OpenRouterConfig
from rizz_codes.storage import MemStorage, NotFoundError

from conftest import EnvKey, TickingClock


def _project(storage, **fields):
    data = {"name": "Demo", "mode": "planner"}
    data.update(fields)
    return storage.create_project(data)


class TestProjects:
    def test_create_assigns_unique_ids_and_equal_timestamps(self, storage):
        projects = [_project(storage, name=f"p{i}") for i in range(20)]

        assert len({p.id for p in projects}) == 20
        for p in projects:
            assert p.created_at == p.updated_at

    def test_create_fills_defaults(self, storage):
        project = _project(storage)

        assert project.status == "active"
        assert project.config == {}
        assert project.description is None

    def test_get_missing_returns_none(self, storage):
        assert storage.get_project("nope") is None

    def test_empty_update_only_touches_updated_at(self, storage):
        before = _project(storage, description="first", config={"a": 1})

        after = storage.update_project(before.id, {})

        assert after.updated_at > before.updated_at
        assert after.model_dump(exclude={"updated_at"}) == before.model_dump(exclude={"updated_at"})

    def test_update_merges_partial_fields(self, storage):
        project = _project(storage)

        updated = storage.update_project(project.id, {"status": "paused"})

        assert updated.status == "paused"
        assert updated.name == "Demo"
        assert storage.get_project(project.id) == updated

    def test_update_cannot_change_id_or_created_at(self, storage):
        project = _project(storage)

        updated = storage.update_project(
            project.id,
            {"id": "hijack", "created_at": datetime(2000, 1, 1, tzinfo=timezone.utc)},
        )

        assert updated.id == project.id
        assert updated.created_at == project.created_at
        assert storage.get_project("hijack") is None

    def test_update_missing_raises_not_found(self, storage):
        with pytest.raises(NotFoundError):
            storage.update_project("missing", {"name": "x"})

    def test_update_rejects_invalid_merge(self, storage):
        project = _project(storage)

        with pytest.raises(ValidationError):
            storage.update_project(project.id, {"mode": "sleeping"})
        assert storage.get_project(project.id) == project

    def test_delete_is_idempotent(self, storage):
        project = _project(storage)

        assert storage.delete_project(project.id) is True
        assert storage.delete_project(project.id) is False

    def test_delete_does_not_cascade_to_files_or_chat(self, storage):
        project = _project(storage)
        file = storage.create_file({"project_id": project.id, "path": "src/app.py"})
        message = storage.create_chat_message(
            {"project_id": project.id, "mode": "planner", "role": "user", "content": "hi"}
        )

        storage.delete_project(project.id)

        assert storage.list_project_files(project.id) == [file]
        assert storage.list_project_chat(project.id, "planner") == [message]


class TestFiles:
    def test_create_defaults_content_and_language(self, storage):
        file = storage.create_file({"project_id": "p1", "path": "README.md"})

        assert file.content is None
        assert file.language is None
        assert file.created_at == file.updated_at

    def test_list_by_project(self, storage):
        a = storage.create_file({"project_id": "p1", "path": "a.ts"})
        storage.create_file({"project_id": "p2", "path": "b.ts"})

        assert storage.list_project_files("p1") == [a]
        assert storage.list_project_files("unknown") == []
        assert len(storage.list_files()) == 2

    def test_update_and_delete(self, storage):
        file = storage.create_file({"project_id": "p1", "path": "a.ts"})

        updated = storage.update_file(file.id, {"content": "export {}", "language": "typescript"})

        assert updated.content == "export {}"
        assert updated.path == "a.ts"
        assert updated.updated_at >= updated.created_at
        assert storage.delete_file(file.id) is True
        assert storage.get_file(file.id) is None
        assert storage.delete_file(file.id) is False

    def test_update_missing_raises_not_found(self, storage):
        with pytest.raises(NotFoundError):
            storage.update_file("missing", {})


class TestChatMessages:
    def test_create_defaults_metadata(self, storage):
        message = storage.create_chat_message({"mode": "coder", "role": "assistant", "content": "done"})

        assert message.metadata == {}
        assert message.project_id is None

    def test_listing_filters_and_orders_by_created_at(self):
        def msg(id_, project_id, mode, minute):
            return ChatMessage(
                id=id_,
                project_id=project_id,
                mode=mode,
                role="user",
                content=id_,
                created_at=datetime(2024, 1, 1, 12, minute, tzinfo=timezone.utc),
            )

        storage = MemStorage(
            chat_messages=[
                msg("late", "p1", "coder", 30),
                msg("other-mode", "p1", "debug", 5),
                msg("early", "p1", "coder", 10),
                msg("other-project", "p2", "coder", 1),
                msg("tie", "p1", "coder", 10),
            ],
            env_api_key=EnvKey(),
        )

        listed = storage.list_project_chat("p1", "coder")

        assert [m.id for m in listed] == ["early", "tie", "late"]

    def test_ties_keep_insertion_order(self):
        fixed = datetime(2024, 1, 1, tzinfo=timezone.utc)
        storage = MemStorage(clock=lambda: fixed, env_api_key=EnvKey())

        ids = [
            storage.create_chat_message(
                {"project_id": "p1", "mode": "auto", "role": "user", "content": str(i)}
            ).id
            for i in range(5)
        ]

        assert [m.id for m in storage.list_project_chat("p1", "auto")] == ids

    def test_update_and_delete(self, storage):
        message = storage.create_chat_message({"mode": "coder", "role": "user", "content": "a"})

        updated = storage.update_chat_message(message.id, {"metadata": {"pinned": True}})

        assert updated.metadata == {"pinned": True}
        assert updated.created_at == message.created_at
        assert storage.delete_chat_message(message.id) is True
        assert storage.delete_chat_message(message.id) is False
        with pytest.raises(NotFoundError):
            storage.update_chat_message(message.id, {})


class TestOpenRouterConfig:
    def test_unset_without_environment_key(self, storage):
        assert storage.get_openrouter_config() is None

    def test_lazily_created_from_environment(self, storage, env_key):
        env_key.value = "sk-env"

        config = storage.get_openrouter_config()

        assert config.api_key == "sk-env"
        assert config.is_connected is True
        assert config.selected_model == "anthropic/claude-3.5-sonnet"
        assert storage.get_openrouter_config().id == config.id

    def test_update_creates_then_merges(self, storage):
        created = storage.update_openrouter_config({"api_key": "sk-x"})
        merged = storage.update_openrouter_config({"selected_model": "openai/gpt-4o"})

        assert merged.id == created.id
        assert merged.api_key == "sk-x"
        assert merged.selected_model == "openai/gpt-4o"
        assert merged.is_connected is True

    def test_is_connected_cannot_be_set_directly(self, storage):
        config = storage.update_openrouter_config({"is_connected": True, "selected_model": "x/y"})

        assert config.is_connected is False

    def test_clearing_key_disconnects(self, storage):
        storage.update_openrouter_config({"api_key": "sk-x"})

        config = storage.update_openrouter_config({"api_key": None})

        assert config.is_connected is False
        assert storage.effective_api_key() is None

    def test_environment_key_is_resolved_at_access_time(self, storage, env_key):
        storage.update_openrouter_config({"selected_model": "x/y"})
        assert storage.get_openrouter_config().is_connected is False

        env_key.value = "sk-later"

        assert storage.effective_api_key() == "sk-later"
        assert storage.get_openrouter_config().is_connected is True

    def test_explicit_key_wins_over_environment(self, storage, env_key):
        env_key.value = "sk-env"
        storage.update_openrouter_config({"api_key": "sk-explicit"})

        assert storage.effective_api_key() == "sk-explicit"


def test_constructor_seeds_initial_state():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    config = OpenRouterConfig(id="cfg", api_key="sk-seed", updated_at=now)
    seeded = MemStorage(openrouter_config=config, clock=TickingClock(), env_api_key=EnvKey())

    assert seeded.get_openrouter_config().id == "cfg"
    assert seeded.list_projects() == []

    other = MemStorage(clock=TickingClock(), env_api_key=EnvKey())
    other.create_project({"name": "Isolated", "mode": "debug"})
    assert seeded.list_projects() == []
