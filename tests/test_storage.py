"""Tests for the JSON document stores."""

import asyncio
import json
import os
import stat

import pytest

from balance_bot.models.config import ConfigDocument, NotificationTarget
from balance_bot.services.storage import (
    ConfigStore,
    CorruptDocumentError,
    ResponseCache,
    StateStore,
    atomic_write_json,
    create_cache_key,
    read_json_document,
)
from balance_bot.validation import ConfigurationError


def file_mode(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


class TestJsonFile:
    """Tests for the atomic JSON primitives."""

    def test_missing_file_reads_as_none(self, tmp_path):
        assert read_json_document(tmp_path / "missing.json") is None

    def test_empty_file_reads_as_none(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("  \n")
        assert read_json_document(path) is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(CorruptDocumentError):
            read_json_document(path)

    def test_atomic_write_is_owner_only_and_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "nested" / "doc.json"
        atomic_write_json(path, {"a": 1})

        assert json.loads(path.read_text()) == {"a": 1}
        assert file_mode(path) == 0o600
        assert os.listdir(path.parent) == ["doc.json"]

    def test_failed_write_keeps_previous_document(self, tmp_path):
        path = tmp_path / "doc.json"
        atomic_write_json(path, {"a": 1})

        with pytest.raises(TypeError):
            atomic_write_json(path, {"a": object()})

        assert json.loads(path.read_text()) == {"a": 1}
        assert os.listdir(tmp_path) == ["doc.json"]


class TestConfigStore:
    """Tests for the config document store."""

    async def test_missing_file_returns_defaults(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")
        document = await store.get()

        assert document.polling.cron_expression == "0 * * * *"
        assert document.metadata.file_path == str((tmp_path / "config.json").resolve())
        assert not (tmp_path / "config.json").exists()

    async def test_default_path_comes_from_settings(self, isolated_settings):
        store = ConfigStore()
        assert store.file_path == (isolated_settings / "config.json").resolve()

    async def test_update_persists_with_owner_only_permissions(self, tmp_path):
        path = tmp_path / "config.json"
        store = ConfigStore(path)

        def apply(document: ConfigDocument) -> None:
            document.polling.cron_expression = "*/5 * * * *"

        updated = await store.update(apply)

        assert updated.polling.cron_expression == "*/5 * * * *"
        on_disk = json.loads(path.read_text())
        assert on_disk["polling"] == {"cronExpression": "*/5 * * * *"}
        assert file_mode(path) == 0o600

    async def test_update_accepts_returned_dict(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")

        updated = await store.update(lambda document: {"notifier": {"appriseApiUrl": " http://gw/notify "}})

        assert updated.notifier.apprise_api_url == "http://gw/notify"

    async def test_update_rejects_unexpected_return_type(self, tmp_path):
        path = tmp_path / "config.json"
        store = ConfigStore(path)

        with pytest.raises(TypeError, match="list"):
            await store.update(lambda document: ["not", "a", "document"])

        assert not path.exists()

    async def test_updates_are_serialized(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")

        def add_target(name: str, delay: float):
            async def mutator(document: ConfigDocument) -> None:
                await asyncio.sleep(delay)
                document.notifications.targets.append(
                    NotificationTarget(name=name, account_ids=["*"], apprise_config_key=name)
                )
            return mutator

        await asyncio.gather(
            store.update(add_target("first", 0.05)),
            store.update(add_target("second", 0)),
        )

        document = await store.get()
        assert [t.name for t in document.targets] == ["first", "second"]

    async def test_sanitize_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        store = ConfigStore(path)

        await store.set_targets([{
            "name": "  Family  ",
            "accountIds": [" acct-1 ", "acct-1", "", "  ", "acct-2"],
            "appriseUrls": [],
            "appriseConfigKey": " family ",
        }])

        document = await store.get()
        assert len(document.targets) == 1
        target = document.targets[0]
        assert target.name == "Family"
        assert target.account_ids == ["acct-1", "acct-2"]
        assert target.apprise_config_key == "family"

        stored = json.loads(path.read_text())["notifications"]["targets"][0]
        assert "appriseUrls" not in stored

    async def test_set_access_rejects_blank_before_io(self, tmp_path):
        path = tmp_path / "config.json"
        store = ConfigStore(path)

        with pytest.raises(ConfigurationError):
            await store.set_access("   ")

        assert not path.exists()

    async def test_set_access_trims(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")
        document = await store.set_access("  https://u:p@bridge.example/simplefin  ")
        assert document.simplefin.access_url == "https://u:p@bridge.example/simplefin"

    async def test_set_cron_expression_validates(self, tmp_path):
        path = tmp_path / "config.json"
        store = ConfigStore(path)

        with pytest.raises(ConfigurationError):
            await store.set_cron_expression("every hour")
        assert not path.exists()

        document = await store.set_cron_expression("")
        assert document.polling.cron_expression == "0 * * * *"

    async def test_set_config_applies_everything_in_one_update(self, tmp_path):
        store = ConfigStore(tmp_path / "config.json")

        document = await store.set_config(
            apprise_api_url="http://gw:8000/notify",
            cron_expression="*/10 * * * *",
            targets=[{"accountIds": ["*"], "appriseUrls": ["tgram://token/chat"]}],
        )

        assert document.notifier.apprise_api_url == "http://gw:8000/notify"
        assert document.polling.cron_expression == "*/10 * * * *"
        assert document.targets[0].is_wildcard

    async def test_filesystem_errors_propagate(self, tmp_path):
        path = tmp_path / "config.json"
        path.mkdir()
        store = ConfigStore(path)

        with pytest.raises(OSError):
            await store.get()

    async def test_non_object_document_is_corrupt(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(CorruptDocumentError):
            await ConfigStore(path).get()


class TestStateStore:
    """Tests for balance state persistence."""

    async def test_unknown_account(self, tmp_path):
        store = StateStore(tmp_path / "state.json")
        assert await store.get_last_balance("acct-1") is None

    async def test_write_through(self, tmp_path):
        path = tmp_path / "state.json"
        await StateStore(path).set_last_balance("acct-1", 100.5)

        assert json.loads(path.read_text()) == {"accounts": {"acct-1": {"lastBalance": 100.5}}}
        assert await StateStore(path).get_last_balance("acct-1") == 100.5
        assert file_mode(path) == 0o600

    async def test_non_numeric_entry_is_missing(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"accounts": {
            "a": {"lastBalance": "12"},
            "b": {"lastBalance": True},
            "c": "oops",
        }}))
        store = StateStore(path)

        for account_id in ("a", "b", "c"):
            assert await store.get_last_balance(account_id) is None

    async def test_save_creates_document(self, tmp_path):
        path = tmp_path / "state.json"
        await StateStore(path).save()
        assert json.loads(path.read_text()) == {"accounts": {}}


class TestResponseCache:
    """Tests for the response cache."""

    def test_cache_keys(self):
        assert create_cache_key(None) == "accounts:all"
        assert create_cache_key([]) == "accounts:all"
        assert create_cache_key(["b", "a", "b", " "]) == "accounts:a,b"

    async def test_fresh_entry_is_returned(self, tmp_path):
        now = [1000.0]
        cache = ResponseCache(tmp_path / "cache.json", clock=lambda: now[0])

        await cache.set("accounts:all", [{"id": "a"}])
        now[0] += 30

        assert await cache.get("accounts:all", 60000) == [{"id": "a"}]

    async def test_expired_entry_is_a_miss(self, tmp_path):
        now = [1000.0]
        cache = ResponseCache(tmp_path / "cache.json", clock=lambda: now[0])

        await cache.set("accounts:all", [{"id": "a"}])
        now[0] += 61

        assert await cache.get("accounts:all", 60000) is None

    async def test_document_shape(self, tmp_path):
        path = tmp_path / "cache.json"
        cache = ResponseCache(path, clock=lambda: 1700000000.0)

        await cache.set("accounts:a", [{"id": "a"}])

        assert json.loads(path.read_text()) == {
            "entries": {"accounts:a": {"value": [{"id": "a"}], "timestamp": 1700000000000}}
        }
        assert file_mode(path) == 0o600

    async def test_entry_without_timestamp_is_a_miss(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"entries": {"accounts:all": {"value": []}}}))

        assert await ResponseCache(path).get("accounts:all", 60000) is None

    async def test_corrupt_document_is_a_miss_and_gets_replaced(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("{broken")
        cache = ResponseCache(path, clock=lambda: 1700000000.0)

        assert await cache.get("accounts:all", 60000) is None
        await cache.set("accounts:all", [{"id": "a"}])

        assert json.loads(path.read_text())["entries"]["accounts:all"]["value"] == [{"id": "a"}]
