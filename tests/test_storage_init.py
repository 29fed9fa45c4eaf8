import asyncio
import json

import pytest

import print_sessions
from dal.session_dal import SessionDAL
from models.session_models import GatewaySettings, Message, SessionDraft
from utils.storage_init import JsonStorageInitializer, load_gateway_settings, load_gateway_timeout


def test_ensure_storage_creates_empty_lists(tmp_path):
    storage = JsonStorageInitializer(tmp_path / "data")

    asyncio.run(storage.ensure_storage())

    assert json.loads(storage.sessions_path.read_text()) == []
    assert json.loads(storage.cases_path.read_text()) == []
    assert storage.review_guidelines_path == tmp_path / "data" / "review.txt"


def test_ensure_storage_keeps_existing_files(tmp_path):
    (tmp_path / "cases.json").write_text('[{"name": "Asthma", "prompt": "22F wheeze"}]')

    asyncio.run(JsonStorageInitializer(tmp_path).ensure_storage())

    assert json.loads((tmp_path / "cases.json").read_text())[0]["name"] == "Asthma"


def test_data_dir_env_and_file_path(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "from-env"))
    assert JsonStorageInitializer().data_dir == tmp_path / "from-env"

    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    with pytest.raises(RuntimeError):
        JsonStorageInitializer(blocker)


def test_review_guidelines_path_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("REVIEW_GUIDELINES_PATH", str(tmp_path / "guide.txt"))

    assert JsonStorageInitializer(tmp_path).review_guidelines_path == tmp_path / "guide.txt"


def test_gateway_settings_from_env(monkeypatch):
    assert load_gateway_settings() == GatewaySettings(model="gpt-3.5-turbo", temperature=0.7)
    assert load_gateway_timeout() == 60.0

    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("OPENAI_TEMPERATURE", "0.2")
    monkeypatch.setenv("OPENAI_TIMEOUT", "15")
    assert load_gateway_settings() == GatewaySettings(model="gpt-4o-mini", temperature=0.2)
    assert load_gateway_timeout() == 15.0

    monkeypatch.setenv("OPENAI_TEMPERATURE", "warm")
    with pytest.raises(RuntimeError):
        load_gateway_settings()


def test_print_sessions_filters_and_prints(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    dal = SessionDAL(tmp_path / "sessions.json")
    for name in ("Pneumonia", "Migraine"):
        asyncio.run(
            dal.upsert(
                SessionDraft(case_id=name, case_name=name, messages=[Message("assistant", "Hello doctor!")])
            )
        )

    text = asyncio.run(print_sessions.main(["pneumo"]))

    assert capsys.readouterr().out == text
    assert text.startswith("=== SESSIONS LOG ===")
    assert "CASE: Pneumonia" in text
    assert "CASE: Migraine" not in text
