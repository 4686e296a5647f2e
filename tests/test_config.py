from deepguard import config


def test_history_db_defaults_to_working_directory(monkeypatch):
    monkeypatch.delenv("HISTORY_DB", raising=False)
    assert config.default_history_db() == "deepguard.db"


def test_history_db_moves_to_tmp_on_serverless(monkeypatch):
    monkeypatch.delenv("HISTORY_DB", raising=False)
    monkeypatch.setenv("VERCEL", "1")
    assert config.default_history_db() == "/tmp/deepguard.db"


def test_history_db_env_override_wins(monkeypatch, tmp_path):
    monkeypatch.setenv("NOW_REGION", "iad1")
    monkeypatch.setenv("HISTORY_DB", str(tmp_path / "custom.db"))
    assert config.default_history_db() == str(tmp_path / "custom.db")
