from src.core.config import load_settings


def test_yaml_values(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("llm:\n  provider: google\n  temperature: 0.2\nplanning:\n  safe_withdrawal_rate: 0.035\n")
    for key in ("LLM_PROVIDER", "LLM_TEMPERATURE", "SAFE_WITHDRAWAL_RATE", "DATABASE_URL"):
        monkeypatch.delenv(key, raising=False)

    s = load_settings(str(cfg))
    assert s.llm_provider == "gemini"
    assert s.llm_temperature == 0.2
    assert s.safe_withdrawal_rate == 0.035
    assert s.default_retirement_age == 65


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("database:\n  url: sqlite:///from-yaml.db\nstatements:\n  max_workers: 2\n")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
    monkeypatch.setenv("STATEMENT_WORKERS", "4")

    s = load_settings(str(cfg))
    assert s.database_url == "sqlite:///from-env.db"
    assert s.statement_workers == 4


def test_blank_env_does_not_override(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("database:\n  url: sqlite:///from-yaml.db\n")
    monkeypatch.setenv("DATABASE_URL", "  ")

    assert load_settings(str(cfg)).database_url == "sqlite:///from-yaml.db"


def test_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PROJECTION_YEARS", raising=False)
    s = load_settings(str(tmp_path / "nope.yaml"))
    assert s.projection_years == 30
