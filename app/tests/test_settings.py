import pytest

from matching.settings import DEFAULT_AUDIT_CADENCE, load_settings


def test_load_settings_from_yaml(matching_config):
    loaded = load_settings(matching_config)
    assert loaded.result_limit == 3
    assert loaded.audit_cadence("supplier") == "*/15 * * * *"
    assert loaded.audit_cadence("product") == DEFAULT_AUDIT_CADENCE


def test_env_override_and_missing_file(tmp_path, monkeypatch, matching_config):
    monkeypatch.setenv("MATCHING_CONFIG_PATH", str(matching_config))
    assert load_settings().result_limit == 3

    defaults = load_settings(tmp_path / "absent.yaml")
    assert defaults.result_limit == 5
    assert defaults.audit_cadences == {}


def test_bundled_settings_file_keeps_prompt_at_five(monkeypatch):
    monkeypatch.delenv("MATCHING_CONFIG_PATH", raising=False)
    loaded = load_settings()
    assert loaded.result_limit == 5
    assert set(loaded.audit_cadences) == {"supplier", "material", "product"}


def test_rejects_non_positive_limit(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("duplicate_check:\n  result_limit: 0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)
