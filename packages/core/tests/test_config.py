"""Tests for configuration loading."""

from codelens_core.config import DEFAULT_RULES, load_config, resolve_api_key


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["provider"] == "gemini"
    assert config["store"] == "sqlite"
    assert config["rules"] == DEFAULT_RULES
    assert config["openai_model"] is None
    assert config["gemini_model"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("provider: openai\nstore: json\nopenai_model: gpt-4o\n")
    config = load_config(config_path=str(cfg))
    assert config["provider"] == "openai"
    assert config["store"] == "json"
    assert config["openai_model"] == "gpt-4o"


def test_partial_rules_merge_onto_defaults(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("rules:\n  documentation: false\n")
    config = load_config(config_path=str(cfg))
    assert config["rules"]["documentation"] is False
    assert config["rules"]["security"] is True
    assert len(config["rules"]) == len(DEFAULT_RULES)


def test_unknown_rules_are_kept(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("rules:\n  checkAccessibility: true\n")
    config = load_config(config_path=str(cfg))
    assert config["rules"]["checkAccessibility"] is True


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["provider"] == "gemini"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("provider: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"provider": "gemini"})
    assert config["provider"] == "gemini"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".codelens.yml"
    cfg.write_text("provider: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"provider": None})
    assert config["provider"] == "openai"


def test_env_vars_loaded(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["openai_api_key"] == "oai-key"
    assert config["gemini_api_key"] == "gem-key"


def test_google_api_key_is_gemini_fallback(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    assert resolve_api_key("gemini") == "google-key"


def test_gemini_api_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    assert resolve_api_key("gemini") == "gem-key"


def test_unknown_provider_has_no_key():
    assert resolve_api_key("claude") is None


def test_rules_dict_is_not_shared_reference(tmp_path):
    """Mutating one config's rules must not affect another or the defaults."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["rules"]["security"] = False
    assert config_b["rules"]["security"] is True
    assert DEFAULT_RULES["security"] is True
