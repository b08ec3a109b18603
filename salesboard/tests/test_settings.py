from salesboard import settings_io
from salesboard.config import directus_base_url, directus_token, settings
from salesboard.factory import create_app
from salesboard.settings_store import settings_store


def test_values_come_from_env_file():
    assert settings.DIRECTUS_TIMEOUT == 5.0
    assert settings.FETCH_WORKERS == 4
    assert settings.DIRECTUS_PAGE_SIZE == 500


def test_base_url_drops_trailing_slash():
    assert directus_base_url() == "http://directus.test"


def test_token_keys_are_checked_in_order():
    settings_store.update({"DIRECTUS_TOKEN": "", "DIRECTUS_STATIC_TOKEN": "static"})
    assert directus_token() == "static"

    settings_store.update({"DIRECTUS_ACCESS_TOKEN": " access "})
    assert directus_token() == "access"

    settings_store.update({"DIRECTUS_ACCESS_TOKEN": "", "DIRECTUS_STATIC_TOKEN": ""})
    assert directus_token() is None


def test_process_environment_wins(monkeypatch):
    monkeypatch.setenv("DIRECTUS_URL", "https://erp.example.com///")
    monkeypatch.setenv("DIRECTUS_RETRY_ATTEMPTS", "2")
    settings_store.reload()

    assert directus_base_url() == "https://erp.example.com"
    assert settings.DIRECTUS_RETRY_ATTEMPTS == 2


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("DIRECTUS_PAGE_SIZE", "lots")
    monkeypatch.setenv("DIRECTUS_TIMEOUT", "soon")
    settings_store.reload()

    assert settings.DIRECTUS_PAGE_SIZE == 500
    assert settings.DIRECTUS_TIMEOUT == 60.0


def test_env_file_overrides_example(tmp_path):
    (tmp_path / ".env").write_text("DIRECTUS_MAX_PAGES=3\n", encoding="utf-8")
    settings_store.reload()

    assert settings_io.ENV_PATH == tmp_path / ".env"
    assert settings.DIRECTUS_MAX_PAGES == 3


def test_update_with_none_restores_default():
    settings_store.update({"FETCH_WORKERS": 9})
    assert settings.FETCH_WORKERS == 9

    settings_store.update({"FETCH_WORKERS": None})
    assert settings.FETCH_WORKERS == 12


def test_secrets_are_hidden_from_listing():
    listing = settings_store.as_ordered_dict()
    assert "DIRECTUS_TOKEN" not in listing
    assert listing["DIRECTUS_URL"] == "http://directus.test/"
    assert settings_store.as_ordered_dict(include_secrets=True)["DIRECTUS_TOKEN"] == "test-token"


def test_create_app_applies_known_overrides():
    app = create_app({"TESTING": True, "DIRECTUS_URL": "http://other.test/"})

    assert app.config["TESTING"] is True
    assert directus_base_url() == "http://other.test"
    assert settings_store.get("TESTING") is None


def test_show_config_hides_token():
    app = create_app({"TESTING": True})

    result = app.test_cli_runner().invoke(args=["show-config"])

    assert "DIRECTUS_URL=http://directus.test/" in result.output
    assert "test-token" not in result.output
