from settings.config import Settings, get_settings


def test_supported_providers_list_puts_primary_first():
    s = Settings(_env_file=None, PRIMARY_PROVIDER="AWS", SUPPORTED_PROVIDERS=" gcp, aws ,,Azure")
    assert s.PRIMARY_PROVIDER == "aws"
    assert s.supported_providers_list == ["aws", "gcp", "azure"]


def test_debug_accepts_truthy_strings():
    assert Settings(_env_file=None, DEBUG="yes").DEBUG is True
    assert Settings(_env_file=None, DEBUG="off").DEBUG is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PRIMARY_PROVIDER", "gcp")
    monkeypatch.setenv("PRESIGN_TIMEOUT_SECONDS", "2.5")

    get_settings.cache_clear()
    try:
        s = get_settings()
        assert s.PRIMARY_PROVIDER == "gcp"
        assert s.PRESIGN_TIMEOUT_SECONDS == 2.5
    finally:
        get_settings.cache_clear()


def test_allowed_origins_list():
    s = Settings(_env_file=None, ALLOWED_ORIGINS="http://a.test, ,https://b.test")
    assert s.allowed_origins_list == ["http://a.test", "https://b.test"]
