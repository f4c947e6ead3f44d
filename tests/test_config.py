from aws_ip_lookup.config import Settings


def test_default_settings():
    settings = Settings()
    assert settings.ranges_url == "https://ip-ranges.amazonaws.com/ip-ranges.json"
    assert settings.fetch_timeout_seconds == 30.0
    assert settings.upstream_max_age_seconds == 3600
    assert settings.cache_ttl_seconds is None
    assert settings.warm_on_startup is False
    assert settings.listen_host == "0.0.0.0"
    assert settings.listen_port == 8080
    assert settings.log_level == "info"


def test_custom_settings(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "900")
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "5.5")
    monkeypatch.setenv("LISTEN_PORT", "9090")
    monkeypatch.setenv("WARM_ON_STARTUP", "true")
    settings = Settings()
    assert settings.cache_ttl_seconds == 900
    assert settings.fetch_timeout_seconds == 5.5
    assert settings.listen_port == 9090
    assert settings.warm_on_startup is True
