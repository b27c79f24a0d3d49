from tariff_comparator import config


def test_get_env_reads_environment(monkeypatch):
    monkeypatch.setenv("TARIFF_TEST_VALUE", "abc")
    assert config.get_env("TARIFF_TEST_VALUE", "x") == "abc"


def test_get_env_blank_uses_default(monkeypatch):
    monkeypatch.setenv("TARIFF_TEST_VALUE", "   ")
    assert config.get_env("TARIFF_TEST_VALUE", "x") == "x"
    monkeypatch.delenv("TARIFF_TEST_VALUE")
    assert config.get_env("TARIFF_TEST_VALUE") is None


def test_get_env_float_accepts_comma_decimal(monkeypatch):
    monkeypatch.setenv("TARIFF_TEST_SHARE", "0,4")
    assert config.get_env_float("TARIFF_TEST_SHARE", 0.35) == 0.4


def test_get_env_float_malformed_uses_default(monkeypatch):
    monkeypatch.setenv("TARIFF_TEST_SHARE", "forty")
    assert config.get_env_float("TARIFF_TEST_SHARE", 0.35) == 0.35


def test_runtime_settings_exposed():
    assert config.LOG_LEVEL == config.LOG_LEVEL.upper()
    assert config.TARIFF_STRUCTURES == (1, 2, 3)
    assert [name for name in ("DATA_DIR", "LOG_LEVEL", "REFERENCE_TIMEZONE") if not hasattr(config, name)] == []
    assert not hasattr(config, "ENV")
