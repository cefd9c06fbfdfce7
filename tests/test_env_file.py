from specgen import _parse_env_line, load_env_file


def test_parse_env_line_shapes():
    assert _parse_env_line("") is None
    assert _parse_env_line("# comment") is None
    assert _parse_env_line("no_equals_sign") is None
    assert _parse_env_line("=value") is None
    assert _parse_env_line("OPENAI_MODEL=gpt-4.1-mini") == ("OPENAI_MODEL", "gpt-4.1-mini")
    assert _parse_env_line("export GROQ_API_KEY = abc ") == ("GROQ_API_KEY", "abc")
    assert _parse_env_line('ALLOW_ORIGINS="https://a.test, https://b.test"') == ("ALLOW_ORIGINS", "https://a.test, https://b.test")
    assert _parse_env_line("LOG_LEVEL=debug # noisy") == ("LOG_LEVEL", "debug")
    assert _parse_env_line("CTA_DEFAULT_ACTION='shop # now'") == ("CTA_DEFAULT_ACTION", "shop # now")


def test_load_env_file_never_overrides(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# local\nLOG_LEVEL=DEBUG\nRATE_MAX_REQUESTS=5\nexport API_KEYS=k1,k2\n", encoding="utf-8")
    environ = {"LOG_LEVEL": "WARNING"}
    assert load_env_file(env_file, environ) == 2
    assert environ == {"LOG_LEVEL": "WARNING", "RATE_MAX_REQUESTS": "5", "API_KEYS": "k1,k2"}


def test_missing_env_file_is_ignored(tmp_path):
    environ = {}
    assert load_env_file(tmp_path / "absent.env", environ) == 0
    assert environ == {}
