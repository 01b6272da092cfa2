import pytest


def test_string_val_strips_and_uses_default(helper_config, clean_env):
    clean_env.setenv("APP_NAME", "  vault  ")
    assert helper_config.get_string_val("app_name") == "vault"
    assert helper_config.get_string_val("APP_MISSING", default="fallback") == "fallback"


def test_missing_required_value_raises(helper_config):
    with pytest.raises(ValueError, match="APP_MISSING"):
        helper_config.get_string_val("APP_MISSING")


def test_number_val_parses_int_and_float(helper_config, clean_env):
    clean_env.setenv("VECTOR_CHUNK_SIZE", "500")
    clean_env.setenv("LOCK_TTL_SECONDS", "2.5")
    assert helper_config.get_number_val("VECTOR_CHUNK_SIZE") == 500
    assert isinstance(helper_config.get_number_val("VECTOR_CHUNK_SIZE"), int)
    assert helper_config.get_number_val("LOCK_TTL_SECONDS") == 2.5


def test_number_val_rejects_garbage(helper_config, clean_env):
    clean_env.setenv("VECTOR_CHUNK_SIZE", "lots")
    with pytest.raises(ValueError, match="not a valid number"):
        helper_config.get_number_val("VECTOR_CHUNK_SIZE")


@pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("On", True), ("no", False), ("0", False)])
def test_bool_val(helper_config, clean_env, raw, expected):
    clean_env.setenv("APP_FLAG", raw)
    assert helper_config.get_bool_val("APP_FLAG") is expected


def test_list_val_parses_brackets_and_honours_default(helper_config, clean_env):
    clean_env.setenv("VAULT_FILESYSTEM_EXCLUDE_PATTERNS", "[.obsidian, Templates ,*.tmp]")
    assert helper_config.get_list_val("VAULT_FILESYSTEM_EXCLUDE_PATTERNS") == [".obsidian", "Templates", "*.tmp"]
    assert helper_config.get_list_val("VAULT_OTHER", default=["a"]) == ["a"]


def test_list_val_requires_brackets(helper_config, clean_env):
    clean_env.setenv("VAULT_FILESYSTEM_EXCLUDE_PATTERNS", ".obsidian,Templates")
    with pytest.raises(ValueError, match="format"):
        helper_config.get_list_val("VAULT_FILESYSTEM_EXCLUDE_PATTERNS")
