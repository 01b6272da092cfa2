import pytest

from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vault.filesystem.VaultClientFilesystem import VaultClientFilesystem


@pytest.fixture
def vault_dir(tmp_path):
    (tmp_path / "Notes").mkdir()
    (tmp_path / "Notes" / "Coffee.md").write_text("# Coffee\n\nBrew it.", encoding="utf-8")
    (tmp_path / "Inbox.md").write_text("Quick thought.", encoding="utf-8")
    (tmp_path / "Notes" / "image.png").write_bytes(b"\x89PNG")
    (tmp_path / ".obsidian").mkdir()
    (tmp_path / ".obsidian" / "workspace.md").write_text("internal", encoding="utf-8")
    (tmp_path / "Templates").mkdir()
    (tmp_path / "Templates" / "Daily.md").write_text("{{date}}", encoding="utf-8")
    (tmp_path / "Notes" / "Coffee.sync-conflict-20240101.md").write_text("conflict", encoding="utf-8")
    return tmp_path


@pytest.fixture
def vault(helper_config, clean_env, vault_dir) -> VaultClientFilesystem:
    clean_env.setenv("VAULT_FILESYSTEM_PATH", str(vault_dir))
    return VaultClientFilesystem(helper_config=helper_config)


@pytest.mark.parametrize("raw, expected", [
    ("Notes/Coffee", "Notes/Coffee.md"),
    ("/Notes/Coffee.md", "Notes/Coffee.md"),
    ("Notes\\Coffee.md", "Notes/Coffee.md"),
    ("  Inbox ", "Inbox.md"),
])
def test_normalize_path(raw, expected):
    assert VaultClientInterface.normalize_path(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "../secret.md", "Notes/../../etc/passwd"])
def test_normalize_path_rejects_invalid(raw):
    with pytest.raises(ValueError):
        VaultClientInterface.normalize_path(raw)


def test_path_is_required(helper_config, clean_env):
    with pytest.raises(ValueError, match="VAULT_FILESYSTEM_PATH"):
        VaultClientFilesystem(helper_config=helper_config)


@pytest.mark.asyncio
async def test_list_notes_skips_excluded_and_non_markdown(vault):
    await vault.boot()
    notes = await vault.do_list_notes()

    assert [note.path for note in notes] == ["Inbox.md", "Notes/Coffee.md"]
    assert notes[1].content == "# Coffee\n\nBrew it."
    assert notes[1].modified_at is not None


@pytest.mark.asyncio
async def test_exclude_patterns_from_env(helper_config, clean_env, vault_dir):
    clean_env.setenv("VAULT_FILESYSTEM_PATH", str(vault_dir))
    clean_env.setenv("VAULT_FILESYSTEM_EXCLUDE_PATTERNS", "[Notes]")
    vault = VaultClientFilesystem(helper_config=helper_config)

    paths = [note.path for note in await vault.do_list_notes()]

    assert "Notes/Coffee.md" not in paths
    assert "Templates/Daily.md" in paths


@pytest.mark.asyncio
async def test_get_note(vault):
    note = await vault.do_get_note("Notes/Coffee")
    assert note is not None
    assert note.path == "Notes/Coffee.md"
    assert await vault.do_get_note("Missing.md") is None
    assert await vault.do_get_note("Templates/Daily.md") is None


@pytest.mark.asyncio
async def test_boot_fails_for_missing_directory(helper_config, clean_env, tmp_path):
    clean_env.setenv("VAULT_FILESYSTEM_PATH", str(tmp_path / "nope"))
    vault = VaultClientFilesystem(helper_config=helper_config)

    assert await vault.do_healthcheck() is False
    with pytest.raises(ValueError, match="does not exist"):
        await vault.boot()
