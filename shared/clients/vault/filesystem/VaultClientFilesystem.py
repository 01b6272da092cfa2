import asyncio
import fnmatch
from datetime import datetime, timezone
from pathlib import Path

from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vault.models.Note import Note
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_EXCLUDE_PATTERNS = [".obsidian", "Templates", "*.sync-conflict-*"]


class VaultClientFilesystem(VaultClientInterface):
    """Reads notes from a vault directory on the local filesystem."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._root = Path(self.get_config_val("PATH", default=None, val_type="string")).expanduser()
        self._exclude_patterns: list[str] = self.get_config_val(
            "EXCLUDE_PATTERNS", default=DEFAULT_EXCLUDE_PATTERNS, val_type="list"
        )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Filesystem"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="PATH", val_type="string", default=None),
            EnvConfig(env_key="EXCLUDE_PATTERNS", val_type="list", default=DEFAULT_EXCLUDE_PATTERNS),
        ]

    def is_excluded(self, relative_path: str) -> bool:
        """Check a vault relative path against the exclude patterns.

        A pattern matches when it equals a leading path prefix or any path
        segment, or when it is a glob matching the file name or the whole path.

        Args:
            relative_path (str): POSIX path relative to the vault root.

        Returns:
            bool: True if the path must be ignored.
        """
        segments = relative_path.split("/")
        for pattern in self._exclude_patterns:
            if "*" in pattern or "?" in pattern:
                if fnmatch.fnmatch(segments[-1], pattern) or fnmatch.fnmatch(relative_path, pattern):
                    return True
            elif relative_path.startswith(pattern.rstrip("/") + "/") or pattern in segments:
                return True
        return False

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        if not self._root.is_dir():
            raise ValueError(f"Vault path '{self._root}' does not exist or is not a directory.")
        self.logging.info("Vault client booted on '%s'.", self._root)

    async def close(self) -> None:
        pass

    async def do_healthcheck(self) -> bool:
        return self._root.is_dir()

    ##########################################
    ############### REQUESTS #################
    ##########################################

    def _read_note(self, file_path: Path, relative_path: str) -> Note:
        stat = file_path.stat()
        return Note(
            path=relative_path,
            content=file_path.read_text(encoding="utf-8"),
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def _list_notes_sync(self) -> list[Note]:
        notes: list[Note] = []
        for file_path in sorted(self._root.rglob("*.md")):
            if not file_path.is_file():
                continue
            relative_path = file_path.relative_to(self._root).as_posix()
            if self.is_excluded(relative_path):
                continue
            try:
                notes.append(self._read_note(file_path, relative_path))
            except FileNotFoundError:
                # removed between listing and reading
                continue
            except UnicodeDecodeError as e:
                self.logging.warning("Skipping note '%s': not valid UTF-8 (%s).", relative_path, e)
        return notes

    def _get_note_sync(self, relative_path: str) -> Note | None:
        if self.is_excluded(relative_path):
            return None
        file_path = self._root / relative_path
        try:
            return self._read_note(file_path, relative_path)
        except (FileNotFoundError, IsADirectoryError):
            return None

    async def do_list_notes(self) -> list[Note]:
        notes = await asyncio.to_thread(self._list_notes_sync)
        self.logging.debug("Listed %d notes from vault '%s'.", len(notes), self._root)
        return notes

    async def do_get_note(self, path: str) -> Note | None:
        return await asyncio.to_thread(self._get_note_sync, self.normalize_path(path))
