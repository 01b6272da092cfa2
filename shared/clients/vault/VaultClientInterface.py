from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.vault.models.Note import Note
from shared.helper.HelperConfig import HelperConfig


class VaultClientInterface(ClientInterface):
    """Read access to the document store holding the notes."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "vault"

    @staticmethod
    def normalize_path(path: str) -> str:
        """Return the canonical note path: forward slashes, no leading slash, ".md" suffix.

        Args:
            path (str): A vault relative path as received from callers.

        Returns:
            str: The normalised path.

        Raises:
            ValueError: If the path is empty or escapes the vault root.
        """
        normalized = path.strip().replace("\\", "/").lstrip("/")
        if not normalized:
            raise ValueError("Note path must not be empty.")
        if any(part == ".." for part in normalized.split("/")):
            raise ValueError(f"Note path '{path}' must stay inside the vault.")
        if not normalized.endswith(".md"):
            normalized = f"{normalized}.md"
        return normalized

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_list_notes(self) -> list[Note]:
        """Return every note of the vault, excluded paths removed.

        Returns:
            list[Note]: All current notes with their content.
        """
        pass

    @abstractmethod
    async def do_get_note(self, path: str) -> Note | None:
        """Return a single note.

        Args:
            path (str): Vault relative path, the ".md" suffix is optional.

        Returns:
            Note | None: The note, or None if it does not exist or is excluded.
        """
        pass
