from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Resolves and instantiates the configured engine for one client type.

    The engine is read from ``{CLIENT_TYPE}_ENGINE`` and mapped to the class
    ``shared.clients.{type}.{engine}.{Type}Client{Engine}``.
    """

    def __init__(self, helper_config: HelperConfig, client_type: str, default_engine: str | None = None):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client_type = client_type.strip().lower()
        self.default_engine = default_engine

    def _get_engine_from_env(self) -> str:
        """
        Reads the engine name for this client type from ENV configuration.

        Returns:
            str: The capitalized engine name, e.g. "Qdrant".

        Raises:
            ValueError: If no engine is configured and there is no default.
        """
        engine = self.helper_config.get_string_val(f"{self.client_type.upper()}_ENGINE", default=self.default_engine)
        if not engine:
            raise ValueError(f"No {self.client_type.upper()} engine specified in configuration.")
        return engine.strip().lower().capitalize()

    def get_client(self) -> ClientInterface:
        """
        Instantiates the client of the configured engine.

        Returns:
            ClientInterface: The client instance.

        Raises:
            ValueError: If the engine is unknown.
        """
        engine = self._get_engine_from_env()
        type_prefix = self.client_type.capitalize()
        class_name = f"{type_prefix}Client{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type.upper()} engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client
