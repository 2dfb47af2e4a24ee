from importlib import import_module
from typing import Generic, TypeVar

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig

ClientT = TypeVar("ClientT", bound=ClientInterface)


class ClientManager(Generic[ClientT]):
    """
    Instantiates the client of the engine named by ``<TYPE>_ENGINE``.

    Engines are resolved by convention: with client type "rag" and
    RAG_ENGINE=qdrant the class RAGClientQdrant is imported from
    shared.clients.rag.qdrant.RAGClientQdrant. Adding an engine means adding
    that module; nothing here has to change.
    """

    # lower-case package name below shared.clients, e.g. "rag"
    client_type: str = ""
    # class name prefix, e.g. "RAGClient"
    class_prefix: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client: ClientT = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Returns:
            str: The configured engine, capitalized (e.g. "Qdrant").

        Raises:
            ValueError: If the engine variable is not set.
        """
        return self.helper_config.get_string_val(f"{self.client_type.upper()}_ENGINE").strip().lower().capitalize()

    def _initialize_client(self) -> ClientT:
        """
        Raises:
            ValueError: If the engine is unknown or its client cannot be configured.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        try:
            module = import_module(f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}")
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type.capitalize()} engine specified: '{engine}'. Error: {e}") from e

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type.upper(), engine)
        return client

    def get_client(self) -> ClientT:
        return self.client
