from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import Distance
from shared.models.errors import IncompatibleCollectionError


class SchemaGuard:
    """Makes sure a collection exists with the expected vector shape before anything is written."""

    def __init__(self, helper_config: HelperConfig, rag_client: RAGClientInterface, vector_size: int, distance: Distance) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self.vector_size = vector_size
        self.distance = distance

    async def ensure_collection(self, collection: str) -> bool:
        """Create the collection if missing, otherwise verify its vector params.

        Args:
            collection (str): The collection name.

        Returns:
            bool: True if the collection was created, False if it already existed.

        Raises:
            IncompatibleCollectionError: If the collection exists with another size or
                distance, or with named vectors.
            ClientStatusError: If the vector store answers with an unexpected status.
        """
        expected = f"size={self.vector_size}, distance={self.distance.value}"
        info = await self._rag_client.do_get_collection(collection)

        if info is None:
            self.logging.info("Collection '%s' does not exist, creating it (%s).", collection, expected)
            await self._rag_client.do_create_collection(collection, self.vector_size, self.distance.value)
            return True

        params = self._rag_client.extract_vector_params(info)
        if params is None:
            raise IncompatibleCollectionError(collection, expected=expected, actual="named or missing vector config")

        size, distance = params
        # distance names are compared case-insensitively ("Cosine" vs "cosine")
        if size != self.vector_size or distance.lower() != self.distance.value.lower():
            raise IncompatibleCollectionError(collection, expected=expected, actual=f"size={size}, distance={distance}")

        self.logging.debug("Collection '%s' matches the expected schema (%s).", collection, expected)
        return False
