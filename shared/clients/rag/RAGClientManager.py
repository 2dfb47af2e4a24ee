from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager(ClientManager[RAGClientInterface]):
    """
    Selects the vector store client named by RAG_ENGINE.

    The indexer writes to exactly one vector store per cycle, so a single
    engine is configured.
    """

    client_type = "rag"
    class_prefix = "RAGClient"
