from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager[EmbedClientInterface]):
    """Selects the embedding client named by EMBED_ENGINE ("openai" or "ollama")."""

    client_type = "embed"
    class_prefix = "EmbedClient"
