from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Client for a local Ollama server's batch embedding endpoint.

    EMBED_OLLAMA_KEEP_ALIVE (e.g. "10m") keeps the model loaded between the
    windows of a cycle.
    """

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return super()._get_required_config() + [
            EnvConfig(env_key="KEEP_ALIVE", val_type="string", default=""),
        ]

    ################ ENDPOINTS ##################
    def _get_endpoint_healthcheck(self) -> str:
        # answers 200 with the server version
        return "/api/version"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        payload = {"model": self.embed_model, "input": texts}
        keep_alive = self.get_config_val("KEEP_ALIVE", default="")
        if keep_alive:
            payload["keep_alive"] = keep_alive
        return payload

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[tuple[int | None, list[float]]]:
        # vectors come back in input order and carry no index
        return [(None, vector) for vector in response_data.get("embeddings") or []]
