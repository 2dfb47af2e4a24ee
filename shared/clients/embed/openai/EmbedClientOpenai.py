from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientOpenai(EmbedClientInterface):
    """Client for OpenAI-compatible embedding servers (OpenAI, llama.cpp, vLLM, LM Studio, ...)."""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    ################ ENDPOINTS ##################
    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[tuple[int | None, list[float]]]:
        """Extract vectors from an OpenAI-style response.

        Entries are not guaranteed to come back in input order; the optional
        "index" field of each entry is passed on so the caller can reorder.
        """
        pairs: list[tuple[int | None, list[float]]] = []
        for item in response_data.get("data") or []:
            index = item.get("index")
            pairs.append((int(index) if index is not None else None, item.get("embedding") or []))
        return pairs
