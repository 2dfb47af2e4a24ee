from enum import Enum

from pydantic import BaseModel, Field

from shared.helper.HelperConfig import HelperConfig


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required by a client.

    Attributes:
        env_key (str): The key/name of the environment variable to read (without the client prefix).
        val_type (str): The expected type of the value. Supported types are "string", "number", "int", "bool" and "list".
        default (str | int | float | bool | list | None): An optional default value. If None, the variable is required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None


class Distance(str, Enum):
    """Vector distance metrics understood by the vector store."""

    COSINE = "Cosine"
    DOT = "Dot"
    EUCLID = "Euclid"


class IndexConfig(BaseModel):
    """Settings of one indexing cycle.

    Built once from the environment and threaded into every pipeline stage;
    nothing below reads the environment on its own.
    """

    # destination schema
    vector_size: int = Field(default=768, gt=0)
    distance: Distance = Distance.COSINE

    # batching and retries
    embed_batch_size: int = Field(default=64, gt=0)
    upsert_batch_size: int = Field(default=64, gt=0)
    upsert_retries: int = Field(default=3, gt=0)
    upsert_backoff: float = Field(default=0.5, ge=0)
    upsert_backoff_max: float = Field(default=8.0, ge=0)

    # extraction / normalization
    include_filename_doc: bool = True
    max_code_chars: int = Field(default=100_000, gt=0)

    # scanning
    index_subprojects: bool = True
    collection: str | None = None
    ignore_patterns: list[str] = Field(default_factory=list)

    @classmethod
    def from_helper_config(cls, helper_config: HelperConfig) -> "IndexConfig":
        """Read all indexing settings from the environment.

        Args:
            helper_config (HelperConfig): The configuration helper.

        Returns:
            IndexConfig: The validated settings.

        Raises:
            ValueError: If a value cannot be parsed or violates its bounds.
        """
        return cls(
            vector_size=helper_config.get_int_val("EMBED_VECTOR_SIZE", default=768),
            distance=helper_config.get_choice_val("EMBED_DISTANCE", choices=[d.value for d in Distance], default=Distance.COSINE.value),
            embed_batch_size=helper_config.get_int_val("INDEX_EMBED_BATCH_SIZE", default=64),
            upsert_batch_size=helper_config.get_int_val("INDEX_UPSERT_BATCH_SIZE", default=64),
            upsert_retries=helper_config.get_int_val("INDEX_UPSERT_RETRIES", default=3),
            upsert_backoff=helper_config.get_number_val("INDEX_UPSERT_BACKOFF", default=0.5),
            upsert_backoff_max=helper_config.get_number_val("INDEX_UPSERT_BACKOFF_MAX", default=8.0),
            include_filename_doc=helper_config.get_bool_val("INDEX_INCLUDE_FILENAME_DOC", default=True),
            max_code_chars=helper_config.get_int_val("INDEX_MAX_CODE_CHARS", default=100_000),
            index_subprojects=helper_config.get_bool_val("INDEX_SUBPROJECTS", default=True),
            collection=helper_config.get_optional_string_val("INDEX_COLLECTION"),
            ignore_patterns=helper_config.get_list_val("INDEX_IGNORE_PATTERNS", default=[]),
        )
