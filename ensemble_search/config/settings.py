from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    storage_dir: str = "./data/vector-store"

    docs_path: str = "./docs"
    docs_extensions: list[str] = [".txt", ".md", ".markdown", ".pdf", ".docx"]

    embedding_provider: Literal["local", "huggingface"] = "local"
    embedding_model: str = "sentence-transformers/all-mpnet-base-v2"
    embedding_batch_size: int = Field(default=50, gt=0)
    embedding_timeout: float = Field(default=30.0, gt=0)
    # E5 models expect "passage: " / "query: "
    embedding_passage_prefix: str = ""
    embedding_query_prefix: str = ""

    huggingface_api_key: Optional[str] = None
    huggingface_base_url: str = "https://router.huggingface.co/hf-inference/models"

    # Chunk geometry is validated by ChunkingConfig
    chunk_size: int = 8000
    chunk_overlap: int = 1600
    chunk_separators: list[str] = ["\n\n\n", "\n\n", "\n", ". ", " ", ""]

    rag_top_k: int = Field(default=12, gt=0)
    rag_fetch_k: int = Field(default=20, gt=0)

    # Fusion
    lexical_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    vector_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    rrf_constant: float = Field(default=60.0, gt=0.0)
    bm25_k1: float = Field(default=1.5, ge=0.0)
    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0)

    log_level: str = "INFO"


settings = Settings()
