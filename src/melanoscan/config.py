"""Configuration management for the MelanoScan backend."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = Field("development", alias="MELANOSCAN_ENV")
    cors_origins_raw: str = Field("*", alias="CORS_ORIGINS")
    host: str = Field("0.0.0.0", alias="MELANOSCAN_HOST")
    port: int = Field(5000, alias="MELANOSCAN_PORT")
    welcome_message: str = "Selamat datang “MelanoScan” Your Initial Melanoma App"
    log_dir: str = Field("logs", alias="MELANOSCAN_LOG_DIR")

    model_dir: str = Field("models/melanoscan", alias="MELANOSCAN_MODEL_DIR")
    model_manifest: str = "model.json"
    model_producer: str = "TensorFlow.js"

    max_upload_bytes: int = 2 * 1024 * 1024
    max_concurrent_inference: int = Field(2, alias="MELANOSCAN_MAX_INFERENCE")
    model_wait_timeout: float = 30.0
    decode_timeout: float = 10.0
    inference_timeout: float = 30.0
    storage_timeout: float = 30.0

    object_store: str = Field("local", alias="MELANOSCAN_OBJECT_STORE")
    document_store: str = Field("sqlite", alias="MELANOSCAN_DOCUMENT_STORE")
    local_storage_dir: str = Field("data/uploads", alias="MELANOSCAN_UPLOAD_DIR")
    local_storage_base_url: str = Field(
        "http://localhost:5000/uploads", alias="MELANOSCAN_UPLOAD_BASE_URL"
    )
    sqlite_path: str = Field("data/melanoscan.db", alias="MELANOSCAN_SQLITE_PATH")
    gcs_bucket: str = Field("", alias="GCS_BUCKET")
    firestore_collection: str = Field("scans", alias="FIRESTORE_COLLECTION")

    display_utc_offset_hours: int = 7

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True
        protected_namespaces = ()

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins_raw.split(",") if origin]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
