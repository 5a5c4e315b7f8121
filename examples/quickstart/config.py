from pydantic_settings import BaseSettings, SettingsConfigDict

class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown vars in env/.env
    )

    embedding_base_url: str
    embedding_api_key: str
    embedding_model: str
    embedding_dim: int

    chat_base_url: str
    chat_api_key: str
    chat_model: str

    max_length: int = 8000


settings = Config()
