from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    jwt_secret: str = "dev"
    jwt_alg: str = "HS256"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "voltmatch"
    use_mongo: bool = False
    match_radius_km: float = 10.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
