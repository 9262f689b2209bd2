"""Server configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Server settings."""

    host: str
    port: int
    cors_origins: str

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        origins = self.cors_origins.split(",")
        return [origin.strip() for origin in origins if origin.strip()]
