from typing import List, Optional

from fastapi import Request
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./roomkeeper.db"
    database_echo: bool = False

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    # Share tokens are signed with their own secret when one is configured
    share_token_secret: Optional[str] = None

    # Users allowed to delete any room and review plaza requests
    admin_user_ids: List[str] = []

    public_base_url: str = "http://localhost:8000"
    cors_origins: List[str] = ["*"]

    snapshot_cache_size: int = 256
    lifecycle_max_attempts: int = 3

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "ROOMKEEPER_", "extra": "ignore"}

    @property
    def share_secret(self) -> str:
        return self.share_token_secret or self.jwt_secret

    def is_admin(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in self.admin_user_ids


settings = Settings()


def get_settings(request: Request) -> Settings:
    """Settings the running application was built with"""
    return request.app.state.settings
