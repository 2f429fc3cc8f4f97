import os
from dataclasses import dataclass, field
from typing import List, Optional


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    store_backend: str = "memory"
    db_name: str = "todo.db"
    table_name: str = "todo-app-tasks"
    api_key: Optional[str] = None
    api_base_url: str = "http://localhost:8000"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    error_dismiss_seconds: float = 3.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store_backend=os.getenv("TODO_STORE", "memory").lower(),
            db_name=os.getenv("TODO_DB_NAME", "todo.db"),
            table_name=os.getenv("TABLE_NAME", "todo-app-tasks"),
            api_key=os.getenv("TODO_API_KEY") or None,
            api_base_url=os.getenv("TODO_API_BASE_URL", "http://localhost:8000").rstrip("/"),
            cors_allow_origins=_split_csv(os.getenv("CORS_ALLOW_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            error_dismiss_seconds=float(os.getenv("TODO_ERROR_DISMISS_SECONDS", "3")),
        )
