"""
Service configuration.

Values come from the environment. A ``.env`` file is loaded first but never
overrides variables already set (docker-compose / Railway take precedence).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv(override=False)

DEFAULT_UQC_MAP_PATH = Path(__file__).resolve().parent / "uqc.yaml"


def _split_csv(raw: str) -> List[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def parse_api_keys(raw: str) -> Dict[str, str]:
    """'key1:tenant_a,key2:tenant_b' -> {'key1': 'tenant_a', 'key2': 'tenant_b'}"""
    mapping: Dict[str, str] = {}
    for token in _split_csv(raw):
        if ":" in token:
            k, t = token.split(":", 1)
        else:
            k, t = token, "default"
        mapping[k.strip()] = t.strip()
    return mapping


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./gstbill.db"
    api_keys: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    log_json: bool = True
    cors_origins: List[str] = field(default_factory=list)
    uqc_map_path: Path = DEFAULT_UQC_MAP_PATH


def load_settings() -> Settings:
    # DATABASE_URL is what Railway injects; DB_URL kept for local overrides
    db_url = os.getenv("DATABASE_URL") or os.getenv("DB_URL", "sqlite:///./gstbill.db")
    raw_keys = os.getenv("API_KEYS", "").strip() or "dev_123:tenant_demo"
    return Settings(
        database_url=db_url,
        api_keys=parse_api_keys(raw_keys),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_json=os.getenv("LOG_JSON", "true").lower() == "true",
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")),
        uqc_map_path=Path(os.getenv("UQC_MAP_PATH") or DEFAULT_UQC_MAP_PATH),
    )


settings = load_settings()
