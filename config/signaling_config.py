import os
import logging
from enum import Enum
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_ICE_SERVERS = "stun:stun.l.google.com:19302"


class OverflowPolicy(str, Enum):
    """What happens when someone joins a room that is already full"""
    REJECT = "reject"
    ACCEPT = "accept"
    EVICT = "evict"


class SignalingSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    environment: str = "development"
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    room_capacity: int = Field(default=2, ge=2)
    overflow_policy: OverflowPolicy = OverflowPolicy.REJECT
    max_rooms_per_connection: int = Field(default=1, ge=1)
    max_message_bytes: int = Field(default=65536, gt=0)
    ice_servers: List[str] = Field(default_factory=lambda: [DEFAULT_ICE_SERVERS])

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def validate_environment():
    """Validate that the signaling environment variables hold usable values"""
    errors = []

    for var, minimum in (("ROOM_CAPACITY", 2), ("MAX_ROOMS_PER_CONNECTION", 1),
                         ("MAX_MESSAGE_BYTES", 1), ("PORT", 1)):
        raw = os.getenv(var)
        if raw is None:
            continue
        try:
            if int(raw) < minimum:
                errors.append(f"{var} must be >= {minimum}")
        except ValueError:
            errors.append(f"{var} must be an integer")

    policy = os.getenv("OVERFLOW_POLICY")
    if policy is not None and policy.lower() not in [p.value for p in OverflowPolicy]:
        errors.append(f"OVERFLOW_POLICY must be one of: {', '.join(p.value for p in OverflowPolicy)}")

    if errors:
        raise RuntimeError(f"Invalid signaling configuration: {'; '.join(errors)}")


def load_settings() -> SignalingSettings:
    """Build settings from the process environment (and a .env file if present)"""
    load_dotenv()
    validate_environment()

    origins = _split_list(os.getenv("ALLOWED_ORIGINS", ""))
    ice_servers = _split_list(os.getenv("ICE_SERVERS", DEFAULT_ICE_SERVERS))

    settings = SignalingSettings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 5000)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        environment=os.getenv("ENVIRONMENT", "development"),
        allowed_origins=origins or ["*"],
        room_capacity=int(os.getenv("ROOM_CAPACITY", 2)),
        overflow_policy=OverflowPolicy(os.getenv("OVERFLOW_POLICY", "reject").lower()),
        max_rooms_per_connection=int(os.getenv("MAX_ROOMS_PER_CONNECTION", 1)),
        max_message_bytes=int(os.getenv("MAX_MESSAGE_BYTES", 65536)),
        ice_servers=ice_servers,
    )
    logger.debug(f"Loaded signaling settings: {settings}")
    return settings
