"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="swiftship-agents", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/swiftship",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    persist_quotes: bool = Field(
        default=True,
        description="Store created quotes in PostgreSQL (in-memory when disabled)"
    )

    # ========== LLM Settings ==========
    llm_provider: str = Field(
        default="openai",
        description="LLM provider: openai, zai or mock"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    zai_api_key: Optional[str] = Field(default=None, description="Z.AI API key")
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used by every agent"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model for similarity search"
    )
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=1000, ge=1, le=8000)
    llm_top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    llm_frequency_penalty: float = Field(default=0.5, ge=-2.0, le=2.0)
    llm_presence_penalty: float = Field(default=0.5, ge=-2.0, le=2.0)

    # ========== Zilliz Cloud (Managed Milvus) Configuration ==========
    zilliz_uri: str = Field(
        default="",
        description="Zilliz Cloud cluster URI"
    )
    zilliz_api_key: str = Field(default="", description="Zilliz Cloud API key")
    milvus_collection_name: str = Field(
        default="swiftship_documents",
        description="Milvus collection name"
    )
    embedding_dimension: int = Field(
        default=1536,
        description="Embedding vector dimension",
        ge=128
    )
    similarity_threshold: float = Field(
        default=0.7,
        description="Minimum cosine similarity for retrieved documents",
        ge=0.0,
        le=1.0
    )
    chunk_size: int = Field(default=1000, description="Character size for document chunks", ge=100)
    chunk_overlap: int = Field(default=200, description="Overlap between document chunks", ge=0)

    # ========== Geocoding & Routing ==========
    geocoding_provider: str = Field(
        default="radar",
        description="Geocoding provider: radar or nominatim"
    )
    radar_api_key: Optional[str] = Field(default=None, description="Radar publishable key")
    radar_base_url: str = Field(default="https://api.radar.io/v1")
    geocoding_timeout_seconds: float = Field(default=10.0, ge=0.1, le=60)
    nominatim_user_agent: str = Field(default="swiftship-agents")
    fallback_speed_kmh: float = Field(
        default=60.0,
        description="Assumed travel speed for great-circle route estimates",
        gt=0
    )

    # ========== Quoting ==========
    pricing_config_path: Path = Field(
        default=Path("pricing_config.yaml"),
        description="Path to pricing configuration YAML file"
    )
    conversation_ttl_seconds: int = Field(
        default=1800,
        description="Idle seconds before a quote conversation is discarded",
        ge=1
    )
    conversation_max_entries: int = Field(
        default=1000,
        description="Maximum quote conversations kept in memory",
        ge=1
    )
    conversation_sweep_interval: int = Field(
        default=300,
        description="Seconds between expired conversation sweeps (0 disables)",
        ge=0
    )

    # ========== Agents & Streaming ==========
    history_window: int = Field(
        default=10,
        description="Recent messages forwarded to completion calls",
        ge=1
    )
    stream_typing_delay_ms: int = Field(default=20, ge=0)
    stream_line_delay_ms: int = Field(default=50, ge=0)
    stream_chunk_size: int = Field(default=1000, ge=1)
    stream_chunk_delay_ms: int = Field(default=10, ge=0)
    stream_max_line_bytes: int = Field(default=16384, ge=256)
    stream_modes: Dict[str, str] = Field(
        default={
            "QUOTE_AGENT": "whole",
            "DOCS_AGENT": "sized",
            "SUPPORT_AGENT": "sized",
            "SHIPMENTS_AGENT": "typing",
        },
        description="Default chunking strategy per agent"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    # ========== Grafana OTLP Metrics ==========
    grafana_host: Optional[str] = Field(default=None, description="Grafana OTLP gateway URL")
    grafana_api_key: Optional[str] = Field(default=None, description="Grafana API key")
    grafana_instance_id: Optional[str] = Field(default=None, description="Grafana instance ID")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        allowed = {"openai", "zai", "mock"}
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v

    @field_validator("geocoding_provider")
    @classmethod
    def validate_geocoding_provider(cls, v: str) -> str:
        allowed = {"radar", "nominatim"}
        if v not in allowed:
            raise ValueError(f"geocoding_provider must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ServiceType(str, Enum):
    """Freight service tiers offered in a quote."""
    EXPRESS = "express_freight"
    STANDARD = "standard_freight"
    ECO = "eco_freight"


class ShipmentType(str, Enum):
    """Kinds of freight a customer can ship."""
    FULL_TRUCKLOAD = "full_truckload"
    LESS_THAN_TRUCKLOAD = "less_than_truckload"
    SEA_CONTAINER = "sea_container"
    BULK_FREIGHT = "bulk_freight"


class ContainerSize(str, Enum):
    """Sea container sizes."""
    TWENTY_FT = "20ft"
    FORTY_FT = "40ft"
    FORTY_FT_HC = "40ft_hc"


class QuoteStep(str, Enum):
    """Steps of the quote conversation."""
    INITIAL = "initial"
    PACKAGE_DETAILS = "package_details"
    ADDRESSES = "addresses"
    SERVICE_SELECTION = "service_selection"
    CONFIRMATION = "confirmation"


class QuoteOutcome(str, Enum):
    """Terminal results of a quote conversation."""
    CREATED = "created"
    CANCELLED = "cancelled"


class AgentName(str, Enum):
    """Specialized agents a message can be routed to."""
    QUOTE = "QUOTE_AGENT"
    SUPPORT = "SUPPORT_AGENT"
    DOCS = "DOCS_AGENT"
    SHIPMENTS = "SHIPMENTS_AGENT"


class AgentType(str, Enum):
    """Agent identifiers accepted as an explicit routing override."""
    QUOTE = "quote"
    DOCS = "docs"
    SUPPORT = "support"
    SHIPMENTS = "shipments"


class MessageRole(str, Enum):
    """Conversation message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class StreamEventType(str, Enum):
    """Event types carried in streamed frames."""
    CHUNK = "chunk"
    METADATA = "metadata"
    SOURCES = "sources"
    DEBUG = "debug"


class StreamMode(str, Enum):
    """How a response body is split into chunk events."""
    WHOLE = "whole"
    SIZED = "sized"
    TYPING = "typing"


class DocsTopic(str, Enum):
    """Documentation topics recognised by the docs agent."""
    SERVICES = "SERVICES"
    PRICING = "PRICING"
    PACKAGING = "PACKAGING"
    RESTRICTIONS = "RESTRICTIONS"
    INSURANCE = "INSURANCE"
    TRACKING = "TRACKING"
    BILLING = "BILLING"
    ACCOUNT = "ACCOUNT"
    OTHER = "OTHER"


class TimeSlot(str, Enum):
    """Pickup time windows."""
    MORNING_1 = "morning_1"
    MORNING_2 = "morning_2"
    AFTERNOON_1 = "afternoon_1"
    AFTERNOON_2 = "afternoon_2"
    EVENING = "evening"


# ========== Lookup tables ==========

AGENT_TYPE_TO_NAME = {
    AgentType.QUOTE: AgentName.QUOTE,
    AgentType.DOCS: AgentName.DOCS,
    AgentType.SUPPORT: AgentName.SUPPORT,
    AgentType.SHIPMENTS: AgentName.SHIPMENTS,
}

# Start and end hour of each pickup window
TIME_SLOT_WINDOWS = {
    TimeSlot.MORNING_1: (9, 11),
    TimeSlot.MORNING_2: (11, 13),
    TimeSlot.AFTERNOON_1: (13, 15),
    TimeSlot.AFTERNOON_2: (15, 17),
    TimeSlot.EVENING: (17, 19),
}
