"""
GDPR lifecycle configuration
Consent expiry, export policy, timeouts and storage settings
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class GDPRConfig(BaseSettings):
    """GDPR data-lifecycle configuration settings"""

    # Storage
    database_url: str = Field(default="sqlite:///gdpr.db", description="SQLAlchemy database URL")
    database_echo: bool = Field(default=False)

    # Consent ledger
    consent_expiry_days: int = Field(default=30, description="Lifetime of a consent token in days")

    # Export policy
    allow_unauthenticated_export: bool = Field(
        default=False,
        description="Allow self-export without a consent token"
    )

    # Lifecycle operations
    operation_timeout_seconds: float = Field(
        default=30.0,
        description="Default bound for export/erasure operations"
    )

    # Audit trail
    audit_page_limit_default: int = Field(default=50)
    audit_page_limit_max: int = Field(default=500)

    # Environment-specific overrides
    log_level: str = Field(default="INFO")

    model_config = {"env_prefix": "EDU_GDPR_", "case_sensitive": False}


# Global configuration instance
gdpr_config = GDPRConfig()


def get_gdpr_config() -> GDPRConfig:
    """Get the global GDPR configuration instance"""
    return gdpr_config


def resolve_timeout(timeout: Optional[float], config: Optional[GDPRConfig] = None) -> Optional[float]:
    """Fall back to the configured operation timeout when none is given"""
    if timeout is not None:
        return timeout
    config = config or get_gdpr_config()
    if config.operation_timeout_seconds and config.operation_timeout_seconds > 0:
        return config.operation_timeout_seconds
    return None
