"""
Centralized Configuration Management for HostOps

Provides pydantic-based configuration with:
- Environment variable loading (.env support)
- Type validation
- Default values

Usage:
    from hostops.core.config import get_config

    config = get_config()
    print(config.max_output_bytes)
    print(config.timeout_for("sys-iostat", 15))
"""

from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HostOpsConfig(BaseSettings):
    """
    Central configuration for HostOps

    All settings can be overridden via environment variables with HOSTOPS_ prefix.
    For example: HOSTOPS_LOG_LEVEL, HOSTOPS_MAX_OUTPUT_BYTES, etc.
    Dict settings take JSON: HOSTOPS_CAPABILITY_TIMEOUTS='{"fs-find": 5}'.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOSTOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ============================================
    # Logging / Localization
    # ============================================

    log_level: str = Field(
        default="WARNING",
        description="Root log level for the CLI (DEBUG, INFO, WARNING, ERROR)"
    )

    language: str = Field(
        default="en",
        description="Report language (en, zh_CN)"
    )

    # ============================================
    # Command Execution
    # ============================================

    max_output_bytes: int = Field(
        default=64 * 1024,
        gt=0,
        description="Per-stream cap on captured stdout/stderr"
    )

    capability_timeouts: Dict[str, float] = Field(
        default_factory=dict,
        description="Per-capability timeout overrides in seconds"
    )

    # ============================================
    # Registry
    # ============================================

    registry_lock_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Bounded wait for registry lock acquisition (seconds)"
    )

    # ============================================
    # Diagnostics
    # ============================================

    ping_host: Optional[str] = Field(
        default=None,
        description="Host probed by the network check group (disabled when unset)"
    )

    budget_policy: str = Field(
        default="partial",
        description="What to do when the time budget runs out mid-sampling: partial or fail"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("budget_policy")
    @classmethod
    def validate_budget_policy(cls, v: str) -> str:
        policy = v.lower()
        if policy not in ("partial", "fail"):
            raise ValueError(f"budget_policy must be 'partial' or 'fail', got {v}")
        return policy

    @field_validator("capability_timeouts")
    @classmethod
    def validate_timeouts(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, seconds in v.items():
            if seconds <= 0:
                raise ValueError(f"Timeout for {name} must be > 0")
        return v

    def timeout_for(self, capability: str, default: float) -> float:
        """Configured timeout for a capability, or the given default"""
        return self.capability_timeouts.get(capability, default)


# Global config instance
_config: Optional[HostOpsConfig] = None


def get_config() -> HostOpsConfig:
    """Get global configuration instance (loaded once)"""
    global _config
    if _config is None:
        _config = HostOpsConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (tests)"""
    global _config
    _config = None
