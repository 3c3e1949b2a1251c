"""
FortiManager MCP Server - Data Models

This module contains Pydantic models for configuration and validation.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..shared.constants import DEFAULT_ADOM


class FortiManagerConfig(BaseModel):
    """Configuration for a FortiManager JSONRPC session."""

    model_config = ConfigDict(validate_assignment=True)

    url: str = Field(..., description="FortiManager base URL")
    user: str | None = Field(default=None, description="Login user")
    passwd: str | None = Field(default=None, description="Login password", repr=False)  # Hide in logs
    adom: str = Field(default=DEFAULT_ADOM, description="Administrative domain used by object calls")
    verify_ssl: bool = Field(default=True, description="Whether to verify SSL certificates")
    verbose: bool = Field(
        default=True,
        description="Ask the server for symbolic enum values instead of numeric ids",
    )
    timeout: float = Field(default=30.0, gt=0, description="Transport timeout in seconds")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("adom")
    @classmethod
    def validate_adom(cls, v):
        if not v or not v.strip():
            raise ValueError("ADOM name must not be empty")
        return v

    @model_validator(mode="after")
    def validate_credentials_pair(self):
        """User and password are either both set or both absent."""
        if (self.user is None) != (self.passwd is None):
            raise ValueError("user and passwd must be given together")
        return self
