"""Configuration schema using Pydantic."""

from typing import Annotated
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BotConfig(BaseModel):
    """Bot identity and behaviour."""
    name: str = "WhatsApp Bot"
    prefix: str = "!"
    owner_number: str = ""  # Bare number, no "+" and no JID suffix
    admin_numbers: Annotated[list[str], NoDecode] = Field(default_factory=list)
    auto_read: bool = False  # Mark command messages as read
    auto_typing: bool = False  # Show "composing" while handling a command
    typing_seconds: float = 1.0
    menu_image_url: str = "https://files.catbox.moe/hqdr7g.jpg"

    @field_validator("admin_numbers", mode="before")
    @classmethod
    def split_admin_numbers(cls, value):
        """Accept a comma-separated string as well as a list."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("prefix")
    @classmethod
    def prefix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("prefix must not be empty")
        return value


class RateLimitConfig(BaseModel):
    """Per-sender command throttling."""
    max_commands: int = Field(default=10, ge=1)  # Max commands per window
    window_ms: int = Field(default=60000, ge=1)

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000


class PluginsConfig(BaseModel):
    """Plugin discovery and hot reloading."""
    directory: str = "plugins"
    extensions: list[str] = Field(default_factory=lambda: [".py"])
    watch: bool = False  # Reload plugins when their files change
    debounce_ms: int = 1000  # Wait after a change before reloading
    poll_interval_ms: int = 1000


class WhatsAppConfig(BaseModel):
    """WhatsApp bridge connection."""
    bridge_url: str = "http://localhost:3001"
    timeout: float = 30.0


class ServerConfig(BaseModel):
    """Health server configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"


class Config(BaseSettings):
    """Root configuration for wabot."""
    bot: BotConfig = Field(default_factory=BotConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="WABOT_",
        env_nested_delimiter="__",
    )

    @property
    def owner_jid(self) -> str:
        """Owner address for direct messages."""
        return f"{self.bot.owner_number}@s.whatsapp.net"
