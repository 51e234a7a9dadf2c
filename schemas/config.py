# ipgate/schemas/config.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


class ServerConfig(BaseModel):
    host: str = Field("127.0.0.1", description="Address uvicorn binds to")
    port: int = Field(8000, gt=0, lt=65536, description="Port uvicorn binds to")
    log_level: str = Field("info", description="Application log level")


class ListenConfig(BaseModel):
    path: str = Field("/", description="URL path serving the token form")
    allow_proxy: bool = Field(True, description="Trust the first X-Forwarded-For entry as the client address")

    @field_validator("path")
    @classmethod
    def path_must_be_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("listen.path must start with '/'")
        return v


class WhitelistServiceConfig(BaseModel):
    """
    Immutable configuration of the whitelist coordinator.
    Durations are in seconds.
    """
    model_config = ConfigDict(frozen=True)

    nginx_conf: str = Field(..., min_length=1, description="Path of the generated geo rule file")
    nginx_exe: str = Field(..., min_length=1, description="Path of the proxy executable")
    remote_addr_var: str = Field("remote_addr", description="Variable the geo block matches on")
    result_var: str = Field("ip_whitelist", description="Variable the geo block sets")
    timeout: float = Field(3600, gt=0, description="Lifetime of a member after its last push")
    loop_delay: float = Field(15, gt=0, description="Interval between two ticks")
    ipv4_prefixlen: int = Field(0, ge=0, le=32, description="IPv4 quantization, 0 keeps the bare address")
    ipv6_prefixlen: int = Field(0, ge=0, le=128, description="IPv6 quantization, 0 keeps the bare address")
    preset: List[str] = Field(default_factory=list, description="Entries that are always allowed")
    command_timeout: float = Field(30, gt=0, description="Timeout of the proxy validate/reload commands")
    lookup_workers: int = Field(4, ge=1, description="Concurrent geolocation lookups per tick")


class WhitelistConfig(WhitelistServiceConfig):
    token: str = Field(..., min_length=1, description="Shared secret clients submit to be whitelisted")

    def service_config(self) -> WhitelistServiceConfig:
        return WhitelistServiceConfig(**self.model_dump(exclude={"token"}))


class MessageConfig(BaseModel):
    bark: str = Field("", description="Bark push endpoint, e.g. https://api.day.app/<key>")


class BaiduLocationConfig(BaseModel):
    ak: str = Field("", description="Baidu map API key")
    referrer: str = Field("", description="Referer header registered for the key")


class LogFileConfig(BaseModel):
    path: Optional[str] = Field("data/logs/ipgate.log", description="Log file, null disables file logging")
    max_bytes: int = Field(1024 * 1024 * 5, gt=0)
    backup_count: int = Field(5, ge=0)


class LoggingConfig(BaseModel):
    format: str = "%(levelname)s - %(asctime)s - %(name)s - %(module)s:%(lineno)d - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: LogFileConfig = Field(default_factory=LogFileConfig)


class AppConfig(BaseModel):
    """
    Root of the configuration file.
    Only the `whitelist` section is mandatory.
    """
    server: ServerConfig = Field(default_factory=ServerConfig)
    listen: ListenConfig = Field(default_factory=ListenConfig)
    whitelist: WhitelistConfig
    message: MessageConfig = Field(default_factory=MessageConfig)
    baidu_location: BaiduLocationConfig = Field(default_factory=BaiduLocationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
