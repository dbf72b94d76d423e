from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ENVNODE_", extra="ignore")

    # Node identity, written as tags on every line
    node_name: str = "envnode"
    firmware_version: str = "0.1.0"

    # Bus: "hw" opens /dev/i2c-<i2c_bus>, "sim" uses the in-process simulated bus
    sensor_mode: str = Field(default="hw")
    i2c_bus: int = 1

    # Schedules
    report_interval_s: float = 60.0
    gas_feed_interval_s: float = 1.0   # SGP30 needs exactly 1 Hz
    gas_warmup_ticks: int = 32         # ticks 1..31 are discarded

    # TSL2591
    tsl2591_gain: str = "medium"       # low|medium|high|max
    tsl2591_integration_ms: int = 100  # 100..600, step 100

    # Backend (InfluxDB v2 write API)
    influx_url: str = "http://localhost:8086"
    influx_org: str = "home"
    influx_bucket: str = "sensors"
    influx_token: str = ""
    influx_auth_scheme: str = "Bearer"
    http_timeout_s: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_file: str = Field(default="envnode.log")


settings = Settings()
