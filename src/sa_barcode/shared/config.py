from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING
from os import PathLike
from pathlib import Path
from tomllib import load

from pydantic import BaseModel, field_validator

DEFAULT_CONFIG_PATH = Path("config.toml")


class General(BaseModel):
    title: str


class Logging(BaseModel):
    level: int

    @field_validator("level", mode="before")
    @classmethod
    def convert_log_level(cls, value):
        if isinstance(value, int):
            return value
        log_levels = {
            "DEBUG": DEBUG,
            "INFO": INFO,
            "WARNING": WARNING,
            "ERROR": ERROR,
            "CRITICAL": CRITICAL,
        }
        return log_levels.get(value.upper(), INFO)


class Paths(BaseModel):
    logs: str


class RateLimit(BaseModel):
    timeout_period: int = 60
    requests_per_second: int = 10


class Network(BaseModel):
    host: str
    port: int
    reload: bool

    rate_limit: RateLimit


class Decrypt(BaseModel):
    """PKCS#1 public keys for the barcode transform.

    Each value is either the PEM text itself or a path to a PEM file.
    Files are only read when the key ring is built at startup.
    """

    v1_pk128: str
    v1_pk74: str
    v2_pk128: str
    v2_pk74: str

    @field_validator("v1_pk128", "v1_pk74", "v2_pk128", "v2_pk74")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class Config(BaseModel):
    general: General
    paths: Paths
    logging: Logging
    network: Network
    decrypt: Decrypt


def load_config(
    shared_config_file: PathLike = DEFAULT_CONFIG_PATH,
    specific_config_file: PathLike | None = None,
) -> Config:
    """Load and merge configurations from TOML files."""
    # Load shared config
    with Path(shared_config_file).open("rb") as f:
        config_data = load(f)

    # Load and merge specific config if provided
    if specific_config_file:
        with Path(specific_config_file).open("rb") as f:
            specific_data = load(f)
            config_data.update(specific_data)

    return Config(**config_data)
