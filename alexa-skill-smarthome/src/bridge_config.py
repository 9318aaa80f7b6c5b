# bridge_config.py

import logging
import os
from dataclasses import dataclass

from bridge_errors import ConfigurationError
from otp import DEFAULT_WINDOW_SECONDS

logger = logging.getLogger(__name__)

PAYLOAD_VERSIONS = ("2", "3")
MIN_SECRET_LENGTH = 16


def _env(environ, name, default=None):
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def payload_version(environ=None):
    environ = os.environ if environ is None else environ
    version = _env(environ, "ALEXA_PAYLOAD_VERSION", "3")
    if version not in PAYLOAD_VERSIONS:
        raise ConfigurationError(f"ALEXA_PAYLOAD_VERSION must be one of {PAYLOAD_VERSIONS}, got {version!r}")
    return version


def read_secret_parameter(name, ssm=None):
    """Liest das OTP-Secret als SecureString aus dem SSM Parameter Store."""
    if ssm is None:
        import boto3
        ssm = boto3.client("ssm")
    res = ssm.get_parameter(Name=name, WithDecryption=True)
    return res["Parameter"]["Value"]


def load_otp_secret(environ=None, ssm=None):
    environ = os.environ if environ is None else environ
    secret = _env(environ, "REMOTE_CLOUD_OTP_SECRET")
    if secret is None:
        param = _env(environ, "REMOTE_CLOUD_OTP_SECRET_PARAM")
        if param is not None:
            secret = read_secret_parameter(param, ssm=ssm)
    if secret is not None and len(secret) < MIN_SECRET_LENGTH:
        logger.warning(f"OTP secret is shorter than {MIN_SECRET_LENGTH} characters")
    return secret


@dataclass(frozen=True)
class RelayConfig:
    """Konfiguration der Cloud-Lambda (Relay-Modus)."""
    base_url: str
    otp_secret: str
    payload_version: str = "3"
    timeout_s: float = 10.0
    otp_window_seconds: int = DEFAULT_WINDOW_SECONDS

    @classmethod
    def from_env(cls, environ=None, ssm=None):
        environ = os.environ if environ is None else environ
        base_url = _env(environ, "REMOTE_CLOUD_BASE_URL")
        if not base_url:
            raise ConfigurationError("REMOTE_CLOUD_BASE_URL is not set")
        secret = load_otp_secret(environ, ssm=ssm)
        if secret is None:
            raise ConfigurationError("REMOTE_CLOUD_OTP_SECRET or REMOTE_CLOUD_OTP_SECRET_PARAM must be set")
        return cls(
            base_url=base_url.rstrip("/"),
            otp_secret=secret,
            payload_version=payload_version(environ),
            timeout_s=float(_env(environ, "REMOTE_CLOUD_TIMEOUT", "10")),
            otp_window_seconds=int(_env(environ, "OTP_WINDOW_SECONDS", str(DEFAULT_WINDOW_SECONDS))),
        )


@dataclass(frozen=True)
class ControllerConfig:
    """Konfiguration des selbst gehosteten Controllers (lokaler Modus)."""
    payload_version: str = "3"
    host: str = "0.0.0.0"
    port: int = 8082
    log_level: str = "INFO"
    otp_secret: str = None
    otp_window_seconds: int = DEFAULT_WINDOW_SECONDS
    device_table: str = None
    iot_topic: str = "alexa"
    manufacturer: str = "Lutron"
    accessories_file: str = None

    @classmethod
    def from_env(cls, environ=None, ssm=None):
        environ = os.environ if environ is None else environ
        return cls(
            payload_version=payload_version(environ),
            host=_env(environ, "BRIDGE_HOST", "0.0.0.0"),
            port=int(_env(environ, "BRIDGE_PORT", "8082")),
            log_level=_env(environ, "BRIDGE_LOG_LEVEL", "INFO").upper(),
            otp_secret=load_otp_secret(environ, ssm=ssm),
            otp_window_seconds=int(_env(environ, "OTP_WINDOW_SECONDS", str(DEFAULT_WINDOW_SECONDS))),
            device_table=_env(environ, "DEVICE_TABLE"),
            iot_topic=_env(environ, "IOT_TOPIC", "alexa"),
            manufacturer=_env(environ, "BRIDGE_MANUFACTURER", "Lutron"),
            accessories_file=_env(environ, "BRIDGE_ACCESSORIES_FILE"),
        )
