"""Puppet options and the environment variables that supply defaults."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .log import get_logger

_log = get_logger("wechaty-puppet-service")

SERVICE_TOKEN_VAR = "WECHATY_PUPPET_SERVICE_TOKEN"
SERVICE_ENDPOINT_VAR = "WECHATY_PUPPET_SERVICE_ENDPOINT"
HOSTIE_TOKEN_VAR = "WECHATY_PUPPET_HOSTIE_TOKEN"
HOSTIE_ENDPOINT_VAR = "WECHATY_PUPPET_HOSTIE_ENDPOINT"


@dataclass
class PuppetOption:
    """Connection settings of a puppet; durations are in seconds."""

    endpoint: str = ""
    timeout: float = 0.0
    token: str = ""
    grpc_reconnect_interval: float = 0.0


def service_token_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Return the service token, falling back to the deprecated hostie one."""
    env = os.environ if environ is None else environ
    token = env.get(SERVICE_TOKEN_VAR, "")
    if token:
        return token
    hostie = env.get(HOSTIE_TOKEN_VAR, "")
    if hostie:
        _log.warning(
            "warn: %s environment be deprecated\n"
            "please use new environment name<%s> to avoid unnecessary bugs",
            HOSTIE_TOKEN_VAR,
            SERVICE_TOKEN_VAR,
        )
        return hostie
    return ""


def service_endpoint_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Return the service endpoint; the deprecated hostie variable is not consulted."""
    env = os.environ if environ is None else environ
    return env.get(SERVICE_ENDPOINT_VAR, "")