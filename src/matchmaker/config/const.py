# src/matchmaker/config/const.py
from __future__ import annotations

# built-in defaults (config file / ENV / CLI may override)
HTTP_PORT: int = 90
HTTPS_PORT: int = 443
CONTROL_PORT: int = 9999
HOST: str = "0.0.0.0"

CONFIG_FILE: str = "config.yaml"
LOGS_DIR: str = "./logs"
CERT_FILE: str = "certificates/client-cert.pem"
KEY_FILE: str = "certificates/client-key.pem"

# a node handed out by the selector is skipped for this long, so two clients
# arriving before either one connects are not sent to the same node
ALLOCATION_COOLDOWN_SEC: float = 45.0

# countdown on the "all nodes busy" page before it reloads itself
RETRY_SECONDS: int = 10

# one control message per read; larger payloads are not expected from render nodes
CONTROL_READ_LIMIT: int = 64 * 1024

ENV_PREFIX: str = "MATCHMAKER_"
