"""Catalog connection settings for the bpsync command line.

Reads the blueprint catalog URL and token from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    BPSYNC_API_URL: Catalog base URL (required for remote commands)
    BPSYNC_TOKEN: API token (required for remote commands)
    BPSYNC_INSECURE: Skip SSL verification (optional, default: false)
    BPSYNC_TIMEOUT: Request timeout in seconds (optional, default: 30)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass
class Config:
    api_url: str
    token: str
    insecure: bool = False
    debug: bool = False
    timeout: float = 30.0


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If URL format is invalid or the token is empty.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if not config.token.strip():
        raise ValueError(
            "API token cannot be empty. Set BPSYNC_TOKEN environment variable."
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    url: str | None = None,
    token: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override catalog URL.
        token: Override API token.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``api`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the URL or token is missing after checking all
            sources, or a numeric env var is malformed.
    """
    fb = yaml_fallbacks or {}

    api_url = url or os.getenv("BPSYNC_API_URL") or fb.get("url")
    if not api_url:
        raise ValueError(
            "API URL not found. Set BPSYNC_API_URL environment variable, "
            "pass --api-url, or add 'api.url' to .bpsync/config.yml."
        )

    api_token = token or os.getenv("BPSYNC_TOKEN") or fb.get("token")
    if not api_token:
        raise ValueError(
            "API token not found. Set BPSYNC_TOKEN environment variable, "
            "pass --token, or add 'api.token' to .bpsync/config.yml."
        )

    if insecure:
        final_insecure = True
    else:
        env_insecure = _get_bool_env("BPSYNC_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    timeout_raw = os.getenv("BPSYNC_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid BPSYNC_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
        if not (0 < final_timeout <= 600):
            raise ValueError(
                f"Invalid BPSYNC_TIMEOUT '{timeout_raw}': must be between 0 and 600 seconds"
            )
    elif "timeout" in fb:
        final_timeout = float(fb["timeout"])
    else:
        final_timeout = 30.0

    config = Config(
        api_url=api_url.strip(),
        token=api_token.strip(),
        insecure=final_insecure,
        debug=debug,
        timeout=final_timeout,
    )

    validate_config(config)

    return config
