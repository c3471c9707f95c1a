"""Account configuration loading.

Supports two configuration sources:
1. Environment variables (for CI/CD) - takes priority
2. accounts.json file (for local development)

JSON Format:
    [
        {
            "name": "Spaces",
            "region": "nyc3",
            "is-digital-ocean": true,
            "access-key": "xxx",
            "secret-key": "xxx",
            "buckets": ["bucket-1", "bucket-2"]
        }
    ]

Environment Variable Format:
    ACCOUNT_{KEY}=Name|Region|Provider
    {KEY}_ACCESS_KEY=xxx
    {KEY}_SECRET_KEY=xxx
    {KEY}_BUCKETS=bucket-1,bucket-2

Example:
    ACCOUNT_DO=Spaces|nyc3|digitalocean
    DO_ACCESS_KEY=your-access-key
    DO_SECRET_KEY=your-secret-key
    DO_BUCKETS=bucket-1
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from s3spaces.errors import ConfigError, DecodeError
from s3spaces.models import Account, Provider

logger = logging.getLogger(__name__)

# Provider names accepted in ACCOUNT_* environment variables
PROVIDER_NAMES = {
    "amazon": Provider.AMAZON,
    "aws": Provider.AMAZON,
    "digitalocean": Provider.DIGITAL_OCEAN,
    "do": Provider.DIGITAL_OCEAN,
}


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _expect_string(obj: dict, field: str, path: str) -> str:
    if field not in obj:
        raise DecodeError(f"missing required field '{field}'", path)
    value = obj[field]
    if not isinstance(value, str):
        raise DecodeError(
            f"expected a string but got {_type_name(value)}",
            f'{path}["{field}"]',
        )
    return value


def _decode_account(obj: Any, path: str) -> Account:
    if not isinstance(obj, dict):
        raise DecodeError(f"expected an object but got {_type_name(obj)}", path)

    name = _expect_string(obj, "name", path)

    region = obj.get("region")
    if region is not None and not isinstance(region, str):
        raise DecodeError(
            f"expected a string or null but got {_type_name(region)}",
            f'{path}["region"]',
        )

    is_digital_ocean = obj.get("is-digital-ocean", False)
    if not isinstance(is_digital_ocean, bool):
        raise DecodeError(
            f"expected a boolean but got {_type_name(is_digital_ocean)}",
            f'{path}["is-digital-ocean"]',
        )

    access_key = _expect_string(obj, "access-key", path)
    secret_key = _expect_string(obj, "secret-key", path)

    if "buckets" not in obj:
        raise DecodeError("missing required field 'buckets'", path)
    buckets = obj["buckets"]
    if not isinstance(buckets, list):
        raise DecodeError(
            f"expected an array but got {_type_name(buckets)}",
            f'{path}["buckets"]',
        )
    for index, bucket in enumerate(buckets):
        if not isinstance(bucket, str):
            raise DecodeError(
                f"expected a string but got {_type_name(bucket)}",
                f'{path}["buckets"][{index}]',
            )

    return Account(
        name=name,
        region=region,
        provider=Provider.DIGITAL_OCEAN if is_digital_ocean else Provider.AMAZON,
        access_key=access_key,
        secret_key=secret_key,
        buckets=tuple(buckets),
    )


def decode_accounts(data: Union[str, bytes, list]) -> list[Account]:
    """Decode an account document into Account records.

    Args:
        data: JSON text, or an already-parsed JSON value.

    Returns:
        Accounts in document order.

    Raises:
        DecodeError: If the document is not valid JSON or any entry is
                    missing a required field or has a mistyped one. The
                    error path locates the offending value.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise DecodeError(f"expected an array but got {_type_name(data)}")

    return [_decode_account(obj, f"[{index}]") for index, obj in enumerate(data)]


def load_from_json(config_path: str) -> list[Account]:
    """Load accounts from a JSON file.

    Raises:
        ConfigError: If the file doesn't exist or can't be read.
        DecodeError: If its content doesn't match the account schema.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid UTF-8 in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    accounts = decode_accounts(text)
    logger.debug("Loaded %d account(s) from %s", len(accounts), config_path)
    return accounts


def load_from_env() -> list[Account]:
    """Load accounts from environment variables.

    Discovers accounts by looking for ACCOUNT_* environment variables.
    For each account, expects corresponding credential variables.

    Returns:
        Accounts ordered by their environment key.

    Raises:
        ConfigError: If environment variables are malformed or
                    required credential variables are missing.
    """
    accounts: list[Account] = []

    for env_key in sorted(os.environ):
        if not env_key.startswith("ACCOUNT_"):
            continue

        # Extract account key (e.g., "ACCOUNT_DO" -> "DO")
        account_key = env_key[len("ACCOUNT_"):]

        # Parse pipe-delimited value: Name|Region|Provider
        parts = os.environ[env_key].split("|")
        if len(parts) != 3:
            raise ConfigError(
                f"Invalid format for {env_key}. Expected: Name|Region|Provider"
            )

        name, region, provider_name = parts
        provider = PROVIDER_NAMES.get(provider_name.strip().lower())
        if provider is None:
            raise ConfigError(
                f"Unknown provider '{provider_name}' in {env_key}. "
                f"Expected one of: {', '.join(sorted(PROVIDER_NAMES))}"
            )

        access_key_var = f"{account_key}_ACCESS_KEY"
        secret_key_var = f"{account_key}_SECRET_KEY"
        buckets_var = f"{account_key}_BUCKETS"

        access_key = os.environ.get(access_key_var)
        if not access_key:
            raise ConfigError(f"Missing environment variable: {access_key_var}")

        secret_key = os.environ.get(secret_key_var)
        if not secret_key:
            raise ConfigError(f"Missing environment variable: {secret_key_var}")

        buckets = [
            b.strip() for b in os.environ.get(buckets_var, "").split(",") if b.strip()
        ]

        accounts.append(Account(
            name=name,
            region=region or None,
            provider=provider,
            access_key=access_key,
            secret_key=secret_key,
            buckets=tuple(buckets),
        ))

    return accounts


def has_env_accounts() -> bool:
    """Check if any ACCOUNT_* environment variables exist."""
    return any(key.startswith("ACCOUNT_") for key in os.environ)


def load_accounts(config_path: str = "accounts.json") -> list[Account]:
    """Load accounts with environment priority.

    Priority order:
    1. Environment variables (if any ACCOUNT_* vars exist)
    2. accounts.json file

    Raises:
        ConfigError: If no accounts are configured.
    """
    accounts: list[Account] = []

    if has_env_accounts():
        accounts = load_from_env()
    elif Path(config_path).exists():
        accounts = load_from_json(config_path)

    if not accounts:
        raise ConfigError(
            "No accounts configured. Set ACCOUNT_* environment variables "
            "or create an accounts.json file with at least one account."
        )

    return accounts


def find_account(accounts: Sequence[Account], name: str) -> Optional[Account]:
    """Return the first account whose name matches exactly, or None."""
    for account in accounts:
        if account.name == name:
            return account
    return None
