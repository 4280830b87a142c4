"""
Configuration management for Campus Events Service.
Uses Zero Python SDK for secure configuration, with environment overrides.
"""

import os
import asyncio
import concurrent.futures
from urllib.parse import quote_plus
from typing import Dict, Any, Optional
import logging
from zero_python_sdk import zero

logger = logging.getLogger(__name__)


class ZeroSecretsManager:
    """
    Zero secrets client using the official Zero Python SDK.
    Environment variables win over Zero secrets so deployments can pin values.
    """

    def __init__(self, zero_token: str, caller_name: str = "campus-events"):
        self.zero_token = zero_token
        self.caller_name = caller_name
        self._cache: Dict[str, Any] = {}
        self._secrets = None

    async def _fetch_secrets(self):
        """Fetch secrets from Zero if not already cached."""
        if self._secrets is None:
            try:
                loop = asyncio.get_running_loop()
                with concurrent.futures.ThreadPoolExecutor() as executor:
                    self._secrets = await loop.run_in_executor(
                        executor,
                        lambda: zero(
                            token=self.zero_token,
                            pick=["campus-events"],
                            caller_name=self.caller_name
                        ).fetch()
                    )
                logger.info("Successfully fetched secrets from Zero")
            except Exception as e:
                logger.error(f"Failed to fetch secrets from Zero: {e}")
                self._secrets = {}

    def _normalize_key(self, key: str) -> str:
        """Normalize a key to lowercase and replace underscores with hyphens."""
        return key.lower().replace("_", "-")

    async def get_secret(self, key: str) -> Optional[str]:
        """
        Get a secret value by key.

        Args:
            key: The secret key to retrieve, e.g. ``DB_HOST``

        Returns:
            Secret value or None if not found
        """
        env_value = os.getenv(key)
        if env_value:
            return env_value

        try:
            key = self._normalize_key(key)
            if key in self._cache:
                return self._cache[key]

            await self._fetch_secrets()
            service_secrets = self._secrets.get("campus-events", {})
            secret_value = service_secrets.get(key)

            if secret_value:
                self._cache[key] = secret_value

            return secret_value

        except Exception as e:
            logger.error(f"Failed to fetch secret {key}: {e}")
            return None

    async def close(self):
        """Close method for compatibility."""
        pass


class CampusEventsConfig:
    """
    Campus Events Service configuration manager.
    Covers persistence, locking, OTP and SMS dispatch settings.
    """

    def __init__(self):
        self.zero_token = os.getenv("ZERO_TOKEN")
        if not self.zero_token:
            raise ValueError("ZERO_TOKEN environment variable is required")

        self.secrets_manager = ZeroSecretsManager(self.zero_token)

    async def get_database_url(self) -> str:
        """Get the database connection URL."""
        url = await self.secrets_manager.get_secret("DATABASE_URL")
        if url:
            return url

        host = await self.secrets_manager.get_secret("DB_HOST") or "localhost"
        port = await self.secrets_manager.get_secret("DB_PORT") or "5432"
        name = await self.secrets_manager.get_secret("DB_NAME") or "campus_events"
        user = await self.secrets_manager.get_secret("DB_USER") or "campus_events"
        password = await self.secrets_manager.get_secret("DB_PASSWORD") or "campus_events"

        return f"postgresql+psycopg://{user}:{quote_plus(password)}@{host}:{port}/{name}"

    async def get_redis_url(self) -> str:
        """Get the Redis connection URL."""
        host = await self.secrets_manager.get_secret("REDIS_HOST") or "localhost"
        port = await self.secrets_manager.get_secret("REDIS_PORT") or "6379"
        password = await self.secrets_manager.get_secret("REDIS_PASSWORD")
        use_tls = await self.secrets_manager.get_secret("REDIS_USE_TLS") == "true"

        protocol = "rediss://" if use_tls else "redis://"

        if password:
            return f"{protocol}:{password}@{host}:{port}"
        return f"{protocol}{host}:{port}"

    async def get_jwt_secret(self) -> str:
        """Get JWT secret key."""
        return await self.secrets_manager.get_secret("JWT_SECRET") or "your-secret-key-change-in-production"

    async def get_jwt_algorithm(self) -> str:
        """Get JWT algorithm."""
        return await self.secrets_manager.get_secret("JWT_ALGORITHM") or "HS256"

    async def get_consistency_config(self) -> Dict[str, Any]:
        """Get per-event serialization settings."""
        return {
            "lock_timeout_seconds": int(await self.secrets_manager.get_secret("LOCK_TIMEOUT_SECONDS") or "30"),
            "lock_blocking_timeout_seconds": int(await self.secrets_manager.get_secret("LOCK_BLOCKING_TIMEOUT_SECONDS") or "10"),
            "enable_distributed_locks": await self.secrets_manager.get_secret("ENABLE_DISTRIBUTED_LOCKS") == "true",
        }

    async def get_otp_config(self) -> Dict[str, Any]:
        """Get OTP challenge settings."""
        return {
            "otp_length": int(await self.secrets_manager.get_secret("OTP_LENGTH") or "6"),
            "otp_expiry_minutes": int(await self.secrets_manager.get_secret("OTP_EXPIRY_MINUTES") or "10"),
            "phone_number_length": int(await self.secrets_manager.get_secret("PHONE_NUMBER_LENGTH") or "10"),
        }

    async def get_sms_config(self) -> Dict[str, Any]:
        """Get SMS provider settings."""
        return {
            "api_url": await self.secrets_manager.get_secret("SMS_API_URL") or "https://www.fast2sms.com/dev/bulkV2",
            "api_key": await self.secrets_manager.get_secret("FAST2SMS_API_KEY"),
            "route": await self.secrets_manager.get_secret("SMS_ROUTE") or "q",
            "timeout_seconds": int(await self.secrets_manager.get_secret("SMS_TIMEOUT_SECONDS") or "10"),
        }

    async def get_database_config(self) -> Dict[str, Any]:
        """Get database pool configuration."""
        return {
            "pool_size": int(await self.secrets_manager.get_secret("DB_POOL_SIZE") or "10"),
            "max_overflow": int(await self.secrets_manager.get_secret("DB_MAX_OVERFLOW") or "20"),
            "pool_timeout": int(await self.secrets_manager.get_secret("DB_POOL_TIMEOUT") or "30"),
            "pool_recycle": int(await self.secrets_manager.get_secret("DB_POOL_RECYCLE") or "3600"),
        }

    async def close(self):
        """Close the secrets manager."""
        await self.secrets_manager.close()


# Global config instance
config = CampusEventsConfig()
