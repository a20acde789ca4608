from pydantic import BaseModel, ConfigDict, Field

SECONDS_PER_HOUR = 60 * 60
DEFAULT_MAX_ITEMS = 500


class StoreSettings(BaseModel):
    """Immutable runtime configuration for an expiring store.

    Notes
    -----
    - Values here are not read from environment variables. Build a
      `StoreSettings` explicitly and hand it to the store if the defaults
      do not fit.
    - TTLs (time-to-live) and intervals are expressed in seconds.
    """

    model_config = ConfigDict(frozen=True)

    # capacity used when the caller gives none (or a non-positive one)
    default_max_items: int = Field(default=DEFAULT_MAX_ITEMS, gt=0)
    # fallback TTL for values that cannot be read as an integer
    default_ttl_seconds: int = SECONDS_PER_HOUR
    sweep_interval_seconds: float = Field(default=60.0, gt=0)
    logger_name: str = "expiring_store"
    # mirror every audit entry to the stdlib logger as well
    mirror_to_logging: bool = True
    timestamp_format: str = "%Y-%m-%d %H:%M:%S"


settings = StoreSettings()
