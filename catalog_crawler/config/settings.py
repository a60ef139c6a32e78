"""Crawler settings loaded from environment variables via pydantic-settings.

Sources, highest priority first:

  1. Environment variables with the ``CATALOG_`` prefix,
     e.g. ``CATALOG_BASE_URL=https://example.org``
  2. A ``.env`` file in the working directory
  3. The defaults below

``config/loader.py`` adds an optional YAML layer underneath all of these.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class Settings(BaseSettings):
    """Catalog crawler settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Source site ===
    base_url: str = "https://romspedia.com"
    listing_path: str = "roms"  # listing pages live under /{listing_path}/{category}
    download_host: str = "https://downloads.romspedia.com"
    user_agent: str = _DEFAULT_USER_AGENT
    request_timeout: float = 30.0
    # Page requests always verify TLS; this applies to asset downloads only.
    download_verify_ssl: bool = False  # the download host serves a broken certificate chain

    # === Politeness delays (seconds) ===
    page_delay: float = 0.3
    detail_delay: float = 0.3
    download_delay: float = 1.0

    # 0 = no ceiling; traversal then relies on the empty/fallback-page stops.
    max_pages: int = 0

    # === Files ===
    output_file: str = "catalog.json"
    state_file: str = ".catalog_state.json"
    download_dir: str = "downloads"

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def page_ceiling(self) -> int | None:
        """``max_pages`` as the traversal expects it (``None`` when unlimited)."""
        return self.max_pages if self.max_pages > 0 else None
