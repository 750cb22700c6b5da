"""MySportsFeeds client used as the battle stats source.

Composes MSFBoxscoreFetcher over one authenticated httpx client. The
client is created by the caller and injected into the quarter tracker, so
a Celery tick owns its lifecycle.
"""

from __future__ import annotations

from datetime import date

import httpx

from ..config import StatsProviderConfig, settings
from ..logging import logger
from .msf_boxscore import MSFBoxscoreFetcher
from .msf_constants import MSF_AUTH_PASSWORD, MSF_GAME_ID_DATE_FORMAT
from .msf_models import MSFBoxscore


def build_provider_game_id(game_day: date, away_abbr: str, home_abbr: str) -> str:
    """Build the provider game id: ``YYYYMMDD-AWAY-HOME``."""
    return f"{game_day.strftime(MSF_GAME_ID_DATE_FORMAT)}-{away_abbr}-{home_abbr}"


class MySportsFeedsClient:
    """Client for the MySportsFeeds boxscore endpoint."""

    def __init__(
        self,
        config: StatsProviderConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or settings.stats_config
        if client is None:
            auth = (
                httpx.BasicAuth(self.config.api_key, MSF_AUTH_PASSWORD)
                if self.config.api_key
                else None
            )
            client = httpx.Client(timeout=self.config.request_timeout_seconds, auth=auth)
        self.client = client
        self._boxscore_fetcher = MSFBoxscoreFetcher(
            self.client, self.config.base_url, self.config.season
        )

    def fetch_boxscore(self, provider_game_id: str) -> MSFBoxscore | None:
        """Fetch the cumulative boxscore for a game. See MSFBoxscoreFetcher."""
        if not self.config.api_key:
            logger.error("msf_api_key_missing", game_id=provider_game_id)
            return None
        return self._boxscore_fetcher.fetch_boxscore(provider_game_id)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> MySportsFeedsClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
