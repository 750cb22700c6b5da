"""Constants for MySportsFeeds box score processing."""

from __future__ import annotations

# {base_url}/{season}/games/{game_id}/boxscore.json
MSF_BOXSCORE_PATH = "{season}/games/{game_id}/boxscore.json"

# v2.x Basic auth uses the API key as username and this fixed password
MSF_AUTH_PASSWORD = "MYSPORTSFEEDS"

# Provider game ids look like 20250115-BOS-LAL (date, away, home)
MSF_GAME_ID_DATE_FORMAT = "%Y%m%d"
