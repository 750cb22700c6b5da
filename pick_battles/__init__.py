"""Pick battle matchmaking, quarter tracking and damage resolution."""
