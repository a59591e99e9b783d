"""Shared fixtures: the Arsenal v Chelsea reference match."""

import copy

import pytest

from accuracy_core.schemas import BookmakerQuote, PipelineInput

ARSENAL_CHELSEA = {
    "matchId": "epl-arsenal-chelsea",
    "sport": "soccer",
    "league": "Premier League",
    "homeTeam": "Arsenal",
    "awayTeam": "Chelsea",
    "homeStats": {"played": 15, "wins": 10, "draws": 3, "losses": 2,
                  "scored": 28, "conceded": 12},
    "awayStats": {"played": 15, "wins": 8, "draws": 4, "losses": 3,
                  "scored": 22, "conceded": 15},
    "homeForm": "WWDWW",
    "awayForm": "WLDWL",
    "h2h": {"total": 10, "homeWins": 4, "awayWins": 3, "draws": 3},
    "odds": [
        {"bookmaker": "Bet365", "homeOdds": 1.85, "awayOdds": 4.20, "drawOdds": 3.60},
        {"bookmaker": "Unibet", "homeOdds": 1.90, "awayOdds": 4.00, "drawOdds": 3.50},
        {"bookmaker": "WilliamHill", "homeOdds": 1.87, "awayOdds": 4.10, "drawOdds": 3.55},
    ],
}


def quote(bookmaker, home, away, draw=None):
    return BookmakerQuote(bookmaker=bookmaker, home_odds=home, away_odds=away, draw_odds=draw)


@pytest.fixture
def sample_payload():
    """camelCase request body; safe to mutate."""
    return copy.deepcopy(ARSENAL_CHELSEA)


@pytest.fixture
def sample_input(sample_payload):
    return PipelineInput.model_validate(sample_payload)


@pytest.fixture
def three_way_quotes():
    return [
        quote("Bet365", 1.85, 4.20, 3.60),
        quote("Unibet", 1.90, 4.00, 3.50),
        quote("WilliamHill", 1.87, 4.10, 3.55),
    ]
