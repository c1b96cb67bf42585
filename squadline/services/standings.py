"""League table computation from recorded match results."""

from collections.abc import Iterable
from typing import Any

from squadline.schemas.league import StandingRow

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1

# Live matches count as well, so the table moves while a game is being played.
COUNTED_STATUSES = frozenset({"in-progress", "finished"})


def compute_standings(teams: Iterable[Any], matches: Iterable[Any]) -> list[StandingRow]:
    """
    Aggregate matches into one row per team.

    teams: objects with id and name. matches: objects with home_team_id,
    away_team_id, home_score, away_score and status. Matches involving a team
    not in `teams` are ignored; a missing score counts as 0. Sorted by points,
    then goal difference (both descending); ties keep the order of `teams`.
    """
    table: dict[int, dict[str, Any]] = {}
    for team in teams:
        table[team.id] = {
            "team_id": team.id,
            "name": team.name,
            "played": 0,
            "wins": 0,
            "draws": 0,
            "losses": 0,
            "goals_for": 0,
            "goals_against": 0,
            "points": 0,
        }

    for match in matches:
        if match.status not in COUNTED_STATUSES:
            continue
        home = table.get(match.home_team_id)
        away = table.get(match.away_team_id)
        if home is None or away is None:
            continue
        home_score = match.home_score or 0
        away_score = match.away_score or 0

        home["played"] += 1
        away["played"] += 1
        home["goals_for"] += home_score
        home["goals_against"] += away_score
        away["goals_for"] += away_score
        away["goals_against"] += home_score

        if home_score > away_score:
            home["wins"] += 1
            home["points"] += POINTS_FOR_WIN
            away["losses"] += 1
        elif away_score > home_score:
            away["wins"] += 1
            away["points"] += POINTS_FOR_WIN
            home["losses"] += 1
        else:
            home["draws"] += 1
            away["draws"] += 1
            home["points"] += POINTS_FOR_DRAW
            away["points"] += POINTS_FOR_DRAW

    rows = [
        StandingRow(goal_difference=row["goals_for"] - row["goals_against"], **row)
        for row in table.values()
    ]
    rows.sort(key=lambda r: (-r.points, -r.goal_difference))
    return rows
