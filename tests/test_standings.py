"""Unit tests for squadline.services.standings.compute_standings."""

import unittest
from types import SimpleNamespace

from squadline.services.standings import compute_standings


def _team(team_id: int, name: str) -> SimpleNamespace:
    return SimpleNamespace(id=team_id, name=name)


def _match(home: int, away: int, hs: int | None, as_: int | None, status: str = "finished") -> SimpleNamespace:
    return SimpleNamespace(
        home_team_id=home, away_team_id=away, home_score=hs, away_score=as_, status=status
    )


class TestComputeStandings(unittest.TestCase):
    def setUp(self) -> None:
        self.teams = [_team(1, "Riverside FC"), _team(2, "Hill United"), _team(3, "Dockers")]

    def test_win_and_draw_points(self) -> None:
        rows = compute_standings(self.teams, [_match(1, 2, 2, 0), _match(2, 3, 1, 1)])
        by_id = {r.team_id: r for r in rows}
        self.assertEqual(by_id[1].points, 3)
        self.assertEqual(by_id[1].wins, 1)
        self.assertEqual(by_id[2].points, 1)
        self.assertEqual((by_id[2].losses, by_id[2].draws), (1, 1))
        self.assertEqual(by_id[3].points, 1)
        self.assertEqual(by_id[2].goals_for, 1)
        self.assertEqual(by_id[2].goals_against, 3)
        self.assertEqual(by_id[2].goal_difference, -2)
        self.assertEqual(by_id[2].played, 2)

    def test_sorted_by_points_then_goal_difference(self) -> None:
        rows = compute_standings(
            self.teams,
            [_match(2, 1, 5, 0), _match(3, 1, 1, 0)],
        )
        self.assertEqual([r.team_id for r in rows], [2, 3, 1])

    def test_ties_keep_team_order(self) -> None:
        rows = compute_standings(self.teams, [])
        self.assertEqual([r.team_id for r in rows], [1, 2, 3])
        self.assertTrue(all(r.played == 0 and r.points == 0 for r in rows))

    def test_in_progress_counts_but_scheduled_and_cancelled_do_not(self) -> None:
        rows = compute_standings(
            self.teams,
            [
                _match(1, 2, 1, 0, status="in-progress"),
                _match(2, 3, 4, 0, status="scheduled"),
                _match(3, 1, 2, 0, status="cancelled"),
            ],
        )
        by_id = {r.team_id: r for r in rows}
        self.assertEqual(by_id[1].points, 3)
        self.assertEqual(by_id[2].played, 1)
        self.assertEqual(by_id[3].played, 0)

    def test_missing_scores_count_as_zero_draw(self) -> None:
        rows = compute_standings(self.teams, [_match(1, 2, None, None)])
        by_id = {r.team_id: r for r in rows}
        self.assertEqual(by_id[1].draws, 1)
        self.assertEqual(by_id[2].points, 1)

    def test_matches_with_unknown_team_are_ignored(self) -> None:
        rows = compute_standings(self.teams, [_match(1, 99, 3, 0)])
        self.assertTrue(all(r.played == 0 for r in rows))


if __name__ == "__main__":
    unittest.main()
