"""
Unit tests for the vitality arithmetic.

Pure functions only: recovery, damage, streaks, bonus and health bands.
"""
import random
from datetime import date, timedelta

import pytest

from fiber_friends.config import settings
from fiber_friends.services import narrator
from fiber_friends.services.vitality import (
    is_alive,
    recovery_due,
    recover_health,
    damage_health,
    next_streak_count,
    streak_bonus,
    roll_recovery,
    roll_initial_health,
    local_today,
)

DAY = date(2024, 5, 10)


class TestRecoveryArithmetic:

    def test_recovery_roll_within_range(self):
        rng = random.Random(7)
        rolls = {roll_recovery(rng) for _ in range(500)}
        assert min(rolls) >= 10
        assert max(rolls) <= 20

    def test_initial_health_within_range(self):
        rng = random.Random(7)
        rolls = {roll_initial_health(rng) for _ in range(500)}
        assert min(rolls) >= 80
        assert max(rolls) <= 100

    def test_recover_health_clamps_to_max(self):
        assert recover_health(195, 15) == settings.MAX_MONSTER_HEALTH
        assert recover_health(50, 15) == 65

    def test_recovery_due_on_new_day(self):
        assert recovery_due(50, DAY - timedelta(days=1), DAY)
        assert recovery_due(50, None, DAY)

    def test_recovery_not_due_twice_same_day(self):
        assert not recovery_due(50, DAY, DAY)

    def test_no_recovery_for_dead_monster(self):
        assert not recovery_due(-50, DAY - timedelta(days=1), DAY)
        assert not recovery_due(-80, None, DAY)


class TestDamageArithmetic:

    @pytest.mark.parametrize("health", [-49.5, -10, 0, 2, 90, 199.5, 200])
    def test_base_two_no_bonus(self, health):
        assert damage_health(health, 2) == min(settings.MAX_MONSTER_HEALTH, health - 2)

    def test_negative_damage_clamped_to_ceiling(self):
        """A strengthening event cannot push health past the max."""
        assert damage_health(195, -20) == settings.MAX_MONSTER_HEALTH

    def test_no_floor_clamp(self):
        assert damage_health(-40, 100) == -140

    def test_documented_scenario(self):
        """5 -> -5 -> -28 stays alive; the final hit crosses the threshold."""
        health = damage_health(5, 8 + 2)
        assert health == -5
        assert is_alive(health)

        health = damage_health(health, 20 + 3)
        assert health == -28
        assert is_alive(health)

        health = damage_health(health, 25)
        assert health == -53
        assert not is_alive(health)

    def test_threshold_itself_is_dead(self):
        assert not is_alive(settings.MONSTER_DEATH_THRESHOLD)
        assert is_alive(settings.MONSTER_DEATH_THRESHOLD + 0.1)


class TestStreaks:

    def test_first_activity_starts_at_one(self):
        assert next_streak_count(0, None, DAY) == 1

    def test_consecutive_day_increments(self):
        assert next_streak_count(4, DAY - timedelta(days=1), DAY) == 5

    def test_same_day_unchanged(self):
        assert next_streak_count(4, DAY, DAY) == 4

    def test_gap_resets(self):
        assert next_streak_count(9, DAY - timedelta(days=2), DAY) == 1

    def test_future_date_resets(self):
        assert next_streak_count(3, DAY + timedelta(days=1), DAY) == 1

    def test_three_consecutive_days(self):
        count, last = 0, None
        for offset in range(3):
            today = DAY + timedelta(days=offset)
            count, last = next_streak_count(count, last, today), today
        assert count == 3
        assert streak_bonus(count) == 1

    def test_missed_day_then_resume(self):
        count = next_streak_count(3, DAY, DAY + timedelta(days=2))
        assert count == 1
        assert streak_bonus(count) == 0

    @pytest.mark.parametrize("count,bonus", [
        (0, 0), (1, 0), (2, 0), (3, 1), (5, 1), (6, 2), (9, 3), (12, 3), (40, 3),
    ])
    def test_bonus_formula(self, count, bonus):
        assert streak_bonus(count) == bonus


class TestHealthBands:

    @pytest.mark.parametrize("health,phrase", [
        (-50, "perished"),
        (-10, "critically weak"),
        (10, "very weak"),
        (50, "feeling weak"),
        (90, "stable"),
        (110, "gaining strength"),
        (130, "significantly strengthened"),
        (160, "overwhelmingly powerful"),
    ])
    def test_describe_health(self, health, phrase):
        assert phrase in narrator.describe_health(health)

    def test_health_bar_bounds(self):
        assert narrator.health_bar_percent(-50) == 0.0
        assert narrator.health_bar_percent(-90) == 0.0
        assert narrator.health_bar_percent(200) == 100.0
        assert narrator.health_bar_percent(75) == pytest.approx(50.0)


class TestLocalToday:

    def test_unknown_timezone_falls_back_to_utc(self):
        assert local_today("Not/AZone") == local_today("UTC")

    def test_missing_timezone(self):
        assert local_today(None) == local_today("UTC")
