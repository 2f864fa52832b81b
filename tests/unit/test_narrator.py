"""
Unit tests for outcome narration.
"""
from datetime import datetime

from fiber_friends.models.schemas import RecoveryOutcome, DamageOutcome, RetirementOutcome
from fiber_friends.services import narrator


def test_recovery_message_mentions_amount():
    outcome = RecoveryOutcome(applied=True, amount=14, health_before=50, health_after=64)

    message = narrator.recovery_message("Grumblefluff", outcome)

    assert "14" in message
    assert "64.0%" in message


def test_recovery_message_when_skipped():
    outcome = RecoveryOutcome(applied=False, health_before=50, health_after=50)

    assert "already recovered" in narrator.recovery_message("Grumblefluff", outcome)


def test_damage_message_breakdown():
    outcome = DamageOutcome(
        category="kindness", base_damage=2, bonus_damage=1, total_damage=3,
        health_before=90, health_after=87, streak_count=4, points_awarded=15,
    )

    message = narrator.damage_message("Grumblefluff", "the power of kindness", outcome)

    assert "Grumblefluff" in message
    assert "Base: 2, Streak: 1" in message
    assert "15 points" in message
    assert "streak!" not in message


def test_damage_message_streak_milestone():
    outcome = DamageOutcome(
        category="kindness", base_damage=2, bonus_damage=2, total_damage=4,
        health_before=90, health_after=86, streak_count=6,
    )

    message = narrator.damage_message("Grumblefluff", "the power of kindness", outcome)

    assert "6-day streak!" in message


def test_already_completed_message():
    outcome = DamageOutcome(category="kindness", already_completed=True)

    assert narrator.damage_message("Grumblefluff", "kindness", outcome) == narrator.ALREADY_COMPLETED_LINE


def test_retirement_message():
    outcome = RetirementOutcome(
        name="Itchbeast", cause="a solved riddle", final_health=-53, died_at=datetime(2024, 5, 10),
    )

    message = narrator.retirement_message(outcome)

    assert message.startswith("Itchbeast dissolves!")
    assert "a solved riddle" in message
    assert "-53.0%" in message
