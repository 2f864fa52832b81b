"""
Monster Narration

Turns tracker outcomes into the short notification texts the pages show,
plus the health band and health bar helpers.
Uses templates - numbers only, no internal state names.
"""
from fiber_friends.config import settings
from fiber_friends.models.schemas import RecoveryOutcome, DamageOutcome, RetirementOutcome


# Recovery templates, spoken by the monster
RECOVERY_LINES = [
    "Heh. While you were resting, I regained {amount} health. Now at {health:.1f}%.",
    "While you were sleeping, I felt a surge! Gained {amount} health. Now at {health:.1f}%.",
    "{name} recovered {amount} health overnight! Current health: {health:.1f}%.",
]

DAMAGE_LINES = [
    "{name} feels a pang! {label} dealt {total} damage (Base: {base}, Streak: {bonus}). Its health: {health:.1f}%.",
    "{name} flinches at {label}: {total} damage (Base: {base}, Streak: {bonus}). Health now {health:.1f}%.",
]

RETIREMENT_LINE = (
    "{name} dissolves! Its negativity couldn't withstand {cause}. "
    "Final health: {health:.1f}%. A new presence begins to form..."
)

ALREADY_COMPLETED_LINE = "Already counted today. Come back tomorrow to keep the streak going."

# Streak milestones get an extra line every STREAK_DAYS_PER_BONUS days
STREAK_MILESTONE_LINE = " {count}-day streak!"


def _pick(templates: list[str], seed: float) -> str:
    """Pick a template consistently for the same value."""
    return templates[int(abs(seed) * 10) % len(templates)]


def describe_health(health: float) -> str:
    """
    Health band for display.

    Args:
        health: Current monster health.

    Returns:
        Short status phrase.
    """
    initial_min = settings.INITIAL_HEALTH_MIN
    initial_max = settings.INITIAL_HEALTH_MAX
    max_health = settings.MAX_MONSTER_HEALTH

    if health <= settings.MONSTER_DEATH_THRESHOLD:
        return "Your monster has perished!"
    if health < 0:
        return f"Your monster is critically weak at {health:.1f}%!"
    if health < 20:
        return "Your monster is very weak!"
    if health < initial_min:
        return "Your monster is feeling weak!"
    if health > max_health - (max_health - initial_max) / 2:
        return "Your monster is overwhelmingly powerful!"
    if health > initial_max + 20:
        return "Your monster is significantly strengthened!"
    if health > initial_max:
        return "Your monster is gaining strength."
    return "Your monster's health is stable."


def health_bar_percent(health: float) -> float:
    """Position of health between the death threshold and max, 0-100."""
    threshold = settings.MONSTER_DEATH_THRESHOLD
    span = settings.MAX_MONSTER_HEALTH - threshold
    percent = (health - threshold) / span * 100
    return max(0.0, min(percent, 100.0))


def recovery_message(name: str, outcome: RecoveryOutcome) -> str:
    if not outcome.applied:
        return f"{name} has already recovered today."
    template = _pick(RECOVERY_LINES, outcome.health_after)
    return template.format(name=name, amount=outcome.amount, health=outcome.health_after)


def damage_message(name: str, label: str, outcome: DamageOutcome) -> str:
    if outcome.already_completed:
        return ALREADY_COMPLETED_LINE

    template = _pick(DAMAGE_LINES, outcome.health_after or 0.0)
    message = template.format(
        name=name,
        label=label[:1].upper() + label[1:],
        total=outcome.total_damage,
        base=outcome.base_damage,
        bonus=outcome.bonus_damage,
        health=outcome.health_after,
    )
    if outcome.points_awarded:
        message += f" You earned {outcome.points_awarded} points."

    count = outcome.streak_count
    if count >= settings.STREAK_DAYS_PER_BONUS and count % settings.STREAK_DAYS_PER_BONUS == 0:
        message += STREAK_MILESTONE_LINE.format(count=count)
    return message


def retirement_message(outcome: RetirementOutcome) -> str:
    return RETIREMENT_LINE.format(name=outcome.name, cause=outcome.cause, health=outcome.final_health)
