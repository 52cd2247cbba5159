"""Goal progress tracking and milestone events.

Each check compares a goal's current percent with the percent persisted on
the previous check (``FinancialGoal.last_checked_percent``). Every milestone
threshold crossed in between fires exactly one event, so checking the same
data twice never repeats a celebration or a completion.
"""

import logging
import math
from datetime import datetime

from .errors import GoalNotFoundError
from .models import (
    FinancialGoal,
    GoalCheckResult,
    GoalMilestones,
    GoalProgress,
    MilestoneEvent,
    MilestoneStatus,
)

logger = logging.getLogger(__name__)

THRESHOLDS = (25, 50, 75, 100)
MILESTONE_LEVELS = {25: "25% Milestone", 50: "50% Halfway Mark", 75: "75% Almost There", 100: "100% Goal Complete"}

ON_TRACK_FACTOR = 0.9
AHEAD_FACTOR = 1.2
AT_RISK_DAYS = 60
AT_RISK_MAX_PERCENT = 90


def milestone_level(percent: float) -> str | None:
    if percent >= 100:
        return "complete"
    if percent >= 75:
        return "75%"
    if percent >= 50:
        return "50%"
    if percent >= 25:
        return "25%"
    return None


def celebration_message(milestone: str, title: str, percent: float) -> str:
    messages = {
        "25%": f'Quarter way there! You\'ve saved 25% for "{title}". Momentum is building.',
        "50%": f'Halfway point! You\'re 50% towards "{title}". The finish line is in sight.',
        "75%": f'Three quarters done! You\'re at 75% for "{title}". Almost there, keep pushing.',
        "complete": f'GOAL ACHIEVED! "{title}" is complete at {percent:.1f}%. Celebrate this win.',
    }
    return messages.get(milestone, f'Great start on "{title}". Every dollar saved brings you closer.')


def motivational_message(percent: float, on_track: bool, days_remaining: int) -> str:
    if percent >= 100:
        return "Incredible discipline! Time to set your next ambitious goal and keep the momentum going."

    if on_track:
        if percent >= 75:
            return f"You're crushing it! Just {100 - percent:.1f}% to go. The finish line is within reach!"
        if percent >= 50:
            return "Excellent progress! You're on pace to hit your goal. Stay consistent with your contributions."
        if percent >= 25:
            return "Solid foundation! You're on track. Keep up the steady contributions to reach your goal on time."
        return "Great start! You're on schedule. Consistency is key, so stick to your monthly savings plan."

    remaining = 100 - percent
    if days_remaining < 30:
        return f"{days_remaining} days left, {remaining:.1f}% to go. Consider a final push or adjust the timeline."
    if days_remaining < 90:
        return (
            f"Behind schedule with {days_remaining} days left. Increase monthly contributions "
            "by 50% to hit the target."
        )
    return "Behind pace but recoverable. Reassess and increase monthly contributions to get back on track."


def next_milestone(percent: float) -> str:
    if percent >= 100:
        return "Goal achieved"
    if percent >= 75:
        return "Next: 100% completion"
    if percent >= 50:
        return "Next: 75% milestone"
    if percent >= 25:
        return "Next: 50% halfway mark"
    return "Next: 25% first milestone"


def percent_complete(goal: FinancialGoal) -> float:
    if goal.target_amount <= 0:
        return 100.0 if goal.current_amount > 0 else 0.0
    return goal.current_amount / goal.target_amount * 100


def expected_progress(goal: FinancialGoal, now: datetime) -> float:
    """Percent of the goal's time window that has elapsed."""
    total = (goal.target_date - goal.created_at).total_seconds()
    if total <= 0:
        return 0.0
    return (now - goal.created_at).total_seconds() / total * 100


def evaluate_goal(goal: FinancialGoal, now: datetime) -> tuple[GoalProgress, float]:
    """Progress snapshot for one goal, plus its expected progress."""
    percent = percent_complete(goal)
    days_remaining = math.ceil((goal.target_date - now).total_seconds() / 86400)
    months_remaining = max(1, days_remaining / 30)
    remaining = goal.target_amount - goal.current_amount
    expected = expected_progress(goal, now)
    on_track = percent >= expected * ON_TRACK_FACTOR
    milestone = milestone_level(percent)

    progress = GoalProgress(
        goal_id=goal.id,
        goal_title=goal.title,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        percent_complete=percent,
        milestone=milestone,
        days_remaining=days_remaining,
        target_date=goal.target_date,
        is_on_track=on_track,
        required_monthly_contribution=max(0.0, remaining / months_remaining),
        celebration=celebration_message(milestone, goal.title, percent) if milestone else None,
        motivational_message=motivational_message(percent, on_track, days_remaining),
        next_milestone=next_milestone(percent),
    )
    return progress, expected


def crossing_events(goal: FinancialGoal, previous: float, current: float) -> list[MilestoneEvent]:
    """One event per threshold in ``(previous, current]``."""
    events = []
    remaining = goal.target_amount - goal.current_amount
    saved = f"${goal.current_amount:,.0f} of ${goal.target_amount:,.0f}"

    for threshold in THRESHOLDS:
        if not previous < threshold <= current:
            continue
        if threshold == 100:
            events.append(
                MilestoneEvent(
                    type="goal_completed",
                    goal_id=goal.id,
                    goal_title=goal.title,
                    message=f'GOAL ACHIEVED. "{goal.title}" complete. Celebrate this incredible achievement.',
                )
            )
            continue

        messages = {
            25: f"25% milestone reached. You've saved {saved}.",
            50: f"Halfway there. You've saved {saved}.",
            75: f"75% complete. Just ${remaining:,.0f} left.",
        }
        events.append(
            MilestoneEvent(
                type="milestone_reached",
                goal_id=goal.id,
                goal_title=goal.title,
                message=messages[threshold],
            )
        )
    return events


def state_events(goal: FinancialGoal, progress: GoalProgress, expected: float) -> list[MilestoneEvent]:
    """At-risk and ahead-of-schedule events; these repeat on every check while true."""
    events = []
    percent = progress.percent_complete

    if not progress.is_on_track and progress.days_remaining < AT_RISK_DAYS and percent < AT_RISK_MAX_PERCENT:
        events.append(
            MilestoneEvent(
                type="goal_at_risk",
                goal_id=goal.id,
                goal_title=goal.title,
                message=f'"{goal.title}" is {100 - percent:.1f}% short with {progress.days_remaining} days left',
                action_required=(
                    f"Increase monthly savings to ${progress.required_monthly_contribution:,.0f} to stay on track"
                ),
            )
        )

    if percent > expected * AHEAD_FACTOR and percent < 100:
        months_early = math.floor((percent - expected) / 10)
        events.append(
            MilestoneEvent(
                type="ahead_of_schedule",
                goal_id=goal.id,
                goal_title=goal.title,
                message=f'You\'re ahead of schedule on "{goal.title}".',
                action_required=f"You could reach this goal {months_early} months early.",
            )
        )
    return events


def check_goal_progress(storage, user_id: str, now: datetime | None = None) -> GoalCheckResult:
    """Progress for every active goal plus the events this check produced.

    Persists each goal's current percent, and marks goals that reach 100% as
    completed.
    """
    now = now or datetime.now()
    result = GoalCheckResult()

    for goal in storage.get_financial_goals(user_id):
        if goal.status != "active":
            continue

        progress, expected = evaluate_goal(goal, now)
        current = progress.percent_complete
        previous = goal.last_checked_percent or 0.0

        events = crossing_events(goal, previous, current)
        events.extend(state_events(goal, progress, expected))

        updates: dict = {"last_checked_percent": current}
        if any(e.type == "goal_completed" for e in events):
            updates["status"] = "completed"
            logger.info("Goal %s completed", goal.id)
        storage.update_financial_goal(goal.id, updates)

        result.progress.append(progress)
        result.events.extend(events)

    return result


def get_goal_milestones(storage, goal_id: str) -> GoalMilestones:
    """The four fixed milestones of one goal with reached flags.

    Raises:
        GoalNotFoundError: no goal with ``goal_id``.
    """
    goal = storage.get_financial_goal(goal_id)
    if goal is None:
        raise GoalNotFoundError(goal_id)

    percent = percent_complete(goal)
    return GoalMilestones(
        goal_title=goal.title,
        milestones=[
            MilestoneStatus(
                level=MILESTONE_LEVELS[threshold],
                target_amount=goal.target_amount * threshold / 100,
                reached=percent >= threshold,
                percent_complete=min(percent, threshold),
            )
            for threshold in THRESHOLDS
        ],
    )
