# staking_backend/staking.py
"""
Staking arithmetic: pool table, withdrawal fee and progress.

Pure functions only. Anything that touches the database lives in
``ledger.py`` / ``admin.py``.
"""
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import ValidationError

# pool type -> (duration in days, daily reward rate)
POOLS = {
    "30-day": (30, 0.004),
    "90-day": (90, 0.006),
    "180-day": (180, 0.008),
    "360-day": (360, 0.01),
}

WITHDRAWAL_FEE_RATE = 0.03


def _pool(pool_type: str):
    try:
        return POOLS[pool_type]
    except KeyError:
        raise ValidationError(
            f"Invalid staking pool '{pool_type}'. Allowed: {', '.join(POOLS)}."
        )


def daily_reward_rate(pool_type: str) -> float:
    return _pool(pool_type)[1]


def pool_duration_days(pool_type: str) -> int:
    return _pool(pool_type)[0]


def stake_end_date(start: datetime, pool_type: str) -> datetime:
    return start + timedelta(days=pool_duration_days(pool_type))


def withdrawal_fee(amount: float) -> float:
    return amount * WITHDRAWAL_FEE_RATE


def net_withdrawal(amount: float) -> float:
    return amount - withdrawal_fee(amount)


def stake_progress(stake) -> float:
    """
    Percentage of the pool completed, counted in reward distributions.

    A day on which no reward was distributed does not advance progress,
    whatever the calendar says.
    """
    duration = pool_duration_days(stake.pool_type)
    return min(100.0, (stake.rewards_distributed or 0) / duration * 100)


def distribute_reward(stake) -> float:
    """
    Credit one day of rewards to ``stake`` and return the amount credited.

    No de-duplication: two calls on the same day credit two days. The
    once-per-day window is enforced by the caller (see
    ``admin.distribute_user_rewards``).
    """
    reward = stake.amount * stake.daily_reward_rate
    stake.accumulated_rewards = (stake.accumulated_rewards or 0.0) + reward
    stake.rewards_distributed = (stake.rewards_distributed or 0) + 1
    return reward


def as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def days_remaining(end: Optional[datetime], now: Optional[datetime] = None) -> int:
    if end is None:
        return 0
    now = as_utc(now or datetime.now(timezone.utc))
    seconds = (as_utc(end) - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def time_progress(start: Optional[datetime], end: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Elapsed share of the calendar window, in percent."""
    if start is None or end is None:
        return 0.0
    start, end = as_utc(start), as_utc(end)
    now = as_utc(now or datetime.now(timezone.utc))
    if now >= end:
        return 100.0
    if now <= start:
        return 0.0
    return min(100.0, max(0.0, (now - start) / (end - start) * 100))


def token_value(tokens: float, price: float) -> float:
    return tokens * price
