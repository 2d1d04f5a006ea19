# staking_backend/schemas.py
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

PoolType = Literal["30-day", "90-day", "180-day", "360-day"]
RequestStatus = Literal["pending", "approved", "rejected"]
UserType = Literal["Introducer", "Merchant", "Buyer"]
# NaN and Infinity parse as floats by default
FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


class CamelModel(BaseModel):
    # JSON uses camelCase; snake_case accepted on input too
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------- Auth ----------
class SignUpIn(CamelModel):
    email: EmailStr
    password: str


class SignInIn(CamelModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    user_id: str
    email: str
    role: Literal["user", "admin"]
    created_at: Optional[datetime] = None


class AuthOut(CamelModel):
    user: UserOut
    token: str


# ---------- Ledger ----------
class StakeOut(CamelModel):
    id: str
    pool_type: PoolType
    amount: float
    start_date: datetime
    end_date: datetime
    daily_reward_rate: float
    accumulated_rewards: float
    status: Literal["active", "completed"]
    rewards_distributed: int
    progress: float = 0.0
    time_progress: float = 0.0
    days_remaining: int = 0


class UserDataOut(CamelModel):
    user_id: str
    email: str
    role: str
    balance: float
    staked_balance: float
    total_rewards: float
    total_deposited: float
    total_withdrawn: float
    todays_reward: float
    last_reward_update: Optional[datetime] = None
    created_at: Optional[datetime] = None
    stakes: List[StakeOut] = []


class TransactionOut(CamelModel):
    id: str
    user_id: str
    type: Literal["deposit", "withdrawal", "stake", "unstake", "reward", "admin_credit"]
    amount: float
    status: str
    date: datetime
    description: str


# ---------- Requests ----------
class DepositCreate(CamelModel):
    amount: FiniteFloat
    txid: str
    email: Optional[EmailStr] = None
    user_type: UserType = "Buyer"


class DepositOut(CamelModel):
    id: str
    user_id: str
    user_email: str
    amount: float
    txid: str
    email: str
    user_type: UserType
    status: RequestStatus
    timestamp: datetime
    processed_at: Optional[datetime] = None


class WithdrawalCreate(CamelModel):
    amount: FiniteFloat
    destination_address: str


class WithdrawalOut(CamelModel):
    id: str
    user_id: str
    user_email: str
    amount: float
    fee: float
    net_amount: float
    destination_address: str
    status: RequestStatus
    timestamp: datetime
    processed_at: Optional[datetime] = None
    processed_date: Optional[datetime] = None


class StakingCreate(CamelModel):
    type: Literal["stake", "unstake"]
    amount: Optional[FiniteFloat] = None
    pool_type: Optional[PoolType] = None
    stake_id: Optional[str] = None


class StakingRequestOut(CamelModel):
    id: str
    user_id: str
    user_email: str
    type: Literal["stake", "unstake"]
    amount: float
    pool_type: Optional[PoolType] = None
    stake_id: Optional[str] = None
    status: RequestStatus
    timestamp: datetime
    processed_at: Optional[datetime] = None


class StatusUpdate(CamelModel):
    status: Literal["approved", "rejected"]


# ---------- Admin ----------
class CreditIn(CamelModel):
    user_id: str
    amount: FiniteFloat


class TokenPriceIn(CamelModel):
    price: FiniteFloat


class TokenPriceOut(CamelModel):
    price: float
    updated_at: datetime
    updated_by: str


class RewardDistributionOut(CamelModel):
    user_id: str
    total_reward: float
    stakes_updated: int


class StatsOut(CamelModel):
    total_users: int
    total_balance: float
    total_deposits: float
    total_withdrawals: float
    total_staked: float
    total_rewards_distributed: float
    active_stakes: int
    pending_deposits: int
    pending_withdrawals: int
    pending_staking: int
    current_token_price: float
