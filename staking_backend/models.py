# staking_backend/models.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, Date, Text, ForeignKey
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    user_id = Column(String(5), primary_key=True)                # 00001, 00002, ...
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)               # bcrypt
    role = Column(String, nullable=False, default="user")        # user | admin
    created_at = Column(DateTime(timezone=True), default=utcnow)

    ledger = relationship("Ledger", uselist=False, back_populates="user")


class Ledger(Base):
    __tablename__ = "ledgers"
    user_id = Column(String(5), ForeignKey("users.user_id"), primary_key=True)
    balance = Column(Float, nullable=False, default=0.0)         # available tokens
    staked_balance = Column(Float, nullable=False, default=0.0)
    total_rewards = Column(Float, nullable=False, default=0.0)
    total_deposited = Column(Float, nullable=False, default=0.0)
    total_withdrawn = Column(Float, nullable=False, default=0.0)  # net of fees
    todays_reward = Column(Float, nullable=False, default=0.0)
    last_reward_update = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="ledger")
    stakes = relationship("Stake", order_by="Stake.start_date", lazy="selectin")


class Stake(Base):
    __tablename__ = "stakes"
    id = Column(String, primary_key=True)
    user_id = Column(String(5), ForeignKey("ledgers.user_id"), index=True, nullable=False)
    pool_type = Column(String, nullable=False)                   # 30-day | 90-day | 180-day | 360-day
    amount = Column(Float, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    daily_reward_rate = Column(Float, nullable=False)
    accumulated_rewards = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="active")   # active | completed
    rewards_distributed = Column(Integer, nullable=False, default=0)
    last_distributed_on = Column(Date)                           # UTC day of last bulk distribution


class DepositRequest(Base):
    __tablename__ = "deposit_requests"
    id = Column(String, primary_key=True)
    user_id = Column(String(5), index=True, nullable=False)
    user_email = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    txid = Column(String, nullable=False)
    email = Column(String, nullable=False)
    user_type = Column(String, nullable=False, default="Buyer")  # Introducer | Merchant | Buyer
    status = Column(String, index=True, nullable=False, default="pending")
    timestamp = Column(DateTime(timezone=True), default=utcnow)
    processed_at = Column(DateTime(timezone=True))


class WithdrawalRequest(Base):
    __tablename__ = "withdrawal_requests"
    id = Column(String, primary_key=True)
    user_id = Column(String(5), index=True, nullable=False)
    user_email = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    fee = Column(Float, nullable=False)
    net_amount = Column(Float, nullable=False)
    destination_address = Column(String, nullable=False)
    status = Column(String, index=True, nullable=False, default="pending")
    timestamp = Column(DateTime(timezone=True), default=utcnow)
    processed_at = Column(DateTime(timezone=True))
    processed_date = Column(DateTime(timezone=True))             # payout ETA, processed_at + 24h


class StakingRequest(Base):
    __tablename__ = "staking_requests"
    id = Column(String, primary_key=True)
    user_id = Column(String(5), index=True, nullable=False)
    user_email = Column(String, nullable=False)
    type = Column(String, nullable=False)                        # stake | unstake
    amount = Column(Float, nullable=False)
    pool_type = Column(String)
    stake_id = Column(String)
    status = Column(String, index=True, nullable=False, default="pending")
    timestamp = Column(DateTime(timezone=True), default=utcnow)
    processed_at = Column(DateTime(timezone=True))


class Transaction(Base):
    __tablename__ = "transactions"
    id = Column(String, primary_key=True)
    user_id = Column(String(5), index=True, nullable=False)
    type = Column(String, nullable=False)                        # deposit | withdrawal | stake | unstake | reward | admin_credit
    amount = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="completed")
    date = Column(DateTime(timezone=True), default=utcnow)
    description = Column(Text, nullable=False, default="")


class Setting(Base):
    __tablename__ = "settings"
    key = Column(String, primary_key=True)                       # token_price | system_initialized
    value = Column(Text, nullable=False)                         # JSON string


class Counter(Base):
    __tablename__ = "counters"
    name = Column(String, primary_key=True)                      # user_counter
    value = Column(Integer, nullable=False, default=0)
