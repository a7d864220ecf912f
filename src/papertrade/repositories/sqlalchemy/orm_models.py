"""SQLAlchemy ORM model definitions."""

from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from papertrade.repositories.sqlalchemy.database import Base
from papertrade.domain.models.enums import OptionType, TransactionType


class PortfolioORM(Base):
    """SQLAlchemy model for an owner's portfolio document."""

    __tablename__ = "portfolios"

    owner_id = Column(String(128), primary_key=True)
    # Portfolio aggregate (cash, holdings, option holdings) as JSON
    portfolio_json = Column(Text, nullable=False)
    created_at_est = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at_est = Column(DateTime, nullable=True)

    transactions = relationship(
        "TransactionORM",
        back_populates="portfolio",
        order_by="TransactionORM.position",
    )


class TransactionORM(Base):
    """SQLAlchemy model for Transaction (append-only log entry)."""

    __tablename__ = "transactions"

    txn_id = Column(String(36), primary_key=True)
    owner_id = Column(String(128), ForeignKey("portfolios.owner_id"), nullable=False, index=True)
    # Index in the owner's log; preserves append order
    position = Column(Integer, nullable=False)
    txn_time_est = Column(DateTime, nullable=False)
    txn_type = Column(SqlEnum(TransactionType), nullable=False)
    symbol = Column(String(20), nullable=False)
    quantity = Column(Numeric(precision=18, scale=8), nullable=False)
    price = Column(Numeric(precision=18, scale=6), nullable=False)
    total_amount = Column(Numeric(precision=18, scale=6), nullable=False)
    realized_pnl = Column(Numeric(precision=18, scale=6), nullable=True)
    option_symbol = Column(String(40), nullable=True)
    option_type = Column(SqlEnum(OptionType), nullable=True)
    strike = Column(Numeric(precision=18, scale=4), nullable=True)
    created_at_est = Column(DateTime, nullable=False, default=datetime.utcnow)

    portfolio = relationship("PortfolioORM", back_populates="transactions")
