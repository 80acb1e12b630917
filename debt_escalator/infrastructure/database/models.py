"""SQLAlchemy ORM models for debts and their audit trails"""

from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, String
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Debt(Base):
    """Tracked debt balance, provisioned out of band"""

    __tablename__ = "debts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    balance = Column(BigInteger, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
    last_mutation = Column(String(16), nullable=True)  # increment | payment

    debt_history = relationship("DebtHistory", back_populates="debt", cascade="all, delete-orphan")
    payment_history = relationship("PaymentHistory", back_populates="debt", cascade="all, delete-orphan")


class DebtHistory(Base):
    """Balance value recorded after each increment or payment"""

    __tablename__ = "debt_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    debt_id = Column(Integer, ForeignKey("debts.id", ondelete="CASCADE"), nullable=False, index=True)
    balance = Column(BigInteger, nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    debt = relationship("Debt", back_populates="debt_history")


class PaymentHistory(Base):
    """Amount paid against a debt"""

    __tablename__ = "payment_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    debt_id = Column(Integer, ForeignKey("debts.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    debt = relationship("Debt", back_populates="payment_history")
