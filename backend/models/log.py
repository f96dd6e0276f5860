from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from sqlalchemy.orm import relationship
from database import Base

# Outcome recorded with every audit entry
LOG_SUCCESS = "SUCCESS"
LOG_FAIL = "FAIL"
LOG_STATUSES = (LOG_SUCCESS, LOG_FAIL)


# One storefront event: who did what to which resource, and how it ended.
# Entries outlive the user that produced them (user_id is nulled, not cascaded).
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime, server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(50), nullable=False)   # e.g. CART_ADD, CHECKOUT
    resource = Column(String(50), nullable=False)  # e.g. cart, orders, products
    status = Column(String(20), nullable=False, default=LOG_SUCCESS)
    ip = Column(String(64), nullable=True)

    # Order ids, quantities, totals...
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

    __table_args__ = (
        # Admin log screen filters by resource and action together
        Index("ix_logs_resource_action", "resource", "action"),
        Index("ix_logs_status", "status"),
    )
