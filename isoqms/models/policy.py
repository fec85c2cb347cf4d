"""
Policy Model
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey
from isoqms.database import Base
from isoqms.models.mixins import ProjectScopedMixin
import enum


class PolicyStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    PUBLISHED = "published"
    OBSOLETE = "obsolete"


class Policy(ProjectScopedMixin, Base):
    __tablename__ = "policies"

    code = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    status = Column(String(20), default=PolicyStatus.DRAFT.value, nullable=False, index=True)
    version = Column(String(20), default="1.0", nullable=False)
    content = Column(Text, nullable=True)

    reviewer_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approver_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    next_review_date = Column(Date, nullable=True)

    def __repr__(self):
        return f"<Policy {self.code} v{self.version}>"
