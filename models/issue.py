from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, TimestampMixin

ISSUE_STATUSES = ("backlog", "todo", "in_progress", "done", "canceled")


class Issue(TimestampMixin, BaseModel, Base):
    __tablename__ = "issues"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    # creator/assignee; ownership for access control goes through the project
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="todo")
    # 0 none, 1 low, 2 medium, 3 high, 4 urgent
    priority = Column(Integer, nullable=False, default=0)
    # naive UTC, like every other timestamp here
    due_date = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="issues")
    creator = relationship("User")
    comments = relationship("Comment", back_populates="issue",
                            cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("priority >= 0 AND priority <= 4", name="ck_issues_priority_range"),
        CheckConstraint(
            "status IN ('backlog', 'todo', 'in_progress', 'done', 'canceled')",
            name="ck_issues_status",
        ),
    )
