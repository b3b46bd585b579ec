from sqlalchemy import Column, Integer, String, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, TimestampMixin

PROJECT_STATUSES = ("backlog", "active", "completed", "paused", "canceled")
DEFAULT_COLOR = "#5E6AD2"


class Project(TimestampMixin, BaseModel, Base):
    __tablename__ = "projects"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    color = Column(String(7), nullable=True, default=DEFAULT_COLOR)

    owner = relationship("User", back_populates="projects")
    issues = relationship("Issue", back_populates="project",
                          cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('backlog', 'active', 'completed', 'paused', 'canceled')",
            name="ck_projects_status",
        ),
    )

    @property
    def owner_id(self):
        return self.user_id
