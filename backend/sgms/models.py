"""SQLAlchemy models.

Students, faculty and admins live in disjoint tables with their own primary key
spaces; the role of an account is the table it lives in.
"""
from sqlalchemy import (
    Boolean, Column, String, Integer, DateTime, Text,
    ForeignKey, CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


PRIORITIES = ("low", "medium", "high")
SENDER_TYPES = ("student", "faculty", "admin")


class Student(Base):
    """Student account."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    department = Column(String(100), nullable=True, index=True)
    contact = Column(String(15), nullable=True)
    enrollment_no = Column(String(50), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    grievances = relationship("Grievance", back_populates="student")


class Faculty(Base):
    """Faculty account."""
    __tablename__ = "faculty"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    department = Column(String(100), nullable=True)
    contact = Column(String(15), nullable=True)
    designation = Column(String(100), nullable=True)
    employee_id = Column(String(50), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    assigned_grievances = relationship("Grievance", back_populates="assigned_faculty")


class Admin(Base):
    """Administrator account."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    department = Column(String(100), nullable=True)
    contact = Column(String(15), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Category(Base):
    """Grievance category (admin-managed, deactivated instead of deleted)."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    department = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="chk_category_name_not_empty"),
    )


class Status(Base):
    """Grievance status reference data."""
    __tablename__ = "statuses"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False)
    color_code = Column(String(20), nullable=False, default="#9E9E9E")
    display_order = Column(Integer, nullable=False, default=0)


class Grievance(Base):
    """Student grievance tracked through the resolution workflow."""
    __tablename__ = "grievances"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("faculty.id"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("statuses.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    attachment_path = Column(String(500), nullable=True)
    priority = Column(String(10), nullable=False, default="medium", index=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(priority.in_(PRIORITIES), name="chk_grievance_priority"),
        Index("idx_grievances_priority_created", "priority", "created_at"),
    )

    # Relationships
    student = relationship("Student", back_populates="grievances")
    assigned_faculty = relationship("Faculty", back_populates="assigned_grievances")
    category = relationship("Category")
    status = relationship("Status")
    messages = relationship(
        "Message",
        back_populates="grievance",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )
    feedback = relationship(
        "Feedback",
        back_populates="grievance",
        cascade="all, delete-orphan",
        uselist=False,
    )


class Message(Base):
    """Append-only thread message on a grievance."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    grievance_id = Column(
        Integer,
        ForeignKey("grievances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id = Column(Integer, nullable=False)
    sender_type = Column(String(10), nullable=False)
    message_text = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(sender_type.in_(SENDER_TYPES), name="chk_message_sender_type"),
    )

    # Relationships
    grievance = relationship("Grievance", back_populates="messages")


class Feedback(Base):
    """Post-resolution feedback; at most one per grievance."""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True)
    grievance_id = Column(
        Integer,
        ForeignKey("grievances.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("grievance_id", name="uq_feedback_grievance"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="chk_feedback_rating"),
    )

    # Relationships
    grievance = relationship("Grievance", back_populates="feedback")


class Notification(Base):
    """Per-account notification produced by lifecycle transitions."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False)
    user_type = Column(String(10), nullable=False)
    grievance_id = Column(
        Integer,
        ForeignKey("grievances.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(user_type.in_(SENDER_TYPES), name="chk_notification_user_type"),
        Index("idx_notifications_recipient", "user_type", "user_id", "is_read"),
    )
