"""Pydantic schemas for API."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


ROLE_PATTERN = "^(student|faculty|admin)$"
PRIORITY_PATTERN = "^(low|medium|high)$"
CONTACT_PATTERN = r"^\d{10,15}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# Account schemas
class AccountBase(BaseModel):
    name: str
    email: str
    department: Optional[str] = None
    contact: Optional[str] = None


class StudentResponse(AccountBase):
    id: int
    enrollment_no: str
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class FacultyResponse(AccountBase):
    id: int
    employee_id: str
    designation: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AdminResponse(AccountBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class StudentCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str
    enrollment_no: str = Field(min_length=1, max_length=50)
    department: Optional[str] = Field(default=None, max_length=100)
    contact: Optional[str] = Field(default=None, pattern=CONTACT_PATTERN)


class FacultyCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str
    employee_id: str = Field(min_length=1, max_length=50)
    department: Optional[str] = Field(default=None, max_length=100)
    designation: Optional[str] = Field(default=None, max_length=100)
    contact: Optional[str] = Field(default=None, pattern=CONTACT_PATTERN)


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    contact: Optional[str] = Field(default=None, pattern=CONTACT_PATTERN)
    is_active: Optional[bool] = None


class FacultyUpdate(StudentUpdate):
    designation: Optional[str] = Field(default=None, max_length=100)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    contact: Optional[str] = Field(default=None, pattern=CONTACT_PATTERN)


# Auth schemas
class LoginRequest(BaseModel):
    email: str
    password: str
    role: str = Field(pattern=ROLE_PATTERN)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# Reference data
class CategoryCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None
    department: Optional[str] = Field(default=None, max_length=100)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = None
    department: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    department: Optional[str] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class StatusResponse(BaseModel):
    id: int
    name: str
    color_code: str
    display_order: int
    model_config = ConfigDict(from_attributes=True)


# Grievance schemas
class GrievanceUpdate(BaseModel):
    status_id: Optional[int] = None
    resolution_notes: Optional[str] = None
    priority: Optional[str] = Field(default=None, pattern=PRIORITY_PATTERN)


class AssignRequest(BaseModel):
    faculty_id: int


class GrievanceResponse(BaseModel):
    """Joined grievance projection (status, category and people resolved)."""

    id: int
    title: str
    description: str
    priority: str
    attachment_path: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    student_id: int
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    enrollment_no: Optional[str] = None
    student_department: Optional[str] = None
    category_id: int
    category_name: Optional[str] = None
    status_id: int
    status_name: Optional[str] = None
    status_color: Optional[str] = None
    assigned_to: Optional[int] = None
    faculty_name: Optional[str] = None
    faculty_email: Optional[str] = None


class RecentGrievance(BaseModel):
    id: int
    title: str
    priority: str
    created_at: Optional[datetime] = None
    student_name: Optional[str] = None
    status_name: Optional[str] = None
    status_color: Optional[str] = None


# Messaging & feedback
class MessageCreate(BaseModel):
    message_text: str


class MessageResponse(BaseModel):
    id: int
    grievance_id: int
    sender_id: int
    sender_type: str
    sender_name: Optional[str] = None
    message_text: str
    is_read: bool
    created_at: Optional[datetime] = None


class FeedbackCreate(BaseModel):
    rating: int
    comments: Optional[str] = None


class FeedbackResponse(BaseModel):
    id: int
    grievance_id: int
    student_id: int
    rating: int
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# Notifications
class NotificationResponse(BaseModel):
    id: int
    grievance_id: Optional[int] = None
    message: str
    is_read: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
