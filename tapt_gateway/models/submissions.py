"""
Submission Models
=================

Pydantic models for normalized public form submissions and the enums
shared with the admin handlers.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Union
from enum import Enum


class SubmissionKind(str, Enum):
    """Public form types (also the URL segment under /submit/)"""

    CONFERENCE_REGISTRATION = "conference-registration"
    TECH_CONFERENCE_REGISTRATION = "tech-conference-registration"
    HOF_NOMINATION = "hof-nomination"
    MEMBERSHIP = "membership"


class Region(str, Enum):
    EAST = "East"
    MIDDLE = "Middle"
    WEST = "West"


class MembershipType(str, Enum):
    INDIVIDUAL = "individual"
    DISTRICT = "district"
    VENDOR = "vendor"


class ReviewStatus(str, Enum):
    """Lifecycle of nominations and membership applications"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendeeInput(BaseModel):
    """Additional attendee listed on a registration"""

    first_name: str
    last_name: str
    email: str = Field(..., description="Lower-cased")


class RegistrationSubmission(BaseModel):
    """Conference / tech conference registration"""

    school_district: str
    first_name: str
    last_name: str
    street_address: str
    city: str
    state: str = Field(..., description="Two-letter code, upper-cased")
    zip_code: str = Field(..., description="12345 or 12345-6789")
    email: str = Field(..., description="Lower-cased")
    phone: str
    total_attendees: int = Field(..., ge=1, le=20)
    additional_attendees: List[AttendeeInput] = []
    captcha_token: Optional[str] = None  # never persisted


class NominationSubmission(BaseModel):
    """Hall of Fame nomination"""

    nominee_first_name: str
    nominee_last_name: str
    district: str
    years_of_service: int = Field(..., ge=0, le=100)
    is_tapt_member: bool = False
    nomination_reason: str = Field(..., max_length=500)
    supervisor_first_name: str
    supervisor_last_name: str
    supervisor_email: str = Field(..., description="Lower-cased")
    nominee_city: str
    region: Region


class MembershipSubmission(BaseModel):
    """Membership application"""

    first_name: str
    last_name: str
    email: str = Field(..., description="Lower-cased")
    phone: str
    organization: str
    position: str
    membership_type: MembershipType
    is_new_member: Union[bool, str]
    hear_about_us: Optional[str] = None
    interests: List[str] = Field(..., description="Non-empty, de-duplicated")
    agree_to_terms: bool
