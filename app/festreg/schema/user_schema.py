from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
import re

VALID_YEARS = ["1st", "2nd", "3rd", "4th", "Graduate", "Other"]


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    college: Optional[str] = None
    year: Optional[str] = None
    branch: Optional[str] = None
    phone_number: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_blank(cls, v, info):
        if v is not None and not v.strip():
            label = "First name" if info.field_name == "first_name" else "Last name"
            raise ValueError(f"{label} is required")
        return v.strip() if v is not None else v

    @field_validator("college", "branch")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if v is not None else v

    @field_validator("year")
    @classmethod
    def year_in_list(cls, v):
        if v is not None and v not in VALID_YEARS:
            raise ValueError(f"Year must be one of: {', '.join(VALID_YEARS)}")
        return v

    @field_validator("phone_number")
    @classmethod
    def phone_ten_digits(cls, v):
        if v and not re.match(r"^[0-9]{10}$", v):
            raise ValueError("Phone number must be exactly 10 digits")
        return v


# ------------------ Identity provider webhook payload ------------------

class EmailVerification(BaseModel):
    status: str = ""


class EmailAddress(BaseModel):
    email_address: str
    verification: Optional[EmailVerification] = None


class IdentityUserData(BaseModel):
    id: str
    email_addresses: List[EmailAddress] = []
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    unsafe_metadata: Optional[dict] = None

    class Config:
        extra = "ignore"

    def verified_email(self):
        for address in self.email_addresses:
            if address.verification and address.verification.status == "verified":
                return address.email_address.lower()
        return None


class IdentityEvent(BaseModel):
    type: str
    data: IdentityUserData

    class Config:
        extra = "ignore"


class UserSearch(BaseModel):
    email: Optional[str] = None

    class Config:
        extra = "ignore"
