import re
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from bootcamp_api.models.bootcamp import CAREERS

_URL_RE = re.compile(r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def _check_careers(value: List[str]) -> List[str]:
    if not value:
        raise ValueError("At least one career is required")
    unknown = [c for c in value if c not in CAREERS]
    if unknown:
        raise ValueError(f"Unknown careers: {', '.join(unknown)}")
    return list(dict.fromkeys(value))


def _check_website(value: str) -> str:
    if not _URL_RE.match(value):
        raise ValueError("Please use a valid URL with HTTP or HTTPS")
    return value


def _check_email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValueError("Please add a valid email")
    return value


Careers = Annotated[List[str], AfterValidator(_check_careers)]
Website = Annotated[str, AfterValidator(_check_website)]
Email = Annotated[str, AfterValidator(_check_email)]


class BootcampCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[Website] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[Email] = None
    address: str = Field(min_length=1)
    careers: Careers
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("name", "description", "address")
    @classmethod
    def strip_required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field must not be blank")
        return value


class BootcampUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[Website] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[Email] = None
    address: Optional[str] = Field(default=None, min_length=1)
    careers: Optional[Careers] = None
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None


class PhotoUploadInit(BaseModel):
    file_name: str
    mime_type: str
    size_bytes: int


class PhotoUploadInitResponse(BaseModel):
    method: str = "PRESIGNED_PUT"
    key: str
    presigned_url: str


class PhotoUploadComplete(BaseModel):
    key: str
