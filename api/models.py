"""
API request and response models for DevConnect REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
social/models.py, which own the internal domain representation. Route
handlers map between the two.

Request validators raise PydanticCustomError so each violation carries a
human-readable message. validate_default=True makes "missing" and "empty"
fail the same validator, and the handler in api/main.py reports every
violation at once as {"errors": [{msg, param, location}, ...]}.
"""

import re
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from auth.models import User
from social.models import Comment, Education, Experience, Post, Profile, ProfilePatch, Social

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt refuses input over 72 bytes of UTF-8, which is fewer than 72
# characters once a password holds multibyte characters.
_MAX_PASSWORD = 72


def _required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise PydanticCustomError("required", message)
    return value


def _bcrypt_sized(value: str) -> str:
    if len(value.encode("utf-8")) > _MAX_PASSWORD:
        raise PydanticCustomError("max_length", "Password cannot be longer than 72 bytes")
    return value


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_skills(skills: Union[str, list[str], None]) -> Optional[list[str]]:
    """Split a comma list ("python, go") into trimmed skill names. None stays None."""
    if skills is None:
        return None
    items = skills.split(",") if isinstance(skills, str) else skills
    parsed = [s.strip() for s in items if s and s.strip()]
    return parsed or None


# ---------------------------------------------------------------------------
# Request models -- auth and users
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/users."""

    model_config = ConfigDict(validate_default=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=_MAX_PASSWORD)

    @field_validator("name")
    @classmethod
    def name_required(cls, value: Optional[str]) -> str:
        return _required(value, "Name is required").strip()

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: Optional[str]) -> str:
        if value is None or not EMAIL_PATTERN.match(value.strip()):
            raise PydanticCustomError("email", "Please include a valid email")
        return value.strip()

    @field_validator("password")
    @classmethod
    def password_length(cls, value: Optional[str]) -> str:
        if value is None or len(value) < 6:
            raise PydanticCustomError("min_length", "Please enter a password with 6 or more characters")
        return _bcrypt_sized(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth."""

    model_config = ConfigDict(validate_default=True)

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=_MAX_PASSWORD)

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: Optional[str]) -> str:
        if value is None or not EMAIL_PATTERN.match(value.strip()):
            raise PydanticCustomError("email", "Please enter a valid email")
        return value.strip()

    @field_validator("password")
    @classmethod
    def password_present(cls, value: Optional[str]) -> str:
        if value is None:
            raise PydanticCustomError("required", "Password required")
        return _bcrypt_sized(value)


# ---------------------------------------------------------------------------
# Request models -- posts
# ---------------------------------------------------------------------------


class TextBody(BaseModel):
    """Request body for POST /api/posts and POST /api/posts/comment/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    text: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("text")
    @classmethod
    def text_required(cls, value: Optional[str]) -> str:
        return _required(value, "Text is required")


# ---------------------------------------------------------------------------
# Request models -- profile
# ---------------------------------------------------------------------------


class ProfileUpsert(BaseModel):
    """Request body for POST /api/profile.

    Every field is optional at this layer. Empty strings count as "not
    supplied". Whether status and skills are required depends on whether the
    caller already has a profile, which only social.actions.save_profile()
    can know.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    status: Optional[str] = Field(default=None, max_length=255)
    skills: Union[str, list[str], None] = None
    company: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=5000)
    githubusername: Optional[str] = Field(default=None, max_length=39)
    youtube: Optional[str] = Field(default=None, max_length=255)
    facebook: Optional[str] = Field(default=None, max_length=255)
    twitter: Optional[str] = Field(default=None, max_length=255)
    instagram: Optional[str] = Field(default=None, max_length=255)
    linkedin: Optional[str] = Field(default=None, max_length=255)

    def to_patch(self) -> ProfilePatch:
        return ProfilePatch(
            status=_blank_to_none(self.status),
            company=_blank_to_none(self.company),
            website=_blank_to_none(self.website),
            location=_blank_to_none(self.location),
            bio=_blank_to_none(self.bio),
            githubusername=_blank_to_none(self.githubusername),
            skills=parse_skills(self.skills),
            social=Social(
                youtube=_blank_to_none(self.youtube),
                facebook=_blank_to_none(self.facebook),
                twitter=_blank_to_none(self.twitter),
                instagram=_blank_to_none(self.instagram),
                linkedin=_blank_to_none(self.linkedin),
            ),
        )


class ExperienceCreate(BaseModel):
    """Request body for PUT /api/profile/experience. Dates arrive as "from"/"to"."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True, populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    from_date: Optional[str] = Field(default=None, alias="from", max_length=32)
    to_date: Optional[str] = Field(default=None, alias="to", max_length=32)
    location: Optional[str] = Field(default=None, max_length=255)
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("title")
    @classmethod
    def title_required(cls, value: Optional[str]) -> str:
        return _required(value, "Title is required")

    @field_validator("company")
    @classmethod
    def company_required(cls, value: Optional[str]) -> str:
        return _required(value, "Company is required")

    @field_validator("from_date")
    @classmethod
    def from_required(cls, value: Optional[str]) -> str:
        return _required(value, "From date is required")

    def to_domain(self) -> Experience:
        return Experience(
            title=self.title,
            company=self.company,
            from_date=self.from_date,
            to_date=_blank_to_none(self.to_date),
            location=_blank_to_none(self.location),
            current=self.current,
            description=_blank_to_none(self.description),
        )


class EducationCreate(BaseModel):
    """Request body for PUT /api/profile/education."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True, populate_by_name=True)

    school: Optional[str] = Field(default=None, max_length=255)
    degree: Optional[str] = Field(default=None, max_length=255)
    fieldofstudy: Optional[str] = Field(default=None, max_length=255)
    from_date: Optional[str] = Field(default=None, alias="from", max_length=32)
    to_date: Optional[str] = Field(default=None, alias="to", max_length=32)
    current: bool = False
    description: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("school")
    @classmethod
    def school_required(cls, value: Optional[str]) -> str:
        return _required(value, "School is required")

    @field_validator("degree")
    @classmethod
    def degree_required(cls, value: Optional[str]) -> str:
        return _required(value, "Degree is required")

    @field_validator("fieldofstudy")
    @classmethod
    def fieldofstudy_required(cls, value: Optional[str]) -> str:
        return _required(value, "Field of study is required")

    @field_validator("from_date")
    @classmethod
    def from_required(cls, value: Optional[str]) -> str:
        return _required(value, "From date is required")

    def to_domain(self) -> Education:
        return Education(
            school=self.school,
            degree=self.degree,
            fieldofstudy=self.fieldofstudy,
            from_date=self.from_date,
            to_date=_blank_to_none(self.to_date),
            current=self.current,
            description=_blank_to_none(self.description),
        )


def _wire_names(*models: type[BaseModel]) -> dict[str, str]:
    return {name: f.alias for m in models for name, f in m.model_fields.items() if f.alias}


# Errors raised while validating a missing field's default carry the Python
# field name in loc, not the alias the client sent. The error handler maps
# them back through this table.
REQUEST_FIELD_ALIASES: dict[str, str] = _wire_names(ExperienceCreate, EducationCreate)


# ---------------------------------------------------------------------------
# Response models -- auth and users
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    msg: str


class UserResponse(BaseModel):
    """The caller's own account. The password hash is never part of this model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    avatar: str
    date: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, avatar=user.avatar, date=user.date or "")


class UserSummary(BaseModel):
    """Owner name and avatar joined onto a profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    avatar: str


# ---------------------------------------------------------------------------
# Response models -- posts
# ---------------------------------------------------------------------------


class LikeOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: str


class CommentOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user: str
    text: str
    name: str
    avatar: str
    date: str

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentOut":
        return cls(
            id=comment.id,
            user=comment.user,
            text=comment.text,
            name=comment.name,
            avatar=comment.avatar,
            date=comment.date,
        )


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user: str
    text: str
    name: str
    avatar: str
    likes: list[LikeOut]
    comments: list[CommentOut]
    date: str

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Build a PostResponse from a social.models.Post.

        Factory Method: the mapping lives beside the output model rather than
        being repeated in each route handler.
        """
        return cls(
            id=post.id,
            user=post.user,
            text=post.text,
            name=post.name,
            avatar=post.avatar,
            likes=[LikeOut(user=like.user) for like in post.likes],
            comments=[CommentOut.from_comment(c) for c in post.comments],
            date=post.date,
        )


# ---------------------------------------------------------------------------
# Response models -- profile
# ---------------------------------------------------------------------------


class SocialOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    youtube: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None


class ExperienceOut(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    company: str
    location: Optional[str] = None
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = None


class EducationOut(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    school: str
    degree: str
    fieldofstudy: str
    from_date: str = Field(alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    current: bool = False
    description: Optional[str] = None


class ProfileResponse(BaseModel):
    """A profile with its owner's name and avatar joined in.

    user is None only when the owner record has been deleted out from under
    the profile.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user: Optional[UserSummary]
    status: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    githubusername: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    social: SocialOut = Field(default_factory=SocialOut)
    experience: list[ExperienceOut] = Field(default_factory=list)
    education: list[EducationOut] = Field(default_factory=list)
    date: str = ""

    @classmethod
    def from_profile(cls, profile: Profile, owner: Optional[User]) -> "ProfileResponse":
        return cls(
            id=profile.id,
            user=UserSummary(id=owner.id, name=owner.name, avatar=owner.avatar) if owner else None,
            status=profile.status,
            company=profile.company,
            website=profile.website,
            location=profile.location,
            bio=profile.bio,
            githubusername=profile.githubusername,
            skills=profile.skills,
            social=SocialOut(**vars(profile.social)),
            experience=[ExperienceOut(**vars(e)) for e in profile.experience],
            education=[EducationOut(**vars(e)) for e in profile.education],
            date=profile.date,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    msg: str
    param: Optional[str] = None
    location: Optional[str] = None


class ErrorsResponse(BaseModel):
    """Envelope for validation failures: every violation, not just the first."""

    model_config = ConfigDict(frozen=True)

    errors: list[FieldError]


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
