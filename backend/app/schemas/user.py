from pydantic import BaseModel, EmailStr, Field, field_validator
from app.api.validation import password_problems


class UserRegister(BaseModel):
    username: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        problems = password_problems(v)
        if problems:
            raise ValueError(f"Password must contain {', '.join(problems)}")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UsernameUpdate(BaseModel):
    username: str = Field(min_length=1, max_length=255)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a username")
        return v


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    is_admin: bool = Field(serialization_alias="isAdmin")

    class Config:
        from_attributes = True
