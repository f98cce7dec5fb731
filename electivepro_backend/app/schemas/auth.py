from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Student self-signup into the institution resolved from the request host."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    student_number: str | None = None
    degree_id: int | None = None
    group_id: int | None = None
    program_id: int | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str
    institution_id: int | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
