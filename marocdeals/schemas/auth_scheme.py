from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


class VerificationRequest(BaseModel):
    identity: EmailStr = Field(..., validation_alias=AliasChoices("identity", "email"))

    model_config = ConfigDict(
        json_schema_extra={"example": {"identity": "user@example.com"}}
    )


class VerificationCheckRequest(BaseModel):
    identity: EmailStr = Field(..., validation_alias=AliasChoices("identity", "email"))
    code: str

    model_config = ConfigDict(
        json_schema_extra={"example": {"identity": "user@example.com", "code": "482913"}}
    )


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1)
    identity: EmailStr = Field(..., validation_alias=AliasChoices("identity", "email"))
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    identity: EmailStr = Field(..., validation_alias=AliasChoices("identity", "email"))
    password: str


class SessionResponse(BaseModel):
    token: str
    username: str
    message: str
