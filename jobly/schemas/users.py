from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    is_admin: bool = Field(default=False, alias="isAdmin")


class UserRegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    username: str = Field(min_length=1, max_length=25)
    password: str = Field(min_length=5, max_length=20)
    first_name: str = Field(min_length=1, max_length=25, alias="firstName")
    last_name: str = Field(min_length=1, max_length=25, alias="lastName")
    email: str = Field(min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+$")


class UserCreateRequest(UserRegisterRequest):
    is_admin: bool = Field(default=False, alias="isAdmin")


class UserPatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    password: str | None = Field(default=None, min_length=5, max_length=20)
    first_name: str | None = Field(default=None, min_length=1, max_length=25, alias="firstName")
    last_name: str | None = Field(default=None, min_length=1, max_length=25, alias="lastName")
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=r"^[^@\s]+@[^@\s]+$")


class TokenRequest(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    token: str


class UserCreatedOut(BaseModel):
    user: UserOut
    token: str
