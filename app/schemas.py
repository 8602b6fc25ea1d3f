"""
Pydantic schemas for request / response serialization.

Kept in a single file for now; split per-domain when it grows.
Schemas are deliberately decoupled from SQLAlchemy models so the
API surface can evolve independently of the DB layer.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from app.core.security import MAX_PASSWORD_BYTES


def normalize_username(v: str) -> str:
    """Usernames are stored and looked up without surrounding whitespace."""
    return v.strip()


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


# ── Auth pages ───────────────────────────────────────────────────────
class LoginPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form: str = "login"
    error: bool = False
    logout: bool = False
    registro_exitoso: bool = Field(False, alias="registroExitoso")


class RegistrationForm(BaseModel):
    """Fields posted by the registration page (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(max_length=64)
    password: SecretStr
    confirm_password: SecretStr = Field(alias="confirmPassword")

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        return _not_blank(normalize_username(v))

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: SecretStr) -> SecretStr:
        plain = v.get_secret_value()
        _not_blank(plain)
        if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class RegistrationPage(BaseModel):
    form: str = "registro"
    username: str = ""
    errors: dict[str, list[str]] = {}


# ── Session / home ───────────────────────────────────────────────────
class CurrentUserOut(BaseModel):
    username: str
    authorities: list[str]


# ── Products & cart ──────────────────────────────────────────────────
class ProductOut(BaseModel):
    id: int
    name: str
    price: Decimal

    model_config = {"from_attributes": True}


class CartLineOut(BaseModel):
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    items: list[CartLineOut] = []
    total: Decimal = Decimal("0")


# ── Alumnos ──────────────────────────────────────────────────────────
class CreateAlumnoRequest(BaseModel):
    nombre: str = Field(min_length=1, max_length=128)
    apellido: str = Field(min_length=1, max_length=128)
    email: str = Field(min_length=3, max_length=256)


class AlumnoOut(BaseModel):
    id: int
    nombre: str
    apellido: str
    email: str

    model_config = {"from_attributes": True}


# ── Generic ──────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    detail: str
