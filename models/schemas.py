from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    styles: Any = None
    delivery: Any = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        # Non-string values count as missing
        return v.strip() if isinstance(v, str) else ""


class CheckoutSessionResponse(BaseModel):
    url: str


class SessionStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    paid: bool
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    styles: list[str] = []
    style_labels: list[str] = Field(default_factory=list, alias="styleLabels")
    delivery: list[str] = []


class PortraitResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    style: str
    label: str
    image_base64: str = Field(..., alias="imageBase64")
    content_type: str = Field(default="image/png", alias="contentType")


class GeneratePortraitResponse(BaseModel):
    portraits: list[PortraitResult]


class StyleInfo(BaseModel):
    key: str
    label: str


class DeliveryInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    key: str
    label: str
    unit_amount: int = Field(..., alias="unitAmount")


class CatalogResponse(BaseModel):
    currency: str
    styles: list[StyleInfo]
    delivery: list[DeliveryInfo]


class ErrorResponse(BaseModel):
    message: str
