# penwise/schemas.py
from typing import Any, Dict, Optional
from flask import request
from pydantic import BaseModel, Field, ValidationError, field_validator
from .errors import BadRequest


class GenerationRequest(BaseModel):
    contentType: str
    prompt: str
    tone: str = ''
    style: str = ''
    userDetails: Dict[str, Any] = Field(default_factory=dict)
    sampleMode: bool = False

    @field_validator('prompt')
    @classmethod
    def prompt_not_blank(cls, value):
        if not value.strip():
            raise ValueError('Prompt is required')
        return value

    @field_validator('tone', 'style', mode='before')
    @classmethod
    def none_as_empty(cls, value):
        return value or ''

    @field_validator('userDetails', mode='before')
    @classmethod
    def details_default(cls, value):
        return value or {}


class SaveContentRequest(BaseModel):
    content: str
    contentType: str
    title: Optional[str] = None
    tone: Optional[str] = None
    style: Optional[str] = None

    @field_validator('content')
    @classmethod
    def content_not_blank(cls, value):
        if not value.strip():
            raise ValueError('Content is required')
        return value


class CredentialsRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        value = value.strip().lower()
        if '@' not in value:
            raise ValueError('A valid email address is required')
        return value


class PurchaseRequest(BaseModel):
    packageId: str


class DetailsCheckRequest(BaseModel):
    userDetails: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('userDetails', mode='before')
    @classmethod
    def details_default(cls, value):
        return {} if value is None else value


def parse_body(model):
    """Validate the JSON body of the current request against `model`."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Invalid request body')
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = '.'.join(str(part) for part in first['loc'])
        message = first['msg'].removeprefix('Value error, ')
        raise BadRequest(f"{location}: {message}" if location else message) from e
