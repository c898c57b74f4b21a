"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class StartBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    genre: str = Field(min_length=1)
    name: str = Field(min_length=1)
    archetype: str = Field(min_length=1)
    appearance: str = Field(min_length=1)


class ChoiceBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    choice: str = Field(min_length=1)


class ChatBody(BaseModel):
    message: str
