"""
Translation function schemas.

Field names use camelCase to match the JSON the browser client sends.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TranslateNameRequest(BaseModel):
    name: str = Field(min_length=1)


class TranslateNameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    telugu_name: str = Field(alias="teluguName")


class TranslateSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_term: str = Field(alias="searchTerm", min_length=1)


class TranslateSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_term: str = Field(alias="originalTerm")
    translated_term: str = Field(alias="translatedTerm")
    is_translated: bool = Field(alias="isTranslated")
