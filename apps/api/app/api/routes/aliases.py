from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.services.citations import (
    create_alias,
    delete_alias,
    list_aliases,
    list_presets,
    update_alias,
)

router = APIRouter(prefix="/aliases")

ExtractorName = Literal["paragraph", "section", "chapter:verse", "custom"]


class AliasPayload(BaseModel):
    id: str
    document_id: str
    prefix: str
    pattern: str
    number_extractor: str
    display_format: str
    priority: int
    custom_group_index: Optional[int]
    created_at: float
    updated_at: float


class AliasListResponse(BaseModel):
    items: List[AliasPayload]


class PresetPayload(BaseModel):
    id: str
    label: str
    description: str
    default_prefix: str
    default_pattern: str
    number_extractor: str
    display_format: str


class PresetListResponse(BaseModel):
    items: List[PresetPayload]


class CreateAliasRequest(BaseModel):
    document_id: str
    prefix: str = Field(min_length=1)
    pattern: str = Field(min_length=1)
    number_extractor: ExtractorName = "paragraph"
    display_format: str = "{prefix} {number}"
    priority: int = 0
    custom_group_index: Optional[int] = Field(default=None, ge=0)


class UpdateAliasRequest(BaseModel):
    prefix: Optional[str] = Field(default=None, min_length=1)
    pattern: Optional[str] = Field(default=None, min_length=1)
    number_extractor: Optional[ExtractorName] = None
    display_format: Optional[str] = None
    priority: Optional[int] = None
    custom_group_index: Optional[int] = Field(default=None, ge=0)


@router.get("", response_model=AliasListResponse)
def list_aliases_endpoint(document_id: Optional[str] = None) -> AliasListResponse:
    return AliasListResponse(items=list_aliases(document_id))


@router.get("/presets", response_model=PresetListResponse)
def list_presets_endpoint() -> PresetListResponse:
    return PresetListResponse(items=list_presets())


@router.post("", response_model=AliasPayload, status_code=201)
def create_alias_endpoint(payload: CreateAliasRequest) -> AliasPayload:
    try:
        result = create_alias(**payload.model_dump())
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return AliasPayload(**result)


@router.patch("/{alias_id}", response_model=AliasPayload)
def update_alias_endpoint(alias_id: str, payload: UpdateAliasRequest) -> AliasPayload:
    try:
        result = update_alias(alias_id, payload.model_dump(exclude_unset=True))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return AliasPayload(**result)


@router.delete("/{alias_id}", response_model=AliasPayload)
def delete_alias_endpoint(alias_id: str) -> AliasPayload:
    try:
        return AliasPayload(**delete_alias(alias_id))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
