from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from app.api.routes.documents import StoredNodePayload
from app.services.citations import link_html, lookup_citation, resolve_text, scan_text

router = APIRouter(prefix="/citations")


class TextRequest(BaseModel):
    text: str


class HtmlRequest(BaseModel):
    html: str


class MatchPayload(BaseModel):
    match: str
    start: int
    end: int
    alias_id: str
    prefix: str
    document_id: str
    reference: str
    range_start: Optional[str]
    range_end: Optional[str]


class WarningPayload(BaseModel):
    alias_id: str
    prefix: str
    reason: str
    detail: str


class MatchResponse(BaseModel):
    matches: List[MatchPayload]
    warnings: List[WarningPayload]


class ResolvedPayload(BaseModel):
    original_text: str
    document_id: str
    document_title: str
    reference: str
    display_text: str
    is_resolved: bool
    node_id: Optional[str]
    range_end: Optional[str]
    citation_id: str


class ResolvedItem(BaseModel):
    match: MatchPayload
    resolved: ResolvedPayload


class ResolveResponse(BaseModel):
    citations: List[ResolvedItem]
    warnings: List[WarningPayload]


class LinkResponse(BaseModel):
    html: str
    linked_count: int


class LookupResponse(BaseModel):
    document_id: str
    document_title: str
    node: Optional[StoredNodePayload]


@router.post("/match", response_model=MatchResponse)
def match_endpoint(payload: TextRequest) -> MatchResponse:
    return MatchResponse(**scan_text(payload.text))


@router.post("/resolve", response_model=ResolveResponse)
def resolve_endpoint(payload: TextRequest) -> ResolveResponse:
    return ResolveResponse(**resolve_text(payload.text))


@router.post("/link", response_model=LinkResponse)
def link_endpoint(payload: HtmlRequest) -> LinkResponse:
    return LinkResponse(**link_html(payload.html))


@router.get("/lookup", response_model=LookupResponse)
def lookup_endpoint(citation_id: str = Query(...)) -> LookupResponse:
    try:
        result = lookup_citation(citation_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return LookupResponse(**result)
