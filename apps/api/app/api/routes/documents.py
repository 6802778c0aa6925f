from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from app.services.documents import (
    create_document,
    delete_document,
    get_document,
    list_documents,
    list_nodes,
    move_document_node,
    preview_document,
)

router = APIRouter(prefix="/documents")

SourceTypeName = Literal["catechism", "scripture", "patristic", "treatise", "generic"]


class ParseRequest(BaseModel):
    text: str
    source_type: SourceTypeName = "generic"


class NodePayload(BaseModel):
    node_type: Literal["structural", "citable"]
    id: Optional[str] = None
    content: str
    level: Optional[str] = None
    alignment: Optional[str] = None
    number: Optional[int] = None
    display_number: Optional[str] = None


class StoredNodePayload(NodePayload):
    document_id: str
    order: float


class ParseStatsPayload(BaseModel):
    total: int
    structural: int
    citable: int


class ParseResponse(BaseModel):
    nodes: List[NodePayload]
    stats: ParseStatsPayload


class CreateDocumentRequest(BaseModel):
    title: str = Field(min_length=1)
    text: str
    source_type: SourceTypeName = "generic"
    author: Optional[str] = None
    ignored_indices: List[int] = Field(default_factory=list)
    resequence: bool = False


class DocumentPayload(BaseModel):
    id: str
    title: str
    source_type: str
    author: Optional[str]
    content_hash: Optional[str]
    created_at: float
    updated_at: float


class CreateDocumentResponse(BaseModel):
    document: DocumentPayload
    stats: ParseStatsPayload


class DocumentListResponse(BaseModel):
    items: List[DocumentPayload]


class NodeListResponse(BaseModel):
    items: List[StoredNodePayload]


class MoveNodeRequest(BaseModel):
    before_id: Optional[str] = None
    after_id: Optional[str] = None


class MoveNodeResponse(BaseModel):
    node_id: str
    order: float


@router.post("/parse", response_model=ParseResponse)
def parse_document_endpoint(payload: ParseRequest) -> ParseResponse:
    try:
        result = preview_document(payload.text, payload.source_type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ParseResponse(**result)


@router.post("", response_model=CreateDocumentResponse, status_code=201)
def create_document_endpoint(payload: CreateDocumentRequest) -> CreateDocumentResponse:
    try:
        result = create_document(
            title=payload.title,
            text=payload.text,
            source_type=payload.source_type,
            author=payload.author,
            ignored_indices=payload.ignored_indices,
            resequence=payload.resequence,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CreateDocumentResponse(**result)


@router.get("", response_model=DocumentListResponse)
def list_documents_endpoint() -> DocumentListResponse:
    return DocumentListResponse(items=list_documents())


@router.get("/{document_id}", response_model=DocumentPayload)
def get_document_endpoint(document_id: str) -> DocumentPayload:
    try:
        return DocumentPayload(**get_document(document_id))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{document_id}", status_code=204)
def delete_document_endpoint(document_id: str) -> Response:
    try:
        delete_document(document_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=204)


@router.get("/{document_id}/nodes", response_model=NodeListResponse)
def list_nodes_endpoint(document_id: str) -> NodeListResponse:
    try:
        return NodeListResponse(items=list_nodes(document_id))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/{document_id}/nodes/{node_id}/move", response_model=MoveNodeResponse)
def move_node_endpoint(document_id: str, node_id: str, payload: MoveNodeRequest) -> MoveNodeResponse:
    try:
        result = move_document_node(document_id, node_id, payload.before_id, payload.after_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return MoveNodeResponse(**result)
