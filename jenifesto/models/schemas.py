from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from jenifesto.models.entities import AggregateResult, Identifier, PrimaryEntity, SessionState


# --- Requests ---


class PageLoadedMessage(BaseModel):
    type: Literal["PAGE_LOADED"] = "PAGE_LOADED"
    title: str
    url: str
    primary_id: str | None = None


class GetCurrentPageMessage(BaseModel):
    type: Literal["GET_CURRENT_PAGE"] = "GET_CURRENT_PAGE"


class GetPrimaryEntityMessage(BaseModel):
    type: Literal["GET_PRIMARY_ENTITY"] = "GET_PRIMARY_ENTITY"


class GetSecondaryResultsMessage(BaseModel):
    type: Literal["GET_SECONDARY_RESULTS"] = "GET_SECONDARY_RESULTS"
    identifiers: dict[str, Identifier] | None = None


class SearchTertiaryMessage(BaseModel):
    type: Literal["SEARCH_TERTIARY"] = "SEARCH_TERTIARY"
    query: str | None = None
    limit: int | None = Field(default=None, ge=1, le=50)


Message = Annotated[
    Union[
        PageLoadedMessage,
        GetCurrentPageMessage,
        GetPrimaryEntityMessage,
        GetSecondaryResultsMessage,
        SearchTertiaryMessage,
    ],
    Field(discriminator="type"),
]


# --- Responses ---


class PageLoadedResponse(BaseModel):
    success: bool


class CurrentPageResponse(BaseModel):
    page: SessionState | None


class PrimaryEntityResponse(BaseModel):
    data: PrimaryEntity | None = None
    error: str | None = None


class AggregateResultResponse(BaseModel):
    results: AggregateResult | None = None
    error: str | None = None


Response = Union[
    PageLoadedResponse,
    CurrentPageResponse,
    PrimaryEntityResponse,
    AggregateResultResponse,
]


MESSAGE_ADAPTER: TypeAdapter[Message] = TypeAdapter(Message)
