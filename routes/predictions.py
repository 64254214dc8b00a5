from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel

from dependencies.storage import get_store
from services.prediction_service import delete_prediction, list_predictions, submit_prediction
from services.storage import PredictionStore

# GET/POST are served by both deployments; DELETE only by the local server,
# OPTIONS only by the remote function (the local server uses CORSMiddleware).
router = APIRouter(prefix="/predictions")
delete_router = APIRouter(prefix="/predictions")
preflight_router = APIRouter(prefix="/predictions")


class SubmitResponse(BaseModel):
    ok: bool = True
    total: int


class DeleteResponse(BaseModel):
    ok: bool = True


@router.get("", summary="List every entrant's predictions")
def get_predictions(store: PredictionStore = Depends(get_store)) -> dict[str, Any]:
    return list_predictions(store)


@router.post("", response_model=SubmitResponse, summary="Submit or overwrite an entrant's predictions")
def post_prediction(
    payload: Any = Body(default=None),
    store: PredictionStore = Depends(get_store),
) -> SubmitResponse:
    """
    Body: ``{"name": str, "al": [15 teams], "nl": [15 teams]}``.
    Resubmitting a name replaces that entrant's earlier entry.
    """
    total = submit_prediction(store, payload)
    return SubmitResponse(total=total)


@delete_router.delete("/{name:path}", response_model=DeleteResponse, summary="Remove an entrant")
def remove_prediction(name: str, store: PredictionStore = Depends(get_store)) -> DeleteResponse:
    delete_prediction(store, name)
    return DeleteResponse()


@preflight_router.options("", summary="CORS preflight")
def preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)
