from fastapi import APIRouter, Depends

from basedai.router.api.params import QueryRequest, QueryResponse
from basedai.router.controller.query import QueryController, get_query_controller

router = APIRouter(tags=["query"])


@router.post("/query")
async def query(
    params: QueryRequest,
    query_controller: QueryController = Depends(get_query_controller),
) -> QueryResponse:
    return await query_controller.answer(params.question)
