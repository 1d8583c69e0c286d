from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from basedai.config import Config
from basedai.llms import LLMPort, PortError
from basedai.log import logger
from basedai.orchestrator import Orchestrator
from basedai.router.api.params import QueryResponse
from basedai.tools.registry import ToolRegistry


def get_app_config(request: Request) -> Config:
    return request.app.state.config


def get_tool_registry(request: Request) -> ToolRegistry:
    return request.app.state.registry


def get_llm_port(request: Request) -> LLMPort:
    return request.app.state.llm_port


def get_query_controller(
    config: Config = Depends(get_app_config),
    registry: ToolRegistry = Depends(get_tool_registry),
    llm_port: LLMPort = Depends(get_llm_port),
) -> QueryController:
    return QueryController(config, registry, llm_port)


class QueryController:
    def __init__(self, config: Config, registry: ToolRegistry, llm_port: LLMPort) -> None:
        self.config = config
        self.registry = registry
        self.llm_port = llm_port

    async def answer(self, question: str) -> QueryResponse:
        orchestrator = Orchestrator.from_config(self.config, self.llm_port, self.registry)
        try:
            answer = await orchestrator.run(question)
        except PortError as e:
            logger.error(f"Query failed: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

        return QueryResponse(answer=answer)
