from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from basedai.config import Config, get_config
from basedai.llms.models import init_model
from basedai.llms.pydantic_ai_port import PydanticAIPort
from basedai.log import logger
from basedai.router.api import routers
from basedai.router.api.params import ServiceInfo
from basedai.router.controller.query import get_app_config, get_tool_registry
from basedai.tools import build_registry
from basedai.tools.registry import ToolRegistry

USER_AGENT = "BasedAI/0.1"


def init_http_client(config: Config) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.http_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    async with init_http_client(config) as client:
        app.state.config = config
        app.state.registry = build_registry(config, client)
        app.state.llm_port = PydanticAIPort(init_model(config), system_prompt=config.system_prompt)
        logger.info(f"{config.app_name} ready with model {config.model_name} and tools {app.state.registry.names()}")
        yield
    logger.info("HTTP client disposed")


app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/")
async def hello(
    config: Config = Depends(get_app_config),
    registry: ToolRegistry = Depends(get_tool_registry),
) -> ServiceInfo:
    return ServiceInfo(app_name=config.app_name, model_name=config.model_name, tools=registry.names())


for router in routers:
    app.include_router(router)
