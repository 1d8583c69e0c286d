from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    question: str = Field(min_length=1)


class QueryResponse(BaseModel):
    answer: str


class ServiceInfo(BaseModel):
    app_name: str
    model_name: str
    tools: list[str]
