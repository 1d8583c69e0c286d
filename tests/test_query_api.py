import pytest

from basedai.app import app
from basedai.conversation import AssistantMessage, ToolCallRequest
from basedai.llms import PortError
from basedai.router.controller.query import get_llm_port


@pytest.fixture
def use_port(client):
    def use(port):
        app.dependency_overrides[get_llm_port] = lambda: port
        return port

    return use


def test_service_info(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {
        "app_name": "BasedAI",
        "model_name": "test",
        "tools": ["speak_to_user", "get_date_time", "get_weather", "search_the_web", "browse_page"],
    }


def test_query(client, use_port, scripted_port):
    port = use_port(scripted_port(AssistantMessage(text="Four")))

    response = client.post("/query", json={"question": "What is 2+2 in plain words"})

    assert response.status_code == 200
    assert response.json() == {"answer": "Four"}
    [(conversation, tools)] = port.requests
    assert conversation[0].text == "What is 2+2 in plain words"
    assert len(tools) == 5


def test_query_with_tool_round(client, use_port, scripted_port):
    use_port(
        scripted_port(
            [ToolCallRequest(call_id="call-1", tool_name="get_date_time", raw_arguments={"location": "UTC"})],
            AssistantMessage(text="It is late."),
        )
    )

    response = client.post("/query", json={"question": "What time is it?"})

    assert response.json() == {"answer": "It is late."}


@pytest.mark.parametrize("body", [{}, {"question": ""}, {"question": 42}])
def test_query_rejects_bad_request(client, body):
    response = client.post("/query", json=body)

    assert response.status_code == 422


def test_query_backend_failure(client, use_port, scripted_port):
    use_port(scripted_port(PortError("backend unreachable")))

    response = client.post("/query", json={"question": "Hello"})

    assert response.status_code == 502
    assert response.json() == {"detail": "backend unreachable"}


def test_cors_preflight(client):
    response = client.options(
        "/query",
        headers={"Origin": "http://example.com", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
