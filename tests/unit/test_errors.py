from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from todo_api.config import reset_settings
from todo_api.middleware.errors import add_exception_handlers


class Payload(BaseModel):
    title: str


def build_app() -> FastAPI:
    app = FastAPI()
    add_exception_handlers(app)

    @app.post("/items")
    async def create_item(payload: Payload):
        return payload

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    return app


def test_validation_errors_are_400_with_fields():
    client = TestClient(build_app())
    response = client.post("/items", json={})
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert body["errors"][0]["field"] == "title"


def test_unhandled_error_message_outside_production():
    client = TestClient(build_app(), raise_server_exceptions=False)
    response = client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"message": "database exploded"}


def test_unhandled_error_is_generic_in_production(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("JWT_SECRET", "p" * 40)
    reset_settings()

    client = TestClient(build_app(), raise_server_exceptions=False)
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"message": "An unexpected error occurred. Please try again later."}
