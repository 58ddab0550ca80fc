"""Unit tests for session router endpoints.

The SessionService is replaced by an AsyncMock; these tests cover request
parsing, the response envelope and the error to status mapping.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.api.v1.dependency import get_current_user, get_session_service
from app.api.v1.routers.session import router
from app.domain.idea.idea_linkage import IdeaSummary
from app.domain.session.authorization import Principal, Role
from app.domain.session.session_domain import SessionService
from app.domain.session.session_models import SessionDetail, SessionQuery
from app.schemas import ChatMessage, SessionState
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode
from tests.domain.session.session_factory import make_record
from tests.fixtures.session_fixtures import FIXED_NOW, HOST_ID, IDEA_ID


@pytest.fixture
def mock_user() -> Principal:
    """Authenticated founder who hosts the test session."""
    return Principal(user_id=HOST_ID, role=Role.FOUNDER)


@pytest.fixture
def mock_session_service() -> AsyncMock:
    return AsyncMock(spec=SessionService)


@pytest.fixture
def test_app(mock_user: Principal, mock_session_service: AsyncMock) -> FastAPI:
    """Create FastAPI test app with dependency overrides."""
    app = FastAPI()

    app.dependency_overrides[get_current_user] = lambda: mock_user
    app.dependency_overrides[get_session_service] = lambda: mock_session_service

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore[arg-type]

    app.include_router(router)
    return app


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    return TestClient(test_app)


def create_payload(**overrides) -> dict:
    payload = {
        "idea": IDEA_ID,
        "title": "Validate the idea",
        "description": "Walk through the pitch",
        "scheduled_time": "2026-03-02T12:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestListSessions:
    def test_list_returns_count_and_data(self, client, mock_session_service):
        mock_session_service.list_sessions.return_value = [
            make_record(session_id="se_1"),
            make_record(session_id="se_2"),
        ]

        response = client.get("/sessions", params={"status": "scheduled", "idea": IDEA_ID, "upcoming": "true"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert [s["session_id"] for s in body["data"]] == ["se_1", "se_2"]

        query = mock_session_service.list_sessions.call_args.args[0]
        assert isinstance(query, SessionQuery)
        assert query.status == SessionState.SCHEDULED
        assert query.idea_id == IDEA_ID
        assert query.upcoming is True

    def test_list_rejects_unknown_status(self, client, mock_session_service):
        response = client.get("/sessions", params={"status": "archived"})

        assert response.status_code == 422
        assert response.json()["errcode"] == AppErrorCode.VALIDATION.value
        mock_session_service.list_sessions.assert_not_called()


class TestCreateSession:
    def test_create_returns_201(self, client, mock_session_service, mock_user):
        mock_session_service.create_session.return_value = make_record(session_id="se_new")

        response = client.post("/sessions", json=create_payload(max_participants=5))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["session_id"] == "se_new"
        assert body["data"]["status"] == "scheduled"
        assert body["data"]["scheduled_time"].endswith("+00:00")

        principal, params = mock_session_service.create_session.call_args.args
        assert principal == mock_user
        assert params.idea_id == IDEA_ID
        assert params.max_participants == 5
        assert params.duration_minutes is None

    def test_create_requires_manager_role(self, test_app, client, mock_session_service):
        test_app.dependency_overrides[get_current_user] = lambda: Principal(user_id="u.p")

        response = client.post("/sessions", json=create_payload())

        assert response.status_code == 403
        assert response.json()["errcode"] == AppErrorCode.NOT_AUTHORIZED.value
        mock_session_service.create_session.assert_not_called()

    def test_create_missing_fields(self, client, mock_session_service):
        response = client.post("/sessions", json={"title": "No idea"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errcode"] == AppErrorCode.VALIDATION.value

    def test_create_domain_validation_error(self, client, mock_session_service):
        mock_session_service.create_session.side_effect = AppError(
            errcode=AppErrorCode.VALIDATION,
            errmesg="duration_minutes: Input should be greater than or equal to 15",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

        response = client.post("/sessions", json=create_payload(duration_minutes=5))

        assert response.status_code == 400
        body = response.json()
        assert body["errcode"] == "VALIDATION"
        assert len(body["erresid"]) == 10


class TestGetSession:
    def test_get_includes_idea(self, client, mock_session_service):
        mock_session_service.get_session.return_value = SessionDetail(
            **make_record().model_dump(),
            idea=IdeaSummary(idea_id=IDEA_ID, author_id=HOST_ID, title="Idea", sessions=["se_test"]),
        )

        response = client.get("/sessions/se_test")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["idea"]["idea_id"] == IDEA_ID
        assert data["idea"]["author_id"] == HOST_ID

    def test_get_missing(self, client, mock_session_service):
        mock_session_service.get_session.side_effect = AppError(
            errcode=AppErrorCode.NOT_FOUND,
            errmesg="No session found with id se_missing",
        )

        response = client.get("/sessions/se_missing")

        assert response.status_code == 404
        assert response.json()["errcode"] == "NOT_FOUND"


class TestUpdateSession:
    def test_update_passes_only_sent_fields(self, client, mock_session_service, mock_user):
        mock_session_service.update_session.return_value = make_record(title="Renamed")

        response = client.put("/sessions/se_test", json={"title": "Renamed", "status": "completed"})

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Renamed"
        principal, session_id, payload = mock_session_service.update_session.call_args.args
        assert principal == mock_user
        assert session_id == "se_test"
        assert payload == {"title": "Renamed", "status": "completed"}

    def test_update_invalid_state(self, client, mock_session_service):
        mock_session_service.update_session.side_effect = AppError(
            errcode=AppErrorCode.INVALID_STATE,
            errmesg="Only scheduled sessions can be updated",
        )

        response = client.put("/sessions/se_test", json={"title": "Late"})

        assert response.status_code == 400
        assert response.json()["errcode"] == "INVALID_STATE"


class TestLifecycleRoutes:
    @pytest.mark.parametrize(
        "path,method_name,status",
        [
            ("cancel", "cancel_session", SessionState.CANCELLED),
            ("end", "end_session", SessionState.COMPLETED),
            ("start", "start_session", SessionState.LIVE),
        ],
    )
    def test_transition_routes(self, client, mock_session_service, path, method_name, status):
        getattr(mock_session_service, method_name).return_value = make_record(status=status)

        response = client.put(f"/sessions/se_test/{path}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == status.value

    def test_cancel_not_authorized(self, client, mock_session_service):
        mock_session_service.cancel_session.side_effect = AppError(
            errcode=AppErrorCode.NOT_AUTHORIZED,
            errmesg="User u.host is not authorized to cancel session se_test",
        )

        response = client.put("/sessions/se_test/cancel")

        assert response.status_code == 403

    def test_join_any_role(self, test_app, client, mock_session_service):
        test_app.dependency_overrides[get_current_user] = lambda: Principal(user_id="u.alice")
        mock_session_service.join_session.return_value = make_record(participant_ids=["u.alice"])

        response = client.put("/sessions/se_test/join")

        assert response.status_code == 200
        assert response.json()["data"]["participants"][0]["user_id"] == "u.alice"

    @pytest.mark.parametrize(
        "errcode",
        [AppErrorCode.SESSION_FULL, AppErrorCode.ALREADY_JOINED, AppErrorCode.SESSION_NOT_JOINABLE],
    )
    def test_join_rejections_are_400(self, client, mock_session_service, errcode):
        mock_session_service.join_session.side_effect = AppError(errcode=errcode, errmesg="rejected")

        response = client.put("/sessions/se_test/join")

        assert response.status_code == 400
        assert response.json()["errcode"] == errcode.value

    def test_store_unavailable_is_503(self, client, mock_session_service):
        mock_session_service.join_session.side_effect = AppError(
            errcode=AppErrorCode.STORE_UNAVAILABLE,
            errmesg="Session store unavailable during read",
        )

        response = client.put("/sessions/se_test/join")

        assert response.status_code == 503


class TestChatRoutes:
    def test_post_chat_returns_transcript(self, client, mock_session_service):
        record = make_record()
        record.chat_messages = [
            ChatMessage(user_id=HOST_ID, message="first", timestamp=FIXED_NOW),
            ChatMessage(user_id=HOST_ID, message="second", timestamp=FIXED_NOW),
        ]
        mock_session_service.post_chat_message.return_value = (record, record.chat_messages[-1])

        response = client.post("/sessions/se_test/chat", json={"message": "second"})

        assert response.status_code == 200
        assert [m["message"] for m in response.json()["data"]] == ["first", "second"]

    def test_get_chat(self, client, mock_session_service):
        mock_session_service.get_chat_messages.return_value = [
            ChatMessage(user_id="u.a", message="hello", timestamp=FIXED_NOW)
        ]

        response = client.get("/sessions/se_test/chat")

        assert response.status_code == 200
        assert response.json()["data"][0]["user_id"] == "u.a"

    def test_post_chat_without_message(self, client, mock_session_service):
        response = client.post("/sessions/se_test/chat", json={})

        assert response.status_code == 422
        mock_session_service.post_chat_message.assert_not_called()


class TestDeleteSession:
    def test_delete(self, client, mock_session_service):
        mock_session_service.delete_session.return_value = None

        response = client.delete("/sessions/se_test")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}, "version": response.json()["version"]}
