from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from marketplace.main import app


@pytest.fixture
def client():
    return TestClient(app)


TEAM_DOC = {
    "team_id": "team-1",
    "name": "Vision Labs",
    "description": "computer vision consulting",
    "is_consulting_firm": True,
    "tech_stack": ["OpenCV", "YOLO"],
    "city": "Austin",
    "members": [{"user_id": "owner-1"}],
}


def _cursor(docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


class TestHealthEndpoints:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
        assert "X-Processing-Time" in response.headers


class TestSuggestedMembersEndpoint:

    @patch('marketplace.services.suggestions.users_coll')
    @patch('marketplace.services.suggestions.teams_coll')
    def test_returns_suggestions(self, mock_teams_coll, mock_users_coll, client):
        mock_teams_coll.find_one = AsyncMock(return_value=TEAM_DOC)
        mock_users_coll.find = MagicMock(return_value=_cursor([
            {"user_id": "u1", "username": "cv_dev", "skills": ["OpenCV"], "location": "Austin"},
            {"user_id": "u2", "bio": "backend developer", "location": "Remote"},
        ]))

        response = client.get("/api/teams/team-1/suggested-members", params={"user_id": "owner-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["suggestions"][0]["user"]["id"] == "u1"
        assert data["suggestions"][0]["score"] == 6
        assert data["suggestions"][0]["match_reason"] == "Skilled in OpenCV; based in Austin"

    @patch('marketplace.services.suggestions.teams_coll')
    def test_non_member_gets_403(self, mock_teams_coll, client):
        mock_teams_coll.find_one = AsyncMock(return_value=TEAM_DOC)

        response = client.get("/api/teams/team-1/suggested-members", params={"user_id": "stranger"})

        assert response.status_code == 403
        data = response.json()
        assert data["success"] is False
        assert data["error"]["error_code"] == "AUTHORIZATION"

    @patch('marketplace.services.suggestions.teams_coll')
    def test_missing_team_gets_404(self, mock_teams_coll, client):
        mock_teams_coll.find_one = AsyncMock(return_value=None)

        response = client.get("/api/teams/nope/suggested-members", params={"user_id": "owner-1"})

        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "NOT_FOUND"

    def test_user_id_required(self, client):
        response = client.get("/api/teams/team-1/suggested-members")

        assert response.status_code == 422


class TestEngagementEndpoints:

    @patch('marketplace.services.engagement.engagements_coll')
    @patch('marketplace.services.engagement.teams_coll')
    def test_create(self, mock_teams_coll, mock_engagements_coll, client):
        mock_teams_coll.find_one = AsyncMock(return_value={"team_id": "firm-1", "is_consulting_firm": True})
        mock_engagements_coll.insert_one = AsyncMock()

        response = client.post("/api/engagements/", json={
            "title": "Churn model",
            "consulting_firm_id": "firm-1",
            "pricing_model": "FIXED_PRICE",
            "total_value": 1000,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["platform_fee_amount"] == 225
        assert data["status"] == "PROPOSAL"

    @patch('marketplace.services.engagement.teams_coll')
    def test_create_with_reversed_dates_gets_400(self, mock_teams_coll, client):
        mock_teams_coll.find_one = AsyncMock(return_value={"team_id": "firm-1", "is_consulting_firm": True})

        response = client.post("/api/engagements/", json={
            "title": "Churn model",
            "consulting_firm_id": "firm-1",
            "pricing_model": "FIXED_PRICE",
            "start_date": "2024-06-01T00:00:00",
            "end_date": "2024-01-01T00:00:00",
        })

        assert response.status_code == 400
        assert response.json()["error"]["error_code"] == "VALIDATION"

    @patch('marketplace.services.engagement.transactions_coll')
    @patch('marketplace.services.engagement.engagements_coll')
    def test_delete_active_gets_409(self, mock_engagements_coll, mock_transactions_coll, client):
        mock_engagements_coll.find_one = AsyncMock(return_value={
            "engagement_id": "eng-1",
            "title": "Churn model",
            "consulting_firm_id": "firm-1",
            "pricing_model": "FIXED_PRICE",
            "status": "ACTIVE",
        })
        mock_transactions_coll.count_documents = AsyncMock(return_value=0)

        response = client.delete("/api/engagements/eng-1", params={"firm_id": "firm-1"})

        assert response.status_code == 409
        assert response.json()["error"]["error_code"] == "BUSINESS_RULE"

    @patch('marketplace.services.engagement.engagements_coll')
    def test_get_missing_engagement(self, mock_engagements_coll, client):
        mock_engagements_coll.find_one = AsyncMock(return_value=None)

        response = client.get("/api/engagements/missing")

        assert response.status_code == 404
        assert response.headers["X-Error-Code"] == "NOT_FOUND"

    @patch('marketplace.services.engagement.engagements_coll')
    def test_update_end_date_with_utc_suffix(self, mock_engagements_coll, client):
        mock_engagements_coll.find_one = AsyncMock(return_value={
            "engagement_id": "eng-1",
            "title": "Churn model",
            "consulting_firm_id": "firm-1",
            "pricing_model": "FIXED_PRICE",
            "start_date": datetime(2024, 1, 1),
        })
        mock_engagements_coll.update_one = AsyncMock()

        response = client.put(
            "/api/engagements/eng-1",
            params={"firm_id": "firm-1"},
            json={"end_date": "2024-06-01T00:00:00Z"},
        )

        assert response.status_code == 200
        assert response.json()["end_date"].startswith("2024-06-01T00:00:00")

    @patch('marketplace.services.engagement.engagements_coll')
    def test_firm_stats(self, mock_engagements_coll, client):
        mock_engagements_coll.find = MagicMock(return_value=_cursor([{
            "engagement_id": "eng-1",
            "title": "Churn model",
            "consulting_firm_id": "firm-1",
            "pricing_model": "FIXED_PRICE",
            "status": "ACTIVE",
            "total_value": 1000,
            "platform_fee_amount": 225,
        }]))

        response = client.get("/api/engagements/firm/firm-1/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["by_status"]["ACTIVE"] == 1
        assert data["unpaid_platform_fees"] == 225


class TestVerificationEndpoints:

    @patch('marketplace.services.verification.users_coll')
    def test_update_skill_scores(self, mock_users_coll, client):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "u1"})
        mock_users_coll.update_one = AsyncMock()

        response = client.put("/api/users/u1/skill-scores", json={
            "ai_skill_score": 80, "portfolio_score": 70, "experience_score": 60,
        })

        assert response.status_code == 200
        assert response.json()["overall_score"] == 72

    def test_out_of_range_score_rejected(self, client):
        response = client.put("/api/users/u1/skill-scores", json={"ai_skill_score": 120})

        assert response.status_code == 422
