"""Tests for the dashboard statistics endpoint."""

from followdesk.core.settings import settings


def test_dashboard_stats(test_client, fake_client):
    alice = fake_client.add_user(status="active")
    bob = fake_client.add_user(status="inactive")
    fake_client.add_follow(alice["id"], bob["id"])

    response = test_client.get(f"{settings.prefix}/dashboard/stats")

    assert response.status_code == 200
    assert response.json() == {
        "totalUsers": 2,
        "activeUsers": 1,
        "totalConnections": 1,
        "avgConnections": 1,
        "recentActivity": {"newUsers": 2, "newConnections": 1},
    }


def test_dashboard_stats_empty_directory(test_client):
    response = test_client.get(f"{settings.prefix}/dashboard/stats")

    assert response.status_code == 200
    assert response.json()["avgConnections"] == 0
