from fastapi.testclient import TestClient

from gutsafe.main import app

client = TestClient(app)


def test_health_check():
    """Test that health check endpoint is accessible."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_rules_endpoint():
    """Test that the loaded rule table version is exposed."""
    response = client.get("/rules")
    assert response.status_code == 200
    body = response.json()
    assert body["version"] == "2024.1"
    assert set(body["conditions"]) == {
        "ibs-fodmap",
        "gluten",
        "lactose",
        "reflux",
        "histamine",
        "allergies",
        "additives",
    }


def test_unknown_route_404():
    """Test that unknown routes are not found."""
    response = client.get("/does-not-exist")
    assert response.status_code == 404
