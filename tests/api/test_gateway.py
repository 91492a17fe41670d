def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "tapt-portal-gateway"


def test_preflight_from_allowed_origin(client):
    response = client.options("/submit/membership", headers={
        "Origin": "https://tapt.org",
        "Access-Control-Request-Method": "POST",
    })

    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "https://tapt.org"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
    assert "Authorization" in response.headers["Access-Control-Allow-Headers"]
    assert response.headers["X-Frame-Options"] == "DENY"


def test_preflight_from_unknown_origin_gets_no_allow_origin(client):
    response = client.options("/admin/content", headers={"Origin": "https://evil.example"})

    assert response.status_code == 204
    assert "Access-Control-Allow-Origin" not in response.headers


def test_security_headers_on_errors(client):
    response = client.post("/admin/content", json={}, headers={"Origin": "https://admin.tapt.org"})

    assert response.status_code == 401
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Content-Security-Policy"] == "default-src 'none'"
    assert response.headers["Access-Control-Allow-Origin"] == "https://admin.tapt.org"
