from __future__ import annotations


def test_docs_swagger_ui(client):
    response = client.get("/docs/")
    assert response.status_code == 200
    assert b"Swagger" in response.data


def test_openapi_spec_lists_endpoints(client):
    response = client.get("/docs/openapi.json")
    assert response.status_code == 200
    data = response.get_json()
    assert data["info"]["title"] == "Household Portfolio API"
    paths = data["paths"].keys()
    assert any(path.startswith("/health") for path in paths)
    assert "/currencies" in paths
    assert "/currencies/validate" in paths
    assert "/currencies/convert" in paths
    assert "/households" in paths
    assert "/households/{household_id}/summary" in paths
    assert "/households/{household_id}/snapshots" in paths
    assert "/households/{household_id}/investments/{investment_id}" in paths
    assert "/households/{household_id}/members" in paths
    assert "/symbols/{ticker}" in paths
