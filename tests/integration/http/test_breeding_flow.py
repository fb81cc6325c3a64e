from __future__ import annotations


async def _create_animal(client, headers, **payload) -> dict:
    response = await client.post("/api/v1/animals", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_breeding_season_flow(client, tenant_headers):
    cow = await _create_animal(client, tenant_headers, tag="V-01", sex="FEMALE", name="Mimosa")
    bull = await _create_animal(client, tenant_headers, tag="T-1", sex="MALE", name="Trovao")

    season_response = await client.post(
        "/api/v1/breeding-seasons",
        json={
            "name": "Estacao 2024",
            "start_date": "2024-01-01",
            "end_date": "2024-03-31",
            "exposed_cow_ids": [cow["id"]],
            "bulls": [{"bull_id": bull["id"], "bull_tag": "T-1"}],
        },
        headers=tenant_headers,
    )
    assert season_response.status_code == 201, season_response.text
    season = season_response.json()
    assert season["metrics"]["total_exposed"] == 1

    coverage_response = await client.post(
        f"/api/v1/breeding-seasons/{season['id']}/coverages",
        json={
            "date": "2024-01-10",
            "type": "NATURAL",
            "cow_tag": "v-01",
            "bulls": [{"bull_id": bull["id"], "bull_tag": "T-1"}],
        },
        headers=tenant_headers,
    )
    assert coverage_response.status_code == 201, coverage_response.text
    coverage = coverage_response.json()["coverage"]
    assert coverage["cow_id"] == cow["id"]
    assert coverage["expected_calving_date"] == "2024-10-19"

    diagnosis_response = await client.post(
        f"/api/v1/breeding-seasons/{season['id']}/coverages/{coverage['id']}/diagnosis",
        json={"result": "POSITIVE", "check_date": "2024-03-10"},
        headers=tenant_headers,
    )
    assert diagnosis_response.status_code == 200, diagnosis_response.text
    assert diagnosis_response.json()["pregnancy_result"] == "POSITIVE"

    cow_after_diagnosis = await client.get(f"/api/v1/animals/{cow['id']}", headers=tenant_headers)
    pregnancy_history = cow_after_diagnosis.json()["pregnancy_history"]
    assert [r["result"] for r in pregnancy_history] == ["POSITIVE"]

    calf = await _create_animal(
        client,
        tenant_headers,
        tag="B-100",
        sex="MALE",
        birth_date="2024-10-25",
        dam_id=cow["id"],
    )

    verify_response = await client.post(
        f"/api/v1/breeding-seasons/{season['id']}/verify",
        json={"today": "2024-12-01"},
        headers=tenant_headers,
    )
    assert verify_response.status_code == 200, verify_response.text
    assert verify_response.json()["linked"] == 1

    stored = await client.get(f"/api/v1/breeding-seasons/{season['id']}", headers=tenant_headers)
    linked = stored.json()["coverage_records"][0]
    assert linked["calving_result"] == "CALVED"
    assert linked["calf_id"] == calf["id"]

    dam = await client.get(f"/api/v1/animals/{cow['id']}", headers=tenant_headers)
    assert [p["offspring_id"] for p in dam.json()["progeny"]] == [calf["id"]]

    report_response = await client.get(
        f"/api/v1/breeding-seasons/{season['id']}/report", headers=tenant_headers
    )
    assert report_response.status_code == 200, report_response.text
    report = report_response.json()
    assert report["metrics"]["total_pregnant"] == 1
    assert report["daily_coverages"] == [{"date": "2024-01-10", "count": 1}]


async def test_missing_tenant_header_is_rejected(client):
    response = await client.get("/api/v1/animals")
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


async def test_unknown_season_returns_not_found(client, tenant_headers):
    response = await client.get("/api/v1/breeding-seasons/missing", headers=tenant_headers)
    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "not_found"
    assert body["message"]


async def test_stale_animal_version_conflicts(client, tenant_headers):
    cow = await _create_animal(client, tenant_headers, tag="V-02", sex="FEMALE")

    first = await client.put(
        f"/api/v1/animals/{cow['id']}",
        json={"version": cow["version"], "name": "Estrela"},
        headers=tenant_headers,
    )
    assert first.status_code == 200
    assert first.json()["version"] == cow["version"] + 1

    stale = await client.put(
        f"/api/v1/animals/{cow['id']}",
        json={"version": cow["version"], "name": "Lua"},
        headers=tenant_headers,
    )
    assert stale.status_code == 409
    assert stale.json()["code"] == "conflict"
