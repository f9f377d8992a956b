from fastapi import status
from httpx import AsyncClient

PDF = b"%PDF-1.4 test document"


async def _upload(client: AsyncClient, name: str, project_id: int = 7) -> dict:
    response = await client.post(
        "/api/files/upload",
        files=[("files", (name, PDF, "application/pdf"))],
        data={"projectId": str(project_id), "uploaderId": "3"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()[0]


async def test_project_files_lists_current_heads_newest_first(client: AsyncClient):
    a = await _upload(client, "a.pdf")
    b = await _upload(client, "b.pdf")
    c = await _upload(client, "c.pdf")
    await _upload(client, "elsewhere.pdf", project_id=8)
    b2 = (await client.post(
        f"/api/files/{b['id']}/versions",
        files={"file": ("b.pdf", PDF + b" v2", "application/pdf")},
        data={"uploaderId": "3"},
    )).json()

    response = await client.get("/api/projects/7/files")

    assert response.status_code == status.HTTP_200_OK
    records = response.json()
    assert len(records) == 3
    assert [r["id"] for r in records] == [b2["id"], c["id"], a["id"]]
    assert all(r["isLatest"] for r in records)


async def test_empty_project(client: AsyncClient):
    response = await client.get("/api/projects/99/files")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


async def test_health_check(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "database": "connected"}
