"""
接口单元测试
使用 TestClient + 内存数据库，验证路由、异常映射和序号
"""

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.api.main import app, get_session
from app.db.init_db import create_tables
from app.services.backup_codec import dumps

from conftest import PART_ONE_FORM, make_entry


@pytest.fixture(scope="function")
def client():
    """
    TestClient，数据库替换为内存 SQLite
    请求在线程池中执行，使用 StaticPool 共享同一连接
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def part_one_body(**overrides):
    field_set = dict(PART_ONE_FORM)
    field_set.update(overrides)
    return {"fieldSet": field_set, "classification": "Act"}


class TestEntryRoutes:
    """测试记录接口"""

    def test_list_empty(self, client):
        response = client.get("/entries")
        assert response.status_code == 200
        assert response.json() == {"entries": []}

    def test_save_part_one(self, client):
        response = client.post("/entries/part-one", json=part_one_body())

        assert response.status_code == 201
        body = response.json()
        assert body["fieldSet"]["intro"] == "CG UP"
        assert body["entryKind"] == "part1"
        assert body["serialNumber"] == 1

    def test_validation_error_lists_missing_fields(self, client):
        """测试缺失必填项返回 422 和缺失字段列表"""
        response = client.post("/entries/part-one", json=part_one_body(monthly_close=""))

        assert response.status_code == 422
        body = response.json()
        assert body["missingFields"] == ["MONTHLY CLOSE"]
        assert body["dismissAfterSeconds"] == 5

    def test_save_part_two_and_common(self, client):
        client.post("/entries/part-one", json=part_one_body())

        part_two = client.post("/entries/part-two", json={"fieldSet": {"og_candle": "5"}, "classification": "Act"})
        common = client.post("/entries/common", json={"fieldSet": {"og_candle": "6"}, "classification": "Front Act"})

        assert part_two.status_code == 201
        assert part_two.json()["entryKind"] == "part2"
        assert common.status_code == 201
        assert common.json()["fieldSet"]["intro"] == "CG UP"

    def test_save_all_nill(self, client):
        response = client.post("/entries/all-nill", json={})
        assert response.status_code == 201
        assert response.json()["fieldSet"]["intro"] == "NILL"

    def test_edit_and_fork(self, client):
        created = client.post("/entries/part-one", json=part_one_body()).json()

        response = client.put(
            f"/entries/{created['id']}",
            json={"fieldSet": {"og_candle": "9"}, "classification": "Act"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["changed"] is True
        assert body["forked"] is True
        assert body["entry"]["id"] != created["id"]
        assert len(client.get("/entries").json()["entries"]) == 2

    def test_edit_missing_is_noop(self, client):
        response = client.put("/entries/missing", json={"classification": "Act"})
        assert response.status_code == 200
        assert response.json()["changed"] is False

    def test_delete(self, client):
        created = client.post("/entries/part-one", json=part_one_body()).json()

        assert client.delete(f"/entries/{created['id']}").json() == {"changed": True}
        assert client.delete(f"/entries/{created['id']}").json() == {"changed": False}

    def test_search(self, client):
        """测试检索：序号基于完整记录集，空条件返回空结果"""
        client.post("/entries/part-one", json=part_one_body(candle="1"))
        client.post("/entries/part-one", json=part_one_body(candle="2"))

        assert client.post("/entries/search", json={}).json() == {"entries": []}

        result = client.post("/entries/search", json={"fieldCriteria": {"candle": "1"}}).json()["entries"]
        assert len(result) == 1
        assert result[0]["fieldSet"]["candle"] == "1"
        assert result[0]["serialNumber"] in (1, 2)

    def test_duplicates(self, client):
        client.post("/entries/part-one", json=part_one_body())
        body = part_one_body()
        body["classification"] = "Front Act"
        client.post("/entries/part-one", json=body)

        report = client.get("/entries/duplicates").json()

        assert len(report["conflicting"]) == 2
        assert report["consistent"] == []


class TestBackupRoutes:
    """测试备份接口"""

    def test_export(self, client):
        client.post("/entries/part-one", json=part_one_body())

        response = client.get("/backup/export")

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert "stock-entries-" in response.headers["content-disposition"]
        document = json.loads(response.text)
        assert document[0]["fieldSet"]["intro"] == "CG UP"

    def test_import(self, client):
        text = dumps([make_entry(entry_id="a", sequence_key=1_000), make_entry(entry_id="b", sequence_key=2_000)])

        response = client.post("/backup/import", content=text)

        assert response.json() == {"imported": 2, "skipped": 0, "failed": 0}
        entries = client.get("/entries").json()["entries"]
        assert [(item["id"], item["serialNumber"]) for item in entries] == [("b", 2), ("a", 1)]

    def test_import_runs_in_threadpool(self, client, monkeypatch):
        """测试导入的数据库写入交给线程池执行，不阻塞事件循环"""
        import app.api.main as main_module

        calls = []
        original = main_module.run_in_threadpool

        async def recording(func, *args, **kwargs):
            calls.append(func.__name__)
            return await original(func, *args, **kwargs)

        monkeypatch.setattr(main_module, "run_in_threadpool", recording)

        response = client.post("/backup/import", content=dumps([make_entry(entry_id="a")]))

        assert response.json()["imported"] == 1
        assert calls == ["import_text"]

    def test_import_format_error(self, client):
        response = client.post("/backup/import", content="not json")
        assert response.status_code == 400
        assert response.json()["type"] == "FormatError"
