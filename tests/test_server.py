"""HTTP 接口测试"""

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from newsbrief.config import AIConfig, AppConfig, StorageConfig
from newsbrief.main import BriefingService
from newsbrief.storage.postgres import PostgresBriefingDatabase
from newsbrief.web.server import create_app


class TestServer:
    """FastAPI 路由测试"""

    def setup_method(self):
        self.service = BriefingService(AppConfig(ai=AIConfig(api_key="secret")))
        self.client = TestClient(create_app(service=self.service, start_scheduler=False))

    def _mock_pipeline(self) -> MagicMock:
        pipeline = MagicMock()
        pipeline.tracker = self.service.tracker
        pipeline.is_running = False
        pipeline.run_job = AsyncMock(return_value=None)
        self.service.api.pipeline = pipeline
        return pipeline

    def test_health(self):
        response = self.client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    def test_root(self):
        response = self.client.get("/")
        assert response.text == "AI News Backend Active."

    def test_latest_placeholder(self):
        response = self.client.get("/api/latest")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["id"] == "sys-missing-db"
        assert "impactScore" in data[0]

    def test_debug(self):
        response = self.client.get("/api/debug")

        data = response.json()
        assert data["env"] == {"hasApiKey": True, "hasDb": False}
        assert data["jobHistory"] == []
        assert data["running"] is False

    def test_dates_and_archive_without_db(self):
        assert self.client.get("/api/dates").json() == []
        assert self.client.get("/api/archive/2026-10-19").json() == []

    def test_archive_invalid_date(self):
        response = self.client.get("/api/archive/not-a-date")
        assert response.status_code == 422

    def test_trigger_unauthorized(self):
        pipeline = self._mock_pipeline()

        response = self.client.post("/api/trigger", headers={"Authorization": "wrong"})

        assert response.status_code == 401
        pipeline.run_job.assert_not_called()

    def test_trigger_without_header(self):
        self._mock_pipeline()

        response = self.client.post("/api/trigger")

        assert response.status_code == 401

    def test_trigger_accepted(self):
        """鉴权通过后立即返回，任务在后台运行"""
        pipeline = self._mock_pipeline()

        response = self.client.post("/api/trigger", headers={"Authorization": "secret"})

        assert response.status_code == 200
        assert response.text == "Job started. Check /api/debug for progress."
        assert pipeline.run_job.call_count == 1
        assert isinstance(pipeline.run_job.call_args.args[0], bool)

    def test_trigger_while_running(self):
        """已有任务运行时返回跳过提示"""
        pipeline = self._mock_pipeline()
        pipeline.is_running = True

        response = self.client.post("/api/trigger", headers={"Authorization": "secret"})

        assert response.status_code == 200
        assert "trigger skipped" in response.text
        pipeline.run_job.assert_not_called()

    def test_trigger_token_not_configured(self):
        """服务端未配置凭证返回 500"""
        self._mock_pipeline()
        self.service.api.trigger_token = ""

        response = self.client.post("/api/trigger", headers={"Authorization": "secret"})

        assert response.status_code == 500
        assert "API_KEY missing" in response.json()["detail"]

    def test_cors_allows_any_origin(self):
        response = self.client.get("/health", headers={"Origin": "https://frontend.example"})
        assert response.headers["access-control-allow-origin"] == "*"


class TestServiceStorageWiring:
    """按连接串装配存储与状态卡片"""

    def test_postgres_url_enables_durable_store(self):
        service = BriefingService(AppConfig(
            storage=StorageConfig(database_url="postgres://u:p@db:5432/news"),
        ))

        assert isinstance(service.db, PostgresBriefingDatabase)
        assert service.store.has_durable is True
        assert service.api.get_debug_snapshot()["env"]["hasDb"] is True
        assert service.cache.get()[0].id == "sys-connected-waiting"

    def test_unusable_url_is_not_reported_missing(self):
        """提供了连接串但无法使用时，卡片不应提示未配置"""
        service = BriefingService(AppConfig(
            storage=StorageConfig(database_url="mysql://u:p@db/news"),
        ))

        card = service.cache.get()[0]
        assert service.store.has_durable is False
        assert card.id == "sys-db-unavailable"
        assert "cannot find" not in card.summary.en

    def test_no_url_reports_missing(self):
        service = BriefingService(AppConfig())
        assert service.cache.get()[0].id == "sys-missing-db"
