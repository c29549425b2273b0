"""配置与订阅源注册表测试"""

import shutil
import tempfile
from pathlib import Path

from newsbrief.config import AIConfig, AppConfig, FeedSource, ServerConfig, load_config
from newsbrief.sources import DEFAULT_SOURCES, RSSHUB_MIRRORS, enabled_sources, mirror_groups


CONFIG_YAML = """
ai:
  api_key: ${NEWSBRIEF_TEST_KEY}
  model: test-model
storage:
  database_url: ""
schedule:
  morning_time: "01:30"
"""

FEEDS_YAML = """
mirror_groups:
  - name: mirrors
    hosts:
      - https://a.example
      - https://b.example
feeds:
  - name: One
    url: https://a.example/one
    mirror_group: mirrors
  - name: Two
    url: https://two.example/rss
    enabled: false
"""


class TestLoadConfig:
    """load_config 测试"""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_env_expansion_and_feeds(self, monkeypatch):
        """展开 ${VAR} 并加载订阅源"""
        monkeypatch.setenv("NEWSBRIEF_TEST_KEY", "k-123")
        (self.temp_dir / "config.yaml").write_text(CONFIG_YAML, encoding="utf-8")
        (self.temp_dir / "feeds.yaml").write_text(FEEDS_YAML, encoding="utf-8")

        config = load_config(self.temp_dir)

        assert config.ai.api_key == "k-123"
        assert config.ai.model == "test-model"
        assert config.schedule.morning_time == "01:30"
        assert [f.name for f in config.feeds] == ["One", "Two"]
        assert config.feeds[0].mirror_group == "mirrors"
        assert config.mirror_groups[0].hosts == ["https://a.example", "https://b.example"]

    def test_empty_dir_uses_defaults_and_env_fallbacks(self, monkeypatch):
        """无配置文件时使用默认值，并回退到 API_KEY / POSTGRES_URL"""
        monkeypatch.setenv("API_KEY", "from-env")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_URL", "/tmp/briefings.db")

        config = load_config(self.temp_dir)

        assert config.ai.api_key == "from-env"
        assert config.storage.database_url == "/tmp/briefings.db"
        assert config.fetch.timeout == 8.0
        assert config.fetch.max_items_per_source == 15
        assert config.server.port == 3000
        assert config.feeds == []

    def test_missing_env_means_empty(self, monkeypatch):
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("POSTGRES_URL", raising=False)

        config = load_config(self.temp_dir)

        assert config.ai.api_key == ""
        assert config.storage.database_url == ""

    def test_example_files_load(self, monkeypatch):
        """仓库内的示例配置可以加载"""
        monkeypatch.setenv("API_KEY", "k")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("POSTGRES_URL", raising=False)
        config_dir = Path(__file__).parent.parent / "config"

        config = load_config(config_dir)

        assert config.ai.api_key == "k"
        assert len(config.feeds) == 6
        assert config.mirror_groups[0].name == "rsshub"


class TestTriggerToken:
    def test_falls_back_to_api_key(self):
        config = AppConfig(ai=AIConfig(api_key="k"))
        assert config.trigger_token == "k"

    def test_explicit_token(self):
        config = AppConfig(ai=AIConfig(api_key="k"), server=ServerConfig(trigger_token="t"))
        assert config.trigger_token == "t"


class TestSources:
    """订阅源注册表测试"""

    def test_defaults_when_unconfigured(self):
        sources = enabled_sources([])

        assert sources == DEFAULT_SOURCES
        assert [s.name for s in sources][:2] == ["Tencent Tech", "Hugging Face"]

    def test_disabled_sources_filtered_in_order(self):
        feeds = [
            FeedSource(name="B", url="https://b"),
            FeedSource(name="A", url="https://a", enabled=False),
            FeedSource(name="C", url="https://c"),
        ]
        assert [s.name for s in enabled_sources(feeds)] == ["B", "C"]

    def test_default_mirror_group(self):
        assert mirror_groups([]) == [RSSHUB_MIRRORS]
        assert "https://rsshub.app" in RSSHUB_MIRRORS.hosts
