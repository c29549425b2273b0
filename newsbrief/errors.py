"""异常定义"""


class NewsbriefError(Exception):
    """所有业务异常的基类"""


class ConfigError(NewsbriefError):
    """配置缺失（API Key、数据库连接串等），只降级能力，不终止进程"""


class FetchError(NewsbriefError):
    """单个订阅源的所有候选地址均抓取失败"""

    def __init__(self, source: str, message: str = ""):
        self.source = source
        super().__init__(message or f"All mirrors failed for {source}")


class GenerationError(NewsbriefError):
    """调用生成模型失败"""


class MissingCredentialError(GenerationError, ConfigError):
    """未配置模型凭证，生成直接失败"""

    def __init__(self, message: str = "API_KEY missing"):
        super().__init__(message)


class ValidationError(NewsbriefError):
    """模型输出无法解析为 JSON 数组"""


class PersistenceError(NewsbriefError):
    """持久化存储读写失败"""


class RelationNotFoundError(PersistenceError):
    """存储表不存在（可通过建表自愈）"""


class AuthError(NewsbriefError):
    """触发任务的鉴权失败"""

    def __init__(self, message: str, configured: bool = True):
        self.configured = configured
        super().__init__(message)
