"""订阅源注册表"""

from .config import FeedSource, MirrorGroup


RSSHUB_MIRRORS = MirrorGroup(
    name="rsshub",
    hosts=[
        "https://rsshub.app",
        "https://rsshub.feedlib.xyz",
        "https://rsshub.pseudoyu.com",
        "https://rsshub.blue",
    ],
)

DEFAULT_MIRROR_GROUPS = [RSSHUB_MIRRORS]

DEFAULT_SOURCES = [
    FeedSource(name="Tencent Tech", url="https://rsshub.app/tencent/news/channel/tech", mirror_group="rsshub"),
    FeedSource(name="Hugging Face", url="https://huggingface.co/blog/feed.xml"),
    FeedSource(name="Y Combinator AI", url="https://hnrss.org/newest?q=AI"),
    FeedSource(name="Arxiv AI", url="https://export.arxiv.org/rss/cs.AI"),
    FeedSource(name="Reddit LocalLlama", url="https://rsshub.app/reddit/subreddit/LocalLLaMA", mirror_group="rsshub"),
    FeedSource(name="Reddit StableDiffusion", url="https://rsshub.app/reddit/subreddit/StableDiffusion", mirror_group="rsshub"),
]


def enabled_sources(feeds: list[FeedSource]) -> list[FeedSource]:
    """按注册顺序返回启用的订阅源，未配置时使用默认列表"""
    registry = feeds or DEFAULT_SOURCES
    return [f for f in registry if f.enabled]


def mirror_groups(groups: list[MirrorGroup]) -> list[MirrorGroup]:
    """返回镜像组，未配置时使用默认 RSSHub 镜像池"""
    return groups or DEFAULT_MIRROR_GROUPS
