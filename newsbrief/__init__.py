"""AI News Briefing"""

__version__ = "0.1.0"
