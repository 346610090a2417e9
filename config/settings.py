"""
Configuration settings for FeedbackLens.

Module-level defaults for every component, plus a Settings value that is
built once at startup and passed into components at construction.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"

# Classifier (LLM)
CLASSIFIER_MODEL = "gemini-1.5-flash"
LLM_TEMPERATURE = 0.0  # 0.0 for deterministic
CLASSIFIER_MAX_RETRIES = 1

# Normalizer contract version, stored with every analysis row
MODEL_VERSION = "v1.0"

# Analysis
DEFAULT_PENDING_LIMIT = 25
ANALYSIS_MAX_WORKERS = 1  # 1 = sequential

# Aggregation
TOP_THEMES_LIMIT = 10
RECENT_FEEDBACK_LIMIT = 20

# Digests
REPORT_FROM_NAME = "Nova Reports"

# Transport
HTTP_TIMEOUT_SECONDS = 10.0

# Storage
DATABASE_PATH = DATA_ROOT / "feedback.db"

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """
    Explicit runtime configuration.

    Components receive this at construction instead of reading the
    environment themselves. Use Settings.from_env() at the process edge.
    """
    google_api_key: str = ""
    classifier_model: str = CLASSIFIER_MODEL
    llm_temperature: float = LLM_TEMPERATURE
    classifier_max_retries: int = CLASSIFIER_MAX_RETRIES
    model_version: str = MODEL_VERSION

    default_pending_limit: int = DEFAULT_PENDING_LIMIT
    analysis_max_workers: int = ANALYSIS_MAX_WORKERS
    top_themes_limit: int = TOP_THEMES_LIMIT
    recent_feedback_limit: int = RECENT_FEEDBACK_LIMIT

    slack_webhook_url: Optional[str] = None
    mailchannels_api_key: Optional[str] = None
    report_from: Optional[str] = None
    report_from_name: str = REPORT_FROM_NAME
    report_recipients: List[str] = field(default_factory=list)
    http_timeout_seconds: float = HTTP_TIMEOUT_SECONDS

    database_path: str = str(DATABASE_PATH)
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings populated from the environment, falling back to defaults
        """
        env = os.environ if environ is None else environ

        recipients = env.get("REPORT_RECIPIENTS", "")

        return cls(
            google_api_key=env.get("GOOGLE_API_KEY", ""),
            classifier_model=env.get("MODEL_NAME") or CLASSIFIER_MODEL,
            analysis_max_workers=int(env.get("ANALYSIS_MAX_WORKERS") or ANALYSIS_MAX_WORKERS),
            slack_webhook_url=env.get("SLACK_WEBHOOK_URL") or None,
            mailchannels_api_key=env.get("MAILCHANNELS_API_KEY") or None,
            report_from=env.get("REPORT_FROM") or None,
            report_recipients=[r.strip() for r in recipients.split(",") if r.strip()],
            database_path=env.get("FEEDBACKLENS_DB_PATH") or str(DATABASE_PATH),
            log_level=env.get("LOG_LEVEL") or LOG_LEVEL,
        )
