import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unknown falls back to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def split_csv_env(value: str) -> tuple[str, ...]:
    """``"studentid, badge"`` -> ``("studentid", "badge")``."""

    return tuple(part.strip() for part in (value or "").split(",") if part.strip())
