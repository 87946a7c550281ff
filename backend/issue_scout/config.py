from pydantic_settings import BaseSettings

from issue_scout.errors import ConfigError


class Settings(BaseSettings):
    github_token: str = ""
    database_url: str = ""
    github_api_base: str = "https://api.github.com"
    github_graphql_url: str = "https://api.github.com/graphql"
    user_agent: str = "issue-scout"
    http_timeout: float = 45.0
    languages: list[str] = [
        "Rust", "JavaScript", "TypeScript", "Java", "cpp", "Python", "Go", "c", "php",
    ]
    repos_per_language: int = 20
    search_page_size: int = 30
    politeness_delay_seconds: float = 0.5
    cycle_interval_seconds: float = 3600.0
    min_stars: int = 10
    commit_window_days: int = 30
    max_issues: int = 2000
    max_repos: int = 200
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": ""}

    def require(self, *fields: str) -> None:
        """Raise ConfigError naming every listed field that is empty."""
        missing = [f.upper() for f in fields if not getattr(self, f)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
