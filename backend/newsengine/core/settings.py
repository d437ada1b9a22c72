from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"
    redis_url: str = "redis://127.0.0.1:6379/0"
    redis_socket_timeout: float = 2.0

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "newsengine"
    access_token_minutes: int = 60 * 24 * 30

    log_level: str = "INFO"
    log_json: bool = True

    # Accounts
    password_min_length: int = 8
    username_regexp: str = r"^[a-zA-Z][a-zA-Z0-9_-]+$"

    # Comments
    comment_max_length: int = 4096
    comment_edit_time: int = 3600 * 2
    user_comments_per_page: int = 10

    # Karma
    user_initial_karma: int = 1
    karma_increment_interval: int = 3600
    karma_increment_amount: int = 1
    news_downvote_min_karma: int = 30
    news_downvote_karma_cost: int = 6
    news_upvote_min_karma: int = 1
    news_upvote_karma_cost: int = 1
    news_upvote_karma_transfered: int = 1

    # News and ranking
    news_age_padding: int = 3600 * 8
    top_news_per_page: int = 30
    latest_news_per_page: int = 100
    saved_news_per_page: int = 10
    news_edit_time: int = 60 * 15
    news_score_log_start: int = 10
    news_score_log_booster: float = 2.0
    rank_aging_factor: float = 1.1
    rank_scale: float = 1_000_000.0
    rank_epsilon: float = 0.000001
    prevent_repost_time: int = 3600 * 48
    news_submission_break: int = 60 * 15
    top_news_age_limit: int = 3600 * 24 * 30

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()
