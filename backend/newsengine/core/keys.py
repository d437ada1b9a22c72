"""Redis key layout."""

from __future__ import annotations

NEWS_COUNT = "news.count"
NEWS_TOP = "news.top"
NEWS_CRON = "news.cron"
USERS_COUNT = "users.count"


def news(news_id: int) -> str:
    return f"news:{news_id}"


def news_voters(news_id: int, direction: str) -> str:
    return f"news.{direction}:{news_id}"


def repost_lock(url: str) -> str:
    return f"url:{url}"


def user(user_id: int) -> str:
    return f"user:{user_id}"


def username_index(username: str) -> str:
    return f"username.to.id:{username.lower()}"


def user_posted(user_id: int) -> str:
    return f"user.posted:{user_id}"


def user_saved(user_id: int) -> str:
    return f"user.saved:{user_id}"


def user_comments(user_id: int) -> str:
    return f"user.comments:{user_id}"


def submitted_recently(user_id: int) -> str:
    return f"user:{user_id}:submitted_recently"


def thread(namespace: str, thread_id: int) -> str:
    return f"thread:{namespace}:{thread_id}"


def comment_voters(namespace: str, thread_id: int, comment_id: int, direction: str) -> str:
    return f"{namespace}.{direction}:{thread_id}:{comment_id}"
