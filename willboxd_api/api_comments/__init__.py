from .comments import build_comments_blueprint

__all__ = ["build_comments_blueprint"]
