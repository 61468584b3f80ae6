from .guestbook import build_guestbook_blueprint

__all__ = ["build_guestbook_blueprint"]
