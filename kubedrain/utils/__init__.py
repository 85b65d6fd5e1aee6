from .wait import poll_immediate

__all__ = ["poll_immediate"]
