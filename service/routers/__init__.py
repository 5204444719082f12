from . import configuration, feedback, review, verify

__all__ = ["configuration", "feedback", "review", "verify"]
