from . import events, maintenance

__all__ = ["events", "maintenance"]
