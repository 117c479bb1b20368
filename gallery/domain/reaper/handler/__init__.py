"""Dead-letter handlers."""

from gallery.domain.reaper.handler.reap_dead_letters import ReapDeadLetters

__all__ = ["ReapDeadLetters"]
