"""
Edge Detector

Fires only when the keyword goes from absent to present between two
successful checks, so a keyword that stays on the page notifies once.
"""

import logging

from ..config import MonitorState

logger = logging.getLogger(__name__)


class EdgeDetector:
    """Rising-edge detector over MonitorState.last_keyword_found."""

    def __init__(self, state: MonitorState):
        self.state = state

    def observe(self, found: bool) -> bool:
        """
        Record the result of a successful check.

        Only call this after a fetch succeeded; a failed fetch must leave the
        previous observation in place.

        Returns:
            True on a rising edge (previously absent, now present)
        """
        rising = found and not self.state.last_keyword_found
        if found != self.state.last_keyword_found:
            logger.debug(f"Keyword presence changed: {self.state.last_keyword_found} -> {found}")
        self.state.last_keyword_found = found
        return rising
