"""SlotVerse scrape-job pipeline.

Turns chat-platform ``/copy <url>`` requests into background scrape jobs that
fetch a game page, extract a single slot-game record, save it to the catalog
and report back to the requester.
"""

__version__ = "0.1.0"
