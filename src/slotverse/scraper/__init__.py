"""Scraping pipeline for single-game pages.

Sub-modules:

- ``config``: user agents, header sets and extraction constants.
- ``markup``: regex helpers over raw HTML.
- ``signals``: name detection signals and acceptance rules.
- ``enrichment``: field rules for RTP, provider, volatility and friends.
- ``extractor``: the extraction engine.
- ``strategies``: fetch strategy definitions.
- ``http_fetcher``: one fetch with one strategy.
- ``runner``: tries strategies in order until a game is extracted.
- ``wakeup``: Redis pub/sub nudge for idle workers.
- ``worker``: background job executor and its CLI.
"""
