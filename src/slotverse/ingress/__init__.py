"""Ingress handlers: turn chat commands and API calls into pending scrape jobs.

Every surface funnels through :class:`~slotverse.ingress.dispatcher.JobDispatcher`,
which validates the URL, applies the per-requester throttle, commits the
job and nudges the worker.  Nothing here waits on the target site.
"""
