"""
Contentful API migrators and helpers.

This subpackage provides the blocking Content Management API client
(:mod:`.contentful_client`) and the async :class:`RecordService` adapter
(:mod:`.record_service`) the upload pipeline awaits.  Retries on 429/5xx,
version headers and binary asset processing live here.
"""
