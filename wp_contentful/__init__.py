"""
Top-level package for the WordPress → Contentful migration utility.

This package bundles all components required to download content from the
WordPress REST API, reshape it for the Contentful content model and create
the records through the Content Management API.  Modules are split into
subpackages:

* :mod:`wp_contentful.extractors` – WordPress download and post transform
* :mod:`wp_contentful.migrators` – Contentful API client and async adapter
* :mod:`wp_contentful.pipeline` – bounded worker pool, rate gate, index, results
* :mod:`wp_contentful.stages` – one upload stage per record family
* :mod:`wp_contentful.utils` – event logs, redirect CSV, pre-flight checks

Orchestration is handled in :mod:`wp_contentful.migration_tool`.
"""
