"""
WordPress extractors.

:mod:`.wordpress_extractor` downloads the REST API collections page by page
and :mod:`.transform` reshapes posts and lists their media for the upload
stages.
"""
