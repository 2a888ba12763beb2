"""Command-line tools for docqa.

- ``python -m docqa ingest FILE...``        store and index documents
- ``python -m docqa ask "QUESTION"``        answer a question from the index
- ``python -m docqa list``                  show the catalog
- ``python -m docqa delete DOC_ID``         remove a document everywhere

Each invocation builds its own orchestrator from ``Settings`` and tears it
down on exit.  With the default in-memory index nothing survives between
invocations, so use ``INDEX_BACKEND=chromadb`` for separate ingest and ask
runs, or pass ``--ingest`` to ``ask``.
"""
