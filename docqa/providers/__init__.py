"""Concrete adapters for the interfaces in ``docqa.interfaces``.

Heavy optional backends (ChromaDB, ONNX Runtime) are imported by the
subpackage that needs them, so picking the in-memory index does not load
ChromaDB.
"""
