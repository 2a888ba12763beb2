"""Business services: ingestion, retrieval, reranking, citations and answers.

Services depend only on the ABCs in ``docqa.interfaces``; concrete
providers are injected by ``docqa.main``.
"""
