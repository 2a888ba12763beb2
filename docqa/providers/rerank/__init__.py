"""Pairwise relevance scorers."""

from docqa.providers.rerank.onnx_cross_encoder import OnnxCrossEncoderScorer

__all__ = ["OnnxCrossEncoderScorer"]
