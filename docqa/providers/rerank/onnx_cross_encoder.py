"""Local cross-encoder scorer on ONNX Runtime.

Loads ``model.onnx`` and its HuggingFace ``tokenizer.json`` from one model
directory (e.g. ``jinaai/jina-reranker-v2-base-multilingual`` exported to
ONNX).  Like the fastembed embedder, the model is loaded on first use and
inference runs in a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import numpy as np
import structlog

from docqa.interfaces.relevance_scorer import IRelevanceScorer
from docqa.utils.errors import ConfigurationError, RerankError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_FILE = "model.onnx"
_TOKENIZER_FILE = "tokenizer.json"
_PAD_TOKENS = ("<pad>", "[PAD]")


class OnnxCrossEncoderScorer(IRelevanceScorer):
    """Cross-encoder relevance scorer backed by onnxruntime + tokenizers.

    Parameters
    ----------
    model_dir:
        Directory containing ``model.onnx`` and ``tokenizer.json``.
    """

    def __init__(self, model_dir: str) -> None:
        self._model_dir = Path(model_dir)
        self._session = None  # Lazy-loaded
        self._input_names: set[str] = set()
        self._tokenizer = None  # Lazy-loaded
        self._pad_token_id = 0
        self._load_lock = threading.Lock()

    def _load(self) -> None:
        """Lazy-load the tokenizer and the ONNX session."""
        if self._session is not None:
            return
        with self._load_lock:
            if self._session is not None:
                return

            model_path = self._model_dir / _MODEL_FILE
            tokenizer_path = self._model_dir / _TOKENIZER_FILE
            if not model_path.is_file() or not tokenizer_path.is_file():
                raise ConfigurationError(
                    message=(
                        f"Reranker model not found: expected {_MODEL_FILE} and "
                        f"{_TOKENIZER_FILE} in {self._model_dir}"
                    ),
                    provider_name=self.get_provider_name(),
                )

            try:
                import onnxruntime
                from tokenizers import Tokenizer

                tokenizer = Tokenizer.from_file(str(tokenizer_path))
                # Windowing needs the full pair; never let the tokenizer cut it.
                tokenizer.no_truncation()
                tokenizer.no_padding()
                session = onnxruntime.InferenceSession(
                    str(model_path), providers=["CPUExecutionProvider"]
                )
            except Exception as exc:
                raise RerankError(
                    message=f"Failed to load reranker from {self._model_dir}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            for token in _PAD_TOKENS:
                token_id = tokenizer.token_to_id(token)
                if token_id is not None:
                    self._pad_token_id = token_id
                    break
            self._tokenizer = tokenizer
            self._input_names = {i.name for i in session.get_inputs()}
            self._session = session
            logger.info(
                "cross_encoder_loaded",
                model_dir=str(self._model_dir),
                inputs=sorted(self._input_names),
                pad_token_id=self._pad_token_id,
            )

    # ------------------------------------------------------------------
    # IRelevanceScorer implementation
    # ------------------------------------------------------------------

    async def encode_pair(
        self, query: str, passage: str
    ) -> tuple[list[int], list[int], list[int]]:
        # The first call loads the model; both loading and tokenizing stay off the loop.
        return await asyncio.to_thread(self._encode, query, passage)

    async def score(
        self,
        input_ids: list[int],
        attention_mask: list[int],
        token_type_ids: list[int],
    ) -> float:
        await asyncio.to_thread(self._load)
        try:
            return await asyncio.to_thread(self._run, input_ids, attention_mask, token_type_ids)
        except Exception as exc:
            raise RerankError(
                message=f"Cross-encoder inference failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_pad_token_id(self) -> int:
        self._load()
        return self._pad_token_id

    def get_provider_name(self) -> str:
        return "onnx-cross-encoder"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _encode(self, query: str, passage: str) -> tuple[list[int], list[int], list[int]]:
        self._load()
        encoding = self._tokenizer.encode(query, passage)
        return list(encoding.ids), list(encoding.attention_mask), list(encoding.type_ids)

    def _run(
        self,
        input_ids: list[int],
        attention_mask: list[int],
        token_type_ids: list[int],
    ) -> float:
        feeds = {
            "input_ids": np.asarray([input_ids], dtype=np.int64),
            "attention_mask": np.asarray([attention_mask], dtype=np.int64),
        }
        if "token_type_ids" in self._input_names:
            feeds["token_type_ids"] = np.asarray([token_type_ids], dtype=np.int64)

        logits = np.asarray(self._session.run(None, feeds)[0])
        return logit_to_score(logits)


def logit_to_score(logits: np.ndarray) -> float:
    """Pick the relevance logit out of a model output.

    ``[[x]]`` is a single regression score, ``[[neg, pos]]`` a binary
    classifier whose second column is "relevant", and ``[x]`` a flat score.
    """
    if logits.ndim == 2:
        row = logits[0]
        return float(row[0] if row.shape[0] == 1 else row[1])
    if logits.ndim == 1:
        return float(logits[0])
    raise RerankError(
        message=f"Unexpected cross-encoder output shape {logits.shape}",
        provider_name="onnx-cross-encoder",
    )
