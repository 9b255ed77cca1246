"""
Engine Handle

Process-wide, read-only bundle of everything loaded once per model: the
inference backend, the move index table and the resolved tensor names.
Construct one handle and pass it to every game session; it holds no
per-game state and is safe to share across sessions and threads.
"""

import logging
from typing import Optional

import numpy as np

from policy_engine.engine.config import EngineConfig
from policy_engine.errors import InferenceFailure, ModelSchemaError
from policy_engine.inference.base import InferenceBackend
from policy_engine.inference.onnx_backend import OnnxBackend
from policy_engine.inference.schema import ModelIOConfig
from policy_engine.inference.torch_backend import TorchBackend
from policy_engine.policy.move_index import MoveIndexTable

logger = logging.getLogger(__name__)


class EngineHandle:
    """
    Loaded policy network plus its move table.

    Attributes:
        backend: Inference runtime
        move_table: Move index table matching the policy output
        io: Resolved model tensor names

    Methods:
        infer: Run the network on one encoded position
    """

    def __init__(self, backend: InferenceBackend, move_table: Optional[MoveIndexTable] = None):
        """
        Bind a backend to a move table and validate the pair.

        Args:
            backend: Inference runtime
            move_table: Table for the model (default: reference catalog)

        Raises:
            ModelSchemaError: If tensor names do not resolve, or the policy
                output length differs from the table length
        """
        self.backend = backend
        self.move_table = move_table if move_table is not None else MoveIndexTable.reference()
        self.io = ModelIOConfig.resolve(backend.input_names, backend.output_names)

        size = backend.output_size(self.io.policy)
        if size is not None and size != len(self.move_table):
            raise ModelSchemaError(
                f"Policy output has {size} slots but the move table has {len(self.move_table)}"
            )

        logger.info(f"Engine handle ready: {backend!r}, {self.move_table!r}, io={self.io}")

    @classmethod
    def from_config(cls, config: EngineConfig) -> "EngineHandle":
        """
        Load the model and move table named by a config.

        .onnx models run on ONNX Runtime, .pt checkpoints on PyTorch.

        Raises:
            ValueError: If no model path is configured or its type is unknown
        """
        if config.model_path is None:
            raise ValueError("EngineConfig.model_path is required to load a model")

        suffix = config.model_path.suffix.lower()
        if suffix == ".onnx":
            backend = OnnxBackend(config.model_path, prefer_gpu=config.prefer_gpu)
        elif suffix == ".pt":
            backend = TorchBackend.from_checkpoint(config.model_path, device=config.device)
        else:
            raise ValueError(f"Unsupported model type: {config.model_path}")

        if config.move_index_path is not None:
            move_table = MoveIndexTable.from_json(config.move_index_path)
        else:
            move_table = MoveIndexTable.reference()

        return cls(backend, move_table)

    @property
    def policy_size(self) -> int:
        return len(self.move_table)

    def infer(self, planes: np.ndarray, self_category: int, oppo_category: int) -> np.ndarray:
        """
        Run the policy network on one position.

        Args:
            planes: (18, 8, 8) planes from the trained perspective
            self_category: Skill category of the side to move
            oppo_category: Skill category of its opponent

        Returns:
            Flat float32 policy logits of length policy_size

        Raises:
            InferenceFailure: If the backend raises, or the policy output is
                missing or has the wrong length
        """
        feeds = self.io.build_feeds(planes, self_category, oppo_category)

        try:
            outputs = self.backend.run(feeds)
        except Exception as e:
            raise InferenceFailure(f"Inference backend failed: {e}") from e

        if self.io.policy not in outputs:
            raise InferenceFailure(f"Policy output '{self.io.policy}' missing from results")

        logits = np.asarray(outputs[self.io.policy], dtype=np.float32).reshape(-1)
        if logits.shape[0] != self.policy_size:
            raise InferenceFailure(
                f"Expected {self.policy_size} policy logits, got {logits.shape[0]}"
            )

        return logits
