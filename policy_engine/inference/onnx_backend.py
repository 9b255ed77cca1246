"""
ONNX Runtime backend for exported policy networks.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import onnxruntime as ort

from policy_engine.inference.base import InferenceBackend

logger = logging.getLogger(__name__)


class OnnxBackend(InferenceBackend):
    """Wrapper around an ONNX Runtime inference session."""

    def __init__(self, model_path: Union[str, Path], prefer_gpu: bool = False):
        """Create the inference session.

        Args:
            model_path: Exported .onnx model
            prefer_gpu: Try the CUDA execution provider before the CPU one
        """
        self.model_path = Path(model_path)

        providers = []
        if prefer_gpu and "CUDAExecutionProvider" in ort.get_available_providers():
            providers.append("CUDAExecutionProvider")
        providers.append("CPUExecutionProvider")

        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL

        self.session = ort.InferenceSession(str(self.model_path), sess_options, providers=providers)
        self._inputs = tuple(i.name for i in self.session.get_inputs())
        self._outputs = tuple(o.name for o in self.session.get_outputs())

        logger.info(
            f"ONNX model {self.model_path.name} loaded on {self.session.get_providers()[0]}: "
            f"inputs={list(self._inputs)} outputs={list(self._outputs)}"
        )

    @property
    def input_names(self) -> Sequence[str]:
        return self._inputs

    @property
    def output_names(self) -> Sequence[str]:
        return self._outputs

    def output_size(self, name: str) -> Optional[int]:
        for output in self.session.get_outputs():
            if output.name != name:
                continue
            # Leading axis is the batch; symbolic dims come back as strings
            dims = output.shape[1:]
            if not dims or not all(isinstance(d, int) for d in dims):
                return None
            return int(np.prod(dims))
        return None

    def run(self, feeds: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        outputs = self.session.run(None, feeds)
        return dict(zip(self._outputs, outputs))
