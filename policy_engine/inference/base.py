"""
Abstract Inference Backend Interface

The policy network is a black box: named numpy arrays in, named numpy
arrays out. Backends wrap a concrete runtime (ONNX Runtime, PyTorch) behind
this interface so the rest of the engine never touches the runtime.

Key Principles:
    1. Backends are read-only after construction and safe to share
    2. run() takes and returns numpy arrays keyed by tensor name
    3. Runtime errors propagate; the engine handle wraps them
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence

import numpy as np


class InferenceBackend(ABC):
    """
    Abstract base class for policy network runtimes.

    Attributes:
        input_names: Names of the model inputs
        output_names: Names of the model outputs

    Methods:
        run(feeds): Run the model on named inputs
        output_size(name): Flat length of an output, if known statically
    """

    @property
    @abstractmethod
    def input_names(self) -> Sequence[str]:
        """Names of the model inputs, in model order."""

    @property
    @abstractmethod
    def output_names(self) -> Sequence[str]:
        """Names of the model outputs, in model order."""

    @abstractmethod
    def run(self, feeds: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """
        Run the model.

        Args:
            feeds: Input arrays keyed by input name

        Returns:
            Output arrays keyed by output name
        """

    def output_size(self, name: str) -> Optional[int]:
        """
        Per-sample flat length of an output.

        Returns:
            The length, or None if the runtime cannot tell before running
        """
        return None

    def __repr__(self) -> str:
        """String representation of backend."""
        return f"{self.__class__.__name__}(inputs={list(self.input_names)}, outputs={list(self.output_names)})"
