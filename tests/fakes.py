"""
Stand-in inference backends with fixed logits, so engine behavior can be
tested without a trained network.
"""

import threading
from typing import Dict, Optional, Sequence

import numpy as np

from policy_engine.inference.base import InferenceBackend
from policy_engine.policy.move_index import MoveIndexTable

BASE_LOGIT = -5.0


class FakeBackend(InferenceBackend):
    """Backend returning the same policy vector on every call.

    Args:
        policy: Flat logits to return (default: all BASE_LOGIT)
        policy_size: Length of the default policy and the advertised size
        error: Exception raised from run(), if given
        gate: Event run() waits on before answering
        input_names / output_names: Advertised tensor names
    """

    def __init__(
        self,
        policy: Optional[np.ndarray] = None,
        policy_size: int = 1880,
        error: Optional[Exception] = None,
        gate: Optional[threading.Event] = None,
        input_names: Sequence[str] = ("boards", "elo_self", "elo_oppo"),
        output_names: Sequence[str] = ("logits_maia",),
        advertise_size: bool = True,
    ):
        self.policy = policy if policy is not None else np.full(policy_size, BASE_LOGIT, np.float32)
        self.policy_size = policy_size
        self.error = error
        self.gate = gate
        self.started = threading.Event()
        self.calls = []
        self._inputs = tuple(input_names)
        self._outputs = tuple(output_names)
        self.advertise_size = advertise_size

    @property
    def input_names(self):
        return self._inputs

    @property
    def output_names(self):
        return self._outputs

    def output_size(self, name):
        if self.advertise_size and name == self._outputs[0]:
            return self.policy_size
        return None

    def run(self, feeds):
        self.calls.append(feeds)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        return {self._outputs[0]: np.asarray(self.policy, dtype=np.float32)[np.newaxis]}


def favor(table: MoveIndexTable, scores: Dict[str, float]) -> np.ndarray:
    """Policy vector with BASE_LOGIT everywhere except the given table keys."""
    policy = np.full(len(table), BASE_LOGIT, dtype=np.float32)
    for uci, value in scores.items():
        policy[table.move_to_index[uci]] = value
    return policy


