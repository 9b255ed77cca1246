"""
In-process PyTorch backend.

Runs a PolicyNet directly, without export. Useful for local checkpoints and
for tests that need a real network rather than a stub.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import torch

from policy_engine.inference.base import InferenceBackend
from policy_engine.inference.model import PolicyNet
from policy_engine.inference.schema import (
    BOARDS_NAME,
    ELO_OPPO_NAME,
    ELO_SELF_NAME,
    POLICY_NAME,
)

logger = logging.getLogger(__name__)

VALUE_NAME = "logits_value"


class TorchBackend(InferenceBackend):
    """PolicyNet policy backend.

    The model is put in evaluation mode and run without gradients.
    """

    def __init__(self, model: PolicyNet, device: str = "cpu"):
        """Initialize torch backend.

        Args:
            model: PolicyNet, trained or freshly initialized
            device: Device to run model on ("cpu" or "cuda")
        """
        self.model = model.to(device)
        self.model.eval()
        self.device = device

    @property
    def input_names(self) -> Sequence[str]:
        return (BOARDS_NAME, ELO_SELF_NAME, ELO_OPPO_NAME)

    @property
    def output_names(self) -> Sequence[str]:
        return (POLICY_NAME, VALUE_NAME)

    def output_size(self, name: str) -> Optional[int]:
        if name == POLICY_NAME:
            return self.model.policy_size
        if name == VALUE_NAME:
            return 1
        return None

    def run(self, feeds: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        boards = torch.from_numpy(feeds[BOARDS_NAME]).to(self.device)
        elo_self = torch.from_numpy(feeds[ELO_SELF_NAME]).to(self.device)
        elo_oppo = torch.from_numpy(feeds[ELO_OPPO_NAME]).to(self.device)

        with torch.no_grad():
            policy, value = self.model(boards, elo_self, elo_oppo)

        return {
            POLICY_NAME: policy.cpu().numpy(),
            VALUE_NAME: value.cpu().numpy(),
        }

    @classmethod
    def from_checkpoint(cls, path: Union[str, Path], device: str = "cpu") -> "TorchBackend":
        """Load a PolicyNet checkpoint written by save_checkpoint().

        Args:
            path: Checkpoint file (.pt)
            device: Device to run model on
        """
        checkpoint = torch.load(path, map_location=device, weights_only=False)

        model = PolicyNet(
            blocks=checkpoint.get("blocks", 5),
            channels=checkpoint.get("channels", 128),
            policy_size=checkpoint["policy_size"],
        )
        model.load_state_dict(checkpoint["model_state_dict"])

        logger.info(f"Loaded PolicyNet checkpoint from {path}: {model.blocks}b{model.channels}ch")
        return cls(model, device=device)


def save_checkpoint(model: PolicyNet, path: Union[str, Path]) -> None:
    """Save a PolicyNet with the architecture needed to rebuild it."""
    torch.save(
        {
            "model_state_dict": model.state_dict(),
            "blocks": model.blocks,
            "channels": model.channels,
            "policy_size": model.policy_size,
        },
        path,
    )
