"""
ResNet-based policy network conditioned on player skill.

Components:
    - Conv2d: Convolutional layer that slides 3x3 filters across the board to
      detect local patterns (piece configurations, pawn structures).

    - BatchNorm2d (BN): Normalizes activations for stable training.

    - Skip Connection: Residual path (x + f(x)) that lets gradients flow
      directly through deep towers.

    - Skill embeddings: one learned vector per skill category for the side
      to move and one for its opponent, added to every square of the first
      feature map so the whole tower is conditioned on both ratings.

    - Policy head: one logit per slot of the move index table.

    - Value head: Tanh-bounded scalar, +1 = side to move winning.

Input and output names match the exported-model schema (boards, elo_self,
elo_oppo -> logits_maia, logits_value) so the same engine code drives this
model in-process or after ONNX export.
"""

from typing import Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from policy_engine.board.representation import NUM_CHANNELS
from policy_engine.policy.move_index import REFERENCE_POLICY_SIZE
from policy_engine.skill.elo import NUM_CATEGORIES


class ResidualBlock(nn.Module):
    """Residual block with two convolutional layers and skip connection.

    Architecture:
        x -> Conv -> BN -> ReLU -> Conv -> BN -> (+x) -> ReLU
    """

    def __init__(self, channels: int):
        super().__init__()

        self.conv1 = nn.Conv2d(channels, channels, kernel_size=3, padding=1, bias=False)
        self.bn1 = nn.BatchNorm2d(channels)
        self.conv2 = nn.Conv2d(channels, channels, kernel_size=3, padding=1, bias=False)
        self.bn2 = nn.BatchNorm2d(channels)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        residual = x

        x = F.relu(self.bn1(self.conv1(x)))
        x = self.bn2(self.conv2(x))

        # Skip connection
        x = x + residual
        x = F.relu(x)

        return x


class PolicyNet(nn.Module):
    """Skill-conditioned ResNet policy network.

    Architecture:
        1. Input: (N, 18, 8, 8) board planes, (N,) self and opponent skill
           categories in [0, 10]

        2. Initial convolution: 18 -> channels, plus skill embeddings

        3. N residual blocks (depth configurable)

        4. Policy head:
           - 1x1 conv: channels -> 32
           - Flatten + Dense
           - Output: (N, policy_size) logits

        5. Value head:
           - 1x1 conv: channels -> 32
           - Flatten + Dense layers
           - Output: (N,) in [-1, 1]
    """

    def __init__(
        self,
        blocks: int = 5,
        channels: int = 128,
        policy_size: int = REFERENCE_POLICY_SIZE,
    ):
        """Initialize PolicyNet.

        Args:
            blocks: Number of residual blocks (3, 5, 10, 15, or 20)
            channels: Number of filters per conv layer (64, 128, 256, or 512)
            policy_size: Number of policy slots (length of the move table)

        Raises:
            ValueError: If blocks, channels or policy_size not allowed
        """
        super().__init__()

        if blocks not in [3, 5, 10, 15, 20]:
            raise ValueError(
                f"blocks must be 3, 5, 10, 15, or 20, got {blocks}"
            )

        if channels not in [64, 128, 256, 512]:
            raise ValueError(
                f"channels must be 64, 128, 256, or 512, got {channels}"
            )

        if policy_size <= 0:
            raise ValueError(f"policy_size must be positive, got {policy_size}")

        self.blocks = blocks
        self.channels = channels
        self.policy_size = policy_size

        self.input_conv = nn.Conv2d(NUM_CHANNELS, channels, kernel_size=3, padding=1, bias=False)
        self.input_bn = nn.BatchNorm2d(channels)

        self.elo_self_embedding = nn.Embedding(NUM_CATEGORIES, channels)
        self.elo_oppo_embedding = nn.Embedding(NUM_CATEGORIES, channels)

        # Residual tower
        self.res_blocks = nn.ModuleList([
            ResidualBlock(channels) for _ in range(blocks)
        ])

        # Policy head
        self.policy_conv = nn.Conv2d(channels, 32, kernel_size=1, bias=False)
        self.policy_bn = nn.BatchNorm2d(32)
        self.policy_fc = nn.Linear(32 * 8 * 8, policy_size)

        # Value head
        self.value_conv = nn.Conv2d(channels, 32, kernel_size=1, bias=False)
        self.value_bn = nn.BatchNorm2d(32)
        self.value_fc1 = nn.Linear(32 * 8 * 8, 256)
        self.value_fc2 = nn.Linear(256, 1)

    def forward(
        self,
        boards: torch.Tensor,
        elo_self: torch.Tensor,
        elo_oppo: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """Forward pass through network.

        Args:
            boards: Board planes (N, 18, 8, 8)
            elo_self: Skill categories of the side to move (N,), int64
            elo_oppo: Skill categories of the opponent (N,), int64

        Returns:
            Tuple of (policy logits (N, policy_size), value (N,))
        """
        x = self.input_bn(self.input_conv(boards))

        skill = self.elo_self_embedding(elo_self) + self.elo_oppo_embedding(elo_oppo)
        x = F.relu(x + skill[:, :, None, None])

        for block in self.res_blocks:
            x = block(x)

        p = F.relu(self.policy_bn(self.policy_conv(x)))
        policy = self.policy_fc(p.view(p.size(0), -1))

        v = F.relu(self.value_bn(self.value_conv(x)))
        v = F.relu(self.value_fc1(v.view(v.size(0), -1)))
        value = torch.tanh(self.value_fc2(v)).squeeze(-1)

        return policy, value

    def count_parameters(self) -> int:
        """Count trainable parameters in model."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)

    def __repr__(self) -> str:
        """String representation of model."""
        params = self.count_parameters()
        return (
            f"PolicyNet(\n"
            f"  blocks={self.blocks},\n"
            f"  channels={self.channels},\n"
            f"  policy_size={self.policy_size},\n"
            f"  parameters={params:,}\n"
            f")"
        )


def create_model(config_name: str = "medium") -> PolicyNet:
    """Factory function to create model from preset configurations.

    Args:
        config_name: One of "small", "medium", "large"

    Raises:
        ValueError: If config_name not recognized
    """
    configs = {
        "small": {"blocks": 3, "channels": 64},
        "medium": {"blocks": 5, "channels": 128},
        "large": {"blocks": 10, "channels": 256},
    }

    if config_name not in configs:
        raise ValueError(
            f"config_name must be 'small', 'medium', or 'large', got '{config_name}'"
        )

    return PolicyNet(**configs[config_name])
