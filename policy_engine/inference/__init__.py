"""
Inference Module

The policy network is treated as a black box behind InferenceBackend. The
engine only depends on the interface; runtimes are swappable.

Key Components:
    - InferenceBackend (ABC): named numpy arrays in, named arrays out
    - ModelIOConfig: tensor names resolved and validated once at load time
    - OnnxBackend: ONNX Runtime session for exported models
    - TorchBackend: in-process PolicyNet
    - PolicyNet: skill-conditioned ResNet with policy and value heads
"""

from policy_engine.inference.base import InferenceBackend
from policy_engine.inference.model import PolicyNet, ResidualBlock, create_model
from policy_engine.inference.onnx_backend import OnnxBackend
from policy_engine.inference.schema import ModelIOConfig
from policy_engine.inference.torch_backend import TorchBackend, save_checkpoint

__all__ = [
    'InferenceBackend',
    'ModelIOConfig',
    'OnnxBackend',
    'PolicyNet',
    'ResidualBlock',
    'TorchBackend',
    'create_model',
    'save_checkpoint',
]
