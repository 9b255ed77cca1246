"""
Unit Tests for the Policy Network and Inference Backends

Tests for PolicyNet architecture, the in-process PyTorch backend, checkpoint
round trips and the ONNX Runtime wrapper (with the runtime mocked).
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import chess
import numpy as np
import pytest
import torch

from policy_engine.board.representation import encode_board
from policy_engine.inference.model import PolicyNet, ResidualBlock, create_model
from policy_engine.inference.onnx_backend import OnnxBackend
from policy_engine.inference.schema import ModelIOConfig
from policy_engine.inference.torch_backend import TorchBackend, save_checkpoint
from policy_engine.policy.move_index import REFERENCE_POLICY_SIZE


@pytest.fixture
def small_model():
    torch.manual_seed(0)
    return PolicyNet(blocks=3, channels=64)


def categories(*values):
    return torch.tensor(values, dtype=torch.long)


class TestResidualBlock:
    """Tests for ResidualBlock component."""

    def test_preserves_shape(self):
        block = ResidualBlock(64)
        x = torch.randn(2, 64, 8, 8)

        assert block(x).shape == x.shape


class TestPolicyNet:
    """Tests for PolicyNet architecture."""

    def test_output_shapes(self, small_model):
        boards = torch.randn(4, 18, 8, 8)
        policy, value = small_model(boards, categories(1, 2, 3, 4), categories(5, 5, 5, 5))

        assert policy.shape == (4, REFERENCE_POLICY_SIZE)
        assert value.shape == (4,)

    def test_value_bounded(self, small_model):
        small_model.eval()
        boards = torch.randn(8, 18, 8, 8) * 10
        _, value = small_model(boards, categories(*[0] * 8), categories(*[10] * 8))

        assert torch.all(value >= -1.0)
        assert torch.all(value <= 1.0)

    def test_skill_changes_policy(self, small_model):
        small_model.eval()
        boards = torch.from_numpy(encode_board(chess.Board()))[None]

        with torch.no_grad():
            weak, _ = small_model(boards, categories(0), categories(5))
            strong, _ = small_model(boards, categories(10), categories(5))

        assert not torch.allclose(weak, strong)

    def test_custom_policy_size(self):
        model = PolicyNet(blocks=3, channels=64, policy_size=100)
        policy, _ = model(torch.randn(2, 18, 8, 8), categories(0, 1), categories(0, 1))

        assert policy.shape == (2, 100)

    @pytest.mark.parametrize("kwargs", [
        {"blocks": 4},
        {"channels": 100},
        {"policy_size": 0},
    ])
    def test_invalid_architecture(self, kwargs):
        with pytest.raises(ValueError):
            PolicyNet(**kwargs)

    def test_create_model_presets(self):
        assert create_model("small").blocks == 3
        assert create_model("medium").channels == 128

        with pytest.raises(ValueError):
            create_model("huge")

    def test_parameter_count(self, small_model):
        assert small_model.count_parameters() > 0
        assert "policy_size=1880" in repr(small_model)


class TestTorchBackend:
    """In-process PyTorch backend."""

    def test_schema_resolves(self, small_model):
        backend = TorchBackend(small_model)
        io = ModelIOConfig.resolve(backend.input_names, backend.output_names)

        assert io.rating_conditioned
        assert backend.output_size(io.policy) == REFERENCE_POLICY_SIZE

    def test_run(self, small_model):
        backend = TorchBackend(small_model)
        io = ModelIOConfig.resolve(backend.input_names, backend.output_names)
        feeds = io.build_feeds(encode_board(chess.Board()), 5, 6)

        outputs = backend.run(feeds)

        assert outputs["logits_maia"].shape == (1, REFERENCE_POLICY_SIZE)
        assert outputs["logits_value"].shape == (1,)
        assert np.all(np.isfinite(outputs["logits_maia"]))

    def test_eval_mode(self, small_model):
        backend = TorchBackend(small_model)
        assert not backend.model.training

    def test_checkpoint_round_trip(self, small_model, tmp_path):
        path = tmp_path / "policy.pt"
        save_checkpoint(small_model, path)

        original = TorchBackend(small_model)
        loaded = TorchBackend.from_checkpoint(path)
        io = ModelIOConfig.resolve(original.input_names, original.output_names)
        feeds = io.build_feeds(encode_board(chess.Board()), 3, 4)

        assert loaded.model.blocks == 3
        assert loaded.model.channels == 64
        np.testing.assert_allclose(
            loaded.run(feeds)["logits_maia"],
            original.run(feeds)["logits_maia"],
            rtol=1e-5,
            atol=1e-5,
        )


class TestOnnxBackend:
    """ONNX Runtime wrapper with the runtime mocked out."""

    @pytest.fixture
    def session(self):
        session = MagicMock()
        session.get_inputs.return_value = [
            SimpleNamespace(name="boards", shape=["batch", 18, 8, 8]),
            SimpleNamespace(name="elo_self", shape=["batch"]),
            SimpleNamespace(name="elo_oppo", shape=["batch"]),
        ]
        session.get_outputs.return_value = [
            SimpleNamespace(name="logits_maia", shape=["batch", 1880]),
            SimpleNamespace(name="logits_value", shape=["batch"]),
        ]
        session.get_providers.return_value = ["CPUExecutionProvider"]
        session.run.return_value = [
            np.zeros((1, 1880), dtype=np.float32),
            np.zeros((1,), dtype=np.float32),
        ]
        return session

    @pytest.fixture
    def ort(self, session):
        with patch("policy_engine.inference.onnx_backend.ort") as ort:
            ort.InferenceSession.return_value = session
            ort.get_available_providers.return_value = ["CPUExecutionProvider"]
            yield ort

    def test_names(self, ort):
        backend = OnnxBackend("model.onnx")

        assert backend.input_names == ("boards", "elo_self", "elo_oppo")
        assert backend.output_names == ("logits_maia", "logits_value")

    def test_output_size(self, ort):
        backend = OnnxBackend("model.onnx")

        assert backend.output_size("logits_maia") == 1880
        assert backend.output_size("logits_value") is None
        assert backend.output_size("missing") is None

    def test_symbolic_output_size(self, ort, session):
        session.get_outputs.return_value = [
            SimpleNamespace(name="logits_maia", shape=["batch", "moves"]),
        ]
        backend = OnnxBackend("model.onnx")

        assert backend.output_size("logits_maia") is None

    def test_run_names_outputs(self, ort, session):
        backend = OnnxBackend("model.onnx")
        feeds = {"boards": np.zeros((1, 18, 8, 8), dtype=np.float32)}

        outputs = backend.run(feeds)

        session.run.assert_called_once_with(None, feeds)
        assert set(outputs) == {"logits_maia", "logits_value"}
        assert outputs["logits_maia"].shape == (1, 1880)

    def test_cpu_provider_by_default(self, ort):
        OnnxBackend("model.onnx")

        _, kwargs = ort.InferenceSession.call_args
        assert kwargs["providers"] == ["CPUExecutionProvider"]

    def test_gpu_provider_when_available(self, ort):
        ort.get_available_providers.return_value = ["CUDAExecutionProvider", "CPUExecutionProvider"]
        OnnxBackend("model.onnx", prefer_gpu=True)

        _, kwargs = ort.InferenceSession.call_args
        assert kwargs["providers"] == ["CUDAExecutionProvider", "CPUExecutionProvider"]
