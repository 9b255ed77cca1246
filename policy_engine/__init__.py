"""
Policy Engine

A human-like chess move engine driven by a skill-conditioned policy network.
The engine encodes positions into the exact planes the network expects,
runs the network, and turns its policy back into one legal move played at a
configurable rating.

## Architecture

The engine is organized into several key modules:

1. **board**: Position encoding
   - 18-channel plane tensors (pieces, side to move, castling, en passant)
   - Perspective mirroring so the network always sees White to move

2. **skill**: Rating handling
   - Elo to skill category (0-10) mapping
   - Difficulty presets and exploration rates

3. **policy**: Policy decoding
   - Static move <-> policy index table
   - Legal-move softmax, ranking and top-k exploration

4. **opening**: Fixed two-move opening book for variety

5. **inference**: Swappable network runtimes (ONNX Runtime, PyTorch)

6. **engine**: Turn orchestration, fallbacks and game sessions

7. **uci**: Universal Chess Interface front-end

## Quick Start

```python
import chess
from policy_engine.engine import EngineConfig, EngineHandle, GameSession

config = EngineConfig.for_difficulty("adept", model_path="models/maia_rapid.onnx",
                                     move_index_path="models/all_moves.json")
handle = EngineHandle.from_config(config)

session = GameSession(handle, config)
session.push_player_move("e2e4")
decision = session.play_engine_move()
print(f"Engine played {decision.move} ({decision.source.value})")
```

### As a UCI Engine

```bash
python -m policy_engine.uci models/maia_rapid.onnx
```

## Version

0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

from policy_engine.engine import EngineConfig, EngineHandle, GameSession, MoveEngine
from policy_engine.errors import EngineError

__all__ = [
    'EngineConfig',
    'EngineHandle',
    'EngineError',
    'GameSession',
    'MoveEngine',
]
