# File: blockpuzzle/nn/__init__.py
from .model import PolicyNet, ValueNet, build_mlp
from .network import NetworkEvaluationError, NeuralNetwork

__all__ = [
    "ValueNet",
    "PolicyNet",
    "build_mlp",
    "NeuralNetwork",
    "NetworkEvaluationError",
]
