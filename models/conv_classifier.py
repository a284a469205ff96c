from dataclasses import dataclass

import torch
import torch.nn as nn
import torch.nn.functional as F


@dataclass
class ConvConfig:
    conv1_out: int = 24
    conv2_out: int = 24
    conv3_out: int = 48
    kernel_size: int = 8
    last_kernel_size: int = 4
    dense_hidden: int = 48
    dropout: float = 0.5


class ConvClassifier(nn.Module):
    """
    Small 1-D CNN over padded sensor windows.
    Input: (B, L, N) -> treat N as channels for Conv1d: (B, N, L)
    Three Conv1d layers, global average pool over time, two dense layers.
    Output: logits (B, num_classes)
    """
    def __init__(self, n_vars: int, num_classes: int, cfg: ConvConfig = None):
        super().__init__()
        cfg = cfg or ConvConfig()
        self.conv1 = nn.Conv1d(n_vars, cfg.conv1_out, kernel_size=cfg.kernel_size)
        self.conv2 = nn.Conv1d(cfg.conv1_out, cfg.conv2_out, kernel_size=cfg.kernel_size)
        self.conv3 = nn.Conv1d(cfg.conv2_out, cfg.conv3_out, kernel_size=cfg.last_kernel_size)
        self.drop = nn.Dropout(cfg.dropout)
        self.fc1 = nn.Linear(cfg.conv3_out, cfg.dense_hidden)
        self.fc2 = nn.Linear(cfg.dense_hidden, num_classes)
        self.min_length = 2 * (cfg.kernel_size - 1) + cfg.last_kernel_size

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # x: (B, L, N)
        if x.size(1) < self.min_length:
            raise ValueError(f"sequence length {x.size(1)} is shorter than the receptive field {self.min_length}")
        x = x.transpose(1, 2)  # (B, N, L)
        x = F.relu(self.conv1(x))
        x = self.drop(F.relu(self.conv2(x)))
        x = F.relu(self.conv3(x))
        x = x.mean(dim=2)      # global average pool
        x = self.drop(F.relu(self.fc1(x)))
        return self.fc2(x)
