"""
Training, checkpointing and evaluation of the activity classifier.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import torch
import torch.nn as nn
from sklearn.metrics import accuracy_score, confusion_matrix, f1_score

logger = logging.getLogger(__name__)


@dataclass
class TrainConfig:
    epochs: int = 350
    batch_size: int = 24
    lr: float = 1e-3
    validation_fraction: float = 0.2
    patience: int = 50
    log_every: int = 10
    seed: int = 42
    checkpoint_path: Optional[str] = None


def _holdout(n: int, fraction: float, rng: np.random.RandomState):
    perm = rng.permutation(n)
    n_val = int(round(n * fraction)) if n > 1 else 0
    n_val = min(n_val, n - 1)
    return perm[n_val:], perm[:n_val]


def _batch_loss(model, criterion, X, y, idx, batch_size, device):
    total, count = 0.0, 0
    with torch.no_grad():
        for i in range(0, len(idx), batch_size):
            b = idx[i:i + batch_size]
            X_b = X[torch.as_tensor(b)].to(device)
            y_b = torch.as_tensor(y[b], dtype=torch.long, device=device)
            total += criterion(model(X_b), y_b).item() * len(b)
            count += len(b)
    return total / max(count, 1)


def train_model(model: nn.Module, X: torch.Tensor, y: np.ndarray, cfg: TrainConfig,
                device: torch.device | str = "cpu") -> List[Dict[str, float]]:
    """
    Fit ``model`` on X [N, L, C] and class indices y [N].

    A validation fraction of the training rows is held out; the weights with
    the lowest validation loss are checkpointed and restored at the end.
    Training stops after ``cfg.patience`` epochs without improvement.

    Returns:
        per-epoch history of train/validation loss and validation accuracy
    """
    rng = np.random.RandomState(cfg.seed)
    y = np.asarray(y, dtype=np.int64)
    train_idx, val_idx = _holdout(len(X), cfg.validation_fraction, rng)
    logger.info(f"Training on {len(train_idx)} rows, validating on {len(val_idx)} rows")

    model = model.to(device)
    optimizer = torch.optim.Adam(model.parameters(), lr=cfg.lr)
    criterion = nn.CrossEntropyLoss()

    history = []
    best_loss, best_state, stale = float("inf"), None, 0

    for epoch in range(cfg.epochs):
        model.train()
        perm = train_idx[rng.permutation(len(train_idx))]
        total_loss, n_batches = 0.0, 0
        for i in range(0, len(perm), cfg.batch_size):
            idx = perm[i:i + cfg.batch_size]
            X_b = X[torch.as_tensor(idx)].to(device)
            y_b = torch.as_tensor(y[idx], dtype=torch.long, device=device)
            loss = criterion(model(X_b), y_b)
            optimizer.zero_grad()
            loss.backward()
            optimizer.step()
            total_loss += loss.item()
            n_batches += 1

        model.eval()
        train_loss = total_loss / max(n_batches, 1)
        if len(val_idx):
            val_loss = _batch_loss(model, criterion, X, y, val_idx, cfg.batch_size, device)
            val_pred = predict_proba(model, X[torch.as_tensor(val_idx)], cfg.batch_size, device).argmax(axis=1)
            val_acc = accuracy_score(y[val_idx], val_pred)
        else:
            val_loss, val_acc = train_loss, float("nan")
        history.append({"epoch": epoch + 1, "loss": train_loss, "val_loss": val_loss, "val_acc": val_acc})

        if (epoch + 1) % cfg.log_every == 0:
            logger.info(f"Epoch {epoch+1}/{cfg.epochs} loss={train_loss:.4f} "
                        f"val_loss={val_loss:.4f} val_acc={val_acc:.4f}")

        if val_loss < best_loss:
            best_loss, stale = val_loss, 0
            best_state = {k: v.detach().cpu().clone() for k, v in model.state_dict().items()}
            if cfg.checkpoint_path:
                save_checkpoint(model, cfg.checkpoint_path, epoch=epoch + 1, val_loss=val_loss)
        else:
            stale += 1
            if stale >= cfg.patience:
                logger.info(f"Early stopping at epoch {epoch+1} (best val_loss={best_loss:.4f})")
                break

    if best_state is not None:
        model.load_state_dict(best_state)
    return history


def save_checkpoint(model: nn.Module, path: str, **meta) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    torch.save({"state_dict": model.state_dict(), **meta}, path)


def load_checkpoint(model: nn.Module, path: str, device: torch.device | str = "cpu") -> dict:
    checkpoint = torch.load(path, map_location=device)
    model.load_state_dict(checkpoint["state_dict"])
    return checkpoint


def predict_proba(model: nn.Module, X: torch.Tensor, batch_size: int = 256,
                  device: torch.device | str = "cpu") -> np.ndarray:
    """Class probabilities [N, num_classes]."""
    model.eval()
    out = []
    with torch.no_grad():
        for i in range(0, len(X), batch_size):
            logits = model(X[i:i + batch_size].to(device))
            out.append(torch.softmax(logits, dim=1).cpu().numpy())
    if not out:
        return np.zeros((0, 0), dtype=np.float32)
    return np.concatenate(out, axis=0)


def evaluate(y_true: np.ndarray, y_pred: np.ndarray, num_classes: int) -> dict:
    labels = list(range(num_classes))
    return {
        "accuracy": accuracy_score(y_true, y_pred),
        "f1": f1_score(y_true, y_pred, labels=labels, average="macro", zero_division=0),
        "confusion_matrix": confusion_matrix(y_true, y_pred, labels=labels),
    }
