from .conv_classifier import ConvClassifier, ConvConfig

__all__ = ["ConvClassifier", "ConvConfig"]
